"""
Client MyAnimeList (API v2) pour les titres d'animation.

Authentification par client id seul (header X-MAL-CLIENT-ID), suffisante
pour les endpoints publics de recherche et de details.
"""

from typing import Any, Optional

import httpx

from src.adapters.api.normalize import extract_year, optional_str
from src.adapters.api.rate_limiter import RateLimiter
from src.adapters.api.retry import decode_json, request_with_retry
from src.core.ports.api_clients import IMetadataProvider
from src.core.value_objects import MediaIds, MediaType, MetadataResult, ServiceType

# Champs demandes a l'API (par defaut MAL ne renvoie que id et title)
MAL_FIELDS = "id,title,start_date,media_type"


class MALClient(IMetadataProvider):
    """
    Client MyAnimeList implementant IMetadataProvider.

    MAL ne filtre pas par annee: la recherche repose sur le titre seul.
    Le type MAL "movie" donne un film, tout autre type declare (tv, ova,
    ona, special...) une serie.
    """

    BASE_URL = "https://api.myanimelist.net/v2"
    SEARCH_LIMIT = 10

    def __init__(
        self,
        client_id: str,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = 30.0,
    ) -> None:
        self._client_id = client_id
        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                headers={"X-MAL-CLIENT-ID": self._client_id},
                timeout=self._timeout,
            )
        return self._client

    @property
    def service(self) -> ServiceType:
        return ServiceType.MAL

    async def _get(self, url: str, params: dict[str, str]) -> Any:
        response = await request_with_retry(
            self._get_client(),
            "GET",
            url,
            provider=self.service.value,
            rate_limiter=self._rate_limiter,
            params=params,
        )
        return decode_json(response, self.service.value)

    async def search(
        self,
        title: str,
        media_type: MediaType,
        year: Optional[int] = None,
    ) -> list[MetadataResult]:
        """Recherche sur /anime; media_type et year ne restreignent pas la requete."""
        data = await self._get(
            "/anime",
            params={"q": title, "limit": str(self.SEARCH_LIMIT), "fields": MAL_FIELDS},
        )
        return [
            self._to_result(entry.get("node") or {})
            for entry in data.get("data") or []
        ]

    async def get_details(self, media_id: str, media_type: MediaType) -> MetadataResult:
        data = await self._get(f"/anime/{media_id}", params={"fields": MAL_FIELDS})
        return self._to_result(data)

    @staticmethod
    def _to_result(node: dict[str, Any]) -> MetadataResult:
        mal_type = (node.get("media_type") or "").lower()
        return MetadataResult(
            ids=MediaIds(mal=optional_str(node.get("id"))),
            title=node.get("title") or "",
            year=extract_year(node.get("start_date")),
            media_type=MediaType.MOVIE if mal_type == "movie" else MediaType.SERIES,
            source=ServiceType.MAL,
        )

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
