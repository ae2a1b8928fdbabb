"""
Client Simkl pour la recherche d'identifiants croises.

Simkl expose pour chaque titre ses propres IDs ainsi que les IDs TMDB, TVDB
et MyAnimeList connus, ce qui en fait une source riche pour la fusion.

Authentification: client secret en Bearer, client id dans le header
`simkl-api-key`.
"""

from typing import Any, Optional

import httpx

from src.adapters.api.normalize import extract_year, optional_str, parse_explicit_type
from src.adapters.api.rate_limiter import RateLimiter
from src.adapters.api.retry import decode_json, request_with_retry
from src.core.ports.api_clients import IMetadataProvider
from src.core.value_objects import MediaIds, MediaType, MetadataResult, ServiceType


class SimklClient(IMetadataProvider):
    """
    Client Simkl implementant IMetadataProvider.

    Example:
        client = SimklClient(client_id="id", client_secret="secret")
        results = await client.search("Inception", MediaType.MOVIE)
        await client.close()
    """

    BASE_URL = "https://api.simkl.com"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            client_id: Client ID de l'application Simkl
            client_secret: Client secret, envoye comme token Bearer
            rate_limiter: Budget d'appels du fournisseur (optionnel)
            timeout: Timeout HTTP en secondes
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                headers={
                    "Authorization": f"Bearer {self._client_secret}",
                    "simkl-api-key": self._client_id,
                },
                timeout=self._timeout,
            )
        return self._client

    @property
    def service(self) -> ServiceType:
        return ServiceType.SIMKL

    async def _get(self, url: str, params: Optional[dict[str, str]] = None) -> Any:
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
        """
        Recherche par titre sur /search (type=movie ou type=show).

        Returns:
            Liste de MetadataResult, vide si Simkl ne repond rien
        """
        params = {
            "q": title,
            "type": "movie" if media_type == MediaType.MOVIE else "show",
        }
        if year is not None:
            params["year"] = str(year)

        data = await self._get("/search", params=params)
        # Simkl repond `null` ou [] quand rien ne correspond
        if not isinstance(data, list):
            return []
        return [self._to_result(item, media_type) for item in data]

    async def get_details(self, media_id: str, media_type: MediaType) -> MetadataResult:
        """Details sur /movies/{id} ou /shows/{id} avec extended=full."""
        type_path = "movies" if media_type == MediaType.MOVIE else "shows"
        data = await self._get(f"/{type_path}/{media_id}", params={"extended": "full"})
        return self._to_result(data or {}, media_type)

    @staticmethod
    def _to_result(item: dict[str, Any], requested_type: MediaType) -> MetadataResult:
        """
        Convertit un element Simkl.

        Simkl n'a qu'un champ titre: le type vient du champ `type` quand il
        est fourni, sinon du type demande.
        """
        ids = item.get("ids") or {}
        return MetadataResult(
            ids=MediaIds(
                simkl=optional_str(ids.get("simkl") or ids.get("simkl_id")),
                tmdb=optional_str(ids.get("tmdb")),
                tvdb=optional_str(ids.get("tvdb")),
                mal=optional_str(ids.get("mal")),
            ),
            title=item.get("title") or "",
            year=extract_year(item.get("year")),
            media_type=parse_explicit_type(item.get("type")) or requested_type,
            source=ServiceType.SIMKL,
        )

    async def close(self) -> None:
        """Ferme le client HTTP."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
