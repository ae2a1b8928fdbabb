"""
Client TMDB pour la recherche et recuperation de metadonnees films et series.

Implemente l'interface IMetadataProvider pour TMDB (The Movie Database).
Utilise le mecanisme de retry pour gerer le rate limiting et le
RateLimiter du fournisseur pour respecter son budget d'appels.

Usage:
    client = TMDBClient(api_key="your_token")
    results = await client.search("Inception", MediaType.MOVIE, year=2010)
    details = await client.get_details("27205", MediaType.MOVIE)
    await client.close()
"""

from typing import Any, Optional

import httpx

from src.adapters.api.normalize import (
    extract_year,
    infer_media_type,
    optional_str,
    select_title,
)
from src.adapters.api.rate_limiter import RateLimiter
from src.adapters.api.retry import decode_json, request_with_retry
from src.core.ports.api_clients import IMetadataProvider
from src.core.value_objects import MediaIds, MediaType, MetadataResult, ServiceType


def _type_path(media_type: MediaType) -> str:
    return "movie" if media_type == MediaType.MOVIE else "tv"


class TMDBClient(IMetadataProvider):
    """
    Client API TMDB pour les metadonnees de films et series.

    Implemente IMetadataProvider avec:
    - Recherche par titre sur /search/movie ou /search/tv (filtre annee optionnel)
    - Recuperation des details avec les IDs externes (dont l'ID TVDB)
    - Retry automatique sur rate limiting (429)

    Attributes:
        TMDB_BASE_URL: URL de base de l'API TMDB v3
    """

    TMDB_BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        api_key: str,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialise le client TMDB.

        Args:
            api_key: Cle API TMDB (Read Access Token, envoye en Bearer)
            rate_limiter: Budget d'appels du fournisseur (optionnel)
            timeout: Timeout HTTP en secondes
        """
        self._api_key = api_key
        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Retourne le client HTTP, le cree si necessaire (lazy init).

        Returns:
            httpx.AsyncClient configure pour l'API TMDB
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.TMDB_BASE_URL,
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {self._api_key}",
                },
                timeout=self._timeout,
            )
        return self._client

    @property
    def service(self) -> ServiceType:
        """Retourne l'identifiant du fournisseur."""
        return ServiceType.TMDB

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
        Recherche des films ou series par titre.

        Args:
            title: Titre a rechercher
            media_type: MOVIE -> /search/movie, SERIES -> /search/tv
            year: Annee optionnelle, transmise en parametre `year`

        Returns:
            Liste de MetadataResult (vide si aucun resultat)
        """
        params = {
            "query": title,
            "include_adult": "false",
        }
        if year is not None:
            params["year"] = str(year)

        data = await self._get(f"/search/{_type_path(media_type)}", params=params)
        return [self._item_to_result(item) for item in data.get("results") or []]

    async def get_details(self, media_id: str, media_type: MediaType) -> MetadataResult:
        """
        Recupere les details d'un film ou d'une serie avec ses IDs externes.

        Args:
            media_id: ID TMDB
            media_type: Type de media (choisit /movie ou /tv)

        Returns:
            MetadataResult avec tmdb et, si connu, tvdb
        """
        data = await self._get(
            f"/{_type_path(media_type)}/{media_id}",
            params={"append_to_response": "external_ids"},
        )
        return self._details_to_result(data)

    @staticmethod
    def _item_to_result(item: dict[str, Any]) -> MetadataResult:
        """Convertit un element de /search en MetadataResult."""
        movie_title = item.get("title")
        return MetadataResult(
            ids=MediaIds(tmdb=optional_str(item.get("id"))),
            title=select_title(movie_title, item.get("name")),
            year=extract_year(item.get("release_date"), item.get("first_air_date")),
            media_type=infer_media_type(item.get("media_type"), movie_title),
            source=ServiceType.TMDB,
        )

    @staticmethod
    def _details_to_result(data: dict[str, Any]) -> MetadataResult:
        """Convertit une reponse de details (append_to_response=external_ids)."""
        movie_title = data.get("title")
        external_ids = data.get("external_ids") or {}
        return MetadataResult(
            ids=MediaIds(
                tmdb=optional_str(data.get("id")),
                tvdb=optional_str(external_ids.get("tvdb_id")),
            ),
            title=select_title(movie_title, data.get("name")),
            year=extract_year(data.get("release_date"), data.get("first_air_date")),
            media_type=infer_media_type(data.get("media_type"), movie_title),
            source=ServiceType.TMDB,
        )

    async def close(self) -> None:
        """
        Ferme le client HTTP.

        Doit etre appele a la fin de l'utilisation pour liberer
        les ressources reseau.
        """
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
