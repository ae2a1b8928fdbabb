"""
Client TVDB API v3 pour les series TV.

Implemente IMetadataProvider pour rechercher et recuperer les metadonnees
des series TV depuis TVDB. Gere l'authentification JWT via TVDBTokenSession:
le token est obtenu a la premiere requete, partage par tous les appels du
client, et renouvele une seule fois quand une requete repond 401.

Reference API: https://api.thetvdb.com/swagger
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
from loguru import logger

from src.adapters.api.normalize import extract_year, optional_str
from src.adapters.api.rate_limiter import RateLimiter
from src.adapters.api.retry import decode_json, request_with_retry
from src.core.errors import AuthError, MetadataError, ProviderError
from src.core.ports.api_clients import IMetadataProvider
from src.core.value_objects import MediaIds, MediaType, MetadataResult, ServiceType

PROVIDER = ServiceType.TVDB.value


class TVDBTokenSession:
    """
    Cycle de vie du token Bearer TVDB.

    Etats: non authentifie -> authentifie(token) -> non authentifie (sur 401).

    Le token est protege par un asyncio.Lock: un seul echange /login a la
    fois, et les appelants concurrents qui trouvent un token valide ne
    declenchent pas de nouvelle authentification.
    """

    def __init__(
        self,
        api_key: str,
        login: Callable[[str], Awaitable[httpx.Response]],
    ) -> None:
        """
        Args:
            api_key: Cle API TVDB
            login: Coroutine executant POST /login avec la cle, retourne la reponse
        """
        self._api_key = api_key
        self._login = login
        self._token: Optional[str] = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> Optional[str]:
        """Token courant, None si non authentifie."""
        return self._token

    async def ensure_token(self) -> str:
        """
        Retourne le token en cache, ou s'authentifie s'il est absent.

        Raises:
            AuthError: Si l'authentification echoue
        """
        token = self._token
        if token is not None:
            return token
        async with self._lock:
            # Un autre appelant a pu s'authentifier pendant l'attente du verrou
            if self._token is None:
                self._token = await self._authenticate()
            return self._token

    async def invalidate(self, stale_token: str) -> None:
        """Oublie le token s'il est toujours celui qui a ete refuse."""
        async with self._lock:
            if self._token == stale_token:
                logger.info("TVDB: token refuse (401), reauthentification")
                self._token = None

    async def _authenticate(self) -> str:
        try:
            response = await self._login(self._api_key)
        except ProviderError as e:
            raise AuthError(f"TVDB authentication failed: {e}") from e

        try:
            token = response.json().get("token")
        except (ValueError, AttributeError) as e:
            raise AuthError("TVDB authentication failed: malformed response") from e
        if not token:
            raise AuthError("TVDB authentication failed: no token in response")

        logger.debug("TVDB: token obtenu")
        return token


class TVDBClient(IMetadataProvider):
    """
    Client TVDB pour la recherche de series TV.

    Une reponse 401 sur une requete authentifiee provoque exactement une
    reauthentification et un seul nouvel essai; un second 401 est une
    MetadataError definitive.

    Attributes:
        BASE_URL: URL de base de l'API TVDB v3

    Example:
        client = TVDBClient(api_key="your-api-key")
        results = await client.search("Breaking Bad", MediaType.SERIES)
        details = await client.get_details("81189", MediaType.SERIES)
        await client.close()
    """

    BASE_URL = "https://api.thetvdb.com"

    def __init__(
        self,
        api_key: str,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialise le client TVDB.

        Args:
            api_key: Cle API TVDB (Project API Key depuis le compte TVDB)
            rate_limiter: Budget d'appels du fournisseur (optionnel)
            timeout: Timeout HTTP en secondes
        """
        self._api_key = api_key
        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None
        self._session = TVDBTokenSession(api_key, self._post_login)

    def _get_client(self) -> httpx.AsyncClient:
        """
        Retourne le client HTTP, cree s'il n'existe pas.

        Utilise un client unique pour beneficier du connection pooling.
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
            )
        return self._client

    @property
    def service(self) -> ServiceType:
        """Retourne l'identifiant du fournisseur."""
        return ServiceType.TVDB

    @property
    def token_session(self) -> TVDBTokenSession:
        return self._session

    async def _post_login(self, api_key: str) -> httpx.Response:
        return await request_with_retry(
            self._get_client(),
            "POST",
            "/login",
            provider=PROVIDER,
            rate_limiter=self._rate_limiter,
            json={"apikey": api_key},
        )

    async def _authorized_get(
        self, url: str, params: Optional[dict[str, str]] = None
    ) -> httpx.Response:
        """
        GET authentifie avec reauthentification unique sur 401.

        Raises:
            AuthError: Si l'authentification echoue
            MetadataError: Statut d'echec, dont un 401 apres reauthentification
        """
        token = await self._session.ensure_token()
        try:
            return await self._send(url, token, params)
        except MetadataError as e:
            if e.status != 401:
                raise
            await self._session.invalidate(token)

        token = await self._session.ensure_token()
        return await self._send(url, token, params)

    async def _send(
        self, url: str, token: str, params: Optional[dict[str, str]]
    ) -> httpx.Response:
        return await request_with_retry(
            self._get_client(),
            "GET",
            url,
            provider=PROVIDER,
            rate_limiter=self._rate_limiter,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )

    async def search(
        self,
        title: str,
        media_type: MediaType,
        year: Optional[int] = None,
    ) -> list[MetadataResult]:
        """
        Recherche des series TV par titre.

        Seules les series sont recherchees. Une recherche de film retourne
        volontairement une liste vide sans appel reseau, alors que
        /search/series accepterait la requete: ses reponses ne contiennent
        que des series et ne peuvent pas identifier un film. L'annee n'est
        pas supportee par /search/series, la recherche repose sur le titre
        seul.

        Args:
            title: Titre de la serie a rechercher
            media_type: Type de media demande
            year: Ignore

        Returns:
            Liste de MetadataResult avec l'ID TVDB
        """
        if media_type != MediaType.SERIES:
            return []

        try:
            response = await self._authorized_get("/search/series", params={"name": title})
        except MetadataError as e:
            if e.status == 404:
                # TVDB retourne 404 quand aucune serie ne correspond
                return []
            raise

        data = decode_json(response, PROVIDER)
        return [self._to_result(item) for item in data.get("data") or []]

    async def get_details(self, media_id: str, media_type: MediaType) -> MetadataResult:
        """
        Recupere les details d'une serie.

        Args:
            media_id: ID TVDB de la serie
            media_type: Ignore (TVDB v3 ne connait que des series)

        Returns:
            MetadataResult avec l'ID TVDB
        """
        response = await self._authorized_get(f"/series/{media_id}")
        data = decode_json(response, PROVIDER)
        return self._to_result(data.get("data") or {})

    @staticmethod
    def _to_result(item: dict[str, Any]) -> MetadataResult:
        """Convertit un element series v3 (id, seriesName, firstAired)."""
        return MetadataResult(
            ids=MediaIds(tvdb=optional_str(item.get("id"))),
            title=item.get("seriesName") or "",
            year=extract_year(item.get("firstAired")),
            media_type=MediaType.SERIES,
            source=ServiceType.TVDB,
        )

    async def close(self) -> None:
        """Ferme le client HTTP et libere les ressources."""
        if self._client:
            await self._client.aclose()
            self._client = None
