"""
Mecanisme de retry avec backoff exponentiel pour les API externes.

Gere automatiquement les erreurs 429 (rate limiting) en relancant
les requetes avec un delai croissant et du jitter aleatoire, puis traduit
les echecs dans la taxonomie de l'application:
- echange HTTP impossible (timeout, connexion, JSON invalide) -> TransportError
- statut d'echec (4xx, 5xx, 429 persistant) -> MetadataError

Usage:
    # Avec le decorateur
    @with_retry(max_attempts=5, max_wait=60)
    async def my_api_call():
        ...

    # Avec la fonction helper
    response = await request_with_retry(client, "GET", url, provider="tmdb")
    data = decode_json(response, provider="tmdb")
"""

from typing import Any, Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from src.adapters.api.rate_limiter import RateLimiter
from src.core.errors import MetadataError, TransportError


class RateLimitError(Exception):
    """
    Exception levee quand l'API retourne 429 Too Many Requests.

    Attributes:
        retry_after: Nombre de secondes a attendre (depuis le header Retry-After),
                     ou None si non specifie.
    """

    def __init__(self, retry_after: Optional[int] = None) -> None:
        """
        Initialise l'erreur avec la valeur Retry-After optionnelle.

        Args:
            retry_after: Secondes a attendre avant de relancer (optionnel)
        """
        self.retry_after = retry_after
        super().__init__(f"Rate limited. Retry after: {retry_after}s")


def with_retry(max_attempts: int = 5, max_wait: int = 60):
    """
    Decorateur pour relancer sur RateLimitError avec backoff exponentiel.

    Utilise wait_random_exponential pour ajouter du jitter et eviter
    le "thundering herd" quand plusieurs clients relancent en meme temps.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 5)
        max_wait: Delai maximum entre les tentatives en secondes (defaut: 60)

    Returns:
        Decorateur a appliquer sur une fonction async
    """
    return retry(
        retry=retry_if_exception_type(RateLimitError),
        wait=wait_random_exponential(multiplier=1, min=1, max=max_wait),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    )


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Retry-After en secondes, None si absent ou au format date HTTP."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    provider: str,
    max_attempts: int = 5,
    max_wait: int = 60,
    rate_limiter: Optional[RateLimiter] = None,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP avec retry automatique sur 429.

    Chaque tentative consomme une unite du budget du RateLimiter si fourni.
    Les autres statuts d'echec sont propages immediatement sans retry.

    Args:
        client: Client httpx async a utiliser
        method: Methode HTTP (GET, POST, etc.)
        url: URL a appeler (relative a base_url du client)
        provider: Nom du fournisseur, repris dans les erreurs
        max_attempts: Nombre maximum de tentatives (defaut: 5)
        max_wait: Delai maximum entre les tentatives en secondes (defaut: 60)
        rate_limiter: Budget d'appels du fournisseur (optionnel)
        **kwargs: Arguments supplementaires passes a client.request()

    Returns:
        httpx.Response en cas de succes (2xx)

    Raises:
        MetadataError: Statut d'echec, ou 429 apres epuisement des tentatives
        TransportError: Echange HTTP impossible
    """

    @with_retry(max_attempts=max_attempts, max_wait=max_wait)
    async def _do_request() -> httpx.Response:
        if rate_limiter is not None:
            await rate_limiter.acquire()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise TransportError(provider, f"{method} {url} failed: {e!r}") from e
        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.debug(f"{provider}: 429 sur {url}, nouvel essai (Retry-After={retry_after})")
            raise RateLimitError(retry_after)
        if not response.is_success:
            raise MetadataError(provider, response.status_code)
        return response

    try:
        return await _do_request()
    except RateLimitError as e:
        raise MetadataError(provider, 429, f"rate limited after {max_attempts} attempts") from e


def decode_json(response: httpx.Response, provider: str) -> Any:
    """
    Decode le corps JSON d'une reponse.

    Raises:
        TransportError: Si le corps n'est pas du JSON valide
    """
    try:
        return response.json()
    except ValueError as e:
        raise TransportError(provider, f"malformed JSON body: {e}") from e
