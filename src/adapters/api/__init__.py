"""
Clients API externes pour la resolution des identifiants.

Ce module fournit les adaptateurs pour communiquer avec les fournisseurs:
- Simkl: identifiants croises (Simkl, TMDB, TVDB, MAL)
- TMDB: The Movie Database pour les films et series
- TVDB: The TVDB pour les series TV (token JWT avec reauthentification)
- MAL: MyAnimeList pour l'animation

Infrastructure partagee:
- RateLimiter: Budget d'appels par fournisseur (fenetre fixe, attente)
- RateLimitError / with_retry / request_with_retry: Backoff exponentiel sur 429
  et traduction des echecs en TransportError / MetadataError

Les clients implementent IMetadataProvider defini dans core/ports/api_clients.py.
"""

from src.adapters.api.mal_client import MALClient
from src.adapters.api.rate_limiter import RateLimiter
from src.adapters.api.retry import RateLimitError, request_with_retry, with_retry
from src.adapters.api.simkl_client import SimklClient
from src.adapters.api.tmdb_client import TMDBClient
from src.adapters.api.tvdb_client import TVDBClient, TVDBTokenSession

__all__ = [
    "MALClient",
    "RateLimiter",
    "RateLimitError",
    "SimklClient",
    "TMDBClient",
    "TVDBClient",
    "TVDBTokenSession",
    "request_with_retry",
    "with_retry",
]
