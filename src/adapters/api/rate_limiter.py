"""
Limitation du debit des appels par fournisseur.

Budget a fenetre fixe: au plus `calls` requetes par fenetre de
`per_seconds` secondes. Quand le budget est epuise, l'appelant attend la
fenetre suivante: la requete est retardee, jamais abandonnee.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from loguru import logger

from src.core.value_objects import RateLimit


class RateLimiter:
    """
    Limiteur asynchrone partage par tous les appels d'un fournisseur.

    L'etat de la fenetre est modifie sous verrou: les appelants concurrents
    sont servis dans l'ordre d'arrivee.

    Example:
        limiter = RateLimiter(RateLimit(calls=40, per_seconds=10), name="tmdb")
        async with limiter:
            response = await client.get(...)
    """

    def __init__(
        self,
        rate_limit: RateLimit,
        name: str = "",
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        """
        Args:
            rate_limit: Budget d'appels
            name: Nom du fournisseur (pour les logs)
            clock: Horloge monotone en secondes (defaut: time.monotonic)
            sleep: Fonction d'attente async (defaut: asyncio.sleep)
        """
        self._rate_limit = rate_limit
        self._name = name
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()
        self._window_start: Optional[float] = None
        self._remaining = rate_limit.calls

    @property
    def rate_limit(self) -> RateLimit:
        return self._rate_limit

    def _refill(self, now: float) -> None:
        if self._window_start is None or now - self._window_start >= self._rate_limit.per_seconds:
            self._window_start = now
            self._remaining = self._rate_limit.calls

    async def acquire(self) -> None:
        """Consomme une unite du budget, en attendant la fenetre suivante si besoin."""
        async with self._lock:
            while True:
                now = self._clock()
                self._refill(now)
                if self._remaining > 0:
                    self._remaining -= 1
                    return
                wait = self._window_start + self._rate_limit.per_seconds - now
                logger.debug(f"Rate limit {self._name}: attente de {wait:.2f}s")
                await self._sleep(wait)

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None
