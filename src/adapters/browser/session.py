"""
Session navigateur authentifiee sur la plateforme de streaming.

BrowserSession possede la connexion au navigateur (Playwright, via CDP sur
un endpoint local) et en garantit l'usage exclusif: toutes les operations
passent par un meme verrou, une seule a la fois.

Etats: DISCONNECTED -> CONNECTED -> AUTHENTICATED -> DISCONNECTED
"""

import asyncio
from enum import Enum
from typing import Any, AsyncIterator, Callable, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from src.adapters.browser.history import (
    extract_raw_items,
    load_full_history,
    parse_history_items,
)
from src.adapters.browser.login import (
    WATCH_HISTORY_URL,
    LoginMethod,
    is_watch_history_url,
    perform_login,
)
from src.core.errors import BrowserError
from src.core.value_objects import WatchHistoryEntry


class SessionState(Enum):
    """Etat de la session navigateur."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"


class BrowserSession:
    """
    Session navigateur exclusive: connexion, login, extraction de l'historique.

    Example:
        async with BrowserSession("http://localhost:9222") as session:
            await session.login(AutomatedLogin(email, password))
            async for entry in session.scrape():
                ...
    """

    def __init__(
        self,
        endpoint: str = "http://localhost:9222",
        element_timeout: float = 10.0,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        """
        Args:
            endpoint: Endpoint CDP du navigateur local
            element_timeout: Attente maximale d'un element, en secondes
            playwright_factory: Fabrique du contexte Playwright (injectable en test)
        """
        self._endpoint = endpoint
        self._element_timeout = element_timeout
        self._playwright_factory = playwright_factory
        self._lock = asyncio.Lock()
        self._state = SessionState.DISCONNECTED
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None
        self._scraped = False

    @property
    def state(self) -> SessionState:
        return self._state

    async def start(self) -> None:
        """
        Etablit la connexion au navigateur.

        Raises:
            BrowserError: Si la connexion echoue
        """
        async with self._lock:
            if self._state != SessionState.DISCONNECTED:
                return
            try:
                self._playwright = await self._playwright_factory().start()
                self._browser = await self._playwright.chromium.connect_over_cdp(self._endpoint)
                context = (
                    self._browser.contexts[0]
                    if self._browser.contexts
                    else await self._browser.new_context()
                )
                self._page = context.pages[0] if context.pages else await context.new_page()
            except PlaywrightError as e:
                await self._release()
                raise BrowserError(f"Connexion au navigateur impossible ({self._endpoint}): {e}") from e
            self._state = SessionState.CONNECTED
            self._scraped = False
            logger.info(f"Navigateur connecte: {self._endpoint}")

    async def login(self, method: LoginMethod) -> None:
        """
        Authentifie la session.

        Raises:
            BrowserError: Session non demarree ou echec d'automatisation
            AuthError: Connexion non verifiee (dont double authentification)
        """
        async with self._lock:
            if self._state == SessionState.DISCONNECTED:
                raise BrowserError("Session navigateur non demarree")
            self._state = SessionState.CONNECTED
            await perform_login(self._page, method, self._element_timeout)
            self._state = SessionState.AUTHENTICATED

    async def scrape(self) -> AsyncIterator[WatchHistoryEntry]:
        """
        Produit les entrees de l'historique, une seule fois par session.

        Les operations navigateur sont faites sous verrou avant la premiere
        entree; l'iteration elle-meme ne bloque pas la session.

        Raises:
            BrowserError: Session non authentifiee, historique deja extrait,
                          ou echec d'automatisation
        """
        async with self._lock:
            if self._state != SessionState.AUTHENTICATED:
                raise BrowserError("Session non authentifiee: extraction impossible")
            if self._scraped:
                raise BrowserError("Historique deja extrait pour cette session")
            self._scraped = True
            try:
                if not is_watch_history_url(self._page.url):
                    await self._page.goto(WATCH_HISTORY_URL)
                await load_full_history(self._page)
                raw_items = await extract_raw_items(self._page)
            except PlaywrightError as e:
                raise BrowserError(f"Extraction de l'historique impossible: {e}") from e

        entries = parse_history_items(raw_items)
        logger.info(f"Historique: {len(entries)} titre(s) extrait(s)")
        for entry in entries:
            yield entry

    async def shutdown(self) -> None:
        """Ferme la connexion au navigateur (idempotent)."""
        async with self._lock:
            if self._state == SessionState.DISCONNECTED and self._playwright is None:
                return
            await self._release()
            self._state = SessionState.DISCONNECTED
            logger.info("Navigateur deconnecte")

    async def restart(self) -> None:
        """Ferme puis retablit la connexion (recuperation de session)."""
        await self.shutdown()
        await self.start()

    async def _release(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = self._playwright = self._page = None
        try:
            if browser is not None:
                await browser.close()
        except PlaywrightError as e:
            logger.warning(f"Fermeture du navigateur en erreur: {e}")
        finally:
            if playwright is not None:
                await playwright.stop()

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()
