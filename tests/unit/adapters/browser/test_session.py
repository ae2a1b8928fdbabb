"""
Tests for BrowserSession - connection lifecycle and single-pass scraping.

Playwright is replaced through the playwright_factory parameter; the
login and history helpers are patched in the session module.
"""

from typing import Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from src.adapters.browser.login import WATCH_HISTORY_URL, ManualLogin
from src.adapters.browser.session import BrowserSession, SessionState
from src.core.errors import AuthError, BrowserError
from src.core.value_objects import MediaType

RAW_ITEMS = [
    {"title": "Inception", "date": "June 2, 2023", "episodes": 0},
    {"title": "Breaking Bad", "date": "June 1, 2023", "episodes": 3},
]


class FakePlaywright:
    """Contexte Playwright factice: un navigateur, un contexte, une page."""

    def __init__(self, connect_error: Optional[Exception] = None) -> None:
        self.page = MagicMock()
        self.page.url = WATCH_HISTORY_URL
        self.page.goto = AsyncMock()
        context = MagicMock()
        context.pages = [self.page]
        self.browser = MagicMock()
        self.browser.contexts = [context]
        self.browser.close = AsyncMock()
        self.chromium = MagicMock()
        self.chromium.connect_over_cdp = AsyncMock(
            return_value=self.browser, side_effect=connect_error
        )
        self.stop = AsyncMock()
        self.starts = 0

    def __call__(self) -> "FakePlaywright":
        return self

    async def start(self) -> "FakePlaywright":
        self.starts += 1
        return self


@pytest.fixture
def playwright() -> FakePlaywright:
    return FakePlaywright()


@pytest.fixture
def session(playwright: FakePlaywright) -> BrowserSession:
    return BrowserSession("http://localhost:9222", playwright_factory=playwright)


@pytest.fixture
def history_helpers():
    with patch(
        "src.adapters.browser.session.load_full_history", new=AsyncMock(return_value=2)
    ) as load, patch(
        "src.adapters.browser.session.extract_raw_items", new=AsyncMock(return_value=RAW_ITEMS)
    ) as extract:
        yield load, extract


@pytest.fixture
def login_ok():
    with patch("src.adapters.browser.session.perform_login", new=AsyncMock()) as login:
        yield login


async def collect(session: BrowserSession) -> list:
    return [entry async for entry in session.scrape()]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_connects_over_cdp(self, session, playwright):
        await session.start()

        playwright.chromium.connect_over_cdp.assert_awaited_once_with("http://localhost:9222")
        assert session.state == SessionState.CONNECTED

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, session, playwright):
        await session.start()
        await session.start()

        assert playwright.starts == 1

    @pytest.mark.asyncio
    async def test_start_failure_releases_playwright(self):
        playwright = FakePlaywright(connect_error=PlaywrightError("connect ECONNREFUSED"))
        session = BrowserSession(playwright_factory=playwright)

        with pytest.raises(BrowserError, match="Connexion au navigateur impossible"):
            await session.start()

        playwright.stop.assert_awaited_once()
        assert session.state == SessionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, session, playwright):
        await session.start()

        await session.shutdown()
        await session.shutdown()

        playwright.browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()
        assert session.state == SessionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_shutdown_without_start(self, session, playwright):
        await session.shutdown()

        playwright.stop.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_context_manager(self, playwright):
        async with BrowserSession(playwright_factory=playwright) as session:
            assert session.state == SessionState.CONNECTED

        assert session.state == SessionState.DISCONNECTED


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_before_start(self, session):
        with pytest.raises(BrowserError, match="non demarree"):
            await session.login(ManualLogin())

    @pytest.mark.asyncio
    async def test_login_success(self, session, playwright, login_ok):
        await session.start()
        method = ManualLogin(timeout=5)

        await session.login(method)

        login_ok.assert_awaited_once_with(playwright.page, method, 10.0)
        assert session.state == SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_login_failure_stays_connected(self, session):
        await session.start()
        with patch(
            "src.adapters.browser.session.perform_login",
            new=AsyncMock(side_effect=AuthError("2FA detected - manual login required")),
        ):
            with pytest.raises(AuthError):
                await session.login(ManualLogin())

        assert session.state == SessionState.CONNECTED


class TestScrape:
    @pytest.mark.asyncio
    async def test_scrape_before_login(self, session, history_helpers):
        await session.start()

        with pytest.raises(BrowserError, match="non authentifiee"):
            await collect(session)

    @pytest.mark.asyncio
    async def test_scrape_yields_entries(self, session, login_ok, history_helpers):
        await session.start()
        await session.login(ManualLogin())

        entries = await collect(session)

        assert [(e.title, e.media_type) for e in entries] == [
            ("Inception", MediaType.MOVIE),
            ("Breaking Bad", MediaType.SERIES),
        ]
        assert entries[0].watched_on == "June 2, 2023"

    @pytest.mark.asyncio
    async def test_scrape_only_once_per_session(self, session, login_ok, history_helpers):
        await session.start()
        await session.login(ManualLogin())
        await collect(session)

        with pytest.raises(BrowserError, match="deja extrait"):
            await collect(session)

    @pytest.mark.asyncio
    async def test_scrape_navigates_to_history(self, session, playwright, login_ok, history_helpers):
        playwright.page.url = "https://www.primevideo.com/storefront"
        await session.start()
        await session.login(ManualLogin())

        await collect(session)

        playwright.page.goto.assert_awaited_once_with(WATCH_HISTORY_URL)

    @pytest.mark.asyncio
    async def test_scrape_on_history_page_does_not_navigate(
        self, session, playwright, login_ok, history_helpers
    ):
        await session.start()
        await session.login(ManualLogin())

        await collect(session)

        playwright.page.goto.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_playwright_failure_is_browser_error(self, session, login_ok):
        await session.start()
        await session.login(ManualLogin())
        with patch(
            "src.adapters.browser.session.load_full_history",
            new=AsyncMock(side_effect=PlaywrightError("Target closed")),
        ):
            with pytest.raises(BrowserError, match="Extraction de l'historique impossible"):
                await collect(session)

    @pytest.mark.asyncio
    async def test_restart_allows_new_scrape(self, session, login_ok, history_helpers):
        await session.start()
        await session.login(ManualLogin())
        await collect(session)

        await session.restart()
        await session.login(ManualLogin())

        assert len(await collect(session)) == 2
