"""
Extraction de l'historique de visionnage Prime Video.

La page charge l'historique par defilement: on fait defiler jusqu'a ce que
le nombre de groupes (un par date) se stabilise, puis on lit les elements
en une seule evaluation JavaScript. Un element qui liste des episodes est
une serie, sinon un film.
"""

from typing import Any, Iterable, Optional

from loguru import logger
from playwright.async_api import Page

from src.core.value_objects import MediaType, WatchHistoryEntry

DATE_GROUPS = "[data-automation-id='activity-history-items'] > ul > li"

_COUNT_GROUPS_SCRIPT = f"() => document.querySelectorAll(\"{DATE_GROUPS}\").length"

_SCROLL_SCRIPT = "() => window.scrollTo(0, document.body.scrollHeight)"

_EXTRACT_SCRIPT = """
(selector) => Array.from(document.querySelectorAll(selector)).flatMap((group) => {
    const dateNode = group.querySelector("[data-automation-id^='wh-date']");
    const date = dateNode ? dateNode.textContent.trim() : null;
    return Array.from(group.querySelectorAll(":scope > ul > li")).map((item) => {
        const link = item.querySelector("a[href*='/detail/']");
        const image = item.querySelector("img[alt]");
        const title = link && link.textContent.trim()
            ? link.textContent.trim()
            : (image ? image.getAttribute("alt") : "");
        const episodes = item.querySelectorAll("[data-automation-id^='wh-episode']").length;
        return { title: title, date: date, episodes: episodes };
    });
})
"""


async def load_full_history(page: Page, max_scrolls: int = 200, pause_ms: int = 1500) -> int:
    """
    Fait defiler la page jusqu'a ce que l'historique soit entierement charge.

    Args:
        page: Page Playwright positionnee sur l'historique
        max_scrolls: Nombre maximal de defilements
        pause_ms: Attente apres chaque defilement, en millisecondes

    Returns:
        Nombre de groupes de dates charges
    """
    count = await page.evaluate(_COUNT_GROUPS_SCRIPT)
    for _ in range(max_scrolls):
        await page.evaluate(_SCROLL_SCRIPT)
        await page.wait_for_timeout(pause_ms)
        new_count = await page.evaluate(_COUNT_GROUPS_SCRIPT)
        if new_count == count:
            break
        count = new_count
    logger.debug(f"Historique charge: {count} date(s)")
    return count


async def extract_raw_items(page: Page) -> list[dict[str, Any]]:
    """Lit les elements bruts {title, date, episodes} de la page."""
    return await page.evaluate(_EXTRACT_SCRIPT, DATE_GROUPS)


def parse_history_items(raw_items: Iterable[dict[str, Any]]) -> list[WatchHistoryEntry]:
    """
    Convertit les elements bruts en WatchHistoryEntry.

    Les titres vides sont ignores. Un titre vu plusieurs fois n'est conserve
    qu'une fois (premiere occurrence, la plus recente).

    Args:
        raw_items: Elements {title, date, episodes} dans l'ordre de la page

    Returns:
        Entrees dans l'ordre de la page
    """
    entries: list[WatchHistoryEntry] = []
    seen: set[tuple[str, MediaType]] = set()
    for item in raw_items:
        title = (item.get("title") or "").strip()
        if not title:
            continue
        media_type = MediaType.SERIES if item.get("episodes") else MediaType.MOVIE
        key = (title.casefold(), media_type)
        if key in seen:
            continue
        seen.add(key)
        watched_on: Optional[str] = (item.get("date") or "").strip() or None
        entries.append(WatchHistoryEntry(title=title, media_type=media_type, watched_on=watched_on))
    return entries
