"""
Connexion a Prime Video: manuelle ou automatisee.

- Manuelle: ouverture de la page d'historique, attente d'une confirmation de
  l'operateur (ou d'un plafond de temps), puis verification de l'URL.
- Automatisee: page de connexion Amazon regionale deduite de l'email,
  saisie email -> continuer -> mot de passe -> valider, detection de la
  double authentification (echec immediat, jamais tentee automatiquement),
  puis verification de la page d'historique.

Toute verification en echec leve AuthError; tout echec d'automatisation
(element introuvable dans le delai, navigation) leve BrowserError.
"""

import asyncio
import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.core.errors import AuthError, BrowserError

WATCH_HISTORY_URL = "https://www.primevideo.com/settings/watch-history"
SIGNIN_PATH = "/ap/signin"

# Chemins de connexion: toute URL qui les contient n'est pas authentifiee
SIGNIN_URL_PATTERN = re.compile(r"signin|/login|/auth", re.IGNORECASE)

EMAIL_FIELD = "input[name='email'], input[name='ap_email']"
PASSWORD_FIELD = "input[name='password'], input[name='ap_password']"
CONTINUE_BUTTON = "#continue"
SUBMIT_BUTTON = "#signInSubmit"
TWO_FACTOR_MARKERS = "#auth-mfa-otpcode, .cvf-widget-input-code"
HISTORY_MARKERS = (
    "[data-automation-id='activity-history-items'], "
    "[data-automation-id='wh-empty-state'], "
    "[data-automation-id='pv-nav-account-menu'], "
    "#pv-nav-accounts"
)

# Suffixe du domaine de l'email -> site Amazon regional
REGIONAL_DOMAINS = (
    (".co.uk", "amazon.co.uk"),
    (".de", "amazon.de"),
    (".it", "amazon.it"),
)
DEFAULT_DOMAIN = "amazon.com"


@dataclass
class ManualLogin:
    """
    Connexion interactive par l'operateur.

    Attributes:
        timeout: Plafond d'attente en secondes
        confirmation: Evenement positionne par l'operateur quand il a fini.
                      Sans evenement, l'attente se termine des que le
                      navigateur affiche la page d'historique.
        on_ready: Appele une fois la page ouverte, avant l'attente
                  (ex: afficher l'invite a l'operateur)
    """

    timeout: float = 300.0
    confirmation: Optional[asyncio.Event] = None
    on_ready: Optional[Callable[[], None]] = None


@dataclass
class AutomatedLogin:
    """Connexion automatisee avec les identifiants du compte Amazon."""

    email: str
    password: str = field(repr=False)


LoginMethod = Union[ManualLogin, AutomatedLogin]


def is_watch_history_url(url: str) -> bool:
    """
    True si l'URL designe la page d'historique hors page de connexion.

    Args:
        url: URL courante du navigateur

    Returns:
        True si l'URL contient "watch-history" et aucun chemin de connexion
    """
    return "watch-history" in url and not SIGNIN_URL_PATTERN.search(url)


def login_url_for(email: str) -> str:
    """
    URL de connexion Amazon regionale deduite du suffixe de domaine de l'email.

    Example:
        login_url_for("jean@example.co.uk") -> "https://www.amazon.co.uk/ap/signin"
    """
    domain_part = email.rsplit("@", 1)[-1].lower()
    domain = next(
        (site for suffix, site in REGIONAL_DOMAINS if domain_part.endswith(suffix)),
        DEFAULT_DOMAIN,
    )
    return f"https://www.{domain}{SIGNIN_PATH}"


async def perform_login(page: Page, method: LoginMethod, element_timeout: float = 10.0) -> None:
    """
    Execute la methode de connexion sur la page.

    Args:
        page: Page Playwright de la session
        method: ManualLogin ou AutomatedLogin
        element_timeout: Attente maximale d'un element, en secondes

    Raises:
        AuthError: Connexion non verifiee ou double authentification
        BrowserError: Echec d'automatisation
    """
    if isinstance(method, ManualLogin):
        await _manual_login(page, method)
    else:
        await _automated_login(page, method, element_timeout)


async def _manual_login(page: Page, method: ManualLogin) -> None:
    await _goto(page, WATCH_HISTORY_URL)
    logger.info(f"Connexion manuelle: en attente de l'operateur (max {method.timeout:.0f}s)")
    if method.on_ready is not None:
        method.on_ready()

    if method.confirmation is not None:
        try:
            await asyncio.wait_for(method.confirmation.wait(), timeout=method.timeout)
        except asyncio.TimeoutError:
            logger.warning("Connexion manuelle: delai d'attente depasse")
    else:
        try:
            await page.wait_for_url(is_watch_history_url, timeout=method.timeout * 1000)
        except PlaywrightTimeoutError:
            logger.warning("Connexion manuelle: delai d'attente depasse")
        except PlaywrightError as e:
            raise BrowserError(f"Attente de connexion interrompue: {e}") from e

    url = page.url
    if not is_watch_history_url(url):
        raise AuthError(f"Manual login failed - not on watch history page ({url})")
    logger.info("Connexion manuelle verifiee")


async def _automated_login(page: Page, method: AutomatedLogin, element_timeout: float) -> None:
    login_url = login_url_for(method.email)
    logger.info(f"Connexion automatisee via {login_url}")
    await _goto(page, login_url)

    await fill_form_field(page, EMAIL_FIELD, method.email, element_timeout)
    await click_element(page, CONTINUE_BUTTON, element_timeout)
    await fill_form_field(page, PASSWORD_FIELD, method.password, element_timeout)
    await click_element(page, SUBMIT_BUTTON, element_timeout)

    try:
        await page.wait_for_load_state("domcontentloaded", timeout=element_timeout * 1000)
        two_factor = await page.query_selector(TWO_FACTOR_MARKERS)
    except PlaywrightError as e:
        raise BrowserError(f"Page apres connexion inaccessible: {e}") from e
    if two_factor is not None:
        raise AuthError("2FA detected - manual login required")

    await _goto(page, WATCH_HISTORY_URL)
    await verify_logged_in(page, element_timeout)
    logger.info("Connexion automatisee verifiee")


async def verify_logged_in(page: Page, element_timeout: float = 10.0) -> None:
    """
    Verifie que la page courante est l'historique d'un compte connecte.

    Trois controles: URL d'historique hors connexion, absence des champs du
    formulaire de connexion, presence d'un marqueur compte/historique.

    Raises:
        AuthError: Si l'un des controles echoue
    """
    url = page.url
    if not is_watch_history_url(url):
        raise AuthError(f"Automated login failed - unexpected page ({url})")

    try:
        login_field = await page.query_selector(f"{EMAIL_FIELD}, {PASSWORD_FIELD}")
    except PlaywrightError as e:
        raise BrowserError(f"Verification de connexion impossible: {e}") from e
    if login_field is not None:
        raise AuthError("Automated login failed - login form still present")

    try:
        await page.wait_for_selector(HISTORY_MARKERS, timeout=element_timeout * 1000)
    except PlaywrightTimeoutError as e:
        raise AuthError("Automated login failed - no account marker on history page") from e
    except PlaywrightError as e:
        raise BrowserError(f"Verification de connexion impossible: {e}") from e


async def fill_form_field(page: Page, selector: str, value: str, timeout: float = 10.0) -> None:
    """Attend un champ (au plus timeout secondes) puis le remplit."""
    try:
        element = await page.wait_for_selector(selector, timeout=timeout * 1000)
        await element.fill(value)
    except PlaywrightError as e:
        raise BrowserError(f"Champ introuvable ou inutilisable: {selector}") from e


async def click_element(page: Page, selector: str, timeout: float = 10.0) -> None:
    """Attend un element (au plus timeout secondes) puis clique dessus."""
    try:
        element = await page.wait_for_selector(selector, timeout=timeout * 1000)
        await element.click()
    except PlaywrightError as e:
        raise BrowserError(f"Element introuvable ou non cliquable: {selector}") from e


async def _goto(page: Page, url: str) -> None:
    try:
        await page.goto(url)
    except PlaywrightError as e:
        raise BrowserError(f"Navigation impossible vers {url}: {e}") from e
