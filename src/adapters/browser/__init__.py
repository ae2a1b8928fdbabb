"""
Automatisation navigateur pour l'extraction de l'historique Prime Video.

- BrowserSession : connexion exclusive au navigateur et machine d'etats
- ManualLogin / AutomatedLogin : methodes de connexion
"""

from src.adapters.browser.login import AutomatedLogin, LoginMethod, ManualLogin
from src.adapters.browser.session import BrowserSession, SessionState

__all__ = [
    "AutomatedLogin",
    "BrowserSession",
    "LoginMethod",
    "ManualLogin",
    "SessionState",
]
