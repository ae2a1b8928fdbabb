"""
Taxonomie des erreurs de l'application.

Hierarchie:
- WatchIdsError : base de toutes les erreurs metier
  - ProviderError : echec lie a un fournisseur de metadonnees
    - TransportError : l'echange HTTP n'a pas pu aboutir (timeout, connexion, corps invalide)
    - MetadataError : le fournisseur a repondu avec un statut d'echec (dont 401 repete)
  - AuthError : authentification impossible ou non verifiee (login, token TVDB, 2FA)
  - BrowserError : echec de l'automatisation navigateur (navigation, element introuvable)
  - ConfigError : configuration inexploitable (aucun fournisseur, priorite invalide)

Les erreurs fournisseur sont absorbees par le moteur de resolution. Les erreurs
de session (AuthError, BrowserError) sont fatales pour l'execution.
"""

from typing import Optional


class WatchIdsError(Exception):
    """Erreur de base de l'application."""

    category: str = "error"


class ProviderError(WatchIdsError):
    """
    Erreur levee par un fournisseur de metadonnees.

    Attributes:
        provider: Nom du fournisseur (ex: "tmdb")
    """

    category = "provider"

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


class TransportError(ProviderError):
    """L'echange HTTP n'a pas pu aboutir."""

    category = "transport"


class MetadataError(ProviderError):
    """
    Le fournisseur a repondu mais a signale un echec.

    Attributes:
        status: Code HTTP retourne par le fournisseur
    """

    category = "metadata"

    def __init__(self, provider: str, status: int, message: Optional[str] = None) -> None:
        self.status = status
        super().__init__(provider, message or f"API error: HTTP {status}")


class AuthError(WatchIdsError):
    """Authentification impossible a etablir ou a verifier."""

    category = "auth"


class BrowserError(WatchIdsError):
    """Echec de la couche d'automatisation navigateur."""

    category = "browser"


class ConfigError(WatchIdsError):
    """Configuration inexploitable detectee au demarrage."""

    category = "config"
