"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe WATCHIDS_,
et peut optionnellement être fournie via un fichier .env.

Un fournisseur de métadonnées est actif dès que ses identifiants sont renseignés.
Au moins un fournisseur doit être actif pour lancer une exécution.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.adapters.browser.login import AutomatedLogin, LoginMethod, ManualLogin
from src.core.errors import ConfigError
from src.core.value_objects import PriorityOrder, RateLimit, ServiceType

# Trouver le fichier .env à la racine du projet (parent de src/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

DEFAULT_PRIORITY = "simkl,tmdb,tvdb,mal"


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe WATCHIDS_.
    Exemple : WATCHIDS_PRIORITY_ORDER=tmdb,simkl

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="WATCHIDS_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Identifiants des fournisseurs (OPTIONNELS - fournisseur désactivé si non défini)
    simkl_client_id: Optional[str] = Field(default=None)
    simkl_client_secret: Optional[str] = Field(default=None)
    tmdb_api_key: Optional[str] = Field(default=None)
    tvdb_api_key: Optional[str] = Field(default=None)
    mal_client_id: Optional[str] = Field(default=None)

    # Ordre de priorité, noms séparés par des virgules
    priority_order: str = Field(default=DEFAULT_PRIORITY)

    # Limites de débit par fournisseur: N appels par fenêtre de S secondes
    simkl_rate_calls: int = Field(default=10, ge=1)
    simkl_rate_seconds: float = Field(default=1.0, gt=0)
    tmdb_rate_calls: int = Field(default=40, ge=1)
    tmdb_rate_seconds: float = Field(default=10.0, gt=0)
    tvdb_rate_calls: int = Field(default=10, ge=1)
    tvdb_rate_seconds: float = Field(default=1.0, gt=0)
    mal_rate_calls: int = Field(default=3, ge=1)
    mal_rate_seconds: float = Field(default=1.0, gt=0)

    # Connexion Prime Video
    login_method: Literal["manual", "automated"] = Field(default="manual")
    amazon_email: Optional[str] = Field(default=None)
    amazon_password: Optional[str] = Field(default=None, repr=False)

    # Navigateur (endpoint CDP local)
    browser_endpoint: str = Field(default="http://localhost:9222")
    element_timeout: float = Field(default=10.0, gt=0)
    manual_login_timeout: float = Field(default=300.0, gt=0)

    # Traitement
    max_concurrency: int = Field(default=4, ge=1, le=32)
    output_path: Path = Field(default=Path("export.csv"))

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/watchids.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("output_path", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Étend ~ vers le répertoire home dans les chemins."""
        return Path(v).expanduser()

    @field_validator(
        "simkl_client_id",
        "simkl_client_secret",
        "tmdb_api_key",
        "tvdb_api_key",
        "mal_client_id",
        "amazon_email",
        "amazon_password",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Une valeur vide équivaut à une valeur absente."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("priority_order")
    @classmethod
    def check_priority_order(cls, v: str) -> str:
        """Valide les noms de services et l'absence de doublons."""
        names = [name.strip().lower() for name in v.split(",") if name.strip()]
        if not names:
            raise ValueError("l'ordre de priorité est vide")
        services = [ServiceType.parse(name) for name in names]
        if len(set(services)) != len(services):
            raise ValueError(f"doublon dans l'ordre de priorité: {v}")
        return ",".join(names)

    @property
    def priority(self) -> PriorityOrder:
        """Ordre de priorité sous forme de ServiceType."""
        return tuple(ServiceType.parse(name) for name in self.priority_order.split(","))

    @property
    def simkl_enabled(self) -> bool:
        """Vérifie si l'API Simkl est configurée (client id et secret)."""
        return self.simkl_client_id is not None and self.simkl_client_secret is not None

    @property
    def tmdb_enabled(self) -> bool:
        """Vérifie si l'API TMDB est configurée."""
        return self.tmdb_api_key is not None

    @property
    def tvdb_enabled(self) -> bool:
        """Vérifie si l'API TVDB est configurée."""
        return self.tvdb_api_key is not None

    @property
    def mal_enabled(self) -> bool:
        """Vérifie si l'API MyAnimeList est configurée."""
        return self.mal_client_id is not None

    @property
    def enabled_services(self) -> set[ServiceType]:
        """Fournisseurs dont les identifiants sont renseignés."""
        enabled = {
            ServiceType.SIMKL: self.simkl_enabled,
            ServiceType.TMDB: self.tmdb_enabled,
            ServiceType.TVDB: self.tvdb_enabled,
            ServiceType.MAL: self.mal_enabled,
        }
        return {service for service, is_enabled in enabled.items() if is_enabled}

    def rate_limit(self, service: ServiceType) -> RateLimit:
        """Limite de débit configurée pour un fournisseur."""
        return RateLimit(
            calls=getattr(self, f"{service.value}_rate_calls"),
            per_seconds=getattr(self, f"{service.value}_rate_seconds"),
        )

    def login(self, method: Optional[str] = None, confirmation=None) -> LoginMethod:
        """
        Construit la méthode de connexion.

        Args:
            method: "manual" ou "automated", remplace login_method si fourni
            confirmation: asyncio.Event de confirmation pour la connexion manuelle

        Raises:
            ConfigError: Connexion automatisée sans email ou mot de passe
        """
        method = method or self.login_method
        if method == "manual":
            return ManualLogin(timeout=self.manual_login_timeout, confirmation=confirmation)
        if method != "automated":
            raise ConfigError(f"Méthode de connexion inconnue: {method}")
        if not self.amazon_email or not self.amazon_password:
            raise ConfigError(
                "Connexion automatisée: WATCHIDS_AMAZON_EMAIL et "
                "WATCHIDS_AMAZON_PASSWORD sont requis"
            )
        return AutomatedLogin(email=self.amazon_email, password=self.amazon_password)
