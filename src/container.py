"""
Container d'injection de dependances via dependency-injector.

Fournit une gestion centralisee des dependances pour la CLI: configuration,
limiteurs de debit, clients des fournisseurs, moteur de resolution, session
navigateur, puits de sortie et pipeline.
"""

from dependency_injector import containers, providers

from .adapters.api.mal_client import MALClient
from .adapters.api.rate_limiter import RateLimiter
from .adapters.api.simkl_client import SimklClient
from .adapters.api.tmdb_client import TMDBClient
from .adapters.api.tvdb_client import TVDBClient
from .adapters.browser.session import BrowserSession
from .adapters.output.csv_writer import CSVRecordSink
from .adapters.output.progress import RichProgressSink
from .config import Settings
from .core.ports.api_clients import IMetadataProvider
from .core.value_objects import ServiceType
from .services.pipeline import Pipeline
from .services.resolution import ResolutionEngine


def enabled_providers(
    settings: Settings,
    simkl: SimklClient,
    tmdb: TMDBClient,
    tvdb: TVDBClient,
    mal: MALClient,
) -> dict[ServiceType, IMetadataProvider]:
    """Fournisseurs dont les identifiants sont configures."""
    candidates = {
        ServiceType.SIMKL: simkl,
        ServiceType.TMDB: tmdb,
        ServiceType.TVDB: tvdb,
        ServiceType.MAL: mal,
    }
    enabled = settings.enabled_services
    return {service: client for service, client in candidates.items() if service in enabled}


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        engine = container.resolution_engine()
        pipeline = container.pipeline(record_sink=CSVRecordSink(path))
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Limiteurs de debit - un par fournisseur, partage par toutes les requetes
    simkl_rate_limiter = providers.Singleton(
        RateLimiter,
        rate_limit=config.provided.rate_limit.call(ServiceType.SIMKL),
        name="simkl",
    )
    tmdb_rate_limiter = providers.Singleton(
        RateLimiter,
        rate_limit=config.provided.rate_limit.call(ServiceType.TMDB),
        name="tmdb",
    )
    tvdb_rate_limiter = providers.Singleton(
        RateLimiter,
        rate_limit=config.provided.rate_limit.call(ServiceType.TVDB),
        name="tvdb",
    )
    mal_rate_limiter = providers.Singleton(
        RateLimiter,
        rate_limit=config.provided.rate_limit.call(ServiceType.MAL),
        name="mal",
    )

    # Clients API - Singleton avec identifiants depuis config
    # Un client sans identifiants est cree mais n'est jamais interroge:
    # metadata_providers ne retient que les services actifs
    simkl_client = providers.Singleton(
        SimklClient,
        client_id=config.provided.simkl_client_id,
        client_secret=config.provided.simkl_client_secret,
        rate_limiter=simkl_rate_limiter,
    )
    tmdb_client = providers.Singleton(
        TMDBClient,
        api_key=config.provided.tmdb_api_key,
        rate_limiter=tmdb_rate_limiter,
    )
    tvdb_client = providers.Singleton(
        TVDBClient,
        api_key=config.provided.tvdb_api_key,
        rate_limiter=tvdb_rate_limiter,
    )
    mal_client = providers.Singleton(
        MALClient,
        client_id=config.provided.mal_client_id,
        rate_limiter=mal_rate_limiter,
    )

    metadata_providers = providers.Singleton(
        enabled_providers,
        settings=config,
        simkl=simkl_client,
        tmdb=tmdb_client,
        tvdb=tvdb_client,
        mal=mal_client,
    )

    # Moteur de resolution - leve ConfigError si aucun fournisseur actif
    resolution_engine = providers.Singleton(
        ResolutionEngine,
        providers=metadata_providers,
        priority_order=config.provided.priority,
    )

    browser_session = providers.Singleton(
        BrowserSession,
        endpoint=config.provided.browser_endpoint,
        element_timeout=config.provided.element_timeout,
    )

    # Puits - Factory: un fichier et un affichage par execution
    record_sink = providers.Factory(
        CSVRecordSink,
        path=config.provided.output_path,
    )
    progress_sink = providers.Factory(RichProgressSink)

    # Utiliser: container.pipeline(max_concurrency=...) pour surcharger la config
    pipeline = providers.Factory(
        Pipeline,
        browser=browser_session,
        engine=resolution_engine,
        record_sink=record_sink,
        progress_sink=progress_sink,
        max_concurrency=config.provided.max_concurrency,
    )
