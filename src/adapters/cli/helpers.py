"""
Utilitaires partages pour les commandes CLI de watchids.

Ce module fournit :
- console : instance Rich Console partagee
- with_container : decorateur injectant un container initialise
- exit_code_for / report_error : traduction des erreurs en message et code de sortie
- start_enter_listener : confirmation de la connexion manuelle par la touche Entree
"""

import asyncio
import threading
from functools import wraps
from typing import Optional

from pydantic import ValidationError
from rich.console import Console

from src.container import Container
from src.core.errors import ConfigError, WatchIdsError
from src.core.value_objects import ServiceType

console = Console()

EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def with_container(**overrides):
    """
    Decorateur qui injecte un container initialise en premier argument.

    Args:
        overrides: Surcharges de providers (ex: config=providers.Object(settings))

    Usage:
        @with_container()
        async def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            container = Container()
            if overrides:
                container.override_providers(**overrides)
            return await func(container, *args, **kwargs)
        return wrapper
    return decorator


def exit_code_for(error: BaseException) -> int:
    """Code de sortie de la CLI pour une erreur remontee jusqu'a la commande."""
    if isinstance(error, (ConfigError, ValidationError)):
        return EXIT_CONFIG
    if isinstance(error, (KeyboardInterrupt, asyncio.CancelledError)):
        return EXIT_INTERRUPTED
    return EXIT_FAILURE


def report_error(error: BaseException) -> int:
    """
    Affiche l'erreur avec sa categorie et retourne le code de sortie.

    Categories: auth, browser, provider/transport, config.
    """
    if isinstance(error, ValidationError):
        console.print("[bold red]Erreur (config):[/bold red] configuration invalide")
        for detail in error.errors():
            location = ".".join(str(part) for part in detail["loc"])
            console.print(f"  [red]{location}[/red]: {detail['msg']}")
    elif isinstance(error, WatchIdsError):
        console.print(f"[bold red]Erreur ({error.category}):[/bold red] {error}")
    elif isinstance(error, (KeyboardInterrupt, asyncio.CancelledError)):
        console.print("\n[yellow]Execution interrompue.[/yellow]")
    else:
        console.print(f"[bold red]Erreur:[/bold red] {error}")
    return exit_code_for(error)


def start_enter_listener(
    event: asyncio.Event,
    prompt: str = "Connectez-vous dans le navigateur puis appuyez sur Entree...",
) -> threading.Thread:
    """
    Positionne event quand l'operateur appuie sur Entree.

    La lecture de stdin bloque: elle tourne dans un thread demon, qui ne
    retient pas la fermeture du processus si l'attente se termine autrement.

    Args:
        event: Evenement de confirmation de ManualLogin
        prompt: Message affiche a l'operateur

    Returns:
        Le thread de lecture, deja demarre
    """
    loop = asyncio.get_running_loop()

    def wait_for_enter() -> None:
        try:
            input()
        except EOFError:
            return
        try:
            loop.call_soon_threadsafe(event.set)
        except RuntimeError:
            # Boucle deja fermee: l'execution est terminee
            return

    console.print(f"[bold cyan]{prompt}[/bold cyan]")
    thread = threading.Thread(target=wait_for_enter, name="watchids-enter", daemon=True)
    thread.start()
    return thread


def describe_settings(settings) -> list[tuple[str, str]]:
    """Lignes (libelle, valeur) decrivant la configuration, sans secrets."""
    enabled = settings.enabled_services

    def state(service: ServiceType) -> str:
        return "activé" if service in enabled else "désactivé"

    rows = [(f"API {service.value.upper()}", state(service)) for service in ServiceType]
    rows.extend(
        [
            ("Priorité", " > ".join(service.value for service in settings.priority)),
            ("Connexion", settings.login_method),
            ("Compte Amazon", settings.amazon_email or "-"),
            ("Navigateur (CDP)", settings.browser_endpoint),
            ("Concurrence", str(settings.max_concurrency)),
            ("Sortie CSV", str(settings.output_path)),
            ("Niveau de log", settings.log_level),
        ]
    )
    return rows


def optional_login_method(manual: Optional[bool]) -> Optional[str]:
    """Traduit l'option --manual/--automated (None = valeur de la config)."""
    if manual is None:
        return None
    return "manual" if manual else "automated"
