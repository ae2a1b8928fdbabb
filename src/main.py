"""
Point d'entrée CLI de watchids.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from pydantic import ValidationError

from . import __version__
from .adapters.cli.commands import run
from .adapters.cli.helpers import console, describe_settings, report_error
from .config import Settings
from .container import Container
from .logging_config import configure_logging, console_level

app = typer.Typer(
    name="watchids",
    help="Identifiants Simkl/TMDB/TVDB/MAL de l'historique Prime Video",
)
container = Container()

# Etat global pour les options de verbosite
state = {"verbose": 0, "quiet": False}


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Augmenter la verbosite (-v, -vv)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Mode silencieux (erreurs uniquement)"),
    ] = False,
) -> None:
    """watchids - Historique Prime Video vers identifiants de metadonnees."""
    if quiet:
        state["quiet"] = True
    else:
        state["verbose"] = verbose

    try:
        settings = get_config()
    except ValidationError:
        # Signalee par la commande qui a besoin de la configuration
        configure_logging(log_level=console_level("INFO", verbose, quiet))
        return

    configure_logging(
        log_level=console_level(settings.log_level, verbose, quiet),
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
    )


app.command()(run)


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    try:
        config = get_config()
    except ValidationError as e:
        raise typer.Exit(report_error(e)) from e

    console.print("[bold]Configuration watchids[/bold]")
    for label, value in describe_settings(config):
        console.print(f"{label} : {value}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"watchids v{__version__}")


def main() -> None:
    """Point d'entrée de l'application."""
    app()


if __name__ == "__main__":
    main()
