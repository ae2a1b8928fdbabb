"""
Commande CLI principale: historique Prime Video -> identifiants -> CSV.
"""

import asyncio
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from src.adapters.browser.login import ManualLogin
from src.adapters.cli.helpers import (
    console,
    optional_login_method,
    report_error,
    start_enter_listener,
    with_container,
)
from src.core.errors import WatchIdsError
from src.services.pipeline import PipelineResult


def run(
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Fichier CSV de sortie"),
    ] = None,
    manual: Annotated[
        Optional[bool],
        typer.Option(
            "--manual/--automated",
            help="Connexion manuelle ou automatisee (defaut: WATCHIDS_LOGIN_METHOD)",
        ),
    ] = None,
    concurrency: Annotated[
        Optional[int],
        typer.Option(
            "--concurrency", "-c",
            min=1, max=32,
            help="Nombre de titres resolus en parallele",
        ),
    ] = None,
) -> None:
    """Extrait l'historique Prime Video et exporte les identifiants en CSV."""
    try:
        result = asyncio.run(_run_async(output, manual, concurrency))
    except (WatchIdsError, ValidationError, KeyboardInterrupt) as e:
        raise typer.Exit(report_error(e)) from e

    if result.total == 0:
        console.print("[yellow]Aucun titre dans l'historique.[/yellow]")


@with_container()
async def _run_async(
    container,
    output: Optional[Path],
    manual: Optional[bool],
    concurrency: Optional[int],
) -> PipelineResult:
    """Implementation async de la commande run."""
    settings = container.config()
    confirmation = asyncio.Event()
    login_method = settings.login(optional_login_method(manual), confirmation=confirmation)

    # ConfigError avant toute ouverture du navigateur
    container.resolution_engine()

    overrides = {}
    if output is not None:
        overrides["record_sink"] = container.record_sink(path=output.expanduser())
    if concurrency is not None:
        overrides["max_concurrency"] = concurrency
    pipeline = container.pipeline(**overrides)

    if isinstance(login_method, ManualLogin):
        # Invite affichee une fois la page d'historique ouverte
        login_method = replace(
            login_method, on_ready=partial(start_enter_listener, confirmation)
        )

    try:
        result = await pipeline.run(login_method)
    finally:
        for provider in container.metadata_providers().values():
            await provider.close()

    console.print(f"Export: [bold]{output or settings.output_path}[/bold]")
    return result
