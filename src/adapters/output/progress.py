"""
Affichage de la progression avec Rich.

Une ligne par titre traite: coche verte si identifie, croix rouge sinon,
avec le fournisseur canonique et les identifiants trouves.
"""

from typing import Optional

from loguru import logger
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn

from src.core.ports.sinks import IProgressSink
from src.core.value_objects import IdentityRecord


def format_record(record: IdentityRecord) -> str:
    """Ligne Rich decrivant un enregistrement."""
    year = f" ({record.year})" if record.year else ""
    if not record.is_matched:
        return f"  [red]✗[/red] {record.scraped_title} - aucun resultat"

    ids = ", ".join(f"{name}={value}" for name, value in record.ids.as_dict().items() if value)
    renamed = (
        f" [dim]<- {record.scraped_title}[/dim]"
        if record.scraped_title.casefold() != record.title.casefold()
        else ""
    )
    return (
        f"  [green]✓[/green] {record.title}{year}{renamed} "
        f"[cyan]{record.matched_by.value}[/cyan] {ids}"
    )


class RichProgressSink(IProgressSink):
    """
    Puits de progression affichant un compteur et une ligne par titre.

    Le nombre total de titres n'est pas connu a l'avance (l'historique est
    extrait au fil de l'eau): le compteur n'a pas de total.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self.matched = 0
        self.unmatched = 0

    def start(self, description: str) -> None:
        # Logs loguru coupes pendant l'affichage Rich, jusqu'a finish()
        logger.disable("src")
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TextColumn("[bold]{task.completed}[/bold] titre(s)"),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._task = self._progress.add_task(f"[cyan]{description}", total=None)

    def advance(self, record: IdentityRecord) -> None:
        if record.is_matched:
            self.matched += 1
        else:
            self.unmatched += 1

        if self._progress is None:
            self._console.print(format_record(record))
            return
        self._progress.console.print(format_record(record))
        self._progress.advance(self._task)

    def finish(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        logger.enable("src")
        self._console.print(
            f"\n[bold green]{self.matched}[/bold green] titre(s) identifie(s), "
            f"[bold red]{self.unmatched}[/bold red] sans resultat"
        )
