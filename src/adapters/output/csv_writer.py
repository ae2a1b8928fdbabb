"""
Export CSV des enregistrements d'identite.

Une ligne par titre, dans l'ordre de l'historique. Le fichier n'est remplace
qu'au premier enregistrement: une execution qui echoue avant (navigateur
injoignable, connexion refusee) laisse l'export precedent intact. Chaque
ligne est flushee aussitot ecrite, de sorte qu'une execution interrompue
laisse un fichier exploitable.
"""

import csv
from pathlib import Path
from typing import Optional, TextIO

from loguru import logger

from src.core.ports.sinks import IRecordSink
from src.core.value_objects import IdentityRecord

CSV_COLUMNS = (
    "title",
    "year",
    "type",
    "watched_on",
    "simkl",
    "tmdb",
    "tvdb",
    "mal",
    "scraped_title",
)


def record_to_row(record: IdentityRecord) -> dict[str, str]:
    """Convertit un enregistrement en ligne CSV (absent -> chaine vide)."""
    ids = record.ids
    return {
        "title": record.title,
        "year": record.year or "",
        "type": record.media_type.value,
        "watched_on": record.watched_on or "",
        "simkl": ids.simkl or "",
        "tmdb": ids.tmdb or "",
        "tvdb": ids.tvdb or "",
        "mal": ids.mal or "",
        "scraped_title": record.scraped_title,
    }


class CSVRecordSink(IRecordSink):
    """
    Puits d'enregistrements vers un fichier CSV.

    Le fichier est ouvert au premier enregistrement. Sans aucun
    enregistrement, close(completed=True) produit un fichier avec son seul
    en-tete; close(completed=False) ne touche pas au fichier existant.

    Example:
        sink = CSVRecordSink(Path("watch_history.csv"))
        await sink.write(record)
        await sink.close()
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._file: Optional[TextIO] = None
        self._writer: Optional[csv.DictWriter] = None
        self._count = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def count(self) -> int:
        """Nombre de lignes ecrites (hors en-tete)."""
        return self._count

    def _open(self) -> csv.DictWriter:
        if self._writer is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self._path.open("w", newline="", encoding="utf-8")
            self._writer = csv.DictWriter(self._file, fieldnames=CSV_COLUMNS)
            self._writer.writeheader()
            logger.debug(f"Export CSV ouvert: {self._path}")
        return self._writer

    async def write(self, record: IdentityRecord) -> None:
        self._open().writerow(record_to_row(record))
        self._file.flush()
        self._count += 1

    async def close(self, completed: bool = True) -> None:
        if self._writer is None:
            if not completed:
                logger.debug(f"Export CSV inchange: {self._path}")
                return
            self._open()
        if self._file is not None and not self._file.closed:
            self._file.close()
            logger.info(f"Export CSV: {self._count} ligne(s) dans {self._path}")
