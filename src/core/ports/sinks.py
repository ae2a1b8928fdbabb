"""
Interfaces ports pour les consommateurs d'enregistrements.

Le pipeline remet chaque IdentityRecord termine, dans l'ordre de
l'historique, a un puits d'enregistrements (export CSV) puis a un puits de
progression (affichage). Les deux sont appeles une fois par titre resolu.
"""

from abc import ABC, abstractmethod

from src.core.value_objects import IdentityRecord


class IRecordSink(ABC):
    """Destination des enregistrements d'identite (ex: fichier CSV)."""

    @abstractmethod
    async def write(self, record: IdentityRecord) -> None:
        """Ecrit un enregistrement. Peut bloquer: le pipeline attend."""
        ...

    async def close(self, completed: bool = True) -> None:
        """
        Finalise la destination (flush, fermeture).

        Args:
            completed: False si l'execution a echoue avant la fin de
                       l'extraction; une destination vide ne doit alors
                       rien remplacer.
        """
        return None


class IProgressSink(ABC):
    """Recepteur des evenements de progression, un par titre resolu."""

    @abstractmethod
    def start(self, description: str) -> None:
        """Signale le debut du traitement."""
        ...

    @abstractmethod
    def advance(self, record: IdentityRecord) -> None:
        """Signale qu'un titre est resolu."""
        ...

    def finish(self) -> None:
        """Signale la fin du traitement."""
        return None
