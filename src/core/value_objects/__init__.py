"""
Objets valeur immutables representant des concepts du domaine sans identite.

Exports :
- MediaType : Type de media (MOVIE, SERIES)
- ServiceType : Fournisseur de metadonnees (SIMKL, TMDB, TVDB, MAL)
- PriorityOrder : Ordre de priorite des fournisseurs
- MediaIds : Identifiants externes fusionnables
- MetadataResult : Resultat normalise d'un fournisseur
- RateLimit : Budget d'appels d'un fournisseur
- WatchHistoryEntry : Entree brute de l'historique de visionnage
- IdentityRecord : Enregistrement d'identite fusionne
"""

from src.core.value_objects.media import (
    IdentityRecord,
    MediaIds,
    MediaType,
    MetadataResult,
    PriorityOrder,
    RateLimit,
    ServiceType,
    WatchHistoryEntry,
)

__all__ = [
    "IdentityRecord",
    "MediaIds",
    "MediaType",
    "MetadataResult",
    "PriorityOrder",
    "RateLimit",
    "ServiceType",
    "WatchHistoryEntry",
]
