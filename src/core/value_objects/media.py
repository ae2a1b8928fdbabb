"""
Objets valeur du domaine: types de media, identifiants externes et resultats.

Objets immutables partages entre les fournisseurs de metadonnees, le moteur
de resolution et les sorties (CSV, progression).
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class MediaType(Enum):
    """Type de media.

    Valeurs:
        MOVIE: Film (long-metrage)
        SERIES: Serie TV
    """

    MOVIE = "movie"
    SERIES = "series"


class ServiceType(Enum):
    """Fournisseur de metadonnees.

    La valeur sert de cle dans MediaIds et dans la configuration.
    """

    SIMKL = "simkl"
    TMDB = "tmdb"
    TVDB = "tvdb"
    MAL = "mal"

    @classmethod
    def parse(cls, value: "str | ServiceType") -> "ServiceType":
        """Convertit un nom de service (insensible a la casse) en ServiceType."""
        if isinstance(value, ServiceType):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Service inconnu: {value!r}") from None


PriorityOrder = tuple[ServiceType, ...]


def _clean_id(value: object) -> Optional[str]:
    """Normalise un identifiant: None et chaine vide deviennent None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class MediaIds:
    """
    Identifiants externes d'un titre pour l'ensemble fixe de fournisseurs.

    Invariant: un identifiant absent vaut None, jamais une chaine vide.
    La fusion est monotone: un identifiant deja connu n'est jamais remplace.

    Attributs:
        simkl: ID Simkl
        tvdb: ID TVDB
        tmdb: ID TMDB
        mal: ID MyAnimeList
    """

    simkl: Optional[str] = None
    tvdb: Optional[str] = None
    tmdb: Optional[str] = None
    mal: Optional[str] = None

    def __post_init__(self) -> None:
        for service in ServiceType:
            object.__setattr__(self, service.value, _clean_id(getattr(self, service.value)))

    def get(self, service: ServiceType) -> Optional[str]:
        """Retourne l'identifiant pour un fournisseur donne."""
        return getattr(self, service.value)

    def merge(self, other: "MediaIds") -> "MediaIds":
        """
        Complete les identifiants absents avec ceux de other.

        Les identifiants deja presents dans self sont conserves: l'appelant
        fusionne par ordre de priorite decroissante.
        """
        return replace(
            self,
            **{
                service.value: self.get(service) or other.get(service)
                for service in ServiceType
            },
        )

    def is_empty(self) -> bool:
        """True si aucun identifiant n'est connu."""
        return all(self.get(service) is None for service in ServiceType)

    def as_dict(self) -> dict[str, Optional[str]]:
        """Identifiants sous forme de dictionnaire {nom_service: id}."""
        return {service.value: self.get(service) for service in ServiceType}


@dataclass(frozen=True)
class MetadataResult:
    """
    Resultat normalise d'un appel a un fournisseur.

    Le titre et l'annee sont indicatifs et peuvent differer legerement
    d'un fournisseur a l'autre pour la meme oeuvre.

    Attributs:
        ids: Identifiants externes connus par ce fournisseur
        title: Titre (chaine vide si le fournisseur n'en donne pas)
        year: Annee sur 4 caracteres, ou None
        media_type: Type de media
        source: Fournisseur ayant produit le resultat
    """

    ids: MediaIds
    title: str
    year: Optional[str]
    media_type: MediaType
    source: Optional[ServiceType] = None


@dataclass(frozen=True)
class RateLimit:
    """Budget d'appels: au plus `calls` requetes par fenetre de `per_seconds` secondes."""

    calls: int
    per_seconds: float

    def __post_init__(self) -> None:
        if self.calls < 1:
            raise ValueError("calls doit etre >= 1")
        if self.per_seconds <= 0:
            raise ValueError("per_seconds doit etre > 0")


@dataclass(frozen=True)
class WatchHistoryEntry:
    """
    Entree brute extraite de l'historique de visionnage.

    Attributs:
        title: Titre tel qu'affiche par la plateforme
        media_type: Type deduit de la page (episodes listes => serie)
        watched_on: Date de visionnage telle qu'affichee, si disponible
        year: Annee indicative, si la page l'expose
    """

    title: str
    media_type: MediaType = MediaType.MOVIE
    watched_on: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class IdentityRecord:
    """
    Enregistrement d'identite fusionne pour un titre de l'historique.

    Attributs:
        ids: Identifiants fusionnes de tous les fournisseurs
        title: Titre canonique (premier fournisseur par priorite ayant repondu)
        year: Annee canonique
        media_type: Type canonique
        scraped_title: Titre d'origine extrait de l'historique
        watched_on: Date de visionnage d'origine
        matched_by: Fournisseur canonique, None si aucun resultat
    """

    ids: MediaIds
    title: str
    year: Optional[str]
    media_type: MediaType
    scraped_title: str
    watched_on: Optional[str] = None
    matched_by: Optional[ServiceType] = field(default=None)

    @property
    def is_matched(self) -> bool:
        """True si au moins un fournisseur a identifie le titre."""
        return self.matched_by is not None

    @classmethod
    def unmatched(cls, entry: WatchHistoryEntry) -> "IdentityRecord":
        """Enregistrement sans metadonnees: titre et type d'origine conserves."""
        return cls(
            ids=MediaIds(),
            title=entry.title,
            year=str(entry.year) if entry.year else None,
            media_type=entry.media_type,
            scraped_title=entry.title,
            watched_on=entry.watched_on,
        )
