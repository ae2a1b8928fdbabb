"""
Interfaces ports pour les fournisseurs de metadonnees.

Interface abstraite (port) definissant le contrat commun aux quatre
fournisseurs (Simkl, TMDB, TVDB, MyAnimeList). Les implementations
(adaptateurs) traduisent une requete titre/type en appels HTTP natifs et
normalisent la reponse en MetadataResult.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.core.value_objects import MediaType, MetadataResult, ServiceType


class IMetadataProvider(ABC):
    """
    Interface de base pour les fournisseurs de metadonnees.

    Contrat d'erreur commun:
    - MetadataError(provider, status) si le fournisseur repond avec un statut d'echec
    - TransportError si l'echange HTTP ne peut aboutir (timeout, connexion, JSON invalide)

    Les champs optionnels absents des reponses donnent None, jamais une erreur.
    """

    @abstractmethod
    async def search(
        self,
        title: str,
        media_type: MediaType,
        year: Optional[int] = None,
    ) -> list[MetadataResult]:
        """
        Recherche des medias par titre.

        Args :
            title : Titre a rechercher
            media_type : Type de media, determine l'endpoint utilise
            year : Annee optionnelle pour affiner (ignoree si non supportee)

        Retourne :
            Liste des resultats normalises, dans l'ordre du fournisseur
        """
        ...

    @abstractmethod
    async def get_details(self, media_id: str, media_type: MediaType) -> MetadataResult:
        """
        Recupere les details canoniques d'un identifiant natif du fournisseur.

        Args :
            media_id : ID natif du fournisseur
            media_type : Type de media

        Retourne :
            Resultat normalise, identifiants croises inclus quand disponibles
        """
        ...

    @property
    @abstractmethod
    def service(self) -> ServiceType:
        """Retourne le fournisseur implemente."""
        ...

    async def close(self) -> None:
        """Libere les ressources reseau (no-op par defaut)."""
        return None
