"""
Moteur de resolution multi-fournisseurs.

ResolutionEngine interroge les fournisseurs configures dans l'ordre de
priorite et fusionne leurs identifiants en un IdentityRecord par titre.

Algorithme (par titre):
1. Recherche du titre sur chaque fournisseur actif (requetes concurrentes)
2. Le premier fournisseur PAR PRIORITE ayant au moins un resultat fixe le
   titre, l'annee et le type canoniques (jamais l'ordre d'arrivee des reponses)
3. Collecte des identifiants: premier resultat de chaque fournisseur, nouvelle
   recherche avec le titre canonique pour ceux qui n'ont rien trouve, details
   du fournisseur canonique; fusion par ordre de priorite sans ecraser un
   identifiant deja connu
4. Aucun resultat nulle part: enregistrement sans identifiants, titre et type
   d'origine conserves (ce n'est pas une erreur)

Un fournisseur en echec (transport, statut, authentification) est journalise
puis ignore pour ce titre; seule une configuration sans fournisseur est fatale.
"""

import asyncio
from typing import Optional, Sequence

from loguru import logger

from src.core.errors import AuthError, ConfigError, ProviderError
from src.core.ports.api_clients import IMetadataProvider
from src.core.value_objects import (
    IdentityRecord,
    MediaIds,
    MediaType,
    MetadataResult,
    PriorityOrder,
    ServiceType,
    WatchHistoryEntry,
)

# Erreurs absorbees au niveau d'un fournisseur
PROVIDER_FAILURES = (ProviderError, AuthError)


class ResolutionEngine:
    """
    Resolution d'un titre en IdentityRecord via les fournisseurs actifs.

    Example:
        engine = ResolutionEngine(
            providers={ServiceType.TMDB: tmdb, ServiceType.SIMKL: simkl},
            priority_order=(ServiceType.SIMKL, ServiceType.TMDB),
        )
        record = await engine.resolve(WatchHistoryEntry(title="Inception"))
    """

    def __init__(
        self,
        providers: dict[ServiceType, IMetadataProvider],
        priority_order: Sequence[ServiceType],
        fetch_details: bool = True,
    ) -> None:
        """
        Args:
            providers: Fournisseurs actifs par ServiceType
            priority_order: Ordre de priorite (les services non actifs sont ignores)
            fetch_details: Interroger les details du fournisseur canonique
                           pour recuperer ses identifiants croises

        Raises:
            ConfigError: Aucun fournisseur actif, doublon dans la priorite,
                         ou priorite ne contenant aucun fournisseur actif
        """
        if not providers:
            raise ConfigError("Aucun fournisseur de metadonnees active")
        if len(set(priority_order)) != len(priority_order):
            raise ConfigError(f"Ordre de priorite avec doublons: {list(priority_order)}")

        order = tuple(service for service in priority_order if service in providers)
        if not order:
            raise ConfigError(
                "L'ordre de priorite ne contient aucun fournisseur active "
                f"(actifs: {sorted(s.value for s in providers)})"
            )

        ignored = set(providers) - set(order)
        if ignored:
            logger.warning(
                f"Fournisseurs actifs absents de l'ordre de priorite, ignores: "
                f"{sorted(s.value for s in ignored)}"
            )

        self._providers = providers
        self._order: PriorityOrder = order
        self._fetch_details = fetch_details

    @property
    def priority_order(self) -> PriorityOrder:
        """Fournisseurs effectivement interroges, par priorite decroissante."""
        return self._order

    async def resolve(self, entry: WatchHistoryEntry) -> IdentityRecord:
        """
        Resout un titre de l'historique.

        Args:
            entry: Entree brute (titre, type, annee indicative)

        Returns:
            IdentityRecord fusionne, ou sans identifiants si rien n'a ete trouve
        """
        first_pass = await asyncio.gather(
            *(
                self._safe_search(service, entry.title, entry.media_type, entry.year)
                for service in self._order
            )
        )
        hits = dict(zip(self._order, first_pass))

        canonical_service = next((s for s in self._order if hits[s]), None)
        if canonical_service is None:
            logger.info(f"Aucun resultat pour: {entry.title}")
            return IdentityRecord.unmatched(entry)

        canonical = hits[canonical_service][0]
        discovered, details = await self._discover_ids(entry, canonical_service, canonical, hits)

        ids = MediaIds()
        for service in self._order:
            if hits[service]:
                ids = ids.merge(hits[service][0].ids)
            elif discovered.get(service):
                ids = ids.merge(discovered[service][0].ids)
            if service == canonical_service and details is not None:
                ids = ids.merge(details.ids)

        logger.debug(
            f"Resolu: {entry.title} -> {canonical.title} ({canonical.year}) "
            f"via {canonical_service.value}, ids={ids.as_dict()}"
        )
        return IdentityRecord(
            ids=ids,
            title=canonical.title or entry.title,
            year=canonical.year,
            media_type=canonical.media_type,
            scraped_title=entry.title,
            watched_on=entry.watched_on,
            matched_by=canonical_service,
        )

    async def _discover_ids(
        self,
        entry: WatchHistoryEntry,
        canonical_service: ServiceType,
        canonical: MetadataResult,
        hits: dict[ServiceType, list[MetadataResult]],
    ) -> tuple[dict[ServiceType, list[MetadataResult]], Optional[MetadataResult]]:
        """
        Recherches d'identifiants complementaires, lancees en parallele.

        Returns:
            (resultats des nouvelles recherches par service, details canoniques)
        """
        title = canonical.title or entry.title
        year = int(canonical.year) if canonical.year and canonical.year.isdigit() else entry.year
        same_query = (
            title.casefold() == entry.title.casefold()
            and canonical.media_type == entry.media_type
            and year == entry.year
        )

        retry_services = [] if same_query else [s for s in self._order if not hits[s]]
        searches = [
            self._safe_search(service, title, canonical.media_type, year)
            for service in retry_services
        ]

        native_id = canonical.ids.get(canonical_service)
        want_details = self._fetch_details and native_id is not None
        if want_details:
            searches.append(
                self._safe_details(canonical_service, native_id, canonical.media_type)
            )

        outcomes = await asyncio.gather(*searches)
        details = outcomes.pop() if want_details else None
        return dict(zip(retry_services, outcomes)), details

    async def _safe_search(
        self,
        service: ServiceType,
        title: str,
        media_type: MediaType,
        year: Optional[int],
    ) -> list[MetadataResult]:
        """Recherche sur un fournisseur; un echec est journalise et vaut 'aucun resultat'."""
        try:
            return await self._providers[service].search(title, media_type, year)
        except PROVIDER_FAILURES as e:
            logger.warning(f"Recherche {service.value} en echec pour '{title}': {e}")
            return []

    async def _safe_details(
        self,
        service: ServiceType,
        media_id: str,
        media_type: MediaType,
    ) -> Optional[MetadataResult]:
        """Details sur un fournisseur; un echec est journalise et vaut None."""
        try:
            return await self._providers[service].get_details(media_id, media_type)
        except PROVIDER_FAILURES as e:
            logger.warning(f"Details {service.value} en echec pour l'id {media_id}: {e}")
            return None
