"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Les ports sont les frontières de l'architecture hexagonale. Ils définissent
ce dont le domaine a besoin du monde extérieur sans spécifier
comment ces besoins sont satisfaits.

Ports fournisseurs : Contrats pour les services de metadonnees externes
- IMetadataProvider : Interface commune Simkl / TMDB / TVDB / MAL

Ports de sortie : Contrats pour les consommateurs d'enregistrements
- IRecordSink : Destination des enregistrements (CSV)
- IProgressSink : Affichage de la progression
"""

from src.core.ports.api_clients import IMetadataProvider
from src.core.ports.sinks import IProgressSink, IRecordSink

__all__ = [
    # Fournisseurs
    "IMetadataProvider",
    # Sorties
    "IRecordSink",
    "IProgressSink",
]
