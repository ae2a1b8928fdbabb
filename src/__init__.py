"""
watchids - Identifiants de metadonnees pour l'historique Prime Video.

Ce package extrait l'historique de visionnage Prime Video avec un navigateur
pilote, puis resout chaque titre en identifiants Simkl, TMDB, TVDB et
MyAnimeList et exporte le resultat en CSV.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (objets valeur, ports, erreurs)
- services/ : Couche application (resolution, pipeline)
- adapters/ : Couche infrastructure (CLI, navigateur, clients API, sorties)
"""

__version__ = "0.1.0"
