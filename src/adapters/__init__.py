"""
Couche adaptateurs (infrastructure).

Les adaptateurs implémentent les ports définis dans core/ports/ et fournissent
des implémentations concrètes pour les systèmes externes.

Sous-packages :
- api/ : Clients des fournisseurs de métadonnées (Simkl, TMDB, TVDB, MAL)
- browser/ : Session navigateur Playwright (connexion, historique)
- output/ : Export CSV et affichage de progression
- cli/ : Interface ligne de commande (Typer)

Chaque adaptateur dépend de core/ mais core/ ne dépend jamais des adaptateurs.
"""
