"""
Couche domaine (core).

Contient les ports (interfaces abstraites), les objets valeur et la
taxonomie des erreurs. Cette couche n'a AUCUNE dépendance vers
l'infrastructure (adapters, frameworks, HTTP, navigateur).

Sous-packages :
- ports/ : Interfaces abstraites définissant les contrats pour les adaptateurs
- value_objects/ : Objets valeur immutables (MediaIds, MetadataResult, IdentityRecord)
- errors : Hiérarchie des erreurs (transport, metadata, auth, browser, config)
"""
