"""
Regles de normalisation communes aux reponses des fournisseurs.

- Titre: le champ de type film ("title") est prefere au champ de type serie
  ("name"); si aucun n'est renseigne, le titre est une chaine vide.
- Annee: 4 premiers caracteres avant le premier '-' de la date presente
  (date de sortie preferee a la date de premiere diffusion); pas de date,
  pas d'annee.
- Type: un type explicite du fournisseur fait foi; sinon il est deduit du
  champ titre renseigne (film si "title", serie sinon). Cette deduction est
  une approximation: un fournisseur qui laisse "title" vide pour un film
  produit une serie.
"""

from typing import Any, Optional

from src.core.value_objects import MediaType

# Types explicites reconnus (TMDB: movie/tv, Simkl: movie/show/tv/anime)
_EXPLICIT_TYPES = {
    "movie": MediaType.MOVIE,
    "movies": MediaType.MOVIE,
    "tv": MediaType.SERIES,
    "show": MediaType.SERIES,
    "shows": MediaType.SERIES,
    "series": MediaType.SERIES,
    "anime": MediaType.SERIES,
}


def select_title(movie_title: Optional[str], series_title: Optional[str]) -> str:
    """Titre de type film si renseigne, sinon titre de type serie, sinon ''."""
    return movie_title or series_title or ""


def extract_year(*dates: Any) -> Optional[str]:
    """
    Annee depuis la premiere date renseignee.

    Args:
        *dates: Dates candidates par ordre de preference (ex: release_date,
                first_air_date). Les entiers sont acceptes (annee Simkl).

    Returns:
        Les 4 premiers caracteres avant le premier '-', ou None
    """
    for date in dates:
        if date is None:
            continue
        text = str(date).strip()
        if not text:
            continue
        year = text.split("-", 1)[0][:4]
        return year or None
    return None


def infer_media_type(
    explicit_type: Optional[str],
    movie_title: Optional[str],
) -> MediaType:
    """
    Type de media: explicite si reconnu, sinon deduit du champ titre film.

    Heuristique approximative conservee pour compatibilite.
    """
    known = parse_explicit_type(explicit_type)
    if known is not None:
        return known
    return MediaType.MOVIE if movie_title else MediaType.SERIES


def parse_explicit_type(explicit_type: Optional[str]) -> Optional[MediaType]:
    """Type explicite reconnu, ou None."""
    if not explicit_type:
        return None
    return _EXPLICIT_TYPES.get(explicit_type.strip().lower())


def optional_str(value: Any) -> Optional[str]:
    """Convertit un identifiant brut (int ou str) en str, None si absent ou vide."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
