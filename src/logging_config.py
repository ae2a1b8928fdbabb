"""
Configuration du logging de l'application via loguru.

Fournit un logging structuré avec :
- Sortie console : lisible par l'humain, colorée, pour la surveillance en temps réel
- Sortie fichier : sérialisée en JSON, avec rotation, pour l'analyse historique

Les identifiants (clés API, mot de passe Amazon) ne sont jamais journalisés.
"""

import sys
from pathlib import Path

from loguru import logger

_VERBOSE_LEVELS = ("INFO", "DEBUG", "TRACE")


def console_level(default: str = "INFO", verbose: int = 0, quiet: bool = False) -> str:
    """Niveau console selon les options -v/-q de la CLI.

    Args :
        default : Niveau configuré (WATCHIDS_LOG_LEVEL)
        verbose : Nombre de -v (1 = DEBUG, 2+ = TRACE)
        quiet : Erreurs uniquement

    Returns :
        Nom du niveau loguru
    """
    if quiet:
        return "ERROR"
    if verbose:
        return _VERBOSE_LEVELS[min(verbose, len(_VERBOSE_LEVELS) - 1)]
    return default.upper()


def configure_logging(
    log_level: str = "INFO",
    log_file: Path = Path("logs/watchids.log"),
    rotation_size: str = "10 MB",
    retention_count: int = 5,
) -> None:
    """Configure le logging de l'application.

    Args :
        log_level : Niveau de log minimum pour la sortie console (DEBUG, INFO, WARNING, ERROR)
        log_file : Chemin vers le fichier de log
        rotation_size : Taille maximale du fichier avant rotation (ex: "10 MB", "1 GB")
        retention_count : Nombre de fichiers rotatifs à conserver
    """
    logger.remove()

    # Handler console - lisible par l'humain
    logger.add(
        sys.stderr,
        level=log_level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    # Handler fichier - JSON pour l'analyse
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="DEBUG",  # Capture tous les niveaux (requetes HTTP en DEBUG)
        format="{message}",
        serialize=True,
        rotation=rotation_size,
        retention=retention_count,
        compression="zip",
        enqueue=True,  # Thread-safe
    )

    logger.debug("Logging configuré", log_file=str(log_file), rotation=rotation_size)
