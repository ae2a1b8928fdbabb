"""
Couche services (cas d'utilisation).

- ResolutionEngine : resolution d'un titre via les fournisseurs, par priorite
- Pipeline : historique -> resolution concurrente -> puits, dans l'ordre

Les services dependent des ports definis dans core/, jamais des
implementations concretes des fournisseurs.
"""

from src.services.pipeline import Pipeline, PipelineResult
from src.services.resolution import ResolutionEngine

__all__ = [
    "Pipeline",
    "PipelineResult",
    "ResolutionEngine",
]
