"""
simplexint: boundary intersections of N-dimensional simplices.

Exports:
    - intersection_of_boundaries: Core routine on precomputed expansions/orderings.
    - intersect_simplices: Convenience wrapper starting from vertex tables.
    - IntersectionConfig: Numeric settings.
"""

__version__ = "0.1.0"

from simplexint.core.config import IntersectionConfig
from simplexint.geometry.expansion import intersect_simplices, prepare_inputs
from simplexint.geometry.intersection import IntersectionResult, intersection_of_boundaries

__all__ = [
    "__version__",
    "IntersectionConfig",
    "IntersectionResult",
    "intersect_simplices",
    "intersection_of_boundaries",
    "prepare_inputs",
]
