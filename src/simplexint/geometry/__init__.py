# simplexint/geometry/__init__.py
from .expansion import convex_expansion, intersect_simplices, prepare_inputs, vertex_orderings
from .intersection import IntersectionResult, IntersectionVertex, intersection_of_boundaries
from .labels import boundary_labels

__all__ = [
    "boundary_labels",
    "convex_expansion",
    "intersect_simplices",
    "intersection_of_boundaries",
    "IntersectionResult",
    "IntersectionVertex",
    "prepare_inputs",
    "vertex_orderings",
]
