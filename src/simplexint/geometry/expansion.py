"""
Precomputation feeding ``intersection_of_boundaries``.

Given two simplices as (N, N+1) column tables this module computes the convex
expansion of each simplex's vertices in the other's barycentric frame, detects
coincident vertices, and builds the vertex orderings and inside counts the
boundary enumeration relies on.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from simplexint.core.config import IntersectionConfig
from simplexint.core.logging import logger
from simplexint.geometry.intersection import IntersectionResult, intersection_of_boundaries
from simplexint.geometry.linalg import qr_rank

__all__ = [
    "VertexOrderings",
    "PreparedInputs",
    "convex_expansion",
    "shared_vertices",
    "vertex_orderings",
    "prepare_inputs",
    "intersect_simplices",
]


@dataclass(frozen=True)
class VertexOrderings:
    ordered_vertices1: np.ndarray
    ordered_vertices2: np.ndarray
    num1in2: int
    num2in1: int
    n_common: int


@dataclass(frozen=True)
class PreparedInputs:
    """Everything ``intersection_of_boundaries`` needs besides the tolerance."""
    s1: np.ndarray
    s2: np.ndarray
    convexexp1in2: np.ndarray
    convexexp2in1: np.ndarray
    orderings: VertexOrderings

    def arguments(self, tolerance: float) -> tuple:
        o = self.orderings
        return (
            self.s1, self.s2, self.convexexp1in2, self.convexexp2in1,
            o.ordered_vertices1, o.ordered_vertices2,
            o.num1in2, o.num2in1, o.n_common, tolerance,
        )


def _as_simplex(table, name: str) -> np.ndarray:
    table = np.asarray(table, dtype=np.float64)
    if table.ndim != 2 or table.shape[1] != table.shape[0] + 1:
        raise ValueError(f"{name} must be an (N, N+1) table, got shape {table.shape}")
    return table


def convex_expansion(frame: np.ndarray, points: np.ndarray, tolerance: float = 1e-12) -> np.ndarray:
    """
    Barycentric coordinates of the columns of ``points`` w.r.t. simplex ``frame``.

    Solves ``[frame; 1ᵀ] X = [points; 1ᵀ]``; column j of the result sums to 1.

    Raises:
        ValueError: If ``frame`` is degenerate (its vertices are affinely dependent).
    """
    frame = _as_simplex(frame, "frame")
    points = np.atleast_2d(np.asarray(points, dtype=np.float64))
    if points.shape[0] != frame.shape[0]:
        raise ValueError(
            f"Points live in dimension {points.shape[0]}, frame in {frame.shape[0]}"
        )

    lhs = np.vstack([frame, np.ones((1, frame.shape[1]))])
    if qr_rank(lhs, tolerance) < lhs.shape[0]:
        raise ValueError("Degenerate simplex: vertices are affinely dependent")
    rhs = np.vstack([points, np.ones((1, points.shape[1]))])
    return np.linalg.solve(lhs, rhs)


def shared_vertices(s1: np.ndarray, s2: np.ndarray, tolerance: float = 1e-9) -> List[Tuple[int, int]]:
    """Index pairs ``(i, j)`` with vertex i of s1 coinciding with vertex j of s2."""
    s1 = _as_simplex(s1, "s1")
    s2 = _as_simplex(s2, "s2")
    distances = np.linalg.norm(s1[:, :, None] - s2[:, None, :], axis=0)

    pairs = []
    used = set()
    for i in range(distances.shape[0]):
        for j in np.argsort(distances[i]):
            if distances[i, j] > tolerance:
                break
            if j not in used:
                pairs.append((i, int(j)))
                used.add(int(j))
                break
    return pairs


def _inside(expansion: np.ndarray, tolerance: float) -> np.ndarray:
    return np.all(expansion >= -tolerance, axis=0)


def vertex_orderings(
    convexexp1in2: np.ndarray,
    convexexp2in1: np.ndarray,
    shared: Optional[List[Tuple[int, int]]] = None,
    tolerance: float = 1e-9,
) -> VertexOrderings:
    """
    Order each simplex's vertices as: shared, then inside the other simplex, then the rest.

    Shared vertices appear in the same order in both orderings, so ordering
    position ``k < n_common`` names the same physical vertex for both simplices.
    """
    shared = list(shared or [])
    width = convexexp1in2.shape[1]
    shared1 = [i for i, _ in shared]
    shared2 = [j for _, j in shared]
    inside1 = _inside(convexexp1in2, tolerance)
    inside2 = _inside(convexexp2in1, tolerance)

    def _order(shared_idx, inside):
        rest = [k for k in range(width) if k not in shared_idx]
        ins = [k for k in rest if inside[k]]
        out = [k for k in rest if not inside[k]]
        return np.array(shared_idx + ins + out, dtype=np.int64), len(shared_idx) + len(ins)

    ordered1, num1in2 = _order(shared1, inside1)
    ordered2, num2in1 = _order(shared2, inside2)
    return VertexOrderings(ordered1, ordered2, num1in2, num2in1, len(shared))


def prepare_inputs(s1, s2, config: Optional[IntersectionConfig] = None) -> PreparedInputs:
    """Compute expansions and orderings for a pair of simplices."""
    config = config or IntersectionConfig()
    s1 = _as_simplex(s1, "s1")
    s2 = _as_simplex(s2, "s2")
    if s1.shape != s2.shape:
        raise ValueError(f"Simplices have mismatched shapes {s1.shape} and {s2.shape}")

    convexexp1in2 = convex_expansion(s2, s1, config.tolerance)
    convexexp2in1 = convex_expansion(s1, s2, config.tolerance)

    shared = shared_vertices(s1, s2, config.inside_tolerance)
    width = s1.shape[1]
    for i, j in shared:
        # Coincident vertices expand to exact unit vectors.
        convexexp1in2[:, i] = np.eye(width)[:, j]
        convexexp2in1[:, j] = np.eye(width)[:, i]

    orderings = vertex_orderings(convexexp1in2, convexexp2in1, shared, config.inside_tolerance)
    logger.debug(
        f"Prepared inputs: {orderings.n_common} shared, "
        f"{orderings.num1in2} of s1 in s2, {orderings.num2in1} of s2 in s1"
    )
    return PreparedInputs(s1, s2, convexexp1in2, convexexp2in1, orderings)


def intersect_simplices(s1, s2, config: Optional[IntersectionConfig] = None) -> IntersectionResult:
    """Prepare the inputs for two simplices and intersect their boundaries."""
    config = config or IntersectionConfig()
    prepared = prepare_inputs(s1, s2, config)
    return intersection_of_boundaries(*prepared.arguments(config.tolerance))
