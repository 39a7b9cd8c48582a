# src/simplexint/geometry/intersection.py
"""
Points where the faces of two N-simplices cross.

For every admitted pair of faces (one per simplex) the larger face is taken as
the *reference* boundary and the smaller one as the *target* boundary; ties go
to simplex 1 as reference. Writing the target point as ``T λ`` with
``1ᵀλ = 1`` and expanding it in the reference simplex's barycentric frame, the
point lies in the reference face's affine hull iff its weights on the vertices
outside that face vanish:

    Γ λ = 0,   1ᵀ λ = 1,   Γ = E[outside(reference), target]

where ``E`` is the convex expansion of the target simplex's vertices in the
reference simplex's frame. The pair yields exactly one point iff
``rank([Γ; 1ᵀ]) - rank(Γ) == 1`` and ``rank(Γ) == s - 1``. The reference
weights are then ``α = E[reference, target] λ`` with the first entry fixed by
the sum-to-one constraint. The point is kept only when every weight of α and λ
is strictly positive, i.e. it lies in the relative interior of both faces;
points on a lower dimensional sub-face are produced by that sub-face's pair.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from simplexint.core.enums import PairOutcome
from simplexint.core.logging import logger
from simplexint.geometry.labels import boundary_labels
from simplexint.geometry.linalg import qr_lstsq, qr_rank
from simplexint.geometry.pairs import admissible_pairs

__all__ = [
    "IntersectionVertex",
    "IntersectionAccumulator",
    "IntersectionResult",
    "OrientedPair",
    "orient_pair",
    "rank_test",
    "solve_pair",
    "validate_inputs",
    "intersection_of_boundaries",
]

# Column sums of a convex expansion are compared against 1 with at least this slack.
_MIN_SUM_ATOL = 1e-12


@dataclass(frozen=True)
class IntersectionVertex:
    """An accepted intersection point and its dual barycentric coordinates."""
    point: np.ndarray
    coefficients: np.ndarray


class IntersectionAccumulator:
    """Append-only buffer of ``IntersectionVertex`` records for one call."""

    def __init__(self, n: int):
        self.n = n
        self.vertices: List[IntersectionVertex] = []

    def __len__(self) -> int:
        return len(self.vertices)

    def append(
        self,
        point: np.ndarray,
        reference_side: int,
        reference: np.ndarray,
        alpha: np.ndarray,
        target: np.ndarray,
        lam: np.ndarray,
    ) -> IntersectionVertex:
        """Scatter α and λ into the 2N+2 coefficient vector and store the record."""
        width = self.n + 1
        z = np.zeros(2 * width, dtype=np.float64)
        if reference_side == 0:
            z[reference] = alpha
            z[target + width] = lam
        else:
            z[reference + width] = alpha
            z[target] = lam

        vertex = IntersectionVertex(point=np.asarray(point, dtype=np.float64), coefficients=z)
        self.vertices.append(vertex)
        return vertex

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return the (D, N) coordinate table and the (D, 2N+2) coefficient table."""
        if not self.vertices:
            return (
                np.zeros((0, self.n), dtype=np.float64),
                np.zeros((0, 2 * self.n + 2), dtype=np.float64),
            )
        points = np.vstack([v.point for v in self.vertices])
        coefficients = np.vstack([v.coefficients for v in self.vertices])
        return points, coefficients


@dataclass
class IntersectionResult:
    """Output tables plus a tally of how each admitted face pair was resolved."""
    coordinates: np.ndarray
    coefficients: np.ndarray
    outcomes: Dict[PairOutcome, int] = field(default_factory=dict)

    def __iter__(self) -> Iterator[np.ndarray]:
        yield self.coordinates
        yield self.coefficients

    def __len__(self) -> int:
        return self.coordinates.shape[0]


@dataclass(frozen=True)
class OrientedPair:
    reference_side: int          # 0: reference face belongs to simplex 1
    reference: np.ndarray        # vertex indices of the reference face
    target: np.ndarray           # vertex indices of the target face


def orient_pair(face1: np.ndarray, face2: np.ndarray) -> OrientedPair:
    if face1.shape[0] >= face2.shape[0]:
        return OrientedPair(0, face1, face2)
    return OrientedPair(1, face2, face1)


def rank_test(
    expansion: np.ndarray,
    reference: np.ndarray,
    target: np.ndarray,
    tolerance: float,
) -> Tuple[PairOutcome, np.ndarray]:
    """
    Decide whether the affine hulls of two faces meet in exactly one point.

    Args:
        expansion: (N+1, N+1) expansion of the target simplex's vertices in
            the reference simplex's frame.
        reference: Vertex indices of the reference face (size r).
        target: Vertex indices of the target face (size s <= r).
        tolerance: Absolute threshold shared with the solve.

    Returns:
        The outcome and Γ, the (N+1-r, s) constraint block.
    """
    outside = np.setdiff1d(np.arange(expansion.shape[0]), reference)
    gamma = expansion[np.ix_(outside, target)]
    s = target.shape[0]

    rank = qr_rank(gamma, tolerance)
    rank_augmented = qr_rank(np.vstack([gamma, np.ones((1, s))]), tolerance)
    if not (rank_augmented - rank == 1 and rank == s - 1):
        return PairOutcome.RANK_MISMATCH, gamma

    # A column within tolerance of zero: that target vertex already sits in the face's hull.
    if np.abs(gamma).max(axis=0).min() <= tolerance:
        return PairOutcome.VANISHING_COLUMN, gamma

    return PairOutcome.ACCEPTED, gamma


def solve_pair(
    expansion: np.ndarray,
    gamma: np.ndarray,
    reference: np.ndarray,
    target: np.ndarray,
    target_vertices: np.ndarray,
    tolerance: float,
) -> Tuple[PairOutcome, Optional[np.ndarray], Optional[np.ndarray], Optional[np.ndarray]]:
    """
    Solve for the target weights λ, derive the reference weights α, and gate them.

    Returns:
        (outcome, alpha, lam, point); the last three are None unless accepted.
    """
    s = target.shape[0]
    system = np.vstack([gamma, np.ones((1, s))])
    rhs = np.zeros(system.shape[0])
    rhs[-1] = 1.0
    lam = qr_lstsq(system, rhs, tolerance)

    beta = expansion[np.ix_(reference[1:], target)]
    tail = beta @ lam
    alpha = np.concatenate(([1.0 - tail.sum()], tail))

    alpha[np.abs(alpha) <= tolerance] = 0.0
    lam[np.abs(lam) <= tolerance] = 0.0

    if min(alpha.min(), lam.min()) <= 0.0:
        return PairOutcome.NON_POSITIVE, None, None, None
    if np.count_nonzero(alpha) < 2:
        return PairOutcome.NON_MINIMAL, None, None, None

    point = target_vertices[:, target] @ lam
    return PairOutcome.ACCEPTED, alpha, lam, point


def _require(condition: bool, message: str) -> None:
    if not condition:
        logger.error(message)
        raise ValueError(message)


def _is_count(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def validate_inputs(
    s1, s2, convexexp1in2, convexexp2in1, ordered_vertices1, ordered_vertices2,
    num1in2, num2in1, n_common, tolerance,
):
    """
    Check the preconditions of ``intersection_of_boundaries`` and normalize arrays.

    Raises:
        ValueError: On any shape, range or permutation violation.
    """
    _require(
        isinstance(tolerance, (float, int, np.floating, np.integer))
        and not isinstance(tolerance, (bool, np.bool_))
        and np.isfinite(tolerance) and tolerance > 0,
        f"tolerance must be a finite positive number, got {tolerance!r}",
    )

    s1 = np.asarray(s1, dtype=np.float64)
    s2 = np.asarray(s2, dtype=np.float64)
    _require(s1.ndim == 2 and s2.ndim == 2, "Simplices must be 2-D (N, N+1) tables")
    _require(
        s1.shape == s2.shape,
        f"Simplices have mismatched shapes {s1.shape} and {s2.shape}",
    )
    n = s1.shape[0]
    _require(n >= 1 and s1.shape[1] == n + 1, f"Simplex table must be (N, N+1), got {s1.shape}")
    _require(np.all(np.isfinite(s1)) and np.all(np.isfinite(s2)), "Simplices contain non-finite values")

    expansions = []
    for name, table in (("convexexp1in2", convexexp1in2), ("convexexp2in1", convexexp2in1)):
        table = np.asarray(table, dtype=np.float64)
        _require(table.shape == (n + 1, n + 1), f"{name} must be ({n + 1}, {n + 1}), got {table.shape}")
        _require(bool(np.all(np.isfinite(table))), f"{name} contains non-finite values")
        _require(
            np.allclose(table.sum(axis=0), 1.0, rtol=0.0, atol=max(tolerance, _MIN_SUM_ATOL)),
            f"Columns of {name} must sum to 1",
        )
        expansions.append(table)

    orderings = []
    for name, ordering in (("ordered_vertices1", ordered_vertices1), ("ordered_vertices2", ordered_vertices2)):
        ordering = np.asarray(ordering)
        _require(
            ordering.shape == (n + 1,) and np.issubdtype(ordering.dtype, np.integer)
            and np.array_equal(np.sort(ordering), np.arange(n + 1)),
            f"{name} must be a permutation of 0..{n}, got {ordering.tolist()}",
        )
        orderings.append(ordering.astype(np.int64))

    for name, count in (("num1in2", num1in2), ("num2in1", num2in1), ("n_common", n_common)):
        _require(_is_count(count) and 0 <= count <= n + 1, f"{name} must be an integer in [0, {n + 1}], got {count!r}")
    _require(
        n_common <= min(num1in2, num2in1),
        f"n_common={n_common} exceeds the inside counts ({num1in2}, {num2in1})",
    )

    return s1, s2, expansions[0], expansions[1], orderings[0], orderings[1], n


def intersection_of_boundaries(
    s1: np.ndarray,
    s2: np.ndarray,
    convexexp1in2: np.ndarray,
    convexexp2in1: np.ndarray,
    ordered_vertices1: np.ndarray,
    ordered_vertices2: np.ndarray,
    num1in2: int,
    num2in1: int,
    n_common: int,
    tolerance: float,
) -> IntersectionResult:
    """
    Intersection points between the boundaries of two N-simplices.

    Parameters
    ----------
    s1, s2 : (N, N+1) ndarray
        Vertex coordinates, one column per vertex.
    convexexp1in2 : (N+1, N+1) ndarray
        Column j holds vertex j of ``s1`` in barycentric coordinates of ``s2``.
    convexexp2in1 : (N+1, N+1) ndarray
        Column j holds vertex j of ``s2`` in barycentric coordinates of ``s1``.
    ordered_vertices1, ordered_vertices2 : (N+1,) int ndarray
        Permutations of 0..N. The first ``n_common`` entries of both are the
        shared vertices (same order); the first ``num1in2`` (``num2in1``)
        entries are the vertices of s1 (s2) lying in the other simplex.
    num1in2, num2in1, n_common : int
        Counts in [0, N+1].
    tolerance : float
        Single threshold for rank decisions, zero detection and pivoting.

    Returns
    -------
    IntersectionResult
        Unpacks as ``(coordinates, coefficients)`` with shapes (D, N) and
        (D, 2N+2). The first N+1 coefficients of a row are weights on the
        vertices of s1, the last N+1 on the vertices of s2.
    """
    (s1, s2, convexexp1in2, convexexp2in1,
     ordered_vertices1, ordered_vertices2, n) = validate_inputs(
        s1, s2, convexexp1in2, convexexp2in1, ordered_vertices1, ordered_vertices2,
        num1in2, num2in1, n_common, tolerance,
    )

    labels1 = boundary_labels(n, num1in2)
    labels2 = boundary_labels(n, num2in1)
    candidates = admissible_pairs(labels1, labels2, n_common, n)
    logger.debug(
        f"N={n}: {labels1.shape[0]} x {labels2.shape[0]} face pairs, "
        f"{candidates.shape[0]} admitted"
    )

    accumulator = IntersectionAccumulator(n)
    tally: Counter = Counter()

    for i, j in candidates:
        pair = orient_pair(ordered_vertices1[labels1[i]], ordered_vertices2[labels2[j]])
        if pair.reference_side == 0:
            expansion, target_vertices = convexexp2in1, s2
        else:
            expansion, target_vertices = convexexp1in2, s1

        outcome, gamma = rank_test(expansion, pair.reference, pair.target, tolerance)
        if outcome is PairOutcome.ACCEPTED:
            outcome, alpha, lam, point = solve_pair(
                expansion, gamma, pair.reference, pair.target, target_vertices, tolerance
            )
            if outcome is PairOutcome.ACCEPTED:
                accumulator.append(point, pair.reference_side, pair.reference, alpha, pair.target, lam)
        tally[outcome] += 1

    coordinates, coefficients = accumulator.to_arrays()
    logger.debug(f"{len(accumulator)} intersection points; outcomes: {dict(tally)}")
    return IntersectionResult(coordinates, coefficients, dict(tally))
