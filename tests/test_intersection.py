"""Tests for simplexint.geometry.intersection.intersection_of_boundaries

The small planar cases are checked against hand-computed crossings; random
triangles and tetrahedra are checked against a brute-force solve over every
face pair whose vertex count equals N+2.
"""

from itertools import combinations

import numpy as np
import pytest

from simplexint.core.enums import PairOutcome
from simplexint.geometry.expansion import prepare_inputs
from simplexint.geometry.intersection import (
    IntersectionAccumulator,
    intersection_of_boundaries,
    orient_pair,
    rank_test,
    solve_pair,
)

TOL = 1e-9


def _columns(*vertices):
    """Build an (N, N+1) simplex table from vertex tuples."""
    return np.array(vertices, dtype=np.float64).T


def _overlapping_triangles():
    """Each triangle has exactly one vertex inside the other."""
    s1 = _columns((0.0, 0.0), (2.0, 0.0), (0.0, 2.0))
    s2 = _columns((0.5, 0.5), (3.0, 2.0), (3.0, -1.2))
    return s1, s2


def _run(s1, s2, tolerance=TOL):
    prepared = prepare_inputs(s1, s2)
    return intersection_of_boundaries(*prepared.arguments(tolerance))


def _sorted_rows(points, coefficients):
    order = np.lexsort(points.T[::-1])
    return points[order], coefficients[order]


def _brute_force_points(s1, s2):
    """Crossings of every face pair with N+2 vertices, by a direct square solve."""
    n = s1.shape[0]
    points = []
    for a in range(2, n + 1):
        b = n + 2 - a
        if not 2 <= b <= n:
            continue
        for f in combinations(range(n + 1), a):
            for g in combinations(range(n + 1), b):
                lhs = np.zeros((n + 2, n + 2))
                lhs[:n, :a] = s1[:, f]
                lhs[:n, a:] = -s2[:, g]
                lhs[n, :a] = 1.0
                lhs[n + 1, a:] = 1.0
                rhs = np.zeros(n + 2)
                rhs[n:] = 1.0
                weights = np.linalg.solve(lhs, rhs)
                if np.all(weights > 1e-12):
                    points.append(s1[:, f] @ weights[:a])
    return np.array(points).reshape(-1, n)


def _assert_dual_coefficients_consistent(s1, s2, points, coefficients, atol=1e-8):
    n = s1.shape[0]
    for point, z in zip(points, coefficients):
        w1, w2 = z[:n + 1], z[n + 1:]
        assert np.all(w1 >= 0.0) and np.all(w2 >= 0.0)
        assert w1[w1 > 0].sum() == pytest.approx(1.0, abs=atol)
        assert w2[w2 > 0].sum() == pytest.approx(1.0, abs=atol)
        np.testing.assert_allclose(s1 @ w1, point, atol=atol)
        np.testing.assert_allclose(s2 @ w2, point, atol=atol)


def test_two_overlapping_triangles_cross_at_two_points():
    s1, s2 = _overlapping_triangles()
    result = _run(s1, s2)
    points, coefficients = _sorted_rows(*result)

    assert len(result) == 2
    expected_points = np.array([[1.125, 0.875], [21.0 / 17.0, 0.0]])
    np.testing.assert_allclose(points, expected_points, atol=1e-12)

    expected_coefficients = np.array([
        [0.0, 0.5625, 0.4375, 0.75, 0.25, 0.0],
        [13.0 / 34.0, 21.0 / 34.0, 0.0, 12.0 / 17.0, 0.0, 5.0 / 17.0],
    ])
    np.testing.assert_allclose(coefficients, expected_coefficients, atol=1e-12)

    # Each point lies on exactly one edge of each triangle, strictly inside it.
    for z in coefficients:
        for block in (z[:3], z[3:]):
            assert np.count_nonzero(block) == 2
            assert np.all((block[block > 0] > 0.0) & (block[block > 0] < 1.0))

    assert result.outcomes[PairOutcome.ACCEPTED] == 2
    assert sum(result.outcomes.values()) == 9


def test_result_unpacks_as_coordinate_and_coefficient_tables():
    s1, s2 = _overlapping_triangles()
    coordinates, coefficients = _run(s1, s2)
    assert coordinates.shape == (2, 2)
    assert coefficients.shape == (2, 6)


def test_disjoint_triangles_have_no_intersection_points():
    s1, s2 = _overlapping_triangles()
    result = _run(s1, s2 + 10.0)
    assert len(result) == 0
    assert result.coordinates.shape == (0, 2)
    assert result.coefficients.shape == (0, 6)
    assert PairOutcome.ACCEPTED not in result.outcomes


def test_shared_edge_on_same_side_gives_one_crossing_away_from_shared_vertices():
    s1 = _columns((0.0, 0.0), (1.0, 0.0), (0.0, 1.0))
    s2 = _columns((0.0, 0.0), (1.0, 0.0), (0.5, 0.8))
    prepared = prepare_inputs(s1, s2)
    assert prepared.orderings.n_common == 2

    result = intersection_of_boundaries(*prepared.arguments(TOL))
    assert len(result) == 1
    np.testing.assert_allclose(result.coordinates[0], [5.0 / 13.0, 8.0 / 13.0], atol=1e-12)
    np.testing.assert_allclose(
        result.coefficients[0],
        [0.0, 5.0 / 13.0, 8.0 / 13.0, 3.0 / 13.0, 0.0, 10.0 / 13.0],
        atol=1e-12,
    )
    for shared in (s1[:, 0], s1[:, 1]):
        assert np.linalg.norm(result.coordinates - shared, axis=1).min() > 1e-6


def test_shared_edge_on_opposite_sides_gives_nothing():
    s1 = _columns((0.0, 0.0), (1.0, 0.0), (0.0, 1.0))
    s2 = _columns((0.0, 0.0), (1.0, 0.0), (0.3, -0.7))
    result = _run(s1, s2)
    assert len(result) == 0


def test_shared_face_of_tetrahedra_never_yields_a_shared_vertex():
    s1 = _columns((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.2, 0.2, 1.0))
    s2 = _columns((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.6, 0.5, 0.7))
    prepared = prepare_inputs(s1, s2)
    assert prepared.orderings.n_common == 3

    points, coefficients = intersection_of_boundaries(*prepared.arguments(TOL))
    _assert_dual_coefficients_consistent(s1, s2, points, coefficients)
    for k in range(3):
        if points.shape[0]:
            assert np.linalg.norm(points - s1[:, k], axis=1).min() > 1e-6


def test_swapping_simplices_swaps_coefficient_blocks():
    s1, s2 = _overlapping_triangles()
    points, coefficients = _sorted_rows(*_run(s1, s2))
    points_swapped, coefficients_swapped = _sorted_rows(*_run(s2, s1))

    np.testing.assert_allclose(points_swapped, points, atol=1e-12)
    np.testing.assert_allclose(coefficients_swapped[:, :3], coefficients[:, 3:], atol=1e-12)
    np.testing.assert_allclose(coefficients_swapped[:, 3:], coefficients[:, :3], atol=1e-12)


@pytest.mark.parametrize("seed", range(6))
def test_random_tetrahedra_swap_symmetry(seed):
    rng = np.random.default_rng(100 + seed)
    s1 = rng.normal(size=(3, 4))
    s2 = s1 + 0.4 * rng.normal(size=(3, 4))
    points, coefficients = _sorted_rows(*_run(s1, s2))
    points_swapped, coefficients_swapped = _sorted_rows(*_run(s2, s1))

    assert points.shape == points_swapped.shape
    np.testing.assert_allclose(points_swapped, points, atol=1e-8)
    np.testing.assert_allclose(coefficients_swapped[:, :4], coefficients[:, 4:], atol=1e-8)


_TETRA = ((0.0, 0.0, 0.0), (4.0, 0.0, 0.0), (0.0, 4.0, 0.0), (0.0, 0.0, 4.0))


@pytest.mark.parametrize("shared, others, num1in2, num2in1", [
    # one shared vertex; s2 has one more vertex inside s1
    ([0], [(0.5, 0.5, 0.5), (3.0, 3.0, -1.0), (-1.0, 3.0, 3.0)], 1, 2),
    # shared edge; s2 has one more vertex inside s1
    ([0, 1], [(1.0, 0.5, 0.5), (1.0, 3.0, -2.0)], 2, 3),
])
@pytest.mark.parametrize("seed", range(4))
def test_shared_vertex_tetrahedra_swap_symmetry(shared, others, num1in2, num2in1, seed):
    rng = np.random.default_rng(200 + seed)
    s1 = _columns(*_TETRA)
    moved = np.array(others) + 0.05 * rng.uniform(-1.0, 1.0, size=(len(others), 3))
    s2 = _columns(*[_TETRA[i] for i in shared], *moved)

    prepared = prepare_inputs(s1, s2)
    assert prepared.orderings.n_common == len(shared)
    assert (prepared.orderings.num1in2, prepared.orderings.num2in1) == (num1in2, num2in1)

    points, coefficients = _sorted_rows(*_run(s1, s2))
    points_swapped, coefficients_swapped = _sorted_rows(*_run(s2, s1))

    assert points.shape[0] > 0
    assert points.shape == points_swapped.shape
    np.testing.assert_allclose(points_swapped, points, atol=1e-8)
    np.testing.assert_allclose(coefficients_swapped[:, :4], coefficients[:, 4:], atol=1e-8)
    np.testing.assert_allclose(coefficients_swapped[:, 4:], coefficients[:, :4], atol=1e-8)
    _assert_dual_coefficients_consistent(s1, s2, points, coefficients)
    for k in shared:
        assert np.linalg.norm(points - s1[:, k], axis=1).min() > 1e-6


@pytest.mark.parametrize("n", [2, 3])
@pytest.mark.parametrize("seed", range(8))
def test_random_simplices_match_brute_force(n, seed):
    rng = np.random.default_rng(seed)
    s1 = rng.normal(size=(n, n + 1))
    s2 = s1.mean(axis=1, keepdims=True) + rng.normal(size=(n, n + 1))
    result = _run(s1, s2)
    points, coefficients = result

    _assert_dual_coefficients_consistent(s1, s2, points, coefficients)

    expected = _brute_force_points(s1, s2)
    assert points.shape[0] == expected.shape[0]
    for p in expected:
        assert np.linalg.norm(points - p, axis=1).min() < 1e-8


def test_overlapping_shifted_tetrahedra_produce_points():
    s1 = _columns((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
    s2 = s1 + np.array([[0.2], [0.15], [0.1]])
    points, coefficients = _run(s1, s2)
    assert points.shape[0] >= 3
    _assert_dual_coefficients_consistent(s1, s2, points, coefficients)
    # No two rows describe the same point.
    for i in range(points.shape[0]):
        others = np.delete(points, i, axis=0)
        assert np.linalg.norm(others - points[i], axis=1).min() > 1e-8


def test_rank_test_and_solve_on_a_single_edge_pair():
    s1, s2 = _overlapping_triangles()
    prepared = prepare_inputs(s1, s2)
    reference = np.array([1, 2])     # hypotenuse of s1
    target = np.array([0, 1])        # edge of s2 from its inner vertex
    outcome, gamma = rank_test(prepared.convexexp2in1, reference, target, TOL)
    assert outcome is PairOutcome.ACCEPTED
    assert gamma.shape == (1, 2)

    outcome, alpha, lam, point = solve_pair(
        prepared.convexexp2in1, gamma, reference, target, s2, TOL
    )
    assert outcome is PairOutcome.ACCEPTED
    np.testing.assert_allclose(lam, [0.75, 0.25])
    np.testing.assert_allclose(alpha, [0.5625, 0.4375])
    np.testing.assert_allclose(point, [1.125, 0.875])


def test_solve_rejects_crossing_outside_the_faces():
    s1, s2 = _overlapping_triangles()
    prepared = prepare_inputs(s1, s2)
    reference = np.array([0, 2])     # x = 0 edge of s1
    target = np.array([0, 1])
    outcome, gamma = rank_test(prepared.convexexp2in1, reference, target, TOL)
    assert outcome is PairOutcome.ACCEPTED
    outcome, alpha, lam, point = solve_pair(
        prepared.convexexp2in1, gamma, reference, target, s2, TOL
    )
    assert outcome is PairOutcome.NON_POSITIVE
    assert point is None


def test_rank_test_flags_parallel_edges():
    s1 = _columns((0.0, 0.0), (1.0, 0.0), (0.0, 1.0))
    s2 = _columns((-1.0, 2.0), (2.0, 2.0), (0.5, 3.0))
    prepared = prepare_inputs(s1, s2)
    # s1 edge (0,0)-(1,0) and s2 edge (-1,2)-(2,2) are parallel.
    outcome, _ = rank_test(prepared.convexexp2in1, np.array([0, 1]), np.array([0, 1]), TOL)
    assert outcome is PairOutcome.RANK_MISMATCH


def test_rank_test_flags_target_vertex_on_reference_line():
    s1 = _columns((0.0, 0.0), (2.0, 0.0), (0.0, 2.0))
    s2 = _columns((1.0, -1.0), (3.0, 0.0), (1.0, 1.0))
    prepared = prepare_inputs(s1, s2)
    # s2 vertex (3, 0) lies on the line y = 0 through s1's first edge.
    outcome, _ = rank_test(prepared.convexexp2in1, np.array([0, 1]), np.array([0, 1]), TOL)
    assert outcome is PairOutcome.VANISHING_COLUMN


def test_orientation_prefers_simplex_one_on_ties():
    pair = orient_pair(np.array([0, 1]), np.array([1, 2]))
    assert pair.reference_side == 0
    pair = orient_pair(np.array([0]), np.array([1, 2]))
    assert pair.reference_side == 1
    np.testing.assert_array_equal(pair.reference, [1, 2])


def test_accumulator_scatters_blocks_by_reference_side():
    acc = IntersectionAccumulator(2)
    acc.append(np.array([0.1, 0.2]), 0, np.array([1, 2]), np.array([0.4, 0.6]),
               np.array([0, 2]), np.array([0.3, 0.7]))
    acc.append(np.array([0.3, 0.4]), 1, np.array([0, 1]), np.array([0.5, 0.5]),
               np.array([2, 0]), np.array([0.9, 0.1]))
    points, coefficients = acc.to_arrays()
    assert len(acc) == 2
    np.testing.assert_allclose(points, [[0.1, 0.2], [0.3, 0.4]])
    np.testing.assert_allclose(coefficients, [
        [0.0, 0.4, 0.6, 0.3, 0.0, 0.7],
        [0.1, 0.0, 0.9, 0.5, 0.5, 0.0],
    ])
    assert acc.vertices[0].coefficients[:3].tolist() == [0.0, 0.4, 0.6]
