"""
Tolerance-gated dense linear algebra on column-pivoted QR.

Rank decisions and least-squares solves share one factorization scheme and one
absolute tolerance, so the rank test and the solve agree on what counts as zero.
"""

import numpy as np
from scipy.linalg import qr, solve_triangular

__all__ = [
    "qr_rank",
    "qr_lstsq",
]


def _pivoted_qr(matrix: np.ndarray):
    return qr(matrix, mode="economic", pivoting=True)


def _rank_from_r(r: np.ndarray, tolerance: float) -> int:
    # Pivoting keeps |diag(R)| non-increasing.
    return int(np.count_nonzero(np.abs(np.diag(r)) > tolerance))


def qr_rank(matrix: np.ndarray, tolerance: float) -> int:
    """Numerical rank: number of pivots of ``matrix`` with magnitude above ``tolerance``."""
    matrix = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
    if matrix.size == 0:
        return 0
    _, r, _ = _pivoted_qr(matrix)
    return _rank_from_r(r, tolerance)


def qr_lstsq(matrix: np.ndarray, rhs: np.ndarray, tolerance: float) -> np.ndarray:
    """
    Basic least-squares solution of ``matrix @ x = rhs``.

    Columns whose pivot falls below ``tolerance`` are dropped and their
    unknowns set to zero.

    Args:
        matrix: (m, k) system matrix.
        rhs: (m,) right-hand side.
        tolerance: Absolute pivot threshold.

    Returns:
        (k,) solution vector.
    """
    matrix = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
    rhs = np.asarray(rhs, dtype=np.float64).reshape(-1)
    if rhs.shape[0] != matrix.shape[0]:
        raise ValueError(
            f"Right-hand side has {rhs.shape[0]} rows, matrix has {matrix.shape[0]}"
        )

    x = np.zeros(matrix.shape[1], dtype=np.float64)
    if matrix.size == 0:
        return x

    q, r, perm = _pivoted_qr(matrix)
    rank = _rank_from_r(r, tolerance)
    if rank == 0:
        return x

    y = solve_triangular(r[:rank, :rank], (q.T @ rhs)[:rank], lower=False)
    x[perm[:rank]] = y
    return x
