# src/simplexint/geometry/pairs.py

# --------------------------------------------------------------------------
# Candidate face pairs: the Cartesian product of both label sets, pruned of
# pairs that share a common vertex or carry more than N+2 vertices.
# The product is exponential in N; this approach is practical for modest N.
# --------------------------------------------------------------------------

import os

import numpy as np

# Respect an existing NUMBA_NUM_THREADS; default to 1 to avoid oversubscription.
if "NUMBA_NUM_THREADS" not in os.environ:
    os.environ["NUMBA_NUM_THREADS"] = os.environ.get("SIMPLEXINT_NUMBA_NUM_THREADS", "1")

from numba import njit, prange  # noqa: E402


@njit(parallel=True, cache=True)
def admissible_pair_mask(
    labels1: np.ndarray, labels2: np.ndarray, n_common: int, max_vertices: int
) -> np.ndarray:
    """
    Mask of face pairs that may intersect in generic position.

    Entry ``(i, j)`` is True when labels1[i] and labels2[j] share no set
    position among the first ``n_common`` and together hold at most
    ``max_vertices`` vertices.
    """
    m1 = labels1.shape[0]
    m2 = labels2.shape[0]
    width = labels1.shape[1]
    mask = np.zeros((m1, m2), dtype=np.bool_)

    for i in prange(m1):
        for j in range(m2):
            total = 0
            for k in range(width):
                total += labels1[i, k] + labels2[j, k]

            shared = False
            for k in range(n_common):
                if labels1[i, k] > 0 and labels2[j, k] > 0:
                    shared = True
                    break

            mask[i, j] = (total <= max_vertices) and not shared

    return mask


def admissible_pairs(
    labels1: np.ndarray, labels2: np.ndarray, n_common: int, n: int
) -> np.ndarray:
    """
    Index pairs ``(i, j)`` of admitted candidates, in row-major order.

    Args:
        labels1: (m1, n+1) boolean labels of simplex 1.
        labels2: (m2, n+1) boolean labels of simplex 2.
        n_common: Number of leading ordering positions that are shared vertices.
        n: Ambient dimension.

    Returns:
        (k, 2) integer array.
    """
    labels1 = np.ascontiguousarray(labels1, dtype=np.int64)
    labels2 = np.ascontiguousarray(labels2, dtype=np.int64)
    if labels1.shape[0] == 0 or labels2.shape[0] == 0:
        return np.zeros((0, 2), dtype=np.int64)

    mask = admissible_pair_mask(labels1, labels2, int(n_common), int(n) + 2)
    return np.argwhere(mask).astype(np.int64)
