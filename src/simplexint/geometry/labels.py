"""
Boundary labels: which vertices of a simplex span a given face.

A label is an inclusion vector over the N+1 *ordering positions* of a simplex.
Labels are generated from integer codes, bit ``i`` (least significant first)
marking position ``i``. Both simplices use the same encoding.
"""

import numpy as np

__all__ = [
    "label_codes",
    "decode_labels",
    "boundary_labels",
]


def label_codes(n: int, num_inside: int) -> np.ndarray:
    """
    Integer codes of the proper faces of an ``n``-simplex worth testing.

    Codes run over ``[2**num_inside, 2**(n+1) - 2]``; the upper bound drops the
    whole simplex and the lower bound drops every face lying entirely among the
    first ``num_inside`` positions (vertices already inside the other simplex).
    Powers of two (single vertices) are removed.
    """
    if n < 1:
        raise ValueError(f"Simplex dimension must be >= 1, got {n}")
    if not 0 <= num_inside <= n + 1:
        raise ValueError(f"num_inside must lie in [0, {n + 1}], got {num_inside}")

    codes = np.arange(2 ** num_inside, 2 ** (n + 1) - 1, dtype=np.int64)
    return codes[(codes & (codes - 1)) != 0]


def decode_labels(codes: np.ndarray, width: int) -> np.ndarray:
    """Expand integer codes into an ``(len(codes), width)`` boolean table."""
    codes = np.asarray(codes, dtype=np.int64).reshape(-1)
    shifts = np.arange(width, dtype=np.int64)
    return ((codes[:, None] >> shifts) & 1).astype(bool)


def boundary_labels(n: int, num_inside: int) -> np.ndarray:
    """Boolean labels of every face with 2..n vertices not hidden by the inside region."""
    return decode_labels(label_codes(n, num_inside), n + 1)
