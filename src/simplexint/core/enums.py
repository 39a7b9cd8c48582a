# simplexint/core/enums.py

from enum import Enum

class PairOutcome(str, Enum):
    ACCEPTED = "accepted"
    RANK_MISMATCH = "rank mismatch"          # no unique affine intersection point
    VANISHING_COLUMN = "vanishing column"
    NON_POSITIVE = "non-positive weights"    # affine hulls meet outside the faces
    NON_MINIMAL = "non-minimal boundary"

__all__ = [
    "PairOutcome",
]
