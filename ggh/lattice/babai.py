# ggh/lattice/babai.py
"""
GGH Babai Decoding

Approximate closest vector by Babai rounding:
    x = B^-1 t,  c = round(x),  v = sum_i c_i b_i

Only trustworthy on nearly orthogonal bases, so decoding is refused when
the Hadamard ratio is at or below HADAMARD_THRESHOLD.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .common import HADAMARD_THRESHOLD, DecodeResult, DecodeStatus
from .linalg import (
    as_basis,
    decompose,
    hadamard_ratio,
    is_integer_valued,
    round_half_away,
    to_integer_matrix,
)

logger = logging.getLogger("ggh.babai")


def babai_decode(basis, target, threshold: float = HADAMARD_THRESHOLD) -> DecodeResult:
    """
    Babai rounding with a tagged outcome.

    Args:
        basis: Square matrix, columns are the lattice basis
        target: Point to decode
        threshold: Minimum Hadamard ratio (exclusive)

    Returns:
        DecodeResult with status OK, SINGULAR_BASIS or ILL_CONDITIONED
    """
    b = as_basis(basis)

    coords = decompose(target, b)
    if coords is None:
        return DecodeResult(status=DecodeStatus.SINGULAR_BASIS)

    ratio = hadamard_ratio(b)
    if ratio <= threshold:
        logger.warning(
            "Not orthogonal enough (Hadamard ratio %.4f <= %.2f). Please change lattice basis.",
            ratio, threshold,
        )
        return DecodeResult(status=DecodeStatus.ILL_CONDITIONED, hadamard_ratio=ratio)

    coefficients = [int(c) for c in round_half_away(coords)]

    if is_integer_valued(b):
        # Accumulate in exact integers, then go back to float
        columns = to_integer_matrix(b)
        point = np.zeros(b.shape[0], dtype=object)
        for i, c in enumerate(coefficients):
            point = point + c * columns[:, i]
        point = point.astype(np.float64)
    else:
        point = b @ np.array(coefficients, dtype=np.float64)

    return DecodeResult(
        status=DecodeStatus.OK,
        point=point,
        coefficients=np.array(coefficients, dtype=np.int64),
        hadamard_ratio=ratio,
    )


def babai_closest_vector(basis, target) -> Optional[np.ndarray]:
    """Closest lattice vector estimate, or None if decoding was refused."""
    result = babai_decode(basis, target)
    return result.point if result.ok else None
