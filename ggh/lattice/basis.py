# ggh/lattice/basis.py
"""
GGH Private Basis Generation

Random integer bases, rejection sampled until nearly orthogonal.
The acceptance rate drops quickly with the dimension; retries are bounded.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .common import HADAMARD_THRESHOLD, MAX_BASIS_RETRIES, KeyGenerationError, make_rng
from .linalg import hadamard_ratio, integer_determinant

logger = logging.getLogger("ggh.basis")


def random_basis(size: int, parameter: int, rng: Optional[np.random.RandomState] = None) -> np.ndarray:
    """Random size x size matrix with integer entries in [-parameter, parameter], as float64."""
    if size < 1:
        raise ValueError(f"size must be positive, got {size}")
    if parameter < 0:
        raise ValueError(f"parameter must be non-negative, got {parameter}")
    rng = rng if rng is not None else make_rng()

    data = rng.randint(-parameter, parameter + 1, size=(size, size))
    return data.astype(np.float64)


def is_good_basis(basis, threshold: float = HADAMARD_THRESHOLD) -> bool:
    """Non-singular (exactly) and Hadamard ratio above threshold."""
    if integer_determinant(basis) == 0:
        return False
    return hadamard_ratio(basis) > threshold


def good_basis(
    size: int,
    parameter: int,
    rng: Optional[np.random.RandomState] = None,
    threshold: float = HADAMARD_THRESHOLD,
    max_retries: int = MAX_BASIS_RETRIES,
) -> np.ndarray:
    """
    Generate a well-conditioned private basis.

    Samples whole matrices with random_basis until one is non-singular
    with Hadamard ratio > threshold.

    Raises:
        KeyGenerationError: max_retries samples were rejected
    """
    rng = rng if rng is not None else make_rng()

    for attempt in range(1, max_retries + 1):
        basis = random_basis(size, parameter, rng)
        if is_good_basis(basis, threshold):
            logger.debug(
                "good basis (n=%d, ratio=%.4f) after %d attempts",
                size, hadamard_ratio(basis), attempt,
            )
            return basis

    raise KeyGenerationError(
        f"no basis of size {size} with Hadamard ratio > {threshold} "
        f"found in {max_retries} attempts"
    )
