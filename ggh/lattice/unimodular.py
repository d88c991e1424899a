# ggh/lattice/unimodular.py
"""
GGH Unimodular Matrices

Random integer matrices with determinant exactly +1 or -1, built from
elementary transforms:
  - row / column permutations   (det -> +-det)
  - row negation                (det -> -det)
  - row += mult * other_row     (det unchanged)

Entries are Python ints (object arrays), so products never overflow.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .common import MAX_UNIMODULAR_RETRIES, KeyGenerationError, make_rng
from .linalg import integer_determinant

logger = logging.getLogger("ggh.unimodular")


def identity(size: int) -> np.ndarray:
    """Integer identity matrix (object dtype)."""
    m = np.zeros((size, size), dtype=object)
    for i in range(size):
        m[i, i] = 1
    return m


def negate_row(matrix: np.ndarray, row: int) -> None:
    """Multiply a row by -1 in place."""
    matrix[row, :] = -matrix[row, :]


def add_row_multiple(matrix: np.ndarray, target_row: int, source_row: int, multiplier: int) -> None:
    """Replace target_row by target_row + multiplier * source_row in place."""
    source = matrix[source_row, :].copy()
    matrix[target_row, :] = matrix[target_row, :] + source * int(multiplier)


def _candidate(size: int, rng: np.random.RandomState) -> np.ndarray:
    """One composition of random elementary transforms applied to I."""
    matrix = identity(size)

    # Random permutation via row swaps
    for i in range(size):
        j = rng.randint(0, size)
        matrix[[i, j], :] = matrix[[j, i], :]

    # ... and column swaps
    for i in range(size):
        j = rng.randint(0, size)
        matrix[:, [i, j]] = matrix[:, [j, i]]

    # Random sign flips
    for i in range(size):
        if rng.random_sample() < 0.5:
            negate_row(matrix, i)

    # Random row combinations
    for i in range(size):
        j = rng.randint(0, size)
        if j != i:
            mult = rng.randint(size, 5 * size + 1)
            add_row_multiple(matrix, i, j, mult)

    return matrix


def random_unimodular(
    size: int,
    rng: Optional[np.random.RandomState] = None,
    max_retries: int = MAX_UNIMODULAR_RETRIES,
) -> np.ndarray:
    """
    Generate a random unimodular matrix.

    Args:
        size: Matrix dimension
        rng: Random source (fresh OS-seeded RandomState if None)
        max_retries: Candidates to try before giving up

    Returns:
        size x size object array of Python ints with |det| == 1

    Raises:
        KeyGenerationError: no candidate passed the determinant check
    """
    if size < 1:
        raise ValueError(f"size must be positive, got {size}")
    rng = rng if rng is not None else make_rng()

    for attempt in range(1, max_retries + 1):
        matrix = _candidate(size, rng)
        if abs(integer_determinant(matrix)) == 1:
            if attempt > 1:
                logger.debug("unimodular matrix accepted after %d attempts", attempt)
            return matrix

    raise KeyGenerationError(
        f"no unimodular matrix of size {size} found in {max_retries} attempts"
    )
