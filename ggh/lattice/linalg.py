# ggh/lattice/linalg.py
"""
GGH Linear Algebra

Coordinate decomposition, exact integer determinants and basis quality.

A basis is a square matrix whose columns span the lattice:
    lattice(B) = { B @ x : x integer }
"""

from __future__ import annotations

import math
import warnings
from fractions import Fraction
from typing import List, Optional

import numpy as np
from scipy.linalg import LinAlgError, LinAlgWarning, lu_factor, lu_solve

from .common import DECOMPOSE_RESIDUAL_TOLERANCE, DimensionMismatchError


# =============================================================================
# Shape Validation
# =============================================================================

def as_basis(basis) -> np.ndarray:
    """Return basis as a square, finite float64 matrix."""
    b = np.asarray(basis, dtype=np.float64)
    if b.ndim != 2 or b.shape[0] != b.shape[1]:
        raise DimensionMismatchError(
            expected="square matrix", got=b.shape, what="basis"
        )
    if b.shape[0] == 0:
        raise DimensionMismatchError(expected="non-empty matrix", got=b.shape, what="basis")
    if not np.all(np.isfinite(b)):
        raise ValueError("basis contains non-finite entries")
    return b


def as_vector(vector, size: int, what: str = "vector") -> np.ndarray:
    """Return vector as a finite float64 array of length size."""
    v = np.asarray(vector, dtype=np.float64)
    if v.ndim == 2 and 1 in v.shape:
        v = v.reshape(-1)
    if v.ndim != 1 or v.shape[0] != size:
        raise DimensionMismatchError(expected=size, got=v.shape, what=what)
    if not np.all(np.isfinite(v)):
        raise ValueError(f"{what} contains non-finite entries")
    return v


# =============================================================================
# Decomposition
# =============================================================================

def decompose(vector, basis) -> Optional[np.ndarray]:
    """
    Coordinates of vector with respect to basis.

    Solves basis @ x = vector by LU factorisation with partial pivoting.

    Returns:
        x, or None if the basis is singular or the solve is not accurate
        to DECOMPOSE_RESIDUAL_TOLERANCE.
    """
    b = as_basis(basis)
    v = as_vector(vector, b.shape[0])

    try:
        with warnings.catch_warnings():
            # scipy reports an exactly zero pivot as a warning
            warnings.simplefilter("error", LinAlgWarning)
            lu, piv = lu_factor(b)
            if np.any(np.diag(lu) == 0.0):
                return None
            x = lu_solve((lu, piv), v)
    except (LinAlgWarning, LinAlgError):
        return None

    if not np.all(np.isfinite(x)):
        return None

    residual = np.linalg.norm(b @ x - v)
    scale = np.linalg.norm(b) * np.linalg.norm(x) + np.linalg.norm(v)
    if scale > 0 and residual > DECOMPOSE_RESIDUAL_TOLERANCE * scale:
        return None

    return x


# =============================================================================
# Exact Integer Arithmetic
# =============================================================================

def _to_int(x) -> int:
    if isinstance(x, (int, np.integer)):
        return int(x)
    xf = float(x)
    if not math.isfinite(xf) or xf != math.floor(xf):
        raise ValueError(f"entry {x!r} is not an integer")
    return int(xf)


def _integer_rows(matrix) -> List[List[int]]:
    """Copy a square integer-valued matrix into nested lists of Python ints."""
    arr = np.asarray(matrix)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise DimensionMismatchError(expected="square matrix", got=arr.shape, what="matrix")
    return [[_to_int(x) for x in row] for row in arr]


def to_integer_matrix(matrix) -> np.ndarray:
    """Exact copy of an integer-valued matrix as an object array of Python ints."""
    rows = _integer_rows(matrix)
    out = np.empty((len(rows), len(rows)), dtype=object)
    for i, row in enumerate(rows):
        for j, x in enumerate(row):
            out[i, j] = x
    return out


def integer_determinant(matrix) -> int:
    """
    Exact determinant of an integer-valued square matrix.

    Fraction-free Gaussian elimination (Bareiss); every division is exact,
    so intermediate values stay integers of bounded size.
    """
    a = _integer_rows(matrix)
    n = len(a)
    if n == 0:
        return 1

    sign = 1
    prev = 1
    for k in range(n - 1):
        if a[k][k] == 0:
            swap = next((i for i in range(k + 1, n) if a[i][k] != 0), None)
            if swap is None:
                return 0
            a[k], a[swap] = a[swap], a[k]
            sign = -sign
        pivot = a[k][k]
        for i in range(k + 1, n):
            for j in range(k + 1, n):
                a[i][j] = (a[i][j] * pivot - a[i][k] * a[k][j]) // prev
        prev = pivot

    return sign * a[n - 1][n - 1]


def is_unimodular(matrix) -> bool:
    """True iff matrix is integer valued with determinant exactly +1 or -1."""
    try:
        return abs(integer_determinant(matrix)) == 1
    except ValueError:
        return False


def max_abs_entry(matrix) -> int:
    """Largest absolute entry of an integer matrix, as a Python int."""
    return max((abs(int(x)) for x in np.asarray(matrix).flat), default=0)


# =============================================================================
# Basis Quality
# =============================================================================

def hadamard_ratio(basis) -> float:
    """
    Hadamard ratio of a basis.

        H(B) = (|det B| / prod ||b_i||) ** (1/n)

    Lies in [0, 1]: 1 for pairwise orthogonal columns, 0 for a singular
    basis. Computed in log space so large entries do not overflow.
    """
    b = as_basis(basis)
    n = b.shape[0]

    norms = np.linalg.norm(b, axis=0)
    if np.any(norms == 0.0):
        return 0.0

    sign, logdet = np.linalg.slogdet(b)
    if sign == 0 or not np.isfinite(logdet):
        return 0.0

    log_ratio = (logdet - float(np.sum(np.log(norms)))) / n
    # Hadamard's inequality bounds the ratio by 1; rounding can overshoot
    return float(min(math.exp(log_ratio), 1.0))


def same_lattice(basis_a, basis_b, atol: float = 1e-6) -> bool:
    """
    True iff both bases generate the same lattice.

    Every column of each basis must have integer coordinates with respect
    to the other one. Integer-valued bases are checked exactly, anything
    else up to atol.
    """
    a = as_basis(basis_a)
    b = as_basis(basis_b)
    if a.shape != b.shape:
        return False

    if is_integer_valued(basis_a) and is_integer_valued(basis_b):
        for src, dst in ((basis_a, basis_b), (basis_b, basis_a)):
            src = np.asarray(src)
            for i in range(src.shape[1]):
                coords = decompose_exact(src[:, i], dst)
                if coords is None or any(c.denominator != 1 for c in coords):
                    return False
        return True

    for src, dst in ((a, b), (b, a)):
        for i in range(src.shape[1]):
            coords = decompose(src[:, i], dst)
            if coords is None:
                return False
            if not np.allclose(coords, np.round(coords), rtol=0.0, atol=atol):
                return False
    return True


# =============================================================================
# Exact Decomposition and Rounding
# =============================================================================

def is_integer_valued(values) -> bool:
    """True iff every entry is a finite integer."""
    try:
        for x in np.asarray(values).flat:
            _to_int(x)
    except (TypeError, ValueError, OverflowError):
        return False
    return True


def decompose_exact(vector, basis) -> Optional[List[Fraction]]:
    """
    Exact coordinates of an integer vector against an integer basis.

    Gauss-Jordan elimination over the rationals; no rounding error at any
    magnitude.

    Returns:
        Coordinates as Fractions, or None if the basis is singular.
    """
    rows = _integer_rows(basis)
    n = len(rows)
    v = np.asarray(vector).reshape(-1)
    if v.shape[0] != n:
        raise DimensionMismatchError(expected=n, got=v.shape, what="vector")
    rhs = [_to_int(x) for x in v]

    aug = [[Fraction(x) for x in row] + [Fraction(rhs[i])] for i, row in enumerate(rows)]

    for col in range(n):
        pivot = next((r for r in range(col, n) if aug[r][col] != 0), None)
        if pivot is None:
            return None
        aug[col], aug[pivot] = aug[pivot], aug[col]

        p = aug[col][col]
        aug[col] = [x / p for x in aug[col]]
        for r in range(n):
            if r != col and aug[r][col] != 0:
                f = aug[r][col]
                aug[r] = [a - f * b for a, b in zip(aug[r], aug[col])]

    return [aug[i][n] for i in range(n)]


def round_half_away(values) -> np.ndarray:
    """Round to nearest integer, ties away from zero, as float64."""
    x = np.asarray(values, dtype=np.float64)
    return np.sign(x) * np.floor(np.abs(x) + 0.5)


def round_fraction(x: Fraction) -> int:
    """Nearest integer to a Fraction, ties away from zero."""
    if x >= 0:
        return math.floor(x + Fraction(1, 2))
    return -math.floor(-x + Fraction(1, 2))
