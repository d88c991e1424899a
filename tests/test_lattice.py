# tests/test_lattice.py
"""
GGH Lattice Building Blocks Test Suite

Tests for: decompose, integer_determinant, hadamard_ratio, same_lattice,
           random_unimodular, good_basis, babai_decode
Categories:
  L1. Linear algebra
  L2. Basis quality (Hadamard ratio)
  L3. Unimodular matrices
  L4. Good basis generation
  L5. Babai decoding
"""

from fractions import Fraction

import numpy as np
import pytest

from ggh.lattice import (
    DecodeStatus,
    DimensionMismatchError,
    KeyGenerationError,
    babai_closest_vector,
    babai_decode,
    decompose,
    decompose_exact,
    good_basis,
    hadamard_ratio,
    integer_determinant,
    is_good_basis,
    is_unimodular,
    make_rng,
    random_basis,
    random_unimodular,
    same_lattice,
)
from ggh.lattice.linalg import round_fraction, round_half_away, to_integer_matrix
from ggh.lattice.unimodular import add_row_multiple, identity, negate_row


SINGULAR_3 = np.ones((3, 3))

# Nearly orthogonal, Hadamard ratio ~0.994
GOOD_3 = np.array([
    [20.0, 1.0, -1.0],
    [2.0, 19.0, 0.0],
    [-1.0, 1.0, 21.0],
])

# Columns (1, 0) and (1, 1): ratio (1/sqrt 2) ** (1/2) ~ 0.841
SKEWED_2 = np.array([
    [1.0, 1.0],
    [0.0, 1.0],
])


# =============================================================================
# L1. Linear Algebra
# =============================================================================

def test_l1_1_decompose_identity():
    """
    L1.1: Coordinates against the identity are the vector itself
    """
    print("\n[L1.1] Decompose against identity")
    target = np.array([1.3, 2.5, 3.1])
    x = decompose(target, np.eye(3))
    assert x is not None
    assert np.allclose(x, target)


def test_l1_2_decompose_solves_system():
    """
    L1.2: basis @ decompose(v, basis) == v
    """
    rng = make_rng(7)
    for _ in range(20):
        basis = rng.randint(-9, 10, size=(4, 4)).astype(np.float64)
        if integer_determinant(basis) == 0:
            continue
        v = rng.randint(-50, 51, size=4).astype(np.float64)
        x = decompose(v, basis)
        assert x is not None
        assert np.allclose(basis @ x, v)


def test_l1_3_decompose_singular_returns_none():
    """
    L1.3: Singular basis [[1,1,1]]*3 never decomposes
    """
    print("\n[L1.3] Singular basis")
    for target in ([1.0, 1.0, 1.0], [0.0, 0.0, 0.0], [1.0, 2.0, 3.0], [-4.0, 0.5, 9.0]):
        assert decompose(target, SINGULAR_3) is None


def test_l1_4_decompose_shape_errors():
    """
    L1.4: Shape mismatches raise, they are not silently accepted
    """
    with pytest.raises(DimensionMismatchError):
        decompose([1.0, 2.0], np.eye(3))
    with pytest.raises(DimensionMismatchError):
        decompose([1.0, 2.0], np.ones((2, 3)))
    # still a ValueError for callers that only know about that
    with pytest.raises(ValueError):
        decompose([1.0, 2.0, 3.0, 4.0], np.eye(3))


def test_l1_5_integer_determinant():
    """
    L1.5: Exact determinants
    """
    assert integer_determinant([[2, 1], [1, 1]]) == 1
    assert integer_determinant([[0, 1], [1, 0]]) == -1
    assert integer_determinant([[1, 2, 3], [4, 5, 6], [7, 8, 10]]) == -3
    assert integer_determinant(SINGULAR_3) == 0
    assert integer_determinant(np.eye(5)) == 1

    rng = make_rng(11)
    for _ in range(20):
        m = rng.randint(-20, 21, size=(4, 4))
        assert integer_determinant(m) == int(round(np.linalg.det(m)))


def test_l1_6_integer_determinant_large_entries():
    """
    L1.6: No overflow or rounding for entries far beyond float64 precision
    """
    big = 10 ** 30
    m = np.empty((2, 2), dtype=object)
    m[0, 0], m[0, 1], m[1, 0], m[1, 1] = big + 1, big, big, big - 1
    # (b+1)(b-1) - b^2 = -1
    assert integer_determinant(m) == -1


def test_l1_7_integer_determinant_rejects_fractions():
    """
    L1.7: Non-integer entries are an error, not truncated
    """
    with pytest.raises(ValueError):
        integer_determinant([[1.5, 0.0], [0.0, 1.0]])


def test_l1_8_decompose_exact():
    """
    L1.8: Exact rational coordinates
    """
    coords = decompose_exact([1, 1], [[2, 0], [0, 3]])
    assert coords == [Fraction(1, 2), Fraction(1, 3)]
    assert decompose_exact([1, 2, 3], SINGULAR_3) is None


def test_l1_9_rounding_ties_away_from_zero():
    """
    L1.9: Rounding helpers round halves away from zero
    """
    assert np.array_equal(round_half_away([0.5, -0.5, 1.49, -2.5, 2.5]), [1, -1, 1, -3, 3])
    assert round_fraction(Fraction(5, 2)) == 3
    assert round_fraction(Fraction(-5, 2)) == -3
    assert round_fraction(Fraction(7, 3)) == 2


def test_l1_10_same_lattice():
    """
    L1.10: Lattice equality up to unimodular change of basis
    """
    b = np.array([[3, 1], [1, 4]])
    u = np.array([[2, 1], [1, 1]])
    assert same_lattice(b, b @ u)
    assert same_lattice(b @ u, b)
    assert not same_lattice(b, 2 * b)
    assert not same_lattice(b, SINGULAR_3)


# =============================================================================
# L2. Basis Quality
# =============================================================================

def test_l2_1_hadamard_orthogonal():
    """
    L2.1: Ratio is 1 for orthogonal bases
    """
    print("\n[L2.1] Hadamard ratio of orthogonal bases")
    assert hadamard_ratio(np.eye(3)) == pytest.approx(1.0)
    assert hadamard_ratio(7 * np.eye(4)) == pytest.approx(1.0)
    assert hadamard_ratio(np.diag([1.0, 5.0, 30.0])) == pytest.approx(1.0)


def test_l2_2_hadamard_singular_and_skewed():
    """
    L2.2: 0 for singular, strictly between 0 and 1 for skewed bases
    """
    assert hadamard_ratio(SINGULAR_3) == 0.0
    assert hadamard_ratio(np.zeros((2, 2))) == 0.0
    assert hadamard_ratio(SKEWED_2) == pytest.approx((1 / np.sqrt(2)) ** 0.5)
    assert hadamard_ratio(GOOD_3) > 0.95


def test_l2_3_hadamard_bounds_random():
    """
    L2.3: 0 < ratio <= 1 for random non-singular bases
    """
    rng = make_rng(3)
    for _ in range(50):
        b = random_basis(4, 12, rng)
        r = hadamard_ratio(b)
        if integer_determinant(b) == 0:
            assert r == pytest.approx(0.0, abs=1e-3)
        else:
            assert 0.0 < r <= 1.0


# =============================================================================
# L3. Unimodular Matrices
# =============================================================================

def test_l3_1_unimodular_property():
    """
    L3.1: |det U| == 1 exactly and all entries are integers
    """
    print("\n[L3.1] Unimodular property")
    rng = make_rng(2024)
    for size in (1, 2, 3, 4, 6, 8):
        for _ in range(10):
            u = random_unimodular(size, rng)
            assert u.shape == (size, size)
            assert all(isinstance(x, int) for x in u.flat)
            assert abs(integer_determinant(u)) == 1
            assert is_unimodular(u)


def test_l3_2_unimodular_not_trivial():
    """
    L3.2: Row combinations actually happen
    """
    rng = make_rng(5)
    mats = [random_unimodular(4, rng) for _ in range(10)]
    assert any(max(abs(x) for x in u.flat) > 1 for u in mats)


def test_l3_3_unimodular_deterministic_with_seed():
    """
    L3.3: Same seed, same matrix
    """
    a = random_unimodular(5, make_rng(99))
    b = random_unimodular(5, make_rng(99))
    assert (a == b).all()


def test_l3_4_elementary_operations():
    """
    L3.4: Row negation flips the sign, row addition keeps the determinant
    """
    m = to_integer_matrix([[2, 1, 0], [1, 1, 0], [0, 0, 1]])
    assert integer_determinant(m) == 1

    negate_row(m, 1)
    assert integer_determinant(m) == -1

    add_row_multiple(m, 0, 2, 17)
    add_row_multiple(m, 2, 1, -4)
    assert integer_determinant(m) == -1
    assert is_unimodular(m)


def test_l3_5_unimodular_preserves_lattice():
    """
    L3.5: B and B @ U generate the same lattice
    """
    rng = make_rng(42)
    for _ in range(5):
        b = good_basis(3, 16, rng)
        u = random_unimodular(3, rng)
        public = to_integer_matrix(b).dot(u)
        assert same_lattice(b, public)


def test_l3_6_unimodular_invalid_size():
    with pytest.raises(ValueError):
        random_unimodular(0)
    assert (identity(3) == np.eye(3, dtype=int)).all()


# =============================================================================
# L4. Good Basis Generation
# =============================================================================

def test_l4_1_random_basis_range():
    """
    L4.1: Entries are integers in [-parameter, parameter]
    """
    b = random_basis(5, 3, make_rng(1))
    assert b.shape == (5, 5)
    assert b.dtype == np.float64
    assert np.all(np.abs(b) <= 3)
    assert np.array_equal(b, np.rint(b))


def test_l4_2_good_basis_quality():
    """
    L4.2: Every accepted basis has Hadamard ratio > 0.95 and is non-singular
    """
    print("\n[L4.2] Good basis quality")
    rng = make_rng(123)
    for size in (1, 2, 3, 4):
        for _ in range(3):
            b = good_basis(size, 2 * size + 10, rng)
            assert hadamard_ratio(b) > 0.95
            assert integer_determinant(b) != 0


def test_l4_3_singular_basis_rejected():
    """
    L4.3: The all-ones basis is never considered good
    """
    assert not is_good_basis(SINGULAR_3)
    assert not is_good_basis(SKEWED_2)
    assert is_good_basis(GOOD_3)


def test_l4_4_retry_bound():
    """
    L4.4: Impossible parameters exhaust the retry bound instead of looping
    """
    # parameter 0 only produces the zero matrix
    with pytest.raises(KeyGenerationError):
        good_basis(2, 0, make_rng(0), max_retries=10)


# =============================================================================
# L5. Babai Decoding
# =============================================================================

def test_l5_1_babai_identity():
    """
    L5.1: Rounding against the identity
    """
    print("\n[L5.1] Babai with identity basis")
    result = babai_decode(np.eye(3), [1.3, 2.5, 3.1])
    assert result.ok
    assert np.array_equal(result.point, [1.0, 3.0, 3.0])
    assert np.array_equal(result.coefficients, [1, 3, 3])


def test_l5_2_babai_recovers_lattice_point():
    """
    L5.2: Small displacement of a lattice point decodes to that point
    """
    coeffs = np.array([2, -3, 5])
    point = GOOD_3 @ coeffs
    target = point + np.array([1.0, -2.0, 1.0])

    result = babai_decode(GOOD_3, target)
    assert result.status is DecodeStatus.OK
    assert np.array_equal(result.point, point)
    assert np.array_equal(result.coefficients, coeffs)
    assert result.hadamard_ratio > 0.95

    assert np.array_equal(babai_closest_vector(GOOD_3, target), point)


def test_l5_3_babai_refuses_ill_conditioned():
    """
    L5.3: Ratio <= 0.95 gives ILL_CONDITIONED even when a closest vector exists
    """
    target = SKEWED_2 @ np.array([4.0, -1.0])
    result = babai_decode(SKEWED_2, target)
    assert result.status is DecodeStatus.ILL_CONDITIONED
    assert result.point is None
    assert result.hadamard_ratio == pytest.approx(hadamard_ratio(SKEWED_2))
    assert babai_closest_vector(SKEWED_2, target) is None


def test_l5_4_babai_singular():
    """
    L5.4: Singular basis is reported separately from ill-conditioning
    """
    result = babai_decode(SINGULAR_3, [1.0, 2.0, 3.0])
    assert result.status is DecodeStatus.SINGULAR_BASIS
    assert not result.ok
    assert babai_closest_vector(SINGULAR_3, [1.0, 2.0, 3.0]) is None


def test_l5_5_babai_non_integer_basis():
    """
    L5.5: Real-valued bases decode in floating point
    """
    basis = np.diag([0.5, 2.5])
    result = babai_decode(basis, [1.1, 4.6])
    assert result.ok
    assert np.allclose(result.point, [1.0, 5.0])


# =============================================================================
# Runner
# =============================================================================

def run_all_tests() -> bool:
    """Run every test in this module and print a summary."""
    tests = [(name, fn) for name, fn in sorted(globals().items())
             if name.startswith("test_") and callable(fn)]

    passed = 0
    failed = 0
    for name, fn in tests:
        try:
            fn()
            passed += 1
            print(f"  {name}: PASS")
        except Exception as e:
            failed += 1
            print(f"  {name}: FAIL ({type(e).__name__}: {e})")

    print(f"\nTotal: {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    run_all_tests()
