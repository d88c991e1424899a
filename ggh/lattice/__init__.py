# ggh/lattice/__init__.py
"""
GGH Lattice Module

Trapdoor:
  - Private key: nearly orthogonal basis B (Hadamard ratio > 0.95)
  - Public key: P = B @ U, U unimodular (same lattice, skewed basis)
  - Closest vector search is easy with B (Babai rounding), hard with P

Conventions:
  - Bases are square matrices, basis vectors are COLUMNS
  - Matrices are float64 with integer entries; determinants that decide
    acceptance are computed exactly over the integers
"""

from .common import (
    # Constants
    HADAMARD_THRESHOLD,
    DEFAULT_NOISE_PARAMETER,
    DEFAULT_UNIMODULAR_ITERATIONS,
    MAX_BASIS_RETRIES,
    MAX_UNIMODULAR_RETRIES,
    MAX_PUBLIC_ENTRY,
    default_basis_parameter,
    # Configuration
    GGHParams,
    # Seeds
    HKDF,
    make_rng,
    # Results
    DecodeStatus,
    DecodeResult,
    # Exceptions
    GGHError,
    DimensionMismatchError,
    KeyGenerationError,
    DecodeError,
    SingularPublicKeyError,
)

from .linalg import (
    decompose,
    decompose_exact,
    hadamard_ratio,
    integer_determinant,
    is_unimodular,
    same_lattice,
)

from .unimodular import random_unimodular
from .basis import random_basis, good_basis, is_good_basis
from .babai import babai_decode, babai_closest_vector

from .core import (
    GGHKeyPair,
    GGHPublicKey,
    generate,
)

__all__ = [
    # Core
    "GGHKeyPair",
    "GGHPublicKey",
    "generate",
    # Generators
    "random_unimodular",
    "random_basis",
    "good_basis",
    "is_good_basis",
    # Decoding
    "babai_decode",
    "babai_closest_vector",
    "DecodeStatus",
    "DecodeResult",
    # Linear algebra
    "decompose",
    "decompose_exact",
    "hadamard_ratio",
    "integer_determinant",
    "is_unimodular",
    "same_lattice",
    # Configuration
    "GGHParams",
    "HKDF",
    "make_rng",
    "HADAMARD_THRESHOLD",
    "DEFAULT_NOISE_PARAMETER",
    "DEFAULT_UNIMODULAR_ITERATIONS",
    "MAX_BASIS_RETRIES",
    "MAX_UNIMODULAR_RETRIES",
    "MAX_PUBLIC_ENTRY",
    "default_basis_parameter",
    # Exceptions
    "GGHError",
    "DimensionMismatchError",
    "KeyGenerationError",
    "DecodeError",
    "SingularPublicKeyError",
]
