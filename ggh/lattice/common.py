# ggh/lattice/common.py
"""
GGH Common Components

Shared constants, configuration, seed derivation, result types and
exceptions for the GGH lattice cryptosystem.

Conventions:
  - A basis is a square float64 matrix whose COLUMNS are the basis vectors.
  - Entries are semantically integers; exact integer arithmetic is used
    wherever a determinant decides acceptance.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


# =============================================================================
# Constants
# =============================================================================

HADAMARD_THRESHOLD: float = 0.95

DEFAULT_NOISE_PARAMETER: int = 2
DEFAULT_UNIMODULAR_ITERATIONS: int = 8

MAX_BASIS_RETRIES: int = 100_000
MAX_UNIMODULAR_RETRIES: int = 1_000

# Public basis entries stay well inside the exact float64 integer range (2**53)
# so ciphertexts of small messages are represented exactly
MAX_PUBLIC_ENTRY: int = 2 ** 44

DECOMPOSE_RESIDUAL_TOLERANCE: float = 1e-8

SEED_BYTES: int = 32


def default_basis_parameter(size: int) -> int:
    """Entry range used for random basis sampling: 2*size + 10."""
    return 2 * int(size) + 10


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class GGHParams:
    """
    GGH key parameters.

    Attributes:
        size: Lattice dimension
        basis_parameter: Private basis entries are drawn from
            [-basis_parameter, basis_parameter]
        noise_parameter: Encryption noise entries are drawn from
            [-noise_parameter, noise_parameter]
        unimodular_iterations: Number of unimodular factors multiplied
            into the public transform
        max_basis_retries: Bound on good basis rejection sampling
        max_unimodular_retries: Bound on unimodular rejection sampling
            (per factor)
        max_public_entry: Largest absolute public basis entry accepted
    """
    size: int
    basis_parameter: int
    noise_parameter: int = DEFAULT_NOISE_PARAMETER
    unimodular_iterations: int = DEFAULT_UNIMODULAR_ITERATIONS
    max_basis_retries: int = MAX_BASIS_RETRIES
    max_unimodular_retries: int = MAX_UNIMODULAR_RETRIES
    max_public_entry: int = MAX_PUBLIC_ENTRY

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"size must be positive, got {self.size}")
        if self.basis_parameter < 1:
            raise ValueError(f"basis_parameter must be positive, got {self.basis_parameter}")
        if self.noise_parameter < 0:
            raise ValueError(f"noise_parameter must be non-negative, got {self.noise_parameter}")
        if self.unimodular_iterations < 0:
            raise ValueError(
                f"unimodular_iterations must be non-negative, got {self.unimodular_iterations}"
            )
        if self.max_basis_retries < 1 or self.max_unimodular_retries < 1:
            raise ValueError("retry bounds must be positive")
        if self.max_public_entry < 1:
            raise ValueError(f"max_public_entry must be positive, got {self.max_public_entry}")

    @classmethod
    def for_dimension(cls, size: int, **overrides) -> "GGHParams":
        """Default parameters for a given dimension."""
        return cls(size=int(size), basis_parameter=default_basis_parameter(size), **overrides)


# =============================================================================
# Seed Derivation
# =============================================================================

def _sha256(*chunks: bytes) -> bytes:
    """Compute SHA-256 hash of concatenated inputs."""
    h = hashlib.sha256()
    for c in chunks:
        h.update(c)
    return h.digest()


class HKDF:
    """HMAC-based Key Derivation Function (RFC 5869)."""

    HASH_LEN: int = 32

    def __init__(self, salt: Optional[bytes] = None):
        self.salt = salt if salt is not None else b"\x00" * self.HASH_LEN

    def extract(self, ikm: bytes) -> bytes:
        """HKDF-Extract: PRK = HMAC(salt, IKM)"""
        return hmac.new(self.salt, ikm, hashlib.sha256).digest()

    def expand(self, prk: bytes, info: bytes = b"", length: int = 32) -> bytes:
        """HKDF-Expand: OKM = T(1) || T(2) || ... truncated to length"""
        if length > 255 * self.HASH_LEN:
            raise ValueError(f"Cannot expand to more than {255 * self.HASH_LEN} bytes")
        n_blocks = (length + self.HASH_LEN - 1) // self.HASH_LEN
        okm = b""
        t_prev = b""
        for i in range(1, n_blocks + 1):
            t_prev = hmac.new(prk, t_prev + info + bytes([i]), hashlib.sha256).digest()
            okm += t_prev
        return okm[:length]


def make_rng(seed: Optional[int] = None) -> np.random.RandomState:
    """
    Create a RandomState for one sampling site.

    Args:
        seed: 32-bit seed, or None for OS entropy
    """
    if seed is None:
        return np.random.RandomState()
    return np.random.RandomState(int(seed) & 0xFFFFFFFF)


# =============================================================================
# Decoding Results
# =============================================================================

class DecodeStatus(Enum):
    """Outcome of a Babai decoding attempt."""
    OK = "ok"
    SINGULAR_BASIS = "singular_basis"
    ILL_CONDITIONED = "ill_conditioned"


@dataclass
class DecodeResult:
    """
    Babai decoding result.

    point and coefficients are None unless status is OK. The Hadamard
    ratio is reported whenever the basis could be inspected.
    """
    status: DecodeStatus
    point: Optional[np.ndarray] = None
    coefficients: Optional[np.ndarray] = None
    hadamard_ratio: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status is DecodeStatus.OK


# =============================================================================
# Exceptions
# =============================================================================

class GGHError(Exception):
    """Base GGH error."""
    pass


class DimensionMismatchError(GGHError, ValueError):
    """Vector or matrix shape does not match the lattice dimension."""

    def __init__(self, expected, got, what: str = "vector"):
        self.expected = expected
        self.got = got
        super().__init__(f"{what} dimension mismatch: expected {expected}, got {got}")


class KeyGenerationError(GGHError):
    """A rejection sampling loop ran out of retries."""
    pass


class DecodeError(GGHError):
    """Raised in strict mode when Babai decoding fails."""

    def __init__(self, status: DecodeStatus, message: str = ""):
        self.status = status
        super().__init__(message or f"Babai decoding failed: {status.value}")


class SingularPublicKeyError(GGHError):
    """Decomposition against the public basis failed."""
    pass
