# ggh/lattice/core.py
"""
GGH Core Components

GGH public-key encryption (Goldreich-Goldwasser-Halevi):
  - Private key: nearly orthogonal integer basis B
  - Public key:  P = B @ U for a random unimodular U (same lattice, bad basis)
  - Encrypt:     c = P @ m + e, e uniform in [-delta, delta]^n
  - Decrypt:     v = Babai(B, c);  m = round(P^-1 v)

Toy construction after Hoffstein, Pipher, Silverman, "An Introduction to
Mathematical Cryptography", 7.8. No protection against lattice reduction
attacks.
"""

from __future__ import annotations

import logging
import secrets
import struct
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .babai import babai_decode
from .basis import good_basis
from .common import (
    DEFAULT_NOISE_PARAMETER,
    DEFAULT_UNIMODULAR_ITERATIONS,
    HKDF,
    MAX_BASIS_RETRIES,
    MAX_PUBLIC_ENTRY,
    MAX_UNIMODULAR_RETRIES,
    SEED_BYTES,
    DecodeError,
    DecodeStatus,
    DimensionMismatchError,
    GGHParams,
    KeyGenerationError,
    SingularPublicKeyError,
    _sha256,
    default_basis_parameter,
    make_rng,
)
from .linalg import (
    as_basis,
    as_vector,
    decompose_exact,
    integer_determinant,
    is_integer_valued,
    max_abs_entry,
    round_fraction,
    to_integer_matrix,
)
from .unimodular import identity, random_unimodular

logger = logging.getLogger("ggh.core")


# =============================================================================
# Shared Helpers
# =============================================================================

def _sample_noise(size: int, noise_parameter: int, rng: np.random.RandomState) -> np.ndarray:
    """Uniform integer noise in [-noise_parameter, noise_parameter]^size."""
    return rng.randint(-noise_parameter, noise_parameter + 1, size=size).astype(np.int64)


def _encrypt_with(
    public_exact: np.ndarray,
    public_float: np.ndarray,
    message,
    noise_parameter: int,
    rng: np.random.RandomState,
) -> np.ndarray:
    """c = P @ m + e; exact integer product for integer messages."""
    size = public_float.shape[0]
    m = as_vector(message, size, what="message")
    e = _sample_noise(size, noise_parameter, rng)

    if is_integer_valued(m):
        m_int = np.array([int(x) for x in m], dtype=object)
        c = public_exact.dot(m_int) + e.astype(object)
        return c.astype(np.float64)
    return public_float @ m + e.astype(np.float64)


# =============================================================================
# Public Key
# =============================================================================

@dataclass
class GGHPublicKey:
    """
    GGH public key: the public basis P (columns) and the noise bound.

    Encrypt-only; holds nothing that allows decryption.
    """
    basis: np.ndarray       # (n, n) float64, integer valued
    noise_parameter: int

    def __post_init__(self):
        self.basis = as_basis(self.basis).copy()
        self._exact = to_integer_matrix(self.basis)

    @property
    def size(self) -> int:
        return int(self.basis.shape[0])

    def encrypt(self, message, rng: Optional[np.random.RandomState] = None) -> np.ndarray:
        """Encrypt a message vector with fresh noise."""
        rng = rng if rng is not None else make_rng()
        return _encrypt_with(self._exact, self.basis, message, self.noise_parameter, rng)


# =============================================================================
# GGH Key Pair
# =============================================================================

class GGHKeyPair:
    """
    GGH key pair with encrypt / decrypt.

    Randomness for the private basis, the unimodular factors and the
    encryption noise is derived from a 32-byte master seed with HKDF, so a
    key pair is fully reproducible from (seed, parameters).

    Parameters:
        size: Lattice dimension
        basis_parameter: Private basis entry range (default 2*size + 10)
        noise_parameter: Noise bound delta (default 2)
        unimodular_iterations: Unimodular factors in the public transform
        seed: 32-byte master seed (random if None)
        strict: Raise DecodeError on Babai failure instead of falling back
            to the zero vector

    Example:
        >>> kp = GGHKeyPair(size=3, seed=b"\\x00" * 32)
        >>> kp.key_gen()
        >>> c = kp.encrypt([3, -1, 4])
        >>> kp.decrypt(c)
        array([ 3., -1.,  4.])
    """

    def __init__(
        self,
        size: int,
        basis_parameter: Optional[int] = None,
        noise_parameter: int = DEFAULT_NOISE_PARAMETER,
        unimodular_iterations: int = DEFAULT_UNIMODULAR_ITERATIONS,
        seed: Optional[bytes] = None,
        strict: bool = False,
        max_basis_retries: int = MAX_BASIS_RETRIES,
        max_unimodular_retries: int = MAX_UNIMODULAR_RETRIES,
        max_public_entry: int = MAX_PUBLIC_ENTRY,
    ):
        self.params = GGHParams(
            size=int(size),
            basis_parameter=int(
                basis_parameter if basis_parameter is not None else default_basis_parameter(size)
            ),
            noise_parameter=int(noise_parameter),
            unimodular_iterations=int(unimodular_iterations),
            max_basis_retries=int(max_basis_retries),
            max_unimodular_retries=int(max_unimodular_retries),
            max_public_entry=int(max_public_entry),
        )
        self.size = self.params.size
        self.noise_parameter = self.params.noise_parameter
        self.strict = bool(strict)

        self.master_seed = seed if seed is not None else secrets.token_bytes(SEED_BYTES)
        self._hkdf = HKDF(salt=self._compute_salt())
        self._prk: Optional[bytes] = None

        self._private_basis: Optional[np.ndarray] = None
        self._public_exact: Optional[np.ndarray] = None
        self._public_float: Optional[np.ndarray] = None
        self._noise_rng: Optional[np.random.RandomState] = None

        # Key generation statistics
        self.keygen_time: Optional[float] = None
        self.unimodular_attempts = 0

    @classmethod
    def from_params(cls, params: GGHParams, **kwargs) -> "GGHKeyPair":
        """Build from a GGHParams record."""
        return cls(
            size=params.size,
            basis_parameter=params.basis_parameter,
            noise_parameter=params.noise_parameter,
            unimodular_iterations=params.unimodular_iterations,
            max_basis_retries=params.max_basis_retries,
            max_unimodular_retries=params.max_unimodular_retries,
            max_public_entry=params.max_public_entry,
            **kwargs,
        )

    @classmethod
    def from_basis(cls, private_basis, **kwargs) -> "GGHKeyPair":
        """
        Key pair for a caller-chosen private basis.

        The basis must be square, integer valued and non-singular. Its
        quality is not checked here; decryption refuses ill-conditioned
        bases.
        """
        b = as_basis(private_basis)
        if integer_determinant(b) == 0:
            raise ValueError("private basis is singular")
        kp = cls(size=b.shape[0], **kwargs)
        kp.key_gen(private_basis=b)
        return kp

    # -------------------------------------------------------------------------
    # Seed derivation
    # -------------------------------------------------------------------------

    def _compute_salt(self) -> bytes:
        """Compute domain-separated salt."""
        p = self.params
        s = (
            f"ggh,n={p.size},p={p.basis_parameter},"
            f"delta={p.noise_parameter},k={p.unimodular_iterations}"
        )
        return _sha256(s.encode())

    def _get_prk(self) -> bytes:
        if self._prk is None:
            self._prk = self._hkdf.extract(self.master_seed)
        return self._prk

    def _derive(self, label: str, nbytes: int) -> bytes:
        return self._hkdf.expand(self._get_prk(), label.encode(), nbytes)

    def _seed32(self, label: str) -> int:
        return struct.unpack(">I", self._derive(label, 4))[0]

    def _rng(self, label: str) -> np.random.RandomState:
        return make_rng(self._seed32(label))

    # -------------------------------------------------------------------------
    # Key generation
    # -------------------------------------------------------------------------

    def key_gen(self, private_basis=None) -> float:
        """
        Generate the key pair.

        Args:
            private_basis: Use this basis instead of sampling one

        Returns:
            float: Key generation time in seconds

        Raises:
            KeyGenerationError: a rejection loop ran out of retries
        """
        start = time.time()
        p = self.params

        if private_basis is None:
            basis = good_basis(
                p.size,
                p.basis_parameter,
                rng=self._rng("good_basis"),
                max_retries=p.max_basis_retries,
            )
        else:
            basis = as_basis(private_basis).copy()
            if basis.shape[0] != p.size:
                raise DimensionMismatchError(expected=p.size, got=basis.shape, what="private basis")

        basis_exact = to_integer_matrix(basis)
        unimodular = self._unimodular_transform(basis_exact, self._rng("unimodular"))

        public_exact = basis_exact.dot(unimodular)

        # U is not part of either key
        unimodular.fill(0)
        del unimodular

        self._private_basis = basis
        self._public_exact = public_exact
        self._public_float = public_exact.astype(np.float64)
        self._noise_rng = self._rng("noise")

        self.keygen_time = time.time() - start
        logger.info(
            "GGH key generated: n=%d, %d unimodular attempts, %.3fs",
            p.size, self.unimodular_attempts, self.keygen_time,
        )
        return self.keygen_time

    def _unimodular_transform(self, basis_exact: np.ndarray, rng: np.random.RandomState) -> np.ndarray:
        """
        Product of unimodular_iterations random unimodular factors.

        A factor is counted only if it and the running product both have
        |det| == 1 exactly and the resulting public basis stays within
        max_public_entry.
        """
        p = self.params
        product = identity(p.size)
        budget = max(1, p.unimodular_iterations) * p.max_unimodular_retries

        counter = 0
        attempts = 0
        while counter < p.unimodular_iterations:
            if attempts >= budget:
                raise KeyGenerationError(
                    f"unimodular transform: only {counter}/{p.unimodular_iterations} factors "
                    f"accepted in {attempts} attempts (lower unimodular_iterations or raise "
                    f"max_public_entry)"
                )
            attempts += 1

            factor = random_unimodular(p.size, rng, max_retries=p.max_unimodular_retries)
            if abs(integer_determinant(factor)) != 1:
                continue

            candidate = product.dot(factor)
            if abs(integer_determinant(candidate)) != 1:
                continue
            if max_abs_entry(basis_exact.dot(candidate)) > p.max_public_entry:
                logger.debug("unimodular factor rejected: public entries exceed bound")
                continue

            product = candidate
            counter += 1

        self.unimodular_attempts = attempts
        return product

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def _require_keys(self) -> None:
        if self._private_basis is None or self._public_float is None:
            raise ValueError("Keys not generated. Call key_gen() first.")

    @property
    def public_key(self) -> np.ndarray:
        """Public basis P (copy)."""
        self._require_keys()
        return self._public_float.copy()

    @property
    def private_basis(self) -> np.ndarray:
        """Private basis B (copy)."""
        self._require_keys()
        return self._private_basis.copy()

    @property
    def public(self) -> GGHPublicKey:
        """Encrypt-only public key object."""
        self._require_keys()
        return GGHPublicKey(basis=self._public_float, noise_parameter=self.noise_parameter)

    def export_seed(self) -> bytes:
        """Export master seed for key recovery."""
        return self.master_seed

    # -------------------------------------------------------------------------
    # Encrypt / Decrypt
    # -------------------------------------------------------------------------

    def encrypt(self, message, rng: Optional[np.random.RandomState] = None) -> np.ndarray:
        """
        Encrypt a message vector.

        Args:
            message: Length-n vector (integer entries expected)
            rng: Noise source (defaults to the key pair's seeded stream)

        Returns:
            Ciphertext P @ m + e as float64

        Raises:
            DimensionMismatchError: len(message) != n
        """
        self._require_keys()
        rng = rng if rng is not None else self._noise_rng
        return _encrypt_with(
            self._public_exact, self._public_float, message, self.noise_parameter, rng
        )

    def _solve_public(self, point: np.ndarray) -> np.ndarray:
        """
        Rounded coordinates of a lattice point with respect to P.

        The private basis is integer valued, so Babai points and the zero
        fallback are too; the solve is exact over the rationals.
        """
        coords = decompose_exact(point, self._public_exact)
        if coords is None:
            raise SingularPublicKeyError("public basis is singular")
        return np.array([round_fraction(c) for c in coords], dtype=np.float64)

    def decrypt_with_status(self, ciphertext) -> Tuple[Optional[np.ndarray], DecodeStatus]:
        """
        Decrypt and report the Babai outcome.

        Returns:
            (message, DecodeStatus.OK) or (None, failure status)
        """
        self._require_keys()
        c = as_vector(ciphertext, self.size, what="ciphertext")

        result = babai_decode(self._private_basis, c)
        if not result.ok:
            return None, result.status
        return self._solve_public(result.point), result.status

    def decrypt(self, ciphertext, strict: Optional[bool] = None) -> np.ndarray:
        """
        Decrypt a ciphertext vector.

        Args:
            ciphertext: Length-n vector
            strict: Override the key pair's strict setting

        Returns:
            Recovered message (float64, integer valued)

        Raises:
            DimensionMismatchError: len(ciphertext) != n
            DecodeError: Babai decoding failed (strict mode only)
            SingularPublicKeyError: decomposition against P failed
        """
        self._require_keys()
        strict = self.strict if strict is None else bool(strict)
        c = as_vector(ciphertext, self.size, what="ciphertext")

        result = babai_decode(self._private_basis, c)
        if result.ok:
            point = result.point
        elif strict:
            raise DecodeError(result.status)
        else:
            logger.warning(
                "Babai decoding failed (%s); substituting the zero vector", result.status.value
            )
            point = np.zeros(self.size, dtype=np.float64)

        return self._solve_public(point)


# =============================================================================
# Functional API
# =============================================================================

def generate(
    size: int,
    basis_parameter: Optional[int] = None,
    unimodular_iterations: int = DEFAULT_UNIMODULAR_ITERATIONS,
    noise_parameter: int = DEFAULT_NOISE_PARAMETER,
    seed: Optional[bytes] = None,
    strict: bool = False,
) -> Tuple[np.ndarray, Callable[..., np.ndarray], Callable[..., np.ndarray]]:
    """
    Generate a GGH key and return (public_key, encrypt, decrypt).

    encrypt and decrypt are bound to a fresh GGHKeyPair; the private basis
    is reachable only through them.
    """
    kp = GGHKeyPair(
        size=size,
        basis_parameter=basis_parameter,
        noise_parameter=noise_parameter,
        unimodular_iterations=unimodular_iterations,
        seed=seed,
        strict=strict,
    )
    kp.key_gen()
    return kp.public_key, kp.encrypt, kp.decrypt
