# ggh/__init__.py
"""
GGH: Goldreich-Goldwasser-Halevi Lattice Cryptosystem

Toy public-key encryption on integer lattices.
- Key generation from a nearly orthogonal private basis
- Public basis via random unimodular transforms (exact integer arithmetic)
- Encryption by bounded noise displacement of a lattice point
- Decryption by Babai rounding with the private basis

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │  ggh                                                    │
    │  ├── lattice/          # Core primitives                │
    │  │   ├── common.py     # Constants, params, errors      │
    │  │   ├── linalg.py     # Decomposition, det, Hadamard   │
    │  │   ├── unimodular.py # Random unimodular matrices     │
    │  │   ├── basis.py      # Good private basis sampling    │
    │  │   ├── babai.py      # Babai rounding (approx. CVP)   │
    │  │   └── core.py       # GGHKeyPair, generate()         │
    │  │                                                      │
    │  └── cli.py            # Command line demo              │
    └─────────────────────────────────────────────────────────┘

Not secure: GGH falls to lattice reduction / embedding attacks.
"""

__version__ = "0.3.0"

from .lattice import (
    # Core
    GGHKeyPair,
    GGHPublicKey,
    generate,
    # Building blocks
    babai_decode,
    babai_closest_vector,
    decompose,
    hadamard_ratio,
    integer_determinant,
    is_unimodular,
    same_lattice,
    random_unimodular,
    random_basis,
    good_basis,
    # Configuration
    GGHParams,
    HADAMARD_THRESHOLD,
    # Results / errors
    DecodeStatus,
    DecodeResult,
    GGHError,
    DimensionMismatchError,
    KeyGenerationError,
    DecodeError,
    SingularPublicKeyError,
)

__all__ = [
    "__version__",
    "GGHKeyPair",
    "GGHPublicKey",
    "generate",
    "babai_decode",
    "babai_closest_vector",
    "decompose",
    "hadamard_ratio",
    "integer_determinant",
    "is_unimodular",
    "same_lattice",
    "random_unimodular",
    "random_basis",
    "good_basis",
    "GGHParams",
    "HADAMARD_THRESHOLD",
    "DecodeStatus",
    "DecodeResult",
    "GGHError",
    "DimensionMismatchError",
    "KeyGenerationError",
    "DecodeError",
    "SingularPublicKeyError",
]
