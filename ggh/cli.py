# ggh/cli.py
"""
GGH command line demo.

Generates a key of the requested dimension, encrypts one message vector
and decrypts it again:

    $ ggh --dim 3 --message 12 -7 30
    $ python -m ggh            # prompts for dimension and message
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from .lattice import (
    DEFAULT_NOISE_PARAMETER,
    DEFAULT_UNIMODULAR_ITERATIONS,
    GGHError,
    GGHKeyPair,
    default_basis_parameter,
    hadamard_ratio,
)

logger = logging.getLogger("ggh.cli")


def parse_vector(text: str) -> List[float]:
    """Parse whitespace separated numbers."""
    values = []
    for token in text.split():
        try:
            values.append(float(token))
        except ValueError:
            raise ValueError(f"Not a valid number: {token!r}") from None
    if not values:
        raise ValueError("Message is empty")
    return values


def parse_dimension(text: str) -> int:
    try:
        dim = int(text.strip())
    except ValueError:
        raise ValueError(f"Input not an integer: {text.strip()!r}") from None
    if dim < 1:
        raise ValueError(f"Dimension must be positive, got {dim}")
    return dim


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ggh",
        description="GGH lattice cryptosystem: key generation, encryption and decryption demo",
    )
    parser.add_argument("-n", "--dim", type=str, default=None,
                        help="Key dimension (prompted if omitted)")
    parser.add_argument("-m", "--message", nargs="+", default=None,
                        help="Integer message entries (prompted if omitted)")
    parser.add_argument("--noise", type=int, default=DEFAULT_NOISE_PARAMETER,
                        help=f"Noise bound delta (default: {DEFAULT_NOISE_PARAMETER})")
    parser.add_argument("--iterations", type=int, default=DEFAULT_UNIMODULAR_ITERATIONS,
                        help="Unimodular factors in the public transform "
                             f"(default: {DEFAULT_UNIMODULAR_ITERATIONS})")
    parser.add_argument("--basis-parameter", type=int, default=None,
                        help="Private basis entry range (default: 2*dim + 10)")
    parser.add_argument("--seed", type=str, default=None,
                        help="32-byte master seed as hex, for reproducible keys")
    parser.add_argument("--strict", action="store_true",
                        help="Fail instead of falling back to the zero vector on decode failure")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log key generation details")
    return parser


def _format(array: np.ndarray) -> str:
    return np.array2string(np.asarray(array), precision=4, suppress_small=True, max_line_width=120)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        dim_text = args.dim if args.dim is not None else input("Please insert the key dimension: ")
        dim = parse_dimension(dim_text)

        if args.message is not None:
            message = parse_vector(" ".join(args.message))
        else:
            message = parse_vector(
                input("Enter the integer elements of the vector separated by spaces: ")
            )

        seed = bytes.fromhex(args.seed) if args.seed is not None else None
    except (ValueError, EOFError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    basis_parameter = (
        args.basis_parameter if args.basis_parameter is not None else default_basis_parameter(dim)
    )

    try:
        kp = GGHKeyPair(
            size=dim,
            basis_parameter=basis_parameter,
            noise_parameter=args.noise,
            unimodular_iterations=args.iterations,
            seed=seed,
            strict=args.strict,
        )
        kp.key_gen()

        public_key = kp.public_key
        print(f"Public key\n{_format(public_key)}")
        print(f"Public key Hadamard ratio\n{hadamard_ratio(public_key)}")

        m = np.array(message, dtype=np.float64)
        print(f"Original message: {_format(m)}")

        encrypted = kp.encrypt(m)
        print(f"Encrypted message: {_format(encrypted)}")

        decrypted = kp.decrypt(encrypted)
        print(f"Decrypted message: {_format(decrypted)}")
    except (GGHError, ValueError) as e:
        logger.error("GGH demo failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
