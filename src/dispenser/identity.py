"""
Key and address parsing.

Only the textual shape is checked here (prefix, length, alphabet). The
ledger service performs the cryptographic validation when it uses them.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field

from .errors import ParseError

logger = logging.getLogger(__name__)

PRIVATE_KEY_PREFIX = "APrivateKey1"
PRIVATE_KEY_LENGTH = 59
ADDRESS_PREFIX = "aleo1"
ADDRESS_LENGTH = 63

_BASE58_ALPHABET = frozenset("123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz")
_BECH32_ALPHABET = frozenset("qpzry9x8gf2tvdw0s3jn54khce6mua7l")


@dataclass(frozen=True)
class FundingIdentity:
    """Private key that funds and authorizes every transfer in a run."""

    private_key: str = field(repr=False)

    @property
    def masked(self) -> str:
        return f"{self.private_key[:15]}...{self.private_key[-4:]}"

    def __repr__(self) -> str:
        return f"FundingIdentity({self.masked})"

    def __str__(self) -> str:
        return self.masked


@dataclass(frozen=True)
class Address:
    """A recipient account address."""

    value: str

    def __str__(self) -> str:
        return self.value


def resolve_private_key(key_input: str) -> str:
    """Return the raw key, reading ``op://`` references through the 1Password CLI."""
    candidate = key_input.strip()
    if candidate.startswith("op://"):
        try:
            result = subprocess.run(
                ["op", "read", candidate],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ParseError(
                "private key",
                candidate,
                f"failed to run 1Password CLI: {type(e).__name__}: {e}",
            ) from e
        if result.returncode != 0:
            raise ParseError(
                "private key",
                candidate,
                f"failed to read 1Password reference: {result.stderr.strip()}",
            )
        logger.info("Private key loaded from 1Password reference %s", candidate)
        candidate = result.stdout.strip()
    return candidate


def parse_private_key(key_input: str) -> FundingIdentity:
    candidate = resolve_private_key(key_input)
    if not candidate.startswith(PRIVATE_KEY_PREFIX):
        raise ParseError("private key", "<redacted>", f"must start with {PRIVATE_KEY_PREFIX}")
    if len(candidate) != PRIVATE_KEY_LENGTH:
        raise ParseError(
            "private key",
            "<redacted>",
            f"expected {PRIVATE_KEY_LENGTH} characters, got {len(candidate)}",
        )
    if not set(candidate[len(PRIVATE_KEY_PREFIX):]) <= _BASE58_ALPHABET:
        raise ParseError("private key", "<redacted>", "contains non-base58 characters")
    return FundingIdentity(private_key=candidate)


def parse_address(value: str) -> Address:
    candidate = value.strip()
    if not candidate.startswith(ADDRESS_PREFIX):
        raise ParseError("address", candidate, f"must start with {ADDRESS_PREFIX}")
    if len(candidate) != ADDRESS_LENGTH:
        raise ParseError(
            "address",
            candidate,
            f"expected {ADDRESS_LENGTH} characters, got {len(candidate)}",
        )
    if not set(candidate[len(ADDRESS_PREFIX):]) <= _BECH32_ALPHABET:
        raise ParseError("address", candidate, "contains non-bech32 characters")
    return Address(value=candidate)
