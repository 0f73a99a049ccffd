"""
Ledger data model and the Ledger Client capability.

The dispenser never decrypts records or builds transactions itself. It talks
to a ``LedgerClient``, which owns the cryptography and the wire calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence

from .identity import Address, FundingIdentity


class TransferType(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


@dataclass(frozen=True)
class UnspentRecord:
    """A single-use value record owned by the funding identity."""

    commitment: str
    plaintext: str
    microcredits: int
    height: int

    def to_dict(self) -> dict:
        return {
            "commitment": self.commitment,
            "microcredits": self.microcredits,
            "height": self.height,
        }

    def __str__(self) -> str:
        return f"{self.commitment} ({self.microcredits} microcredits @ block {self.height})"


@dataclass(frozen=True)
class SearchRange:
    """Half-open interval of block heights ``[start, end)``."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid search range [{self.start}, {self.end})")

    @classmethod
    def full(cls, latest_height: int) -> "SearchRange":
        return cls(0, latest_height)

    @classmethod
    def around(cls, block_hint: int) -> "SearchRange":
        # Narrow window; trades completeness for speed.
        return cls(max(0, block_hint - 1), block_hint + 1)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, height: int) -> bool:
        return self.start <= height < self.end

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True)
class RecordPair:
    """The two records a private transfer consumes, labeled by role."""

    fee_record: UnspentRecord
    amount_record: UnspentRecord

    def __post_init__(self):
        if self.fee_record.commitment == self.amount_record.commitment:
            raise ValueError("Fee and amount must use distinct records")

    @property
    def commitments(self) -> frozenset[str]:
        return frozenset({self.fee_record.commitment, self.amount_record.commitment})


@dataclass(frozen=True)
class ConfirmationHandle:
    """Identifier of a broadcast transaction."""

    transaction_id: str

    def __str__(self) -> str:
        return self.transaction_id


class LedgerClient(Protocol):
    def latest_height(self) -> int: ...

    def get_unspent_records(
        self,
        identity: FundingIdentity,
        search_range: SearchRange,
        max_microcredits: Optional[int] = None,
        amounts: Optional[Sequence[int]] = None,
    ) -> list[tuple[str, UnspentRecord]]: ...

    def submit_private_transfer(
        self,
        identity: FundingIdentity,
        amount: int,
        fee: int,
        recipient: Address,
        amount_record: UnspentRecord,
        fee_record: UnspentRecord,
        transfer_type: TransferType = TransferType.PRIVATE,
    ) -> ConfirmationHandle: ...
