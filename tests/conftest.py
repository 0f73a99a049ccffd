"""Shared test doubles for the Ledger Client."""

from typing import Optional, Sequence

import pytest

from dispenser.errors import TransferRejectedError
from dispenser.identity import Address, FundingIdentity
from dispenser.ledger import ConfirmationHandle, SearchRange, TransferType, UnspentRecord


PRIVATE_KEY = "APrivateKey1zkp8CZNn3yeCseEtxuVPbDCwSyhGW6yZKUYKfgXmcpoGPWH"


def make_address(ch: str) -> Address:
    return Address("aleo1" + ch * 58)


def make_record(commitment: str, microcredits: int, height: int = 10) -> UnspentRecord:
    return UnspentRecord(
        commitment=commitment,
        plaintext=f"{{ owner: aleo1.private, microcredits: {microcredits}u64.private }}",
        microcredits=microcredits,
        height=height,
    )


class FakeLedger:
    """In-memory Ledger Client recording every call."""

    def __init__(
        self,
        records: Sequence[UnspentRecord] = (),
        height=100,
        failing: Sequence[str] = (),
        failures_before_success: Optional[dict[str, int]] = None,
    ):
        self.records = list(records)
        self.height = height
        self.failing = set(failing)
        self.failures_before_success = dict(failures_before_success or {})
        self.height_calls = 0
        self.searches: list[dict] = []
        self.transfers: list[dict] = []

    def latest_height(self) -> int:
        self.height_calls += 1
        if isinstance(self.height, Exception):
            raise self.height
        return self.height

    def get_unspent_records(
        self,
        identity: FundingIdentity,
        search_range: SearchRange,
        max_microcredits: Optional[int] = None,
        amounts: Optional[Sequence[int]] = None,
    ) -> list[tuple[str, UnspentRecord]]:
        self.searches.append(
            {"range": search_range, "max_microcredits": max_microcredits, "amounts": amounts}
        )
        return [(r.commitment, r) for r in self.records if search_range.contains(r.height)]

    def submit_private_transfer(
        self,
        identity: FundingIdentity,
        amount: int,
        fee: int,
        recipient: Address,
        amount_record: UnspentRecord,
        fee_record: UnspentRecord,
        transfer_type: TransferType = TransferType.PRIVATE,
    ) -> ConfirmationHandle:
        self.transfers.append(
            {
                "recipient": recipient.value,
                "amount": amount,
                "fee": fee,
                "amount_record": amount_record,
                "fee_record": fee_record,
                "transfer_type": transfer_type,
            }
        )
        if recipient.value in self.failing:
            raise TransferRejectedError(500, "record already spent")
        remaining = self.failures_before_success.get(recipient.value, 0)
        if remaining > 0:
            self.failures_before_success[recipient.value] = remaining - 1
            raise TransferRejectedError(503, "node temporarily unavailable")
        return ConfirmationHandle(transaction_id=f"at1tx{len(self.transfers)}")

    def transfers_to(self, recipient: Address) -> list[dict]:
        return [t for t in self.transfers if t["recipient"] == recipient.value]

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


@pytest.fixture
def identity():
    return FundingIdentity(private_key=PRIVATE_KEY)


@pytest.fixture
def records():
    return [
        make_record("c-fee", 10, height=5),
        make_record("c-amount", 500, height=7),
        make_record("c-spare-small", 20, height=8),
        make_record("c-spare-large", 1_000, height=9),
    ]
