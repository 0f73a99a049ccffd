"""
Record Locator.

Finds the two unspent records a private transfer needs: one covering the
fee and one covering the amount. Roles are assigned explicitly so a record
can never end up paying for the wrong thing.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .errors import InsufficientRecordsError, LedgerError, NetworkError, NoLatestHeightError
from .identity import FundingIdentity
from .ledger import LedgerClient, RecordPair, SearchRange, UnspentRecord

logger = logging.getLogger(__name__)


class RecordLocator:
    """Searches ledger history for a fee record and an amount record."""

    def __init__(self, client: LedgerClient):
        self.client = client

    def search_range(self, block_hint: Optional[int] = None) -> SearchRange:
        if block_hint is not None:
            return SearchRange.around(block_hint)
        try:
            latest = self.client.latest_height()
        except NetworkError:
            raise
        except LedgerError as e:
            raise NoLatestHeightError(str(e)) from e
        return SearchRange.full(latest)

    def locate(
        self,
        identity: FundingIdentity,
        fee: int,
        amount: int,
        block_hint: Optional[int] = None,
        max_microcredits: Optional[int] = None,
        exclude: Iterable[str] = (),
    ) -> RecordPair:
        """Return a ``RecordPair`` for ``fee`` and ``amount``.

        Records already referenced by earlier submissions can be passed in
        ``exclude`` (by commitment). Raises ``NoLatestHeightError``,
        ``InsufficientRecordsError`` or ``NetworkError``; nothing is retried.
        """
        search_range = self.search_range(block_hint)
        if search_range.is_empty:
            raise InsufficientRecordsError(fee=fee, amount=amount, found=0)

        found = self.client.get_unspent_records(
            identity,
            search_range,
            max_microcredits=max_microcredits,
            amounts=[fee, amount],
        )

        excluded = set(exclude)
        candidates: list[UnspentRecord] = []
        seen: set[str] = set()
        for _, record in found:
            if not search_range.contains(record.height):
                logger.warning(
                    "Ignoring record %s at height %d outside %s",
                    record.commitment, record.height, search_range,
                )
                continue
            if record.commitment in excluded or record.commitment in seen:
                continue
            seen.add(record.commitment)
            candidates.append(record)

        pair = _assign_roles(candidates, fee=fee, amount=amount)
        if pair is None:
            qualifying = sum(1 for r in candidates if r.microcredits >= min(fee, amount))
            raise InsufficientRecordsError(fee=fee, amount=amount, found=qualifying)

        logger.info(
            "Selected fee record %s and amount record %s from %s",
            pair.fee_record.commitment, pair.amount_record.commitment, search_range,
        )
        return pair


def _assign_roles(
    candidates: list[UnspentRecord], fee: int, amount: int
) -> Optional[RecordPair]:
    # Match the larger target first, each with the smallest record that covers it.
    by_size = sorted(candidates, key=lambda r: (r.microcredits, r.height, r.commitment))
    targets = sorted([("fee", fee), ("amount", amount)], key=lambda t: t[1], reverse=True)

    chosen: dict[str, UnspentRecord] = {}
    used: set[str] = set()
    for role, target in targets:
        match = next(
            (r for r in by_size if r.commitment not in used and r.microcredits >= target),
            None,
        )
        if match is None:
            return None
        chosen[role] = match
        used.add(match.commitment)
    return RecordPair(fee_record=chosen["fee"], amount_record=chosen["amount"])
