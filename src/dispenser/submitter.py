"""Transfer Submitter: one private transfer per call."""

from __future__ import annotations

import logging

from .errors import LedgerError, SubmissionError
from .identity import Address, FundingIdentity
from .ledger import ConfirmationHandle, LedgerClient, TransferType, UnspentRecord

logger = logging.getLogger(__name__)


class TransferSubmitter:
    """Broadcasts private transfers through the Ledger Client.

    Not idempotent: every call broadcasts. Failure causes are passed
    through verbatim, never interpreted.
    """

    def __init__(self, client: LedgerClient):
        self.client = client

    def submit(
        self,
        identity: FundingIdentity,
        amount: int,
        fee: int,
        recipient: Address,
        amount_record: UnspentRecord,
        fee_record: UnspentRecord,
    ) -> ConfirmationHandle:
        logger.info("Submitting private transfer of %d (fee %d) to %s", amount, fee, recipient)
        try:
            return self.client.submit_private_transfer(
                identity,
                amount,
                fee,
                recipient,
                amount_record=amount_record,
                fee_record=fee_record,
                transfer_type=TransferType.PRIVATE,
            )
        except LedgerError as e:
            raise SubmissionError(str(e), cause=e) from e
