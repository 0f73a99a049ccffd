"""
Disbursement loop.

Flow per recipient:
1. Select a fee record and an amount record (once)
2. Submit the private transfer
3. On failure, count it and retry until the retry budget is used up
4. On success, sleep for the pacing delay and move on

Any search failure or exhausted retry budget halts the whole run. The loop
reports what happened in a ``DisbursementReport``; it never exits the
process.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from .credits import UINT64_MAX
from .errors import LedgerError, RetriesExhaustedError, SearchError, SubmissionError
from .events import DisbursementEvent, EventListener, EventType
from .identity import Address, FundingIdentity
from .ledger import ConfirmationHandle, LedgerClient, RecordPair
from .locator import RecordLocator
from .submitter import TransferSubmitter

# Longest delay the platform can sleep for.
MAX_DELAY_MS = int(threading.TIMEOUT_MAX) * 1000

logger = logging.getLogger(__name__)


class AttemptState(str, Enum):
    SELECTING = "selecting"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class DisbursementConfig:
    """Settings for one disbursement run. Amounts are in microcredits."""

    amount: int
    fee: int
    max_retries: int
    delay_ms: int
    retry_delay_ms: int = 0
    block_hint: Optional[int] = None
    max_microcredits: Optional[int] = None

    def __post_init__(self):
        for name in ("amount", "fee", "max_retries", "delay_ms", "retry_delay_ms"):
            value = getattr(self, name)
            if not 0 <= value <= UINT64_MAX:
                raise ValueError(f"{name} must be an unsigned 64-bit integer, got {value}")
        for name in ("delay_ms", "retry_delay_ms"):
            if getattr(self, name) > MAX_DELAY_MS:
                raise ValueError(f"{name} must be at most {MAX_DELAY_MS}, got {getattr(self, name)}")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.block_hint is not None and self.block_hint < 0:
            raise ValueError(f"block_hint must be non-negative, got {self.block_hint}")


@dataclass
class DisbursementAttempt:
    """Mutable state for the recipient currently being paid."""

    recipient: Address
    state: AttemptState = AttemptState.SELECTING
    retry_count: int = 0
    records: Optional[RecordPair] = None
    last_error: Optional[str] = None
    referenced: set[str] = field(default_factory=set)

    def record_failure(self, error: str):
        self.retry_count += 1
        self.last_error = error

    def is_exhausted(self, max_retries: int) -> bool:
        return self.retry_count >= max_retries


@dataclass
class DisbursementOutcome:
    """Result for one recipient."""

    recipient: str
    success: bool
    state: AttemptState
    confirmation: Optional[ConfirmationHandle] = None
    reason: Optional[str] = None
    attempts: int = 0

    def to_dict(self) -> dict:
        return {
            "recipient": self.recipient,
            "success": self.success,
            "state": self.state.value,
            "transaction_id": self.confirmation.transaction_id if self.confirmation else None,
            "reason": self.reason,
            "attempts": self.attempts,
        }


@dataclass
class DisbursementReport:
    """Outcomes of a run, in recipient order, and why it stopped."""

    total_recipients: int
    outcomes: list[DisbursementOutcome] = field(default_factory=list)
    halted: bool = False
    halt_reason: Optional[str] = None

    @property
    def succeeded(self) -> list[DisbursementOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def completed(self) -> bool:
        return not self.halted and len(self.outcomes) == self.total_recipients

    def to_dict(self) -> dict:
        return {
            "total_recipients": self.total_recipients,
            "succeeded": len(self.succeeded),
            "halted": self.halted,
            "halt_reason": self.halt_reason,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


# ── Retry policies ────────────────────────────────────────────────

class RetryPolicy(Protocol):
    name: str

    def records_for_retry(
        self,
        attempt: DisbursementAttempt,
        relocate: Callable[[], RecordPair],
    ) -> RecordPair: ...


class RetrySameRecordsPolicy:
    """Resubmit the pair selected before the first attempt.

    If the failure was "record already spent", every retry fails the same
    way until the budget runs out.
    """

    name = "same-records"

    def records_for_retry(
        self,
        attempt: DisbursementAttempt,
        relocate: Callable[[], RecordPair],
    ) -> RecordPair:
        if attempt.records is None:
            raise RuntimeError("No records selected for retry")
        return attempt.records


class ResearchOnRetryPolicy:
    """Search again before every retry, skipping records already submitted."""

    name = "research"

    def records_for_retry(
        self,
        attempt: DisbursementAttempt,
        relocate: Callable[[], RecordPair],
    ) -> RecordPair:
        return relocate()


RETRY_POLICIES: dict[str, type] = {
    RetrySameRecordsPolicy.name: RetrySameRecordsPolicy,
    ResearchOnRetryPolicy.name: ResearchOnRetryPolicy,
}


def retry_policy_for(name: str) -> RetryPolicy:
    try:
        return RETRY_POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown retry policy {name!r} (expected one of {', '.join(sorted(RETRY_POLICIES))})"
        ) from None


# ── Loop ──────────────────────────────────────────────────────────

class Disburser:
    """Pays every recipient in order, one at a time."""

    def __init__(
        self,
        client: LedgerClient,
        config: DisbursementConfig,
        policy: Optional[RetryPolicy] = None,
        listener: Optional[EventListener] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.policy = policy or RetrySameRecordsPolicy()
        self.locator = RecordLocator(client)
        self.submitter = TransferSubmitter(client)
        self.listener = listener
        self._sleep = sleep

    def _emit(self, event_type: EventType, **kwargs) -> None:
        if self.listener is not None:
            self.listener(DisbursementEvent(event_type=event_type.value, **kwargs))

    def run(self, identity: FundingIdentity, recipients: Sequence[Address]) -> DisbursementReport:
        report = DisbursementReport(total_recipients=len(recipients))
        self._emit(
            EventType.RUN_STARTED,
            details={
                "recipients": len(recipients),
                "amount": self.config.amount,
                "fee": self.config.fee,
                "max_retries": self.config.max_retries,
                "delay_ms": self.config.delay_ms,
                "policy": self.policy.name,
            },
        )
        logger.info("Disbursing to %d recipients with %s policy", len(recipients), self.policy.name)

        for recipient in recipients:
            outcome = self.disburse(identity, recipient)
            report.outcomes.append(outcome)
            if not outcome.success:
                report.halted = True
                report.halt_reason = outcome.reason
                self._emit(
                    EventType.RUN_HALTED,
                    recipient=recipient.value,
                    success=False,
                    reason=outcome.reason,
                    details={
                        "completed": len(report.succeeded),
                        "remaining": len(recipients) - len(report.outcomes),
                    },
                )
                logger.warning("Run halted at %s: %s", recipient, outcome.reason)
                return report

        self._emit(EventType.RUN_COMPLETED, details={"completed": len(report.succeeded)})
        return report

    def disburse(self, identity: FundingIdentity, recipient: Address) -> DisbursementOutcome:
        """Select records once, then submit until success or the retry budget is spent."""
        attempt = DisbursementAttempt(recipient=recipient)
        self._emit(EventType.RECIPIENT_STARTED, recipient=recipient.value)

        def relocate() -> RecordPair:
            return self.locator.locate(
                identity,
                fee=self.config.fee,
                amount=self.config.amount,
                block_hint=self.config.block_hint,
                max_microcredits=self.config.max_microcredits,
                exclude=attempt.referenced,
            )

        try:
            attempt.records = relocate()
        except (SearchError, LedgerError) as e:
            return self._search_failed(attempt, e)
        self._records_selected(attempt)

        while True:
            attempt.state = AttemptState.ATTEMPTING
            records = attempt.records
            attempt.referenced |= records.commitments
            self._emit(
                EventType.TRANSFER_STARTED,
                recipient=recipient.value,
                attempt=attempt.retry_count + 1,
            )
            try:
                confirmation = self.submitter.submit(
                    identity,
                    amount=self.config.amount,
                    fee=self.config.fee,
                    recipient=recipient,
                    amount_record=records.amount_record,
                    fee_record=records.fee_record,
                )
            except SubmissionError as e:
                attempt.record_failure(str(e))
                self._emit(
                    EventType.TRANSFER_FAILED,
                    recipient=recipient.value,
                    attempt=attempt.retry_count,
                    success=False,
                    reason=str(e),
                )
                logger.info(
                    "Transfer to %s failed (attempt %d/%d): %s",
                    recipient, attempt.retry_count, self.config.max_retries, e,
                )
                if attempt.is_exhausted(self.config.max_retries):
                    return self._exhausted(attempt)

                attempt.state = AttemptState.RETRYING
                if self.config.retry_delay_ms:
                    self._sleep(self.config.retry_delay_ms / 1000)
                try:
                    previous = attempt.records
                    attempt.records = self.policy.records_for_retry(attempt, relocate)
                except (SearchError, LedgerError) as search_error:
                    return self._search_failed(attempt, search_error)
                if attempt.records is not previous:
                    self._records_selected(attempt)
                continue

            attempt.state = AttemptState.SUCCEEDED
            self._emit(
                EventType.TRANSFER_SUCCEEDED,
                recipient=recipient.value,
                attempt=attempt.retry_count + 1,
                details={"transaction_id": confirmation.transaction_id},
            )
            logger.info("Transfer to %s confirmed: %s", recipient, confirmation)
            self._pace()
            return DisbursementOutcome(
                recipient=recipient.value,
                success=True,
                state=attempt.state,
                confirmation=confirmation,
                attempts=attempt.retry_count + 1,
            )

    def _records_selected(self, attempt: DisbursementAttempt) -> None:
        records = attempt.records
        self._emit(
            EventType.RECORDS_SELECTED,
            recipient=attempt.recipient.value,
            details={
                "fee_record": records.fee_record.to_dict(),
                "amount_record": records.amount_record.to_dict(),
            },
        )

    def _search_failed(self, attempt: DisbursementAttempt, error: Exception) -> DisbursementOutcome:
        reason = f"Record search failed: {error}"
        self._emit(
            EventType.SEARCH_FAILED,
            recipient=attempt.recipient.value,
            success=False,
            reason=reason,
        )
        return DisbursementOutcome(
            recipient=attempt.recipient.value,
            success=False,
            state=AttemptState.SELECTING,
            reason=reason,
            attempts=attempt.retry_count,
        )

    def _exhausted(self, attempt: DisbursementAttempt) -> DisbursementOutcome:
        attempt.state = AttemptState.EXHAUSTED
        error = RetriesExhaustedError(
            recipient=attempt.recipient.value,
            attempts=attempt.retry_count,
            last_error=attempt.last_error or "",
        )
        self._emit(
            EventType.RETRIES_EXHAUSTED,
            recipient=attempt.recipient.value,
            attempt=attempt.retry_count,
            success=False,
            reason=str(error),
        )
        return DisbursementOutcome(
            recipient=attempt.recipient.value,
            success=False,
            state=attempt.state,
            reason=str(error),
            attempts=attempt.retry_count,
        )

    def _pace(self) -> None:
        seconds = self.config.delay_ms / 1000
        self._emit(EventType.PACING_STARTED, details={"delay_ms": self.config.delay_ms})
        self._sleep(seconds)
        self._emit(EventType.PACING_FINISHED)
