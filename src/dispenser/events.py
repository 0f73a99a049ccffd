"""
Disbursement progress events.

Events are delivered to an in-process listener as they happen. They are
never written to disk.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class EventType(str, Enum):
    RUN_STARTED = "run_started"
    RECIPIENT_STARTED = "recipient_started"
    RECORDS_SELECTED = "records_selected"
    SEARCH_FAILED = "search_failed"
    TRANSFER_STARTED = "transfer_started"
    TRANSFER_SUCCEEDED = "transfer_succeeded"
    TRANSFER_FAILED = "transfer_failed"
    PACING_STARTED = "pacing_started"
    PACING_FINISHED = "pacing_finished"
    RETRIES_EXHAUSTED = "retries_exhausted"
    RUN_COMPLETED = "run_completed"
    RUN_HALTED = "run_halted"


@dataclass
class DisbursementEvent:
    """A single progress entry."""

    event_type: str
    timestamp: float = field(default_factory=time.time)
    recipient: Optional[str] = None
    attempt: Optional[int] = None
    success: bool = True
    reason: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    def to_json(self) -> str:
        d = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(d, separators=(",", ":"))


EventListener = Callable[[DisbursementEvent], None]
