"""
Dispenser error types.

Specific exceptions for different failure modes, enabling callers
to handle each case appropriately (retry, halt, print usage).
"""

from __future__ import annotations

from typing import Optional


class DispenserError(Exception):
    """Base error for all Dispenser operations."""
    pass


# Command-line errors
class ArgumentError(DispenserError):
    """Wrong number of positional arguments."""
    pass


class ParseError(DispenserError):
    """Malformed key, address, number or recipient file."""
    def __init__(self, field: str, value: str, message: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {message}")


# Ledger client errors
class LedgerError(DispenserError):
    """Base error for Ledger Client failures."""
    pass


class NetworkError(LedgerError):
    """Network-level failures (DNS, connection refused, timeout)."""
    pass


class TransferRejectedError(LedgerError):
    """Ledger service rejected a request."""
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"Rejected ({status_code}): {message}")


# Record search errors
class SearchError(DispenserError):
    """Base error for record search failures. Always halts the run."""
    pass


class NoLatestHeightError(SearchError):
    """Latest block height could not be fetched."""
    pass


class InsufficientRecordsError(SearchError):
    """Fewer than two qualifying records in the search range."""
    def __init__(self, fee: int, amount: int, found: int):
        self.fee = fee
        self.amount = amount
        self.found = found
        super().__init__(
            f"Need one record >= {fee} (fee) and one record >= {amount} (amount), "
            f"found {found} qualifying"
        )


# Submission errors
class SubmissionError(DispenserError):
    """Transfer submission failed. Recoverable inside the retry loop."""
    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class RetriesExhaustedError(SubmissionError):
    """Retry budget for a recipient is used up."""
    def __init__(self, recipient: str, attempts: int, last_error: str):
        self.recipient = recipient
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Max retries exceeded for {recipient} after {attempts} attempts: {last_error}"
        )
