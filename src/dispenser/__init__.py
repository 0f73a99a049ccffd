"""
Dispenser — batch private-transfer disbursement for the Aleo ledger.

Locate two spendable records → submit a private transfer → retry within
a bound → pace → next recipient.
"""

__version__ = "0.1.0"

from .identity import Address, FundingIdentity, parse_address, parse_private_key
from .ledger import (
    ConfirmationHandle,
    LedgerClient,
    RecordPair,
    SearchRange,
    TransferType,
    UnspentRecord,
)
from .locator import RecordLocator
from .submitter import TransferSubmitter
from .disbursement import (
    AttemptState,
    Disburser,
    DisbursementConfig,
    DisbursementOutcome,
    DisbursementReport,
    ResearchOnRetryPolicy,
    RetrySameRecordsPolicy,
)
from .events import DisbursementEvent, EventType
from .aleo_client import AleoClient, AleoClientConfig, Network

__all__ = [
    "Address", "FundingIdentity", "parse_address", "parse_private_key",
    "ConfirmationHandle", "LedgerClient", "RecordPair", "SearchRange",
    "TransferType", "UnspentRecord",
    "RecordLocator", "TransferSubmitter",
    "AttemptState", "Disburser", "DisbursementConfig", "DisbursementOutcome",
    "DisbursementReport", "ResearchOnRetryPolicy", "RetrySameRecordsPolicy",
    "DisbursementEvent", "EventType",
    "AleoClient", "AleoClientConfig", "Network",
]
