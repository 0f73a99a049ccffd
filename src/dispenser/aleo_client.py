"""
HTTP Ledger Client for Aleo.

Reads chain height from a public Aleo node API and delegates record
decryption and transfer construction to a local Aleo development service,
which holds the proving keys and signs on the caller's behalf.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

import httpx

from .errors import LedgerError, NetworkError, TransferRejectedError
from .identity import Address, FundingIdentity
from .ledger import ConfirmationHandle, SearchRange, TransferType, UnspentRecord

logger = logging.getLogger(__name__)


class Network(str, Enum):
    TESTNET3 = "testnet3"
    TESTNET = "testnet"
    MAINNET = "mainnet"


DEFAULT_NODE_URL = "https://api.explorer.aleo.org/v1"
DEFAULT_SERVICE_URL = "http://localhost:4040"


@dataclass
class AleoClientConfig:
    network: Network = Network.TESTNET3
    node_url: str = DEFAULT_NODE_URL
    service_url: str = DEFAULT_SERVICE_URL
    timeout_seconds: float = 30.0


class AleoClient:
    """Synchronous Ledger Client over httpx. One request per call, no retries."""

    def __init__(
        self,
        config: Optional[AleoClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config or AleoClientConfig()
        self._http = httpx.Client(timeout=self.config.timeout_seconds, transport=transport)

    def _node_endpoint(self, path: str) -> str:
        return f"{self.config.node_url.rstrip('/')}/{self.config.network.value}/{path}"

    def _service_endpoint(self, path: str) -> str:
        return f"{self.config.service_url.rstrip('/')}/{self.config.network.value}/{path}"

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timeout: {url}: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Connection failed: {url}: {e}") from e

    def latest_height(self) -> int:
        response = self._request("GET", self._node_endpoint("latest/height"))
        if response.status_code != 200:
            raise LedgerError(
                f"Latest height unavailable ({response.status_code}): {response.text[:200]}"
            )
        try:
            height = int(response.json())
        except (ValueError, TypeError) as e:
            raise LedgerError(f"Unparseable latest height: {response.text[:200]}") from e
        logger.debug("Latest height: %d", height)
        return height

    def get_unspent_records(
        self,
        identity: FundingIdentity,
        search_range: SearchRange,
        max_microcredits: Optional[int] = None,
        amounts: Optional[Sequence[int]] = None,
    ) -> list[tuple[str, UnspentRecord]]:
        body: dict[str, Any] = {
            "privateKey": identity.private_key,
            "start": search_range.start,
            "end": search_range.end,
        }
        if max_microcredits is not None:
            body["maxMicrocredits"] = max_microcredits
        if amounts is not None:
            body["amounts"] = list(amounts)

        logger.info("Scanning blocks %s for unspent records", search_range)
        response = self._request("POST", self._service_endpoint("records/unspent"), json=body)
        if response.status_code != 200:
            raise LedgerError(
                f"Record scan failed ({response.status_code}): {response.text[:200]}"
            )

        try:
            return [
                (
                    str(item["commitment"]),
                    UnspentRecord(
                        commitment=str(item["commitment"]),
                        plaintext=str(item["record"]),
                        microcredits=int(item["microcredits"]),
                        height=int(item["height"]),
                    ),
                )
                for item in response.json()
            ]
        except (ValueError, TypeError, KeyError) as e:
            raise LedgerError(f"Malformed record scan response: {type(e).__name__}: {e}") from e

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
        body = {
            "amount": amount,
            "fee": fee,
            "recipient": recipient.value,
            "privateKey": identity.private_key,
            "transferType": transfer_type.value,
            "amountRecord": amount_record.plaintext,
            "feeRecord": fee_record.plaintext,
        }
        response = self._request("POST", self._service_endpoint("transfer"), json=body)
        if response.status_code != 200:
            raise TransferRejectedError(response.status_code, response.text[:200])

        try:
            payload = response.json()
        except ValueError:
            payload = response.text.strip()
        transaction_id = payload.get("transaction_id") if isinstance(payload, dict) else payload
        if not transaction_id:
            raise LedgerError(f"Transfer response has no transaction id: {response.text[:200]}")
        return ConfirmationHandle(transaction_id=str(transaction_id))

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
