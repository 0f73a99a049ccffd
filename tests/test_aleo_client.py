"""Tests for the HTTP Ledger Client."""

import json

import httpx
import pytest

from conftest import make_address, make_record
from dispenser.aleo_client import AleoClient, AleoClientConfig, Network
from dispenser.errors import LedgerError, NetworkError, TransferRejectedError
from dispenser.ledger import SearchRange


NODE = "https://node.example"
SERVICE = "http://service.example"


def _client(handler) -> AleoClient:
    config = AleoClientConfig(node_url=NODE, service_url=SERVICE)
    return AleoClient(config=config, transport=httpx.MockTransport(handler))


class TestAleoClientConfig:
    def test_defaults(self):
        config = AleoClientConfig()
        assert config.network == Network.TESTNET3
        assert config.timeout_seconds == 30.0

    def test_context_manager(self):
        with AleoClient() as client:
            assert client.config.network == Network.TESTNET3


class TestLatestHeight:
    def test_reads_height(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=123456)

        with _client(handler) as client:
            assert client.latest_height() == 123456
        assert seen == [f"{NODE}/testnet3/latest/height"]

    def test_error_status(self):
        with _client(lambda r: httpx.Response(503, text="unavailable")) as client:
            with pytest.raises(LedgerError, match="503"):
                client.latest_height()

    def test_garbage_body(self):
        with _client(lambda r: httpx.Response(200, text="not a number")) as client:
            with pytest.raises(LedgerError, match="Unparseable"):
                client.latest_height()

    def test_connection_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as client:
            with pytest.raises(NetworkError, match="Connection failed"):
                client.latest_height()

    def test_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with _client(handler) as client:
            with pytest.raises(NetworkError, match="timeout"):
                client.latest_height()


class TestUnspentRecords:
    def test_request_body_and_parsing(self, identity):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=[
                {"commitment": "c1", "record": "{...}", "microcredits": 10, "height": 41},
                {"commitment": "c2", "record": "{...}", "microcredits": "500", "height": 42},
            ])

        with _client(handler) as client:
            found = client.get_unspent_records(identity, SearchRange(41, 43), amounts=[5, 100])

        assert captured["url"] == f"{SERVICE}/testnet3/records/unspent"
        assert captured["body"] == {
            "privateKey": identity.private_key,
            "start": 41,
            "end": 43,
            "amounts": [5, 100],
        }
        assert [c for c, _ in found] == ["c1", "c2"]
        assert found[1][1].microcredits == 500
        assert found[1][1].height == 42

    def test_max_microcredits_sent_when_given(self, identity):
        captured = {}

        def handler(request):
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=[])

        with _client(handler) as client:
            assert client.get_unspent_records(identity, SearchRange(0, 10), max_microcredits=900) == []
        assert captured["body"]["maxMicrocredits"] == 900
        assert "amounts" not in captured["body"]

    def test_malformed_response(self, identity):
        with _client(lambda r: httpx.Response(200, json=[{"commitment": "c1"}])) as client:
            with pytest.raises(LedgerError, match="Malformed"):
                client.get_unspent_records(identity, SearchRange(0, 10))


class TestTransfer:
    def test_private_transfer_body(self, identity):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json="at1abc")

        recipient = make_address("q")
        amount_record = make_record("amt", 500)
        fee_record = make_record("fee", 10)
        with _client(handler) as client:
            handle = client.submit_private_transfer(
                identity, 100, 5, recipient, amount_record=amount_record, fee_record=fee_record,
            )

        assert handle.transaction_id == "at1abc"
        assert captured["url"] == f"{SERVICE}/testnet3/transfer"
        body = captured["body"]
        assert body["transferType"] == "private"
        assert body["recipient"] == recipient.value
        assert body["amount"] == 100
        assert body["fee"] == 5
        assert body["amountRecord"] == amount_record.plaintext
        assert body["feeRecord"] == fee_record.plaintext

    def test_transaction_id_object(self, identity):
        handler = lambda r: httpx.Response(200, json={"transaction_id": "at1xyz"})
        with _client(handler) as client:
            handle = client.submit_private_transfer(
                identity, 1, 1, make_address("q"),
                amount_record=make_record("a", 5), fee_record=make_record("f", 5),
            )
        assert str(handle) == "at1xyz"

    def test_rejection_keeps_status(self, identity):
        handler = lambda r: httpx.Response(500, text="record already spent")
        with _client(handler) as client:
            with pytest.raises(TransferRejectedError) as exc:
                client.submit_private_transfer(
                    identity, 1, 1, make_address("q"),
                    amount_record=make_record("a", 5), fee_record=make_record("f", 5),
                )
        assert exc.value.status_code == 500
        assert "record already spent" in str(exc.value)
