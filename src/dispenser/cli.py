"""
Dispenser CLI — sends a fixed private transfer to every address in a file.

Usage:
    dispenser <amount> <fee> <private key> <file with addresses> <retries> <delay ms>

Amount and fee are in microcredits. The private key may be an op:// reference.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click

from . import __version__
from .aleo_client import DEFAULT_NODE_URL, DEFAULT_SERVICE_URL, AleoClient, AleoClientConfig, Network
from .credits import UINT64_MAX, format_microcredits
from .disbursement import RETRY_POLICIES, Disburser, DisbursementConfig, retry_policy_for
from .errors import ArgumentError, ParseError
from .events import DisbursementEvent, EventType
from .identity import parse_private_key
from .recipients import load_recipients


USAGE = (
    "Use: dispenser <amount> <fee> <private key> <file with addresses> "
    "<retries> <delay between tx in milliseconds>"
)
POSITIONAL_NAMES = ("amount", "fee", "private key", "recipient file", "max retries", "delay ms")


def _parse_uint64(name: str, raw: str) -> int:
    candidate = raw.strip()
    if not (candidate.isascii() and candidate.isdigit()):
        raise ParseError(name, raw, "expected an unsigned integer")
    value = int(candidate)
    if value > UINT64_MAX:
        raise ParseError(name, raw, "does not fit in 64 bits")
    return value


def _check_arg_count(args: tuple[str, ...]) -> None:
    if len(args) != len(POSITIONAL_NAMES):
        raise ArgumentError(f"Expected {len(POSITIONAL_NAMES)} arguments, got {len(args)}")


def _echo_event(event: DisbursementEvent) -> None:
    kind = EventType(event.event_type)
    details = event.details or {}
    if kind is EventType.RECIPIENT_STARTED:
        click.echo(f"\nSending to {event.recipient}")
    elif kind is EventType.RECORDS_SELECTED:
        fee_record = details["fee_record"]
        amount_record = details["amount_record"]
        click.echo(
            f"   Fee record:    {fee_record['commitment']} "
            f"({fee_record['microcredits']} @ block {fee_record['height']})"
        )
        click.echo(
            f"   Amount record: {amount_record['commitment']} "
            f"({amount_record['microcredits']} @ block {amount_record['height']})"
        )
    elif kind is EventType.TRANSFER_STARTED:
        click.echo(f"   Starting private transfer (attempt {event.attempt})...")
    elif kind is EventType.TRANSFER_SUCCEEDED:
        click.echo(f"   ✅ Transfer result {details.get('transaction_id')}")
    elif kind is EventType.TRANSFER_FAILED:
        click.echo(f"   ❌ Transfer failed (attempt {event.attempt}): {event.reason}", err=True)
    elif kind is EventType.PACING_STARTED:
        click.echo(f"   Sleeping {details.get('delay_ms')} ms...")
    elif kind is EventType.PACING_FINISHED:
        click.echo("   Wake up!")
    elif kind in (EventType.SEARCH_FAILED, EventType.RETRIES_EXHAUSTED):
        click.echo(f"❌ {event.reason}", err=True)
    elif kind is EventType.RUN_HALTED:
        click.echo(
            f"❌ Run halted: {details.get('completed', 0)} transfers completed, "
            f"{details.get('remaining', 0)} recipients not attempted",
            err=True,
        )
    elif kind is EventType.RUN_COMPLETED:
        click.echo(f"\n🎉 Disbursed to {details.get('completed', 0)} recipients")


def _echo_json_event(event: DisbursementEvent) -> None:
    click.echo(event.to_json())


@click.command(context_settings={
    "help_option_names": ["-h", "--help"],
    # Lets values like "-5" reach the uint64 parser.
    "ignore_unknown_options": True,
})
@click.version_option(version=__version__)
@click.argument("args", nargs=-1)
@click.option("--block-hint", type=click.IntRange(min=0), default=None,
              help="Only search blocks [hint-1, hint+1) for records")
@click.option("--retry-delay-ms", type=click.IntRange(min=0), default=0,
              help="Delay between failed attempts (default: 0, retry immediately)")
@click.option("--policy", type=click.Choice(sorted(RETRY_POLICIES.keys())),
              default="same-records", show_default=True,
              help="Resubmit the same records on retry, or search again")
@click.option("--network", type=click.Choice([n.value for n in Network]),
              default=Network.TESTNET3.value, show_default=True, help="Aleo network")
@click.option("--node-url", default=DEFAULT_NODE_URL, show_default=True,
              help="Aleo node API base URL")
@click.option("--service-url", default=DEFAULT_SERVICE_URL, show_default=True,
              help="Aleo development service base URL (records and transfers)")
@click.option("--timeout", type=float, default=30.0, show_default=True,
              help="HTTP timeout in seconds")
@click.option("--json-events", is_flag=True, help="Print progress as JSON lines")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(
    args: tuple[str, ...],
    block_hint: Optional[int],
    retry_delay_ms: int,
    policy: str,
    network: str,
    node_url: str,
    service_url: str,
    timeout: float,
    json_events: bool,
    verbose: bool,
):
    """Send AMOUNT microcredits (plus FEE) privately to every address in a file."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        _check_arg_count(args)
    except ArgumentError:
        click.echo(USAGE)
        return

    raw_amount, raw_fee, raw_key, recipient_file, raw_retries, raw_delay = args
    try:
        amount = _parse_uint64("amount", raw_amount)
        fee = _parse_uint64("fee", raw_fee)
        max_retries = _parse_uint64("max retries", raw_retries)
        delay_ms = _parse_uint64("delay ms", raw_delay)
        identity = parse_private_key(raw_key)
        recipients = load_recipients(recipient_file)
        config = DisbursementConfig(
            amount=amount,
            fee=fee,
            max_retries=max_retries,
            delay_ms=delay_ms,
            retry_delay_ms=retry_delay_ms,
            block_hint=block_hint,
        )
    except ParseError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"❌ Invalid configuration: {e}", err=True)
        sys.exit(1)

    if not json_events:
        click.echo(f"Using private key: {identity.masked}")
        click.echo(f"   Amount:     {format_microcredits(amount)}")
        click.echo(f"   Fee:        {format_microcredits(fee)}")
        click.echo(f"   Recipients: {len(recipients)}")
        click.echo(f"   Retries:    {max_retries} ({policy})")

    client_config = AleoClientConfig(
        network=Network(network),
        node_url=node_url,
        service_url=service_url,
        timeout_seconds=timeout,
    )
    with AleoClient(config=client_config) as client:
        disburser = Disburser(
            client,
            config,
            policy=retry_policy_for(policy),
            listener=_echo_json_event if json_events else _echo_event,
        )
        report = disburser.run(identity, recipients)

    if report.halted:
        sys.exit(1)


if __name__ == "__main__":
    main()
