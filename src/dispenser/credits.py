"""Credit conversion helpers using fixed microcredit precision."""

from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR


MICROCREDITS_PER_CREDIT = 1_000_000
UINT64_MAX = 2**64 - 1
_CREDIT_QUANT = Decimal("0.000001")


def credits_to_microcredits(value: Decimal | float | int | str) -> int:
    """Convert credits to microcredits, rounding down (never overspend)."""
    dec = Decimal(str(value)).quantize(_CREDIT_QUANT, rounding=ROUND_FLOOR)
    return int(dec * MICROCREDITS_PER_CREDIT)


def microcredits_to_credits(value: int) -> Decimal:
    """Convert integer microcredits to Decimal credits."""
    return (Decimal(value) / Decimal(MICROCREDITS_PER_CREDIT)).quantize(_CREDIT_QUANT)


def format_microcredits(value: int) -> str:
    """Format microcredits with the credit equivalent, for display."""
    return f"{value} microcredits ({microcredits_to_credits(value)} credits)"
