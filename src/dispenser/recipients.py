"""Recipient file loading."""

from __future__ import annotations

from pathlib import Path

from .errors import ParseError
from .identity import Address, parse_address


def load_recipients(path: Path | str) -> list[Address]:
    """Read one address per line, in file order.

    Any blank or malformed line aborts loading with a ``ParseError`` that
    names the line number.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise ParseError("recipient file", str(path), f"cannot read: {e}") from e
    except UnicodeDecodeError as e:
        raise ParseError("recipient file", str(path), f"not valid UTF-8: {e}") from e

    recipients: list[Address] = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            raise ParseError("recipient file", str(path), f"line {lineno} is blank")
        try:
            recipients.append(parse_address(line))
        except ParseError as e:
            raise ParseError("recipient file", str(path), f"line {lineno}: {e}") from e
    return recipients
