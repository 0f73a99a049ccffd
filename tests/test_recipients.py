"""Tests for recipient file loading."""

import pytest

from dispenser.errors import ParseError
from dispenser.recipients import load_recipients


A = "aleo1" + "q" * 58
B = "aleo1" + "p" * 58
C = "aleo1" + "z" * 58


def test_loads_in_file_order(tmp_path):
    path = tmp_path / "recipients.txt"
    path.write_text(f"{B}\n{A}\n{C}\n")
    assert [r.value for r in load_recipients(path)] == [B, A, C]


def test_empty_file_has_no_recipients(tmp_path):
    path = tmp_path / "recipients.txt"
    path.write_text("")
    assert load_recipients(path) == []


def test_blank_line_aborts(tmp_path):
    path = tmp_path / "recipients.txt"
    path.write_text(f"{A}\n\n{B}\n")
    with pytest.raises(ParseError, match="line 2 is blank"):
        load_recipients(path)


def test_malformed_line_aborts(tmp_path):
    path = tmp_path / "recipients.txt"
    path.write_text(f"{A}\nnot-an-address\n")
    with pytest.raises(ParseError, match="line 2"):
        load_recipients(path)


def test_non_utf8_file_aborts(tmp_path):
    path = tmp_path / "recipients.txt"
    path.write_bytes(b"\xff\xfe" + A.encode())
    with pytest.raises(ParseError, match="not valid UTF-8"):
        load_recipients(path)


def test_missing_file(tmp_path):
    with pytest.raises(ParseError, match="cannot read"):
        load_recipients(tmp_path / "missing.txt")
