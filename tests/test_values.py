from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from spending_analysis.ingest import parse_amount, parse_date


@pytest.mark.parametrize(
    ("raw", "sep", "expected"),
    [
        ("-1 234,56", ",", Decimal("-1234.56")),
        ("1.234,56", ",", Decimal("1234.56")),
        ("1,234.56", ".", Decimal("1234.56")),
        ("-109.00", ".", Decimal("-109.00")),
        ("(100.00)", ".", Decimal("-100.00")),
        ("250-", ",", Decimal("-250")),
        ("+42", ".", Decimal("42")),
        ("\u2212 50,5", ",", Decimal("-50.5")),
        ("1 000,00 kr", ",", Decimal("1000.00")),
        ("SEK 1'000.50", ".", Decimal("1000.50")),
        ("99:-", ",", Decimal("99")),
        (".5", ".", Decimal("0.5")),
    ],
)
def test_parse_amount_accepts_common_bank_notations(raw: str, sep: str, expected: Decimal) -> None:
    assert parse_amount(raw, sep) == expected


@pytest.mark.parametrize(
    ("raw", "sep"),
    [
        ("", ","),
        ("   ", "."),
        ("abc", "."),
        ("1.5", ","),
        ("1.234,567", "."),
        ("1,2.5", "."),
        ("1-2", "."),
    ],
)
def test_parse_amount_rejects_non_numbers(raw: str, sep: str) -> None:
    assert parse_amount(raw, sep) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("-250,00", Decimal("-250.00")),
        ("-42,50", Decimal("-42.50")),
        ("12,5", Decimal("12.5")),
        ("1,2345", Decimal("1.2345")),
        ("1.234,56", Decimal("1234.56")),
        ("1 234,56 kr", Decimal("1234.56")),
        ("1,234", Decimal("1234")),
        ("1,234.56", Decimal("1234.56")),
    ],
)
def test_comma_decimals_read_under_default_separator(raw: str, expected: Decimal) -> None:
    assert parse_amount(raw) == expected


def test_parse_amount_rejects_unknown_separator() -> None:
    with pytest.raises(ValueError, match="decimal separator"):
        parse_amount("1", ";")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-15", date(2024, 1, 15)),
        ("2024/01/15", date(2024, 1, 15)),
        ("15.01.2024", date(2024, 1, 15)),
        ("05/01/2024", date(2024, 1, 5)),
        ("01/15/2024", date(2024, 1, 15)),
        ("20240115", date(2024, 1, 15)),
        (" 2024-01-15 10:30 ", date(2024, 1, 15)),
    ],
)
def test_parse_date_known_layouts(raw: str, expected: date) -> None:
    assert parse_date(raw) == expected


def test_parse_date_prefers_dialect_layout() -> None:
    # Month-first when the export declares it, day-first otherwise
    assert parse_date("05/01/2024", "%m/%d/%Y") == date(2024, 5, 1)
    assert parse_date("05/01/2024") == date(2024, 1, 5)


@pytest.mark.parametrize("raw", ["", "2024-02-30", "2024011", "yesterday", "-109.00"])
def test_parse_date_rejects_invalid(raw: str) -> None:
    assert parse_date(raw) is None
