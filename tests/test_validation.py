from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from spending_analysis.models import TransactionBadge
from spending_analysis.settings import ValidationSettings
from spending_analysis.validation import (
    Severity,
    SuspiciousKind,
    find_exact_duplicates,
    find_large_transactions,
    find_near_duplicates,
    find_suspicious,
    find_unusual_for_merchant,
    mark_suspicious,
)
from tests.helpers.factories import make_tx


def test_exact_duplicate_flags_later_copy() -> None:
    first = make_tx("ICA MAXI", "-45", "2024-01-15")
    second = make_tx("ica maxi", "-45", "2024-01-15")
    other_day = make_tx("ICA MAXI", "-45", "2024-01-16")

    (flag,) = find_exact_duplicates([first, second, other_day])

    assert flag.transaction_id == second.id
    assert flag.related_transaction_id == first.id
    assert flag.severity is Severity.HIGH


def test_near_duplicate_within_window() -> None:
    a = make_tx("SPOTIFY", "-119", "2024-01-05")
    b = make_tx("SPOTIFY AB", "-119", "2024-01-07")
    far = make_tx("SPOTIFY", "-119", "2024-01-20")
    different = make_tx("NETFLIX.COM", "-119", "2024-01-21")

    flags = find_near_duplicates([a, b, far, different], ValidationSettings())

    assert [(f.transaction_id, f.related_transaction_id) for f in flags] == [(b.id, a.id)]
    assert flags[0].kind is SuspiciousKind.NEAR_DUPLICATE
    assert "2 days earlier" in flags[0].reason


def test_large_expenses_only() -> None:
    big = make_tx("CAR DEALER", "-75000", "2024-01-15")
    salary = make_tx("LÖN", "30000", "2024-01-25")
    small = make_tx("ICA", "-100", "2024-01-15")

    (flag,) = find_large_transactions([big, salary, small], ValidationSettings())

    assert flag.transaction_id == big.id
    assert flag.severity is Severity.LOW
    assert "75,000.00 kr" in flag.reason


def test_unusual_amount_for_merchant() -> None:
    start = date(2024, 1, 1)
    usual = [make_tx("ICA MAXI", "-100", start + timedelta(weeks=i)) for i in range(10)]
    spike = make_tx("ICA MAXI", "-1000", start + timedelta(weeks=10))

    (flag,) = find_unusual_for_merchant([*usual, spike], ValidationSettings())

    assert flag.transaction_id == spike.id
    assert flag.kind is SuspiciousKind.UNUSUAL_FOR_MERCHANT


def test_constant_merchant_amounts_are_not_unusual() -> None:
    txs = [make_tx("SL", "-42", date(2024, 1, 1) + timedelta(days=i)) for i in range(5)]

    assert find_unusual_for_merchant(txs, ValidationSettings()) == []


def test_find_suspicious_orders_by_severity() -> None:
    first = make_tx("ICA", "-45", "2024-01-15")
    copy = make_tx("ICA", "-45", "2024-01-15")
    big = make_tx("CAR DEALER", "-75000", "2024-01-15")

    report = find_suspicious([first, copy, big])

    assert [s.severity for s in report.suspicious] == [Severity.HIGH, Severity.LOW]
    assert report.total == 2
    assert report.counts[SuspiciousKind.EXACT_DUPLICATE] == 1
    assert [s.kind for s in report.for_transaction(big.id)] == [SuspiciousKind.LARGE_TRANSACTION]


def test_thresholds_come_from_settings() -> None:
    tx = make_tx("TV", "-999", "2024-01-15")

    report = find_suspicious([tx], ValidationSettings(large_transaction_threshold=Decimal("500")))

    assert report.total == 1


def test_mark_suspicious_respects_dismissed() -> None:
    first = make_tx("ICA", "-45", "2024-01-15")
    copy = make_tx("ICA", "-45", "2024-01-15")
    big = make_tx("CAR DEALER", "-75000", "2024-01-15")
    report = find_suspicious([first, copy, big])

    marked = mark_suspicious([first, copy, big], report, dismissed={big.id})

    assert marked == 1
    assert copy.has_badge(TransactionBadge.SUSPICIOUS)
    assert not big.has_badge(TransactionBadge.SUSPICIOUS)
    assert not first.has_badge(TransactionBadge.SUSPICIOUS)
