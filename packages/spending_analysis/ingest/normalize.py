"""Turn parsed rows into ``Transaction`` records.

Rows that cannot be interpreted (missing cells, unparseable date or amount)
are collected as ``SkippedRow`` entries; the batch always completes.
"""

from __future__ import annotations

import hashlib
import json
from collections import Counter
from collections.abc import Sequence

from ..logging_setup import get_logger
from ..models import (
    BankId,
    ColumnMapping,
    ColumnRole,
    NormalizationResult,
    ParsedTable,
    SkippedRow,
    Transaction,
    TransactionBadge,
)
from ..settings import NormalizerSettings
from .banks import apply_bank_cleanup
from .values import parse_amount, parse_date

logger = get_logger("spending_analysis.ingest.normalize")


class _SkipRow(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def compute_transaction_id(cells: Sequence[str], ordinal: int) -> str:
    """Stable id over the verbatim cells plus the count of identical earlier rows.

    Identical rows in one file (two coffees on the same day) get distinct ids;
    re-importing the same file yields the same ids.
    """

    payload = json.dumps(
        {"cells": list(cells), "ordinal": ordinal},
        ensure_ascii=False,
        sort_keys=True,
        separators=(",", ":"),
    )
    return "txn-" + hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def _raw_keys(table: ParsedTable, row_len: int) -> list[str]:
    keys: list[str] = []
    seen: set[str] = set()
    for i in range(max(row_len, len(table.headers))):
        key = table.column_name(i)
        if key in seen:
            key = f"{key}_{i + 1}"
        seen.add(key)
        keys.append(key)
    return keys


def _required_cell(row: Sequence[str], idx: int, role: ColumnRole) -> str:
    if idx >= len(row):
        raise _SkipRow(f"missing {role.value} cell")
    return row[idx]


def _optional_cell(row: Sequence[str], idx: int | None) -> str | None:
    if idx is None or idx >= len(row):
        return None
    value = row[idx].strip()
    return value or None


def _check_mapping(table: ParsedTable, mapping: ColumnMapping) -> None:
    missing = mapping.missing_roles()
    if missing:
        names = ", ".join(r.value for r in missing)
        raise ValueError(f"column mapping is incomplete; missing {names}")
    width = table.width
    for role, idx in mapping.assigned().items():
        if idx < 0 or idx >= width:
            raise ValueError(
                f"column index {idx} for {role.value} is outside the table width {width}"
            )


def normalize_rows(
    table: ParsedTable,
    mapping: ColumnMapping,
    *,
    bank: BankId | str | None = None,
    settings: NormalizerSettings | None = None,
) -> NormalizationResult:
    """Convert every data row of ``table`` into a ``Transaction``.

    Raises ``ValueError`` when ``mapping`` lacks a required role or points
    outside the table. Row numbers in ``SkippedRow`` are 1-based positions
    among the data rows.
    """

    _check_mapping(table, mapping)
    settings = settings or NormalizerSettings()
    dialect = table.dialect
    date_idx = mapping.date
    amount_idx = mapping.amount
    desc_idx = mapping.description
    assert date_idx is not None and amount_idx is not None and desc_idx is not None

    seen: Counter[tuple[str, ...]] = Counter()
    transactions: list[Transaction] = []
    skipped: list[SkippedRow] = []

    for row_number, row in enumerate(table.rows, start=1):
        ordinal = seen[row]
        seen[row] += 1
        try:
            date_cell = _required_cell(row, date_idx, ColumnRole.DATE)
            booked = parse_date(date_cell, dialect.date_format)
            if booked is None:
                raise _SkipRow(f"unparseable date {date_cell.strip()!r}")

            amount_cell = _required_cell(row, amount_idx, ColumnRole.AMOUNT)
            amount = parse_amount(amount_cell, dialect.decimal_separator)
            if amount is None:
                raise _SkipRow(f"unparseable amount {amount_cell.strip()!r}")
            if dialect.amount_sign == "inverted":
                amount = -amount

            original = _required_cell(row, desc_idx, ColumnRole.DESCRIPTION).strip()
        except _SkipRow as skip:
            logger.debug("skipping row %d: %s", row_number, skip.reason)
            skipped.append(SkippedRow(row_number=row_number, reason=skip.reason))
            continue

        value_cell = _optional_cell(row, mapping.value_date)
        value_date = (parse_date(value_cell, dialect.date_format) if value_cell else None) or booked
        balance_cell = _optional_cell(row, mapping.balance)
        balance = parse_amount(balance_cell, dialect.decimal_separator) if balance_cell else None

        keys = _raw_keys(table, len(row))
        tx = Transaction(
            id=compute_transaction_id(row, ordinal),
            date=booked,
            value_date=value_date,
            amount=amount,
            description=apply_bank_cleanup(original, bank),
            original_description=original,
            raw=dict(zip(keys, row, strict=False)),
            row_number=row_number,
            balance=balance,
            reference=_optional_cell(row, mapping.reference) or "",
        )
        if amount > 0:
            tx.add_badge(TransactionBadge.INCOME)
        if abs(amount) >= settings.high_value_threshold:
            tx.add_badge(TransactionBadge.HIGH_VALUE)
        tx.add_badge(TransactionBadge.UNCATEGORIZED)
        transactions.append(tx)

    logger.info(
        "normalized %d transaction(s), skipped %d row(s)",
        len(transactions),
        len(skipped),
    )
    return NormalizationResult(transactions=transactions, skipped=tuple(skipped))


__all__ = ["compute_transaction_id", "normalize_rows"]
