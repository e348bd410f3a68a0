"""End-to-end statement import.

``import_statement`` runs parse, column detection, mapping, normalization,
categorization and recurring detection in order. It returns either a complete
``ImportResult`` or the first batch-fatal error; no partially processed
transactions are ever handed back.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .categorize import CategorizationEngine, CategorizationSummary, CategoryRule, RuleSet
from .errors import EmptyFile, EncodingError, InvalidFormat, MissingColumns
from .ingest.banks import bank_profile, resolve_bank_id
from .ingest.columns import analyze_columns, resolve_mapping
from .ingest.delimited import parse_delimited
from .ingest.normalize import normalize_rows
from .logging_setup import get_logger, log_stage
from .models import (
    BankId,
    ColumnAnalysis,
    ColumnMapping,
    ColumnRole,
    CsvDialect,
    DetectedRecurringGroup,
    ParsedTable,
    SkippedRow,
    Transaction,
)
from .recurring import detect_recurring
from .settings import DetectorSettings, NormalizerSettings

logger = get_logger("spending_analysis.api")


@dataclass(frozen=True, slots=True)
class ImportResult:
    transactions: list[Transaction]
    skipped: tuple[SkippedRow, ...]
    mapping: ColumnMapping
    columns: tuple[ColumnAnalysis, ...]
    candidates: list[DetectedRecurringGroup]
    categorization: CategorizationSummary
    ragged_rows: int = 0


def _unusable_roles(table: ParsedTable, mapping: ColumnMapping) -> list[ColumnRole]:
    out = mapping.missing_roles()
    out.extend(r for r, idx in mapping.assigned().items() if not 0 <= idx < table.width)
    return out


def import_statement(
    content: str | bytes,
    dialect: CsvDialect | None = None,
    *,
    mapping: ColumnMapping | None = None,
    bank: BankId | str | None = None,
    rules: RuleSet | Iterable[CategoryRule] | None = None,
    detector_settings: DetectorSettings | None = None,
    normalizer_settings: NormalizerSettings | None = None,
) -> ImportResult | EmptyFile | InvalidFormat | EncodingError | MissingColumns:
    """Import one exported statement.

    Without an explicit ``dialect`` the bank's default delimiter is used (or
    ``;`` when no bank is given). ``mapping`` overrides the detected column
    mapping. ``rules`` defaults to the built-in rule set; a plain iterable is
    added to the built-in rules as user rules. Whatever is passed is
    snapshotted before categorization starts. An unknown ``bank`` id is
    reported as ``InvalidFormat``.
    """

    if bank:
        try:
            bank = resolve_bank_id(bank)
        except ValueError:
            logger.warning("unknown bank id %r", bank)
            return InvalidFormat(details=f"unknown bank {bank!r}")
    else:
        bank = None

    if dialect is None:
        if bank:
            dialect = CsvDialect(delimiter=bank_profile(bank).default_delimiter)
        else:
            dialect = CsvDialect()

    with log_stage(logger, "parse"):
        parsed = parse_delimited(content, dialect)
    if not isinstance(parsed, ParsedTable):
        return parsed
    table = parsed

    columns = tuple(analyze_columns(table))
    if mapping is None:
        mapping = resolve_mapping(columns, table.headers)
    missing = _unusable_roles(table, mapping)
    if missing:
        return MissingColumns(missing=tuple(missing), available=tuple(table.headers))

    with log_stage(logger, "normalize"):
        normalized = normalize_rows(table, mapping, bank=bank, settings=normalizer_settings)

    engine = CategorizationEngine(rules)
    with log_stage(logger, "categorize"):
        summary = engine.categorize(normalized.transactions)

    candidates = detect_recurring(normalized.transactions, detector_settings)

    logger.info(
        "imported %d transaction(s) from %d row(s); %d skipped, %d recurring candidate(s)",
        len(normalized.transactions),
        table.row_count,
        normalized.skipped_count,
        len(candidates),
    )
    return ImportResult(
        transactions=normalized.transactions,
        skipped=normalized.skipped,
        mapping=mapping,
        columns=columns,
        candidates=candidates,
        categorization=summary,
        ragged_rows=table.ragged_row_count,
    )


__all__ = ["ImportResult", "import_statement"]
