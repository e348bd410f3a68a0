"""Column classification and mapping suggestions.

``analyze_columns`` looks only at cell content and scores every column against
each ``ColumnType``. ``resolve_mapping`` combines those scores with a
dictionary of localized header names to suggest a ``ColumnMapping``. The
suggestion may be incomplete; the caller confirms or edits it.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from ..logging_setup import get_logger
from ..models import ColumnAnalysis, ColumnMapping, ColumnRole, ColumnType, ParsedTable
from .values import parse_amount, parse_date

logger = get_logger("spending_analysis.ingest.columns")

DETECTION_THRESHOLD = 0.8

# Tie order when two types score the same.
_TYPE_PRECEDENCE: tuple[ColumnType, ...] = (
    ColumnType.DATE,
    ColumnType.AMOUNT,
    ColumnType.DESCRIPTION,
    ColumnType.BALANCE,
)

_REFERENCE_DIGITS = 8
_BALANCE_MAGNITUDE = Decimal("1000")

# ---------------------------------------------------------------------------
# Content analysis
# ---------------------------------------------------------------------------


def _as_amount(cell: str, preferred_separator: str) -> Decimal | None:
    if cell.isdigit() and len(cell) >= _REFERENCE_DIGITS:
        return None
    for sep in (preferred_separator, "," if preferred_separator == "." else "."):
        value = parse_amount(cell, sep)
        if value is not None:
            return value
    return None


def _score_column(
    values: Sequence[str], date_format: str, separator: str
) -> dict[ColumnType, float]:
    scores = {t: 0.0 for t in ColumnType if t is not ColumnType.UNKNOWN}
    if not values:
        return scores

    dates = numbers = texts = 0
    negatives = 0
    magnitude = Decimal(0)
    for cell in values:
        if parse_date(cell, date_format) is not None:
            dates += 1
            continue
        amount = _as_amount(cell, separator)
        if amount is not None:
            numbers += 1
            magnitude += abs(amount)
            if amount < 0:
                negatives += 1
            continue
        if any(ch.isalpha() for ch in cell):
            texts += 1

    n = len(values)
    numeric = numbers / n
    scores[ColumnType.DATE] = dates / n
    scores[ColumnType.DESCRIPTION] = texts / n
    if numbers and not negatives and magnitude / numbers > _BALANCE_MAGNITUDE:
        scores[ColumnType.BALANCE] = numeric
        scores[ColumnType.AMOUNT] = numeric * 0.7
    else:
        scores[ColumnType.AMOUNT] = numeric
        scores[ColumnType.BALANCE] = numeric * 0.5
    return scores


def _pick_type(scores: dict[ColumnType, float]) -> tuple[ColumnType, float]:
    best, best_score = ColumnType.UNKNOWN, 0.0
    for kind in _TYPE_PRECEDENCE:
        if scores.get(kind, 0.0) > best_score:
            best, best_score = kind, scores[kind]
    if best_score < DETECTION_THRESHOLD:
        return ColumnType.UNKNOWN, best_score
    return best, best_score


def analyze_columns(table: ParsedTable, *, sample_size: int = 50) -> list[ColumnAnalysis]:
    """Score each column of ``table`` from its first ``sample_size`` rows."""

    if sample_size < 1:
        raise ValueError("sample_size must be positive")

    sample = table.rows[:sample_size]
    dialect = table.dialect
    analyses: list[ColumnAnalysis] = []
    for index in range(table.width):
        cells = [row[index].strip() for row in sample if index < len(row)]
        values = [c for c in cells if c]
        scores = _score_column(values, dialect.date_format, dialect.decimal_separator)
        detected, confidence = _pick_type(scores)
        analyses.append(
            ColumnAnalysis(
                index=index,
                name=table.column_name(index),
                sample_values=tuple(values[:5]),
                detected_type=detected,
                confidence=round(confidence, 4),
                scores=scores,
            )
        )
    return analyses


# ---------------------------------------------------------------------------
# Mapping resolution
# ---------------------------------------------------------------------------

# Matched after ``strip().casefold()``.
HEADER_ALIASES: dict[ColumnRole, frozenset[str]] = {
    ColumnRole.DATE: frozenset(
        {
            "bokföringsdatum",
            "bokföringsdag",
            "transaktionsdatum",
            "transaktionsdag",
            "reskontradatum",
            "datum",
            "date",
            "booking date",
            "transaction date",
            "posting date",
            "buchungstag",
            "buchungsdatum",
            "date d'opération",
            "date opération",
            "dato",
            "bogføringsdato",
            "bokføringsdato",
        }
    ),
    ColumnRole.VALUE_DATE: frozenset(
        {
            "valutadatum",
            "valutadag",
            "value date",
            "wertstellung",
            "date de valeur",
            "rentedato",
        }
    ),
    ColumnRole.DESCRIPTION: frozenset(
        {
            "text",
            "beskrivning",
            "transaktionstext",
            "rubrik",
            "meddelande",
            "mottagare",
            "description",
            "details",
            "payee",
            "verwendungszweck",
            "buchungstext",
            "libellé",
            "libelle",
            "tekst",
            "beskrivelse",
        }
    ),
    ColumnRole.AMOUNT: frozenset(
        {
            "belopp",
            "amount",
            "betrag",
            "umsatz",
            "montant",
            "beløb",
            "beløp",
        }
    ),
    ColumnRole.BALANCE: frozenset(
        {
            "saldo",
            "bokfört saldo",
            "balance",
            "kontostand",
            "solde",
        }
    ),
    ColumnRole.REFERENCE: frozenset(
        {
            "verifikationsnummer",
            "verifikation",
            "referens",
            "reference",
            "referenz",
            "référence",
            "referanse",
        }
    ),
}

# Content type used when a role was not found by header name.
_CONTENT_TYPE: dict[ColumnRole, ColumnType] = {
    ColumnRole.DATE: ColumnType.DATE,
    ColumnRole.VALUE_DATE: ColumnType.DATE,
    ColumnRole.DESCRIPTION: ColumnType.DESCRIPTION,
    ColumnRole.AMOUNT: ColumnType.AMOUNT,
    ColumnRole.BALANCE: ColumnType.BALANCE,
}


def role_for_header(header: str) -> ColumnRole | None:
    key = header.strip().casefold()
    for role, aliases in HEADER_ALIASES.items():
        if key in aliases:
            return role
    return None


def resolve_mapping(
    analyses: Sequence[ColumnAnalysis],
    headers: Sequence[str],
    *,
    threshold: float = DETECTION_THRESHOLD,
) -> ColumnMapping:
    """Suggest a role for each column.

    Header names win; remaining roles take the best-scoring unclaimed column
    whose score reaches ``threshold``. Reference columns are only found by
    name.
    """

    mapping = ColumnMapping()
    claimed: set[int] = set()

    for index, header in enumerate(headers):
        role = role_for_header(header)
        if role is None or mapping.index_for(role) is not None:
            continue
        mapping = mapping.with_role(role, index, how="header")
        claimed.add(index)

    # DATE before VALUE_DATE so the best date column becomes the booking date
    for role, kind in _CONTENT_TYPE.items():
        if mapping.index_for(role) is not None:
            continue
        candidates = [a for a in analyses if a.index not in claimed and a.score(kind) >= threshold]
        if not candidates:
            continue
        # max() keeps the leftmost column among equal scores
        best = max(candidates, key=lambda a: a.score(kind))
        mapping = mapping.with_role(role, best.index, how="content")
        claimed.add(best.index)

    missing = mapping.missing_roles()
    if missing:
        logger.info("column mapping incomplete; missing %s", ", ".join(r.value for r in missing))
    else:
        resolved = {r.value: i for r, i in mapping.assigned().items()}
        logger.debug("column mapping resolved: %s", resolved)
    return mapping


__all__ = [
    "DETECTION_THRESHOLD",
    "HEADER_ALIASES",
    "analyze_columns",
    "resolve_mapping",
    "role_for_header",
]
