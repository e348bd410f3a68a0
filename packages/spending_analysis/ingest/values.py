"""Cell-level parsing of amounts and dates as they appear in bank exports."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

# Tried in order after the dialect's own layout. Day-first layouts come before
# the US month-first one, matching the banks we read.
DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%Y%m%d",
)

_COMPACT_DATE_RE = re.compile(r"^\d{8}$")
_ISO_WITH_TIME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})[ T]\d{1,2}:\d{2}")

_WHITESPACE_RE = re.compile(r"\s+")
_CURRENCY_RE = re.compile(r"(?i)(sek|eur|usd|nok|dkk|gbp|kr\.?|[€$£]|:-)")
_MINUS_CHARS = str.maketrans({"\u2212": "-", "\u2013": "-"})


def parse_date(raw: str, preferred: str | None = None) -> date | None:
    """Parse ``raw`` under ``preferred`` first, then the known fallbacks."""

    s = raw.strip()
    if not s:
        return None
    m = _ISO_WITH_TIME_RE.match(s)
    if m:
        s = m.group(1)
    formats = DATE_FORMATS if preferred is None else (preferred, *DATE_FORMATS)
    for fmt in formats:
        # strptime accepts 7-digit strings for %Y%m%d; require the full width
        if fmt == "%Y%m%d" and not _COMPACT_DATE_RE.match(s):
            continue
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _number_pattern(decimal_separator: str) -> re.Pattern[str]:
    group = "." if decimal_separator == "," else ","
    g, d = re.escape(group), re.escape(decimal_separator)
    return re.compile(rf"^(?:\d{{1,3}}(?:{g}\d{{3}})+|\d+)(?:{d}\d+)?$|^{d}\d+$")


_NUMBER_PATTERNS = {sep: _number_pattern(sep) for sep in (".", ",")}


def _is_comma_decimal(s: str) -> bool:
    # "-250,00" or "1.234,56" under the "." default: the last comma follows the
    # last period and its digit group is not a thousands group
    comma = s.rfind(",")
    if comma < 0 or comma < s.rfind("."):
        return False
    if len(s) - comma - 1 == 3:
        return False
    return bool(_NUMBER_PATTERNS[","].match(s))


def parse_amount(raw: str, decimal_separator: str = ".") -> Decimal | None:
    """Parse a money cell into a ``Decimal``; ``None`` when it is not a number.

    Handles grouping by spaces (including non-breaking and thin spaces),
    apostrophes or the opposite separator, currency markers, leading or
    trailing minus, the unicode minus sign and accounting parentheses. With
    the "." default a comma-decimal cell such as "-250,00" is still read when
    its last comma follows the last period and is not a thousands group.
    """

    if decimal_separator not in _NUMBER_PATTERNS:
        raise ValueError(f"unsupported decimal separator: {decimal_separator!r}")

    s = _WHITESPACE_RE.sub("", raw.translate(_MINUS_CHARS))
    s = s.replace("'", "").replace("\u2019", "")
    s = _CURRENCY_RE.sub("", s)
    if not s:
        return None

    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative, s = True, s[1:-1]
    if s.startswith(("-", "+")):
        negative, s = negative or s[0] == "-", s[1:]
    elif s.endswith("-"):
        negative, s = True, s[:-1]

    if not _NUMBER_PATTERNS[decimal_separator].match(s):
        if decimal_separator != "." or not _is_comma_decimal(s):
            return None
        decimal_separator = ","

    group = "." if decimal_separator == "," else ","
    s = s.replace(group, "").replace(decimal_separator, ".")
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return -value if negative else value


__all__ = ["DATE_FORMATS", "parse_amount", "parse_date"]
