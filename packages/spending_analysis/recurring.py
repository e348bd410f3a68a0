"""Recurring payment detection.

``detect_recurring`` groups expenses by a normalized recipient name, infers a
billing frequency from the gaps between payments and scores each group on
four components (amount stability, timing, number of occurrences and overall
pattern clarity). Groups scoring below ``DetectorSettings.min_confidence`` are
dropped. The detector never modifies the transactions it reads; tagging is
done by the caller after confirmation (see ``subscriptions.mark_recurring``).
"""

from __future__ import annotations

import calendar
import hashlib
import math
import re
import statistics
import unicodedata
from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from .logging_setup import get_logger, log_stage
from .models import (
    AmountType,
    BillingFrequency,
    ConfidenceLevel,
    DetectedRecurringGroup,
    ScoreBreakdown,
    Transaction,
)
from .settings import DetectorSettings

logger = get_logger("spending_analysis.recurring")

# ----------------------------------------------------------------------------
# Recipient normalization
# ----------------------------------------------------------------------------

_LEADING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^(?:KORTKÖP|KORTKOP|AUTOGIRO|BG|PG|SWISH|BETALNING|ÖVERFÖRING|OVERFORING|INSÄTTNING"
        r"|CARD PURCHASE|DIRECT DEBIT)\b\s*",
        re.IGNORECASE,
    ),
    re.compile(r"^\d{4}-\d{2}-\d{2}\s*"),
    re.compile(r"^(?:\*{4}|[Xx]{4})\d{4}\s*"),
    re.compile(r"^[A-Z]{2}\d{6,}\s*"),
)

_EMBEDDED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s\d{4}-\d{2}-\d{2}(?=\s)"),
    re.compile(r"\s(?:\*{4}|[Xx]{4})\d{4}(?=\s)"),
)

_TRAILING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s+\d{4}-\d{2}-\d{2}$"),
    re.compile(r"\s+/\d{2}-\d{2}-\d{2}$"),
    re.compile(r"\s+[A-Z]{2,3}\d{4,}$"),
    re.compile(r"\s+[A-Z]\d{4,}$"),
    re.compile(r"\s+\d{3,4}$"),
    re.compile(r"\s*\*+\s*$"),
)

# Dropped from the end only while another word remains.
_TRAILING_TOKENS = frozenset(
    {
        "se",
        "swe",
        "gb",
        "us",
        "ie",
        "nl",
        "lu",
        "dk",
        "no",
        "fi",
        "de",
        "stockholm",
        "sthlm",
        "göteborg",
        "goteborg",
        "malmö",
        "malmo",
        "uppsala",
    }
)

_TITLE_BREAKS = frozenset(" -/")


def _title_case(s: str) -> str:
    out: list[str] = []
    upper_next = True
    for ch in s.lower():
        if ch in _TITLE_BREAKS:
            out.append(ch)
            upper_next = True
        elif upper_next:
            out.append(ch.upper())
            upper_next = False
        else:
            out.append(ch)
    return "".join(out)


def normalize_recipient(description: str) -> str:
    """Reduce a bank description to a display-ready recipient name.

    Strips payment-method prefixes, dates, masked card numbers, reference
    codes and trailing location tokens, then collapses whitespace and
    title-cases the result. Returns the trimmed input when nothing would be
    left.
    """

    original = " ".join(unicodedata.normalize("NFKC", description).split())
    s = original
    for rx in _LEADING_PATTERNS:
        s = rx.sub("", s)
    for rx in _EMBEDDED_PATTERNS:
        s = rx.sub(" ", s)
    for rx in _TRAILING_PATTERNS:
        s = rx.sub("", s).strip()

    words = s.split()
    while len(words) > 1 and words[-1].casefold() in _TRAILING_TOKENS:
        words.pop()
    s = " ".join(words)

    return _title_case(s) if s else original


# ----------------------------------------------------------------------------
# Recipient grouping
# ----------------------------------------------------------------------------


class _DisjointSet:
    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, a: int) -> int:
        parent = self.parent
        while parent[a] != a:
            parent[a] = parent[parent[a]]
            a = parent[a]
        return a

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # lower index stays root so merged groups are deterministic
            if rb < ra:
                ra, rb = rb, ra
            self.parent[rb] = ra


def _common_prefix_len(a: str, b: str) -> int:
    n = 0
    for x, y in zip(a, b, strict=False):
        if x != y:
            break
        n += 1
    return n


def _is_word_prefix(short: str, long: str, min_length: int) -> bool:
    """``short`` starts ``long`` and ends on a word boundary of it."""

    if len(short) < min_length or len(short) >= len(long) or not long.startswith(short):
        return False
    return not long[len(short)].isalnum() or not short[-1].isalnum()


@dataclass(slots=True)
class _Bucket:
    key: str
    names: Counter[str]
    transactions: list[Transaction]
    typical: Decimal = Decimal(0)


def _similar_amounts(a: _Bucket, b: _Bucket) -> bool:
    high = max(a.typical, b.typical)
    if high == 0:
        return True
    return float(abs(a.typical - b.typical) / high) <= AMOUNT_TOLERANCES["loose"]


def _link_sorted(
    order: Sequence[int],
    keys: Sequence[str],
    buckets: Sequence[_Bucket],
    ds: _DisjointSet,
    settings: DetectorSettings,
    *,
    shared_prefix: bool,
) -> None:
    """Union buckets whose keys, visited in sorted order, name the same payee.

    ``keys[pos]`` is the (possibly reversed) key of ``buckets[order[pos]]``.
    Keys sharing ``merge_prefix_length`` leading characters are contiguous once
    sorted, so comparing neighbours covers them. Word prefixes are found with
    a stack of the keys that prefix the current one; its depth is bounded by
    the length of a key.
    """

    open_prefixes: list[int] = []
    for pos, idx in enumerate(order):
        key = keys[pos]
        if shared_prefix and pos:
            prev = order[pos - 1]
            near = _common_prefix_len(keys[pos - 1], key) >= settings.merge_prefix_length
            if near and _similar_amounts(buckets[prev], buckets[idx]):
                ds.union(prev, idx)
        while open_prefixes and not key.startswith(keys[open_prefixes[-1]]):
            open_prefixes.pop()
        for p in open_prefixes:
            other = order[p]
            word = _is_word_prefix(keys[p], key, settings.min_containment_length)
            if word and _similar_amounts(buckets[other], buckets[idx]):
                ds.union(other, idx)
        open_prefixes.append(pos)


def _group_by_recipient(
    expenses: Iterable[Transaction], settings: DetectorSettings
) -> list[tuple[str, str, list[Transaction]]]:
    """Return ``(group_key, display_name, transactions)`` for each merged bucket.

    Names merge when one is a whole-word prefix or suffix of the other, or when
    they share a long common prefix, and only while their typical amounts are
    within the loose amount tolerance of each other. Sorting dominates: the
    cost is O(k log k) over the ``k`` distinct names for names of bounded
    length.
    """

    by_key: dict[str, _Bucket] = {}
    for tx in expenses:
        name = normalize_recipient(tx.description)
        key = name.casefold()
        if not key:
            continue
        bucket = by_key.get(key)
        if bucket is None:
            bucket = by_key[key] = _Bucket(key=key, names=Counter(), transactions=[])
        bucket.names[name] += 1
        bucket.transactions.append(tx)

    keys = sorted(by_key)
    buckets = [by_key[k] for k in keys]
    for bucket in buckets:
        bucket.typical = statistics.median(abs(t.amount) for t in bucket.transactions)

    ds = _DisjointSet(len(keys))
    _link_sorted(range(len(keys)), keys, buckets, ds, settings, shared_prefix=True)
    by_suffix = sorted(range(len(keys)), key=lambda i: keys[i][::-1])
    _link_sorted(
        by_suffix, [keys[i][::-1] for i in by_suffix], buckets, ds, settings, shared_prefix=False
    )

    members: defaultdict[int, list[int]] = defaultdict(list)
    for i in range(len(keys)):
        members[ds.find(i)].append(i)

    groups: list[tuple[str, str, list[Transaction]]] = []
    for root in sorted(members):
        names: Counter[str] = Counter()
        txs: list[Transaction] = []
        for i in members[root]:
            names.update(buckets[i].names)
            txs.extend(buckets[i].transactions)
        display = min(names, key=lambda n: (-names[n], len(n), n))
        groups.append(("|".join(keys[i] for i in members[root]), display, txs))
    return groups


# ----------------------------------------------------------------------------
# Frequency and amount analysis
# ----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FrequencyBand:
    frequency: BillingFrequency
    expected_gap: int
    tolerance: int
    min_occurrences: int


FREQUENCY_BANDS: tuple[FrequencyBand, ...] = (
    FrequencyBand(BillingFrequency.WEEKLY, 7, 2, 4),
    FrequencyBand(BillingFrequency.BIWEEKLY, 14, 3, 3),
    FrequencyBand(BillingFrequency.MONTHLY, 30, 5, 3),
    FrequencyBand(BillingFrequency.QUARTERLY, 91, 10, 2),
    FrequencyBand(BillingFrequency.YEARLY, 365, 15, 2),
)

# Relative deviation bounds: strict and normal count as fixed amounts.
AMOUNT_TOLERANCES = {"strict": 0.05, "normal": 0.15, "loose": 0.25}


def detect_frequency(gaps: Sequence[int]) -> tuple[FrequencyBand | None, float]:
    """Return the band closest to the median gap and the share of gaps inside it."""

    if not gaps:
        return None, 0.0
    median_gap = statistics.median(gaps)
    best: FrequencyBand | None = None
    best_distance = math.inf
    for band in FREQUENCY_BANDS:
        distance = abs(median_gap - band.expected_gap)
        if distance <= band.tolerance * 2 and distance < best_distance:
            best, best_distance = band, distance
    if best is None:
        return None, 0.0
    inside = sum(1 for g in gaps if abs(g - best.expected_gap) <= best.tolerance)
    return best, inside / len(gaps)


@dataclass(frozen=True, slots=True)
class AmountAnalysis:
    core: Decimal
    variance: float
    amount_type: AmountType
    matching: int


def analyze_amounts(amounts: Sequence[Decimal]) -> AmountAnalysis | None:
    """Median-based amount stability; ``None`` when the core amount is zero."""

    absolute = [abs(a) for a in amounts]
    core = statistics.median(absolute)
    if core == 0:
        return None
    variance = float(statistics.median([abs(a - core) / core for a in absolute]))
    if variance <= AMOUNT_TOLERANCES["strict"]:
        tolerance, kind = AMOUNT_TOLERANCES["strict"], AmountType.FIXED
    elif variance <= AMOUNT_TOLERANCES["normal"]:
        tolerance, kind = AMOUNT_TOLERANCES["normal"], AmountType.FIXED
    else:
        tolerance, kind = AMOUNT_TOLERANCES["loose"], AmountType.VARIABLE
    matching = sum(1 for a in absolute if float(abs(a - core) / core) <= tolerance)
    return AmountAnalysis(core=core, variance=variance, amount_type=kind, matching=matching)


# ----------------------------------------------------------------------------
# Billing day
# ----------------------------------------------------------------------------


def _is_weekly(frequency: BillingFrequency) -> bool:
    return frequency in (BillingFrequency.WEEKLY, BillingFrequency.BIWEEKLY)


def expected_billing_day(dates: Sequence[date], frequency: BillingFrequency) -> int:
    """Most common weekday (weekly kinds, 0=Monday) or day of month; ties pick the smallest."""

    days = [d.weekday() if _is_weekly(frequency) else d.day for d in dates]
    counts = Counter(days)
    return min(counts, key=lambda d: (-counts[d], d))


def day_consistency(
    dates: Sequence[date], frequency: BillingFrequency, billing_day: int, tolerance: int
) -> float:
    """Share of dates within ``tolerance`` days of ``billing_day``, measured cyclically."""

    if not dates:
        return 0.0
    hits = 0
    for d in dates:
        if _is_weekly(frequency):
            diff, cycle = abs(d.weekday() - billing_day), 7
        else:
            cycle = calendar.monthrange(d.year, d.month)[1]
            diff = abs(d.day - min(billing_day, cycle))
        if min(diff, cycle - diff) <= tolerance:
            hits += 1
    return hits / len(dates)


def _add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year, month = d.year + month_index // 12, month_index % 12 + 1
    return date(year, month, min(d.day, calendar.monthrange(year, month)[1]))


def next_expected_date(last: date, frequency: BillingFrequency) -> date:
    match frequency:
        case BillingFrequency.WEEKLY:
            return last + timedelta(days=7)
        case BillingFrequency.BIWEEKLY:
            return last + timedelta(days=14)
        case BillingFrequency.MONTHLY:
            return _add_months(last, 1)
        case BillingFrequency.QUARTERLY:
            return _add_months(last, 3)
        case BillingFrequency.YEARLY:
            return _add_months(last, 12)
    raise ValueError(f"unknown billing frequency: {frequency!r}")


# ----------------------------------------------------------------------------
# Scoring
# ----------------------------------------------------------------------------


def _banded(value: float, bands: Sequence[tuple[float, int]], floor: int) -> int:
    for threshold, points in bands:
        if value >= threshold:
            return points
    return floor


def amount_score(variance: float) -> int:
    for limit, points in ((0.02, 30), (0.05, 25), (0.10, 20), (0.15, 15), (0.25, 10)):
        if variance <= limit:
            return points
    return 5


def timing_score(consistency: float) -> int:
    return _banded(consistency, ((0.95, 30), (0.90, 25), (0.80, 20), (0.70, 15), (0.60, 10)), 5)


def occurrence_score(count: int) -> int:
    return _banded(count, ((10, 20), (6, 15), (4, 10), (3, 7)), 4)


def clarity_score(has_frequency: bool, consistency: float, match_ratio: float) -> int:
    if has_frequency and consistency >= 0.8 and match_ratio >= 0.8:
        return 20
    if has_frequency and consistency >= 0.6 and match_ratio >= 0.6:
        return 15
    return 10 if has_frequency else 5


def confidence_level(score: int) -> ConfidenceLevel:
    if score >= 75:
        return ConfidenceLevel.HIGH
    if score >= 50:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


# ----------------------------------------------------------------------------
# Detection
# ----------------------------------------------------------------------------

_CENTS = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _group_id(group_key: str) -> str:
    return "rec-" + hashlib.sha256(group_key.encode("utf-8")).hexdigest()[:16]


def _unanimous(values: Iterable[str | None]) -> str | None:
    distinct = set(values)
    if len(distinct) == 1:
        return next(iter(distinct))
    return None


def _evaluate_group(
    group_key: str,
    name: str,
    txs: list[Transaction],
    settings: DetectorSettings,
) -> DetectedRecurringGroup | None:
    ordered = sorted(txs, key=lambda t: (t.date, t.id))
    dates = [t.date for t in ordered]
    gaps = [(b - a).days for a, b in zip(dates, dates[1:], strict=False)]

    band, gap_consistency = detect_frequency(gaps)
    if band is None:
        logger.debug("%s: no billing frequency fits gaps %s", name, gaps)
        return None
    if len(ordered) < band.min_occurrences:
        logger.debug("%s: %d occurrence(s) too few for %s", name, len(ordered), band.frequency)
        return None

    amounts = analyze_amounts([t.amount for t in ordered])
    if amounts is None or amounts.matching < math.ceil(len(ordered) / 2):
        logger.debug("%s: amounts too irregular", name)
        return None

    billing_day = expected_billing_day(dates, band.frequency)
    day_share = day_consistency(dates, band.frequency, billing_day, settings.billing_day_tolerance)
    timing = (gap_consistency + day_share) / 2

    breakdown = ScoreBreakdown(
        amount=amount_score(amounts.variance),
        timing=timing_score(timing),
        occurrences=occurrence_score(len(ordered)),
        clarity=clarity_score(True, timing, amounts.matching / len(ordered)),
    )
    score = max(0, min(100, breakdown.total))
    if score < settings.min_confidence:
        logger.debug("%s: confidence %d below %d", name, score, settings.min_confidence)
        return None

    absolute = [abs(t.amount) for t in ordered]
    return DetectedRecurringGroup(
        id=_group_id(group_key),
        recipient_name=name,
        transaction_ids=tuple(t.id for t in ordered),
        min_amount=_money(min(absolute)),
        max_amount=_money(max(absolute)),
        average_amount=_money(sum(absolute, Decimal(0)) / len(absolute)),
        typical_amount=_money(amounts.core),
        frequency=band.frequency,
        expected_billing_day=billing_day,
        confidence=score,
        confidence_level=confidence_level(score),
        amount_variance=round(amounts.variance * 100, 2),
        amount_type=amounts.amount_type,
        first_seen=dates[0],
        last_seen=dates[-1],
        next_expected_date=next_expected_date(dates[-1], band.frequency),
        score_breakdown=breakdown,
        category_id=_unanimous(t.category_id for t in ordered),
        subcategory_id=_unanimous(t.subcategory_id for t in ordered),
    )


def detect_recurring(
    transactions: Iterable[Transaction],
    settings: DetectorSettings | None = None,
) -> list[DetectedRecurringGroup]:
    """Find recurring expense candidates, highest confidence first."""

    settings = settings or DetectorSettings()
    with log_stage(logger, "detect_recurring"):
        expenses = [t for t in transactions if t.amount < 0]
        groups = _group_by_recipient(expenses, settings)
        found: list[DetectedRecurringGroup] = []
        for group_key, name, txs in groups:
            if len(txs) < settings.min_occurrences:
                continue
            candidate = _evaluate_group(group_key, name, txs, settings)
            if candidate is not None:
                found.append(candidate)

    found.sort(key=lambda g: (-g.confidence, g.recipient_name))
    logger.info(
        "found %d recurring candidate(s) among %d expense(s) in %d recipient group(s)",
        len(found),
        len(expenses),
        len(groups),
    )
    return found


__all__ = [
    "AMOUNT_TOLERANCES",
    "FREQUENCY_BANDS",
    "FrequencyBand",
    "amount_score",
    "analyze_amounts",
    "clarity_score",
    "confidence_level",
    "day_consistency",
    "detect_frequency",
    "detect_recurring",
    "expected_billing_day",
    "next_expected_date",
    "normalize_recipient",
    "occurrence_score",
    "timing_score",
]
