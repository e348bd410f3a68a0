"""Flag transactions worth a second look.

Four independent checks run over an imported batch: exact duplicates, near
duplicates a few days apart, large expenses and amounts far above what the
same recipient usually charges. Results are advisory; the user may dismiss
any of them.
"""

from __future__ import annotations

import statistics
from collections import Counter, defaultdict
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

from .logging_setup import get_logger
from .models import Transaction, TransactionBadge
from .recurring import normalize_recipient
from .settings import ValidationSettings

logger = get_logger("spending_analysis.validation")


class SuspiciousKind(StrEnum):
    EXACT_DUPLICATE = "exact_duplicate"
    NEAR_DUPLICATE = "near_duplicate"
    LARGE_TRANSACTION = "large_transaction"
    UNUSUAL_FOR_MERCHANT = "unusual_for_merchant"


class Severity(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


@dataclass(frozen=True, slots=True)
class SuspiciousTransaction:
    transaction_id: str
    kind: SuspiciousKind
    reason: str
    severity: Severity
    related_transaction_id: str | None = None


@dataclass(frozen=True, slots=True)
class ValidationReport:
    suspicious: tuple[SuspiciousTransaction, ...]
    counts: Counter[SuspiciousKind] = field(default_factory=Counter)

    @property
    def total(self) -> int:
        return len(self.suspicious)

    def for_transaction(self, transaction_id: str) -> list[SuspiciousTransaction]:
        return [s for s in self.suspicious if s.transaction_id == transaction_id]


def _fmt(amount: Decimal) -> str:
    return f"{abs(amount):,.2f} kr"


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def find_exact_duplicates(transactions: Iterable[Transaction]) -> list[SuspiciousTransaction]:
    out: list[SuspiciousTransaction] = []
    first_seen: dict[tuple[Decimal, str, str], Transaction] = {}
    for tx in transactions:
        key = (tx.amount, tx.description.casefold(), tx.date.isoformat())
        earlier = first_seen.get(key)
        if earlier is None:
            first_seen[key] = tx
            continue
        out.append(
            SuspiciousTransaction(
                transaction_id=tx.id,
                kind=SuspiciousKind.EXACT_DUPLICATE,
                reason=(
                    f"Exact duplicate of another transaction on {tx.date.isoformat()}"
                    f" for {_fmt(tx.amount)}"
                ),
                severity=Severity.HIGH,
                related_transaction_id=earlier.id,
            )
        )
    return out


def _similar(a: str, b: str) -> bool:
    return a[:10] == b[:10] or a in b or b in a


def find_near_duplicates(
    transactions: Iterable[Transaction], settings: ValidationSettings
) -> list[SuspiciousTransaction]:
    by_amount: defaultdict[Decimal, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        if tx.amount < 0:
            by_amount[tx.amount].append(tx)

    out: list[SuspiciousTransaction] = []
    for txs in by_amount.values():
        if len(txs) < 2:
            continue
        txs.sort(key=lambda t: (t.date, t.id))
        for first, second in zip(txs, txs[1:], strict=False):
            days = (second.date - first.date).days
            if days == 0 or days > settings.near_duplicate_days:
                continue
            a = normalize_recipient(first.description).casefold()
            b = normalize_recipient(second.description).casefold()
            if not _similar(a, b):
                continue
            plural = "" if days == 1 else "s"
            out.append(
                SuspiciousTransaction(
                    transaction_id=second.id,
                    kind=SuspiciousKind.NEAR_DUPLICATE,
                    reason=(
                        f"Similar to another {_fmt(second.amount)} transaction"
                        f" from {days} day{plural} earlier"
                    ),
                    severity=Severity.MEDIUM,
                    related_transaction_id=first.id,
                )
            )
    return out


def find_large_transactions(
    transactions: Iterable[Transaction], settings: ValidationSettings
) -> list[SuspiciousTransaction]:
    limit = settings.large_transaction_threshold
    return [
        SuspiciousTransaction(
            transaction_id=tx.id,
            kind=SuspiciousKind.LARGE_TRANSACTION,
            reason=f"Large transaction: {_fmt(tx.amount)} exceeds {_fmt(limit)} threshold",
            severity=Severity.LOW,
        )
        for tx in transactions
        if tx.amount < 0 and abs(tx.amount) >= limit
    ]


def find_unusual_for_merchant(
    transactions: Iterable[Transaction], settings: ValidationSettings
) -> list[SuspiciousTransaction]:
    by_merchant: defaultdict[str, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        if tx.amount < 0:
            by_merchant[normalize_recipient(tx.description)].append(tx)

    out: list[SuspiciousTransaction] = []
    for merchant, txs in by_merchant.items():
        if len(txs) < settings.min_merchant_transactions:
            continue
        amounts = [float(abs(t.amount)) for t in txs]
        median = statistics.median(amounts)
        stddev = statistics.pstdev(amounts)
        if stddev == 0:
            continue
        threshold = median + stddev * settings.unusual_stddev_multiplier
        for tx, amount in zip(txs, amounts, strict=True):
            if amount > threshold and amount > median * 2:
                out.append(
                    SuspiciousTransaction(
                        transaction_id=tx.id,
                        kind=SuspiciousKind.UNUSUAL_FOR_MERCHANT,
                        reason=(
                            f"Unusually high for {merchant}: {_fmt(tx.amount)}"
                            f" vs typical {median:,.2f} kr"
                        ),
                        severity=Severity.MEDIUM,
                    )
                )
    return out


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def find_suspicious(
    transactions: Sequence[Transaction], settings: ValidationSettings | None = None
) -> ValidationReport:
    """Run every check; one entry per ``(transaction, kind)``, most severe first."""

    settings = settings or ValidationSettings()
    found = [
        *find_exact_duplicates(transactions),
        *find_near_duplicates(transactions, settings),
        *find_large_transactions(transactions, settings),
        *find_unusual_for_merchant(transactions, settings),
    ]
    seen: set[tuple[str, SuspiciousKind]] = set()
    unique: list[SuspiciousTransaction] = []
    for item in found:
        key = (item.transaction_id, item.kind)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    unique.sort(key=lambda s: _SEVERITY_ORDER[s.severity])

    counts = Counter(s.kind for s in unique)
    if unique:
        logger.info("flagged %d suspicious transaction(s): %s", len(unique), dict(counts))
    return ValidationReport(suspicious=tuple(unique), counts=counts)


def mark_suspicious(
    transactions: Iterable[Transaction],
    report: ValidationReport,
    dismissed: Collection[str] = (),
) -> int:
    """Add the ``suspicious`` badge to flagged transactions not in ``dismissed``."""

    flagged = {s.transaction_id for s in report.suspicious} - set(dismissed)
    marked = 0
    for tx in transactions:
        if tx.id in flagged:
            tx.add_badge(TransactionBadge.SUSPICIOUS)
            marked += 1
    return marked


__all__ = [
    "Severity",
    "SuspiciousKind",
    "SuspiciousTransaction",
    "ValidationReport",
    "find_suspicious",
    "mark_suspicious",
]
