"""Confirmed recurring payments.

Detection produces candidates; the host asks the user to confirm each one and
passes the answers to ``confirm_candidates``. Confirmed entries are kept in a
``KeyValueStore`` as JSON and are never regenerated from detection output.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import TypeAdapter

from .logging_setup import get_logger
from .models import (
    BillingFrequency,
    DetectedRecurringGroup,
    RecurringDecision,
    RecurringKind,
    Subscription,
    Transaction,
    TransactionBadge,
)
from .storage import KeyValueStore

logger = get_logger("spending_analysis.subscriptions")

SUBSCRIPTIONS_KEY = "confirmed_subscriptions.v1"

_KIND_FOR_DECISION = {
    RecurringDecision.SUBSCRIPTION: RecurringKind.SUBSCRIPTION,
    RecurringDecision.FIXED_EXPENSE: RecurringKind.RECURRING_EXPENSE,
}

_BADGE_FOR_KIND = {
    RecurringKind.SUBSCRIPTION: TransactionBadge.SUBSCRIPTION,
    RecurringKind.RECURRING_EXPENSE: TransactionBadge.RECURRING_EXPENSE,
}

# ---------------------------------------------------------------------------
# Confirmation
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ConfirmationResult:
    subscriptions: list[Subscription] = field(default_factory=list)
    tags: dict[str, RecurringKind] = field(default_factory=dict)


def confirm_candidates(
    candidates: Sequence[DetectedRecurringGroup],
    decisions: Mapping[str, RecurringDecision | str],
    *,
    now: datetime | None = None,
) -> ConfirmationResult:
    """Turn confirmed candidates into ``Subscription`` records.

    ``decisions`` maps candidate id to the user's answer. Candidates that are
    skipped or have no answer produce nothing. ``tags`` maps every transaction
    id of a confirmed candidate to its kind, for ``mark_recurring``.
    """

    created_at = now or datetime.now(UTC)
    known = {c.id for c in candidates}
    for stray in sorted(set(decisions) - known):
        logger.warning("decision for unknown candidate %s ignored", stray)

    result = ConfirmationResult()
    for candidate in candidates:
        raw = decisions.get(candidate.id)
        if raw is None:
            continue
        kind = _KIND_FOR_DECISION.get(RecurringDecision(raw))
        if kind is None:
            continue
        result.subscriptions.append(
            Subscription(
                id=candidate.id,
                name=candidate.recipient_name,
                amount=candidate.typical_amount,
                billing_day=candidate.expected_billing_day,
                frequency=candidate.frequency,
                kind=kind,
                category_id=candidate.category_id,
                subcategory_id=candidate.subcategory_id,
                transaction_ids=list(candidate.transaction_ids),
                confidence=candidate.confidence,
                created_at=created_at,
            )
        )
        for tx_id in candidate.transaction_ids:
            result.tags[tx_id] = kind
    return result


def mark_recurring(transactions: Iterable[Transaction], tags: Mapping[str, RecurringKind]) -> int:
    """Tag transactions listed in ``tags``; returns how many were tagged."""

    tagged = 0
    for tx in transactions:
        kind = tags.get(tx.id)
        if kind is None:
            continue
        for other_kind, badge in _BADGE_FOR_KIND.items():
            if other_kind is not kind:
                tx.remove_badge(badge)
        tx.recurring_kind = kind
        tx.add_badge(_BADGE_FOR_KIND[kind])
        tagged += 1
    return tagged


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

_SUBSCRIPTION_LIST = TypeAdapter(list[Subscription])


class SubscriptionStore:
    """Confirmed subscriptions kept under one key of a ``KeyValueStore``."""

    def __init__(self, store: KeyValueStore, *, key: str = SUBSCRIPTIONS_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> list[Subscription]:
        raw = self._store.get(self._key)
        if raw is None:
            return []
        return _SUBSCRIPTION_LIST.validate_json(raw)

    def save(self, subscriptions: Sequence[Subscription]) -> None:
        ids = [s.id for s in subscriptions]
        if len(set(ids)) != len(ids):
            raise ValueError("subscription ids must be unique")
        payload = _SUBSCRIPTION_LIST.dump_json(list(subscriptions))
        self._store.set(self._key, payload.decode("utf-8"))

    def add_confirmed(self, subscriptions: Iterable[Subscription]) -> list[Subscription]:
        """Insert new entries; an entry with an existing id replaces it in place."""

        current = self.load()
        positions = {s.id: i for i, s in enumerate(current)}
        for sub in subscriptions:
            pos = positions.get(sub.id)
            if pos is None:
                positions[sub.id] = len(current)
                current.append(sub)
            else:
                current[pos] = sub
        self.save(current)
        return current

    def update(self, subscription_id: str, **changes: Any) -> Subscription:
        """Apply field changes (validated); raises ``KeyError`` for unknown ids."""

        if "id" in changes:
            raise ValueError("subscription id cannot be changed")
        current = self.load()
        for pos, sub in enumerate(current):
            if sub.id == subscription_id:
                updated = Subscription.model_validate({**sub.model_dump(), **changes})
                current[pos] = updated
                self.save(current)
                return updated
        raise KeyError(subscription_id)

    def set_active(self, subscription_id: str, active: bool) -> Subscription:
        return self.update(subscription_id, is_active=active)

    def remove(self, subscription_id: str) -> bool:
        current = self.load()
        kept = [s for s in current if s.id != subscription_id]
        if len(kept) == len(current):
            return False
        self.save(kept)
        return True


# ---------------------------------------------------------------------------
# Reporting helpers
# ---------------------------------------------------------------------------

_MONTHLY_FACTOR: dict[BillingFrequency, Decimal] = {
    BillingFrequency.WEEKLY: Decimal(52) / Decimal(12),
    BillingFrequency.BIWEEKLY: Decimal(26) / Decimal(12),
    BillingFrequency.MONTHLY: Decimal(1),
    BillingFrequency.QUARTERLY: Decimal(1) / Decimal(3),
    BillingFrequency.YEARLY: Decimal(1) / Decimal(12),
}


def monthly_cost(subscriptions: Iterable[Subscription]) -> Decimal:
    """Sum of active subscriptions expressed per month, rounded to cents."""

    total = sum(
        (s.amount * _MONTHLY_FACTOR[s.frequency] for s in subscriptions if s.is_active),
        Decimal(0),
    )
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def group_by_subcategory(
    subscriptions: Iterable[Subscription],
) -> dict[str | None, list[Subscription]]:
    groups: dict[str | None, list[Subscription]] = {}
    for sub in subscriptions:
        groups.setdefault(sub.subcategory_id, []).append(sub)
    return groups


__all__ = [
    "ConfirmationResult",
    "SUBSCRIPTIONS_KEY",
    "SubscriptionStore",
    "confirm_candidates",
    "group_by_subcategory",
    "mark_recurring",
    "monthly_cost",
]
