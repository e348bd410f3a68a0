"""Rule-based transaction categorization.

Rules are tried in a single deterministic order: descending priority, and for
equal priority built-in rules (in definition order) before user rules (in the
order the user created them). The first matching rule assigns the category.

Manually assigned categories (``category_source == "manual"``) are never
overwritten by a categorization pass.
"""

from __future__ import annotations

import hashlib
import json
import re
import uuid
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum
from functools import cache, cached_property
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

from .logging_setup import get_logger
from .models import CategorySource, Transaction, TransactionBadge
from .rules_builtin import BUILTIN_RULE_ROWS
from .storage import KeyValueStore

logger = get_logger("spending_analysis.categorize")

USER_RULES_KEY = "category_rules.v1"


class MatchKind(StrEnum):
    EXACT = "exact"
    STARTS_WITH = "starts_with"
    CONTAINS = "contains"
    REGEX = "regex"


class RuleSource(StrEnum):
    BUILTIN = "builtin"
    USER = "user"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CategoryRule:
    """One description pattern mapped to a category.

    The compiled regex (for ``regex`` rules) is built on first use and kept on
    the instance. A user regex that fails to compile never matches; the
    failure is logged once per rule.
    """

    id: str
    pattern: str
    category_id: str
    subcategory_id: str | None = None
    match_kind: MatchKind = MatchKind.CONTAINS
    priority: int = 50
    source: RuleSource = RuleSource.USER

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("rule pattern must be non-empty")
        if not self.category_id:
            raise ValueError("rule category_id must be non-empty")
        object.__setattr__(self, "match_kind", MatchKind(self.match_kind))
        object.__setattr__(self, "source", RuleSource(self.source))

    @cached_property
    def _folded(self) -> str:
        return self.pattern.casefold()

    @cached_property
    def compiled(self) -> re.Pattern[str] | None:
        if self.match_kind is not MatchKind.REGEX:
            return None
        try:
            return re.compile(self.pattern, re.IGNORECASE)
        except re.error as exc:
            logger.warning("rule %s has an invalid pattern %r: %s", self.id, self.pattern, exc)
            return None

    def matches(self, description: str) -> bool:
        if self.match_kind is MatchKind.REGEX:
            rx = self.compiled
            return rx is not None and rx.search(description) is not None
        folded = description.casefold()
        if self.match_kind is MatchKind.EXACT:
            return folded == self._folded
        if self.match_kind is MatchKind.STARTS_WITH:
            return folded.startswith(self._folded)
        return self._folded in folded


def _builtin_rule_id(pattern: str, match_kind: str, category_id: str, subcategory_id: str) -> str:
    payload = json.dumps(
        [pattern, match_kind, category_id, subcategory_id],
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return "builtin-" + hashlib.sha256(payload.encode("utf-8")).hexdigest()[:12]


@cache
def builtin_rules() -> tuple[CategoryRule, ...]:
    """Built-in rules in definition order."""

    return tuple(
        CategoryRule(
            id=_builtin_rule_id(pattern, kind, cat, sub),
            pattern=pattern,
            category_id=cat,
            subcategory_id=sub,
            match_kind=MatchKind(kind),
            priority=priority,
            source=RuleSource.BUILTIN,
        )
        for pattern, cat, sub, kind, priority in BUILTIN_RULE_ROWS
    )


def new_user_rule(
    pattern: str,
    category_id: str,
    subcategory_id: str | None = None,
    *,
    match_kind: MatchKind | str = MatchKind.CONTAINS,
    priority: int = 50,
    rule_id: str | None = None,
) -> CategoryRule:
    """Create a user rule; the id is minted once and should then be persisted."""

    return CategoryRule(
        id=rule_id or f"user-{uuid.uuid4().hex}",
        pattern=pattern,
        category_id=category_id,
        subcategory_id=subcategory_id,
        match_kind=MatchKind(match_kind),
        priority=priority,
        source=RuleSource.USER,
    )


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Immutable snapshot of the rules in effect for one categorization pass."""

    builtin: tuple[CategoryRule, ...] = ()
    user: tuple[CategoryRule, ...] = ()

    @classmethod
    def default(cls, user: Iterable[CategoryRule] = ()) -> RuleSet:
        return cls(builtin=builtin_rules(), user=tuple(user))

    def ordered(self) -> tuple[CategoryRule, ...]:
        # sorted() is stable; built-ins come first in the input
        return tuple(sorted((*self.builtin, *self.user), key=lambda r: -r.priority))

    def __len__(self) -> int:
        return len(self.builtin) + len(self.user)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RuleMatch:
    rule: CategoryRule

    @property
    def category_id(self) -> str:
        return self.rule.category_id

    @property
    def subcategory_id(self) -> str | None:
        return self.rule.subcategory_id


@dataclass(slots=True)
class CategorizationSummary:
    total: int = 0
    categorized: int = 0
    uncategorized: int = 0
    manual: int = 0
    by_category: Counter[str] = field(default_factory=Counter)


class CategorizationEngine:
    """Apply a ``RuleSet`` snapshot to transactions.

    A plain iterable of rules is treated as user rules and evaluated together
    with the built-in table; pass a ``RuleSet`` to control both sides. The rule
    order is fixed at construction; later edits to the caller's rule
    collections do not affect an engine already in use.
    """

    def __init__(self, rules: RuleSet | Iterable[CategoryRule] | None = None) -> None:
        if rules is None:
            rules = RuleSet.default()
        elif not isinstance(rules, RuleSet):
            rules = RuleSet.default(rules)
        self._rules = rules.ordered()

    @property
    def rules(self) -> tuple[CategoryRule, ...]:
        return self._rules

    def match(self, description: str) -> RuleMatch | None:
        for rule in self._rules:
            if rule.matches(description):
                return RuleMatch(rule)
        return None

    def categorize(self, transactions: Iterable[Transaction]) -> CategorizationSummary:
        """Assign categories in place and return counts.

        Running the same engine twice over the same transactions leaves them
        unchanged the second time.
        """

        summary = CategorizationSummary()
        for tx in transactions:
            summary.total += 1
            if tx.category_source is CategorySource.MANUAL:
                summary.manual += 1
                if tx.category_id is not None:
                    summary.by_category[tx.category_id] += 1
                continue
            found = self.match(tx.description)
            if found is None:
                tx.category_id = None
                tx.subcategory_id = None
                tx.category_source = None
                tx.add_badge(TransactionBadge.UNCATEGORIZED)
                summary.uncategorized += 1
                continue
            tx.category_id = found.category_id
            tx.subcategory_id = found.subcategory_id
            tx.category_source = CategorySource.RULE
            tx.remove_badge(TransactionBadge.UNCATEGORIZED)
            summary.categorized += 1
            summary.by_category[found.category_id] += 1

        logger.info(
            "categorized %d of %d transaction(s) (%d manual, %d uncategorized)",
            summary.categorized,
            summary.total,
            summary.manual,
            summary.uncategorized,
        )
        return summary


def assign_manual(tx: Transaction, category_id: str, subcategory_id: str | None = None) -> None:
    """Record a user's choice; later categorization passes keep it."""

    if not category_id:
        raise ValueError("category_id must be non-empty")
    tx.category_id = category_id
    tx.subcategory_id = subcategory_id
    tx.category_source = CategorySource.MANUAL
    tx.remove_badge(TransactionBadge.UNCATEGORIZED)


def clear_manual(tx: Transaction) -> None:
    """Drop a manual choice so the next pass re-derives the category from rules."""

    if tx.category_source is not CategorySource.MANUAL:
        return
    tx.category_id = None
    tx.subcategory_id = None
    tx.category_source = None
    tx.add_badge(TransactionBadge.UNCATEGORIZED)


# ---------------------------------------------------------------------------
# User rule persistence
# ---------------------------------------------------------------------------


class StoredRule(BaseModel):
    """Persisted shape of a user rule."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    pattern: str
    category_id: str
    subcategory_id: str | None = None
    match_kind: MatchKind = MatchKind.CONTAINS
    priority: int = 50

    @field_validator("id", "pattern", "category_id")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    @classmethod
    def from_rule(cls, rule: CategoryRule) -> StoredRule:
        return cls(
            id=rule.id,
            pattern=rule.pattern,
            category_id=rule.category_id,
            subcategory_id=rule.subcategory_id,
            match_kind=rule.match_kind,
            priority=rule.priority,
        )

    def to_rule(self) -> CategoryRule:
        return CategoryRule(
            id=self.id,
            pattern=self.pattern,
            category_id=self.category_id,
            subcategory_id=self.subcategory_id,
            match_kind=self.match_kind,
            priority=self.priority,
            source=RuleSource.USER,
        )


_STORED_RULES = TypeAdapter(list[StoredRule])


class UserRuleStore:
    """Load and save user rules through a ``KeyValueStore``.

    The stored list keeps creation order, which is the tie-break order among
    user rules of equal priority.
    """

    def __init__(self, store: KeyValueStore, *, key: str = USER_RULES_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> tuple[CategoryRule, ...]:
        raw = self._store.get(self._key)
        if raw is None:
            return ()
        return tuple(s.to_rule() for s in _STORED_RULES.validate_json(raw))

    def save(self, rules: Sequence[CategoryRule]) -> None:
        ids = [r.id for r in rules]
        if len(set(ids)) != len(ids):
            raise ValueError("user rule ids must be unique")
        payload = _STORED_RULES.dump_json([StoredRule.from_rule(r) for r in rules])
        self._store.set(self._key, payload.decode("utf-8"))

    def add(self, rule: CategoryRule) -> tuple[CategoryRule, ...]:
        rules = self.load()
        if any(r.id == rule.id for r in rules):
            raise ValueError(f"rule {rule.id!r} already exists")
        updated = (*rules, replace(rule, source=RuleSource.USER))
        self.save(updated)
        return updated

    def update(self, rule_id: str, **changes: Any) -> CategoryRule:
        rules = list(self.load())
        for pos, rule in enumerate(rules):
            if rule.id == rule_id:
                if "id" in changes or "source" in changes:
                    raise ValueError("rule id and source cannot be changed")
                rules[pos] = replace(rule, **changes)
                self.save(rules)
                return rules[pos]
        raise KeyError(rule_id)

    def remove(self, rule_id: str) -> bool:
        rules = self.load()
        kept = tuple(r for r in rules if r.id != rule_id)
        if len(kept) == len(rules):
            return False
        self.save(kept)
        return True

    def rule_set(self) -> RuleSet:
        return RuleSet.default(self.load())


__all__ = [
    "CategorizationEngine",
    "CategorizationSummary",
    "CategoryRule",
    "MatchKind",
    "RuleMatch",
    "RuleSet",
    "RuleSource",
    "StoredRule",
    "USER_RULES_KEY",
    "UserRuleStore",
    "assign_manual",
    "builtin_rules",
    "clear_manual",
    "new_user_rule",
]
