"""Data models and type aliases for ``spending_analysis``.

Records produced by the pipeline are ``dataclass`` instances: parsed tables,
column analyses and detector candidates are frozen; ``Transaction`` keeps its
core fields fixed by convention but exposes the classification fields
(category, badges, recurring kind) for later stages and the host UI to update.

Configuration and anything that is persisted as JSON is a pydantic model so
that values read back from storage are validated.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ColumnType(StrEnum):
    DATE = "date"
    AMOUNT = "amount"
    DESCRIPTION = "description"
    BALANCE = "balance"
    UNKNOWN = "unknown"


class ColumnRole(StrEnum):
    DATE = "date"
    VALUE_DATE = "value_date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    BALANCE = "balance"
    REFERENCE = "reference"


REQUIRED_ROLES: tuple[ColumnRole, ...] = (
    ColumnRole.DATE,
    ColumnRole.DESCRIPTION,
    ColumnRole.AMOUNT,
)


class BankId(StrEnum):
    SEB = "seb"
    SWEDBANK = "swedbank"
    NORDEA = "nordea"
    HANDELSBANKEN = "handelsbanken"
    OTHER = "other"


class TransactionBadge(StrEnum):
    """Status tags surfaced to the presentation layer."""

    INCOME = "income"
    UNCATEGORIZED = "uncategorized"
    HIGH_VALUE = "high_value"
    SUBSCRIPTION = "subscription"
    RECURRING_EXPENSE = "recurring_expense"
    SUSPICIOUS = "suspicious"


class CategorySource(StrEnum):
    RULE = "rule"
    MANUAL = "manual"


class BillingFrequency(StrEnum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class RecurringKind(StrEnum):
    """Classification of a confirmed recurring payment."""

    SUBSCRIPTION = "subscription"  # cancellable service
    RECURRING_EXPENSE = "recurring_expense"  # fixed cost: rent, loan, insurance


class RecurringDecision(StrEnum):
    """Answer returned by the external confirmation step for one candidate."""

    SUBSCRIPTION = "subscription"
    FIXED_EXPENSE = "fixed_expense"
    SKIP = "skip"


class ConfidenceLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AmountType(StrEnum):
    FIXED = "fixed"
    VARIABLE = "variable"


# ---------------------------------------------------------------------------
# Parsing configuration and parsed tables
# ---------------------------------------------------------------------------


class CsvDialect(BaseModel):
    """Conventions needed to read one export file.

    ``date_format`` is a ``strptime`` layout tried before the built-in
    fallbacks. ``amount_sign="inverted"`` is for exports that list money out
    as positive numbers (typical for card statements); the normalizer flips
    those so negative always means money out.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    delimiter: str = ";"
    has_header: bool = True
    encoding: str = "utf-8"
    date_format: str = "%Y-%m-%d"
    decimal_separator: str = "."
    amount_sign: str = "signed"

    @field_validator("delimiter")
    @classmethod
    def _single_character(cls, v: str) -> str:
        if len(v) != 1 or v in {'"', "\r", "\n"}:
            raise ValueError("delimiter must be a single character other than a quote or newline")
        return v

    @field_validator("decimal_separator")
    @classmethod
    def _known_separator(cls, v: str) -> str:
        if v not in {".", ","}:
            raise ValueError("decimal_separator must be '.' or ','")
        return v

    @field_validator("amount_sign")
    @classmethod
    def _known_sign(cls, v: str) -> str:
        if v not in {"signed", "inverted"}:
            raise ValueError("amount_sign must be 'signed' or 'inverted'")
        return v

    @field_validator("encoding")
    @classmethod
    def _non_empty_encoding(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("encoding must be non-empty")
        return v.strip()


DEFAULT_DIALECT = CsvDialect()


@dataclass(frozen=True, slots=True)
class ParsedTable:
    """Header names plus the grid of string cells, exactly as read.

    ``rows`` may contain rows whose length differs from ``width``; the
    normalizer decides what to do with them.
    """

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    dialect: CsvDialect = DEFAULT_DIALECT

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        if self.headers:
            return len(self.headers)
        return len(self.rows[0]) if self.rows else 0

    @property
    def ragged_row_count(self) -> int:
        width = self.width
        return sum(1 for r in self.rows if len(r) != width)

    def column_name(self, index: int) -> str:
        if index < len(self.headers) and self.headers[index].strip():
            return self.headers[index].strip()
        return f"column_{index + 1}"


# ---------------------------------------------------------------------------
# Column analysis and mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnAnalysis:
    index: int
    name: str
    sample_values: tuple[str, ...]
    detected_type: ColumnType
    confidence: float
    scores: Mapping[ColumnType, float] = field(default_factory=dict)

    def score(self, kind: ColumnType) -> float:
        return self.scores.get(kind, 0.0)


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Column index per semantic role; ``None`` when the role is unmapped.

    ``resolved_by`` records how each mapped role was found: ``"header"``,
    ``"content"`` or ``"manual"``.
    """

    date: int | None = None
    value_date: int | None = None
    description: int | None = None
    amount: int | None = None
    balance: int | None = None
    reference: int | None = None
    resolved_by: Mapping[ColumnRole, str] = field(default_factory=dict)

    def index_for(self, role: ColumnRole) -> int | None:
        return getattr(self, role.value)

    def with_role(
        self, role: ColumnRole, index: int | None, *, how: str = "manual"
    ) -> ColumnMapping:
        sources = dict(self.resolved_by)
        if index is None:
            sources.pop(role, None)
        else:
            sources[role] = how
        return replace(self, **{role.value: index}, resolved_by=sources)

    def missing_roles(self) -> list[ColumnRole]:
        return [r for r in REQUIRED_ROLES if self.index_for(r) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing_roles()

    def assigned(self) -> dict[ColumnRole, int]:
        out: dict[ColumnRole, int] = {}
        for role in ColumnRole:
            idx = self.index_for(role)
            if idx is not None:
                out[role] = idx
        return out

    @classmethod
    def from_names(cls, headers: Sequence[str], **names: str | None) -> ColumnMapping:
        """Build a manual mapping from header names (matched after trimming).

        Keyword names are role values (``date=``, ``amount=``...). Raises
        ``ValueError`` for unknown roles or header names not present.
        """

        lookup = {h.strip().casefold(): i for i, h in enumerate(headers)}
        values: dict[str, int | None] = {}
        sources: dict[ColumnRole, str] = {}
        for key, name in names.items():
            try:
                role = ColumnRole(key)
            except ValueError as exc:
                raise ValueError(f"unknown column role: {key!r}") from exc
            if name is None:
                values[role.value] = None
                continue
            idx = lookup.get(name.strip().casefold())
            if idx is None:
                raise ValueError(f"header {name!r} not found for role {role.value}")
            values[role.value] = idx
            sources[role] = "manual"
        return cls(**values, resolved_by=sources)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@dataclass(slots=True, eq=False)
class Transaction:
    """A normalized bank transaction.

    ``id``, dates, ``amount``, descriptions and ``raw`` are fixed when the row
    is normalized. ``amount`` is negative for money out and positive for money
    in. The remaining fields are classification state owned by later stages.
    """

    id: str
    date: date
    value_date: date
    amount: Decimal
    description: str
    original_description: str
    raw: Mapping[str, str]
    row_number: int
    balance: Decimal | None = None
    reference: str = ""
    category_id: str | None = None
    subcategory_id: str | None = None
    category_source: CategorySource | None = None
    recurring_kind: RecurringKind | None = None
    badges: list[TransactionBadge] = field(default_factory=list)

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @property
    def is_categorized(self) -> bool:
        return self.category_id is not None

    def has_badge(self, badge: TransactionBadge) -> bool:
        return badge in self.badges

    def add_badge(self, badge: TransactionBadge) -> None:
        if badge not in self.badges:
            self.badges.append(badge)

    def remove_badge(self, badge: TransactionBadge) -> None:
        if badge in self.badges:
            self.badges.remove(badge)


@dataclass(frozen=True, slots=True)
class SkippedRow:
    """A data row dropped during normalization; ``row_number`` is 1-based."""

    row_number: int
    reason: str


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    transactions: list[Transaction]
    skipped: tuple[SkippedRow, ...] = ()

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


# ---------------------------------------------------------------------------
# Recurring payments
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    amount: int
    timing: int
    occurrences: int
    clarity: int

    @property
    def total(self) -> int:
        return self.amount + self.timing + self.occurrences + self.clarity


@dataclass(frozen=True, slots=True)
class DetectedRecurringGroup:
    """A recurring-payment candidate awaiting external confirmation.

    Produced fresh on every detection run; never persisted as-is. Amounts are
    absolute values. ``expected_billing_day`` is a day of month (1-31), or a
    weekday (0=Monday) for weekly and biweekly groups.
    """

    id: str
    recipient_name: str
    transaction_ids: tuple[str, ...]
    min_amount: Decimal
    max_amount: Decimal
    average_amount: Decimal
    typical_amount: Decimal
    frequency: BillingFrequency
    expected_billing_day: int
    confidence: int
    confidence_level: ConfidenceLevel
    amount_variance: float
    amount_type: AmountType
    first_seen: date
    last_seen: date
    next_expected_date: date
    score_breakdown: ScoreBreakdown
    category_id: str | None = None
    subcategory_id: str | None = None

    @property
    def occurrence_count(self) -> int:
        return len(self.transaction_ids)


class Subscription(BaseModel):
    """A confirmed recurring payment, persisted through a key-value store."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str
    name: str
    amount: Decimal
    billing_day: int
    frequency: BillingFrequency = BillingFrequency.MONTHLY
    kind: RecurringKind = RecurringKind.SUBSCRIPTION
    category_id: str | None = None
    subcategory_id: str | None = None
    transaction_ids: list[str] = Field(default_factory=list)
    confidence: int | None = None
    created_at: datetime
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _name_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("name must be non-empty")
        return v

    @field_validator("amount")
    @classmethod
    def _amount_non_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError("amount must be a finite, non-negative number")
        return v

    @field_validator("billing_day")
    @classmethod
    def _billing_day_range(cls, v: int) -> int:
        if not 0 <= v <= 31:
            raise ValueError("billing_day must be within 0..31")
        return v


__all__ = [
    "AmountType",
    "BankId",
    "BillingFrequency",
    "CategorySource",
    "ColumnAnalysis",
    "ColumnMapping",
    "ColumnRole",
    "ColumnType",
    "ConfidenceLevel",
    "CsvDialect",
    "DEFAULT_DIALECT",
    "DetectedRecurringGroup",
    "NormalizationResult",
    "ParsedTable",
    "REQUIRED_ROLES",
    "RecurringDecision",
    "RecurringKind",
    "ScoreBreakdown",
    "SkippedRow",
    "Subscription",
    "Transaction",
    "TransactionBadge",
]
