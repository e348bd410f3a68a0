"""Public interface for the ``spending_analysis`` package.

This module exposes the pipeline entry points and public models as the stable
import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import ImportResult, import_statement
from .categorize import (
    CategorizationEngine,
    CategoryRule,
    MatchKind,
    RuleSet,
    UserRuleStore,
    assign_manual,
    builtin_rules,
    new_user_rule,
)
from .errors import EmptyFile, EncodingError, InvalidFormat, MissingColumns
from .ingest import analyze_columns, normalize_rows, parse_delimited, resolve_mapping
from .models import (
    BankId,
    BillingFrequency,
    ColumnMapping,
    ColumnRole,
    ColumnType,
    CsvDialect,
    DetectedRecurringGroup,
    ParsedTable,
    RecurringDecision,
    RecurringKind,
    Subscription,
    Transaction,
    TransactionBadge,
)
from .recurring import detect_recurring, normalize_recipient
from .settings import DetectorSettings, NormalizerSettings, ValidationSettings
from .storage import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore
from .subscriptions import SubscriptionStore, confirm_candidates, mark_recurring
from .taxonomy import (
    DEFAULT_REGISTRY,
    CategoryRegistry,
    CustomSubcategoryStore,
    validate_rule_targets,
)
from .validation import find_suspicious, mark_suspicious

__all__ = [
    # Pipeline
    "import_statement",
    "ImportResult",
    "parse_delimited",
    "analyze_columns",
    "resolve_mapping",
    "normalize_rows",
    # Categorization
    "CategorizationEngine",
    "CategoryRule",
    "MatchKind",
    "RuleSet",
    "UserRuleStore",
    "assign_manual",
    "builtin_rules",
    "new_user_rule",
    "CategoryRegistry",
    "DEFAULT_REGISTRY",
    "CustomSubcategoryStore",
    "validate_rule_targets",
    # Recurring payments
    "detect_recurring",
    "normalize_recipient",
    "confirm_candidates",
    "mark_recurring",
    "SubscriptionStore",
    # Validation
    "find_suspicious",
    "mark_suspicious",
    # Storage
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqlKeyValueStore",
    # Errors
    "EmptyFile",
    "EncodingError",
    "InvalidFormat",
    "MissingColumns",
    # Models / settings
    "BankId",
    "BillingFrequency",
    "ColumnMapping",
    "ColumnRole",
    "ColumnType",
    "CsvDialect",
    "DetectedRecurringGroup",
    "ParsedTable",
    "RecurringDecision",
    "RecurringKind",
    "Subscription",
    "Transaction",
    "TransactionBadge",
    "DetectorSettings",
    "NormalizerSettings",
    "ValidationSettings",
]
