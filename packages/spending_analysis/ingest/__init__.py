"""Statement ingestion: parsing, column detection and row normalization."""

from .banks import BankProfile, apply_bank_cleanup, bank_profile, resolve_bank_id
from .columns import analyze_columns, resolve_mapping
from .delimited import parse_delimited
from .normalize import compute_transaction_id, normalize_rows
from .values import parse_amount, parse_date

__all__ = [
    "BankProfile",
    "analyze_columns",
    "apply_bank_cleanup",
    "bank_profile",
    "compute_transaction_id",
    "normalize_rows",
    "parse_amount",
    "parse_date",
    "parse_delimited",
    "resolve_bank_id",
    "resolve_mapping",
]
