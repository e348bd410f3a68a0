"""Tunable thresholds for the normalizer, the detector and the validation checks.

Defaults match the behaviour users of the statement import are used to; hosts
may pass their own instances. ``DetectorSettings.from_env`` applies the
``SPENDING_ANALYSIS_*`` environment overrides.
"""

from __future__ import annotations

import os
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

_MIN_CONFIDENCE_ENV = "SPENDING_ANALYSIS_MIN_CONFIDENCE"
_MIN_OCCURRENCES_ENV = "SPENDING_ANALYSIS_MIN_OCCURRENCES"


class NormalizerSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    high_value_threshold: Decimal = Field(default=Decimal("5000"), gt=0)


class DetectorSettings(BaseModel):
    """Recurring-payment detector thresholds.

    ``merge_prefix_length`` and ``min_containment_length`` control when two
    normalized recipient names are treated as the same payee.
    ``billing_day_tolerance`` is measured in days, cyclically around the month
    (or week for weekly frequencies).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_confidence: int = Field(default=70, ge=0, le=100)
    min_occurrences: int = Field(default=2, ge=2)
    merge_prefix_length: int = Field(default=8, ge=1)
    min_containment_length: int = Field(default=4, ge=1)
    billing_day_tolerance: int = Field(default=3, ge=0)

    @classmethod
    def from_env(cls, **overrides: int) -> DetectorSettings:
        values: dict[str, int] = {}
        for env_name, key in (
            (_MIN_CONFIDENCE_ENV, "min_confidence"),
            (_MIN_OCCURRENCES_ENV, "min_occurrences"),
        ):
            raw = os.getenv(env_name)
            if raw is None or not raw.strip():
                continue
            try:
                values[key] = int(raw.strip())
            except ValueError as exc:
                raise ValueError(f"{env_name} must be an integer, got {raw!r}") from exc
        values.update(overrides)
        return cls(**values)


class ValidationSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    large_transaction_threshold: Decimal = Field(default=Decimal("5000"), gt=0)
    near_duplicate_days: int = Field(default=3, ge=1)
    unusual_stddev_multiplier: float = Field(default=3.0, gt=0)
    min_merchant_transactions: int = Field(default=3, ge=2)


__all__ = ["DetectorSettings", "NormalizerSettings", "ValidationSettings"]
