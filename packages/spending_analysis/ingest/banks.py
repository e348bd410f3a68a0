"""Per-bank description clean-up.

Each supported bank gets a ``BankProfile`` describing what its exports add to
the free-text description (card purchase prefixes, booking-date suffixes) so
the normalizer can strip it before categorization.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import BankId


@dataclass(frozen=True, slots=True)
class TextReplacement:
    """Replace ``pattern`` with ``replacement``; ``whole=True`` requires a full match."""

    pattern: re.Pattern[str]
    replacement: str
    whole: bool = False


@dataclass(frozen=True, slots=True)
class BankProfile:
    id: BankId
    name: str
    default_delimiter: str = ";"
    trim_description_at: str | None = None
    remove_patterns: tuple[re.Pattern[str], ...] = ()
    replacements: tuple[TextReplacement, ...] = ()

    def clean_description(self, description: str) -> str:
        """Apply this bank's clean-up to ``description``.

        Order: pattern removal, trim at the marker character (only when the
        marker is not the first character), whitespace collapse, replacements.
        Falls back to the collapsed input when nothing would remain.
        """

        collapsed = " ".join(description.split())
        result = collapsed
        for pattern in self.remove_patterns:
            result = pattern.sub("", result).strip()
        if self.trim_description_at:
            idx = result.find(self.trim_description_at)
            if idx > 0:
                result = result[:idx]
        result = " ".join(result.split())
        for rep in self.replacements:
            if rep.whole:
                if rep.pattern.fullmatch(result):
                    result = rep.replacement
            else:
                result = rep.pattern.sub(rep.replacement, result)
        return result or collapsed


_PROFILES: dict[BankId, BankProfile] = {
    BankId.SEB: BankProfile(
        id=BankId.SEB,
        name="SEB",
        trim_description_at="/",
        replacements=(TextReplacement(re.compile(r"sl", re.IGNORECASE), "SL", whole=True),),
    ),
    BankId.SWEDBANK: BankProfile(
        id=BankId.SWEDBANK,
        name="Swedbank",
        remove_patterns=(re.compile(r"\s+\d{2}-\d{2}-\d{2}$"),),
    ),
    BankId.NORDEA: BankProfile(
        id=BankId.NORDEA,
        name="Nordea",
        remove_patterns=(
            re.compile(r"^Kortköp \d{6}\s+", re.IGNORECASE),
            re.compile(r"^Reservation\s+", re.IGNORECASE),
        ),
    ),
    BankId.HANDELSBANKEN: BankProfile(id=BankId.HANDELSBANKEN, name="Handelsbanken"),
    BankId.OTHER: BankProfile(id=BankId.OTHER, name="Other / Unknown", default_delimiter=","),
}


def resolve_bank_id(bank: BankId | str) -> BankId:
    """Map ``bank`` to a ``BankId`` ignoring case and surrounding space.

    Raises ``ValueError`` for ids that name no known bank.
    """

    if isinstance(bank, BankId):
        return bank
    return BankId(bank.strip().casefold())


def bank_profile(bank: BankId | str) -> BankProfile:
    """Return the profile for ``bank``; raises ``ValueError`` for unknown ids."""

    return _PROFILES[resolve_bank_id(bank)]


def apply_bank_cleanup(description: str, bank: BankId | str | None) -> str:
    if bank is None:
        return " ".join(description.split())
    return bank_profile(bank).clean_description(description)


__all__ = [
    "BankProfile",
    "TextReplacement",
    "apply_bank_cleanup",
    "bank_profile",
    "resolve_bank_id",
]
