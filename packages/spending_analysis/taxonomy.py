"""Category taxonomy used to validate rule targets.

The taxonomy is owned by the host application; the package only needs to know
which ``(category_id, subcategory_id)`` pairs exist. ``DEFAULT_REGISTRY``
mirrors the two-level taxonomy the built-in rules are written against. Users
may add their own subcategories under the built-in categories; those are kept
by ``CustomSubcategoryStore`` and merged in with
``CategoryRegistry.with_subcategories``.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Protocol

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

from .logging_setup import get_logger
from .storage import KeyValueStore

logger = get_logger("spending_analysis.taxonomy")

CUSTOM_SUBCATEGORIES_KEY = "custom_subcategories.v1"


@dataclass(frozen=True, slots=True)
class Subcategory:
    id: str
    name: str
    is_custom: bool = False


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    icon: str = ""
    color: str = "#6b7280"
    subcategories: tuple[Subcategory, ...] = ()

    def has_subcategory(self, subcategory_id: str) -> bool:
        return any(s.id == subcategory_id for s in self.subcategories)

    def has_subcategory_named(self, name: str) -> bool:
        wanted = name.strip().casefold()
        return any(s.name.casefold() == wanted for s in self.subcategories)


@dataclass(frozen=True, slots=True)
class CategoryRegistry:
    version: str
    categories: tuple[Category, ...]
    _by_id: Mapping[str, Category] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id: dict[str, Category] = {}
        for cat in self.categories:
            if cat.id in by_id:
                raise ValueError(f"duplicate category id: {cat.id!r}")
            by_id[cat.id] = cat
        object.__setattr__(self, "_by_id", by_id)

    def get(self, category_id: str) -> Category | None:
        return self._by_id.get(category_id)

    def contains(self, category_id: str, subcategory_id: str | None = None) -> bool:
        cat = self._by_id.get(category_id)
        if cat is None:
            return False
        return subcategory_id is None or cat.has_subcategory(subcategory_id)

    def with_subcategories(self, custom: Iterable[CustomSubcategory]) -> CategoryRegistry:
        """Return a registry with ``custom`` appended to their parent categories.

        Entries whose parent is unknown are logged and left out; an id already
        present under the parent is not added twice.
        """

        extra: dict[str, list[Subcategory]] = {}
        for sub in custom:
            cat = self._by_id.get(sub.parent_category_id)
            if cat is None:
                logger.warning(
                    "custom subcategory %s: unknown parent category %r",
                    sub.id,
                    sub.parent_category_id,
                )
                continue
            pending = extra.setdefault(cat.id, [])
            if cat.has_subcategory(sub.id) or any(s.id == sub.id for s in pending):
                continue
            pending.append(Subcategory(sub.id, sub.name, is_custom=True))

        if not extra:
            return self
        categories = tuple(
            replace(cat, subcategories=(*cat.subcategories, *extra[cat.id]))
            if cat.id in extra
            else cat
            for cat in self.categories
        )
        return CategoryRegistry(version=self.version, categories=categories)


class RuleTarget(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def category_id(self) -> str: ...

    @property
    def subcategory_id(self) -> str | None: ...


def validate_rule_targets(rules: Iterable[RuleTarget], registry: CategoryRegistry) -> list[str]:
    """Return one message per rule whose target is unknown to ``registry``."""

    problems: list[str] = []
    for rule in rules:
        cat = registry.get(rule.category_id)
        if cat is None:
            problems.append(f"rule {rule.id}: unknown category {rule.category_id!r}")
        elif rule.subcategory_id is not None and not cat.has_subcategory(rule.subcategory_id):
            problems.append(
                f"rule {rule.id}: unknown subcategory {rule.subcategory_id!r}"
                f" in {rule.category_id!r}"
            )
    return problems


def _cat(id: str, name: str, icon: str, color: str, subs: Iterable[tuple[str, str]]) -> Category:
    return Category(
        id=id,
        name=name,
        icon=icon,
        color=color,
        subcategories=tuple(Subcategory(sid, sname) for sid, sname in subs),
    )


DEFAULT_REGISTRY = CategoryRegistry(
    version="1",
    categories=(
        _cat(
            "housing",
            "Housing",
            "\U0001f3e0",
            "#8b5cf6",
            [
                ("rent", "Rent/Mortgage"),
                ("utilities", "Utilities"),
                ("insurance_home", "Home Insurance"),
                ("maintenance", "Maintenance"),
                ("security", "Security"),
            ],
        ),
        _cat(
            "transportation",
            "Transportation",
            "\U0001f697",
            "#3b82f6",
            [
                ("fuel", "Fuel"),
                ("public_transit", "Public Transit"),
                ("parking", "Parking"),
                ("taxi", "Taxi/Rideshare"),
                ("car_maintenance", "Car Maintenance"),
                ("vehicle_tax", "Vehicle Tax"),
                ("car_insurance", "Car Insurance"),
            ],
        ),
        _cat(
            "groceries",
            "Groceries",
            "\U0001f6d2",
            "#22c55e",
            [
                ("supermarket", "Supermarket"),
                ("convenience", "Convenience Store"),
                ("specialty", "Specialty/Ethnic"),
                ("alcohol", "Alcohol"),
            ],
        ),
        _cat(
            "food_dining",
            "Food & Dining",
            "\U0001f37d",
            "#f97316",
            [
                ("restaurant", "Restaurants"),
                ("fast_food", "Fast Food"),
                ("coffee", "Coffee Shops"),
                ("delivery", "Food Delivery"),
                ("bakery", "Bakery"),
            ],
        ),
        _cat(
            "shopping",
            "Shopping",
            "\U0001f6cd",
            "#ec4899",
            [
                ("clothing", "Clothing"),
                ("electronics", "Electronics"),
                ("home_goods", "Home Goods"),
                ("online", "Online Shopping"),
                ("hardware", "Hardware/DIY"),
            ],
        ),
        _cat(
            "entertainment",
            "Entertainment",
            "\U0001f3ac",
            "#a855f7",
            [
                ("streaming", "Streaming Services"),
                ("gaming", "Gaming"),
                ("events", "Events/Movies"),
                ("activities", "Activities"),
                ("bars", "Bars/Nightlife"),
            ],
        ),
        _cat(
            "health",
            "Health & Wellness",
            "\U0001f48a",
            "#14b8a6",
            [
                ("pharmacy", "Pharmacy"),
                ("medical", "Medical/Doctor"),
                ("fitness", "Fitness/Gym"),
                ("personal_care", "Personal Care"),
            ],
        ),
        _cat(
            "children",
            "Children",
            "\U0001f476",
            "#f472b6",
            [
                ("daycare", "Daycare"),
                ("toys", "Toys"),
                ("kids_clothing", "Kids Clothing"),
                ("kids_activities", "Kids Activities"),
            ],
        ),
        _cat(
            "subscriptions",
            "Subscriptions",
            "\U0001f4f1",
            "#6366f1",
            [
                ("software", "Software/Apps"),
                ("membership", "Memberships"),
                ("insurance", "Insurance"),
                ("other", "Other Subscriptions"),
            ],
        ),
        _cat(
            "financial",
            "Financial",
            "\U0001f4b0",
            "#eab308",
            [
                ("bank_fees", "Bank Fees"),
                ("loans", "Loan Payments"),
                ("transfers", "Transfers"),
                ("investments", "Investments"),
            ],
        ),
        _cat(
            "public_services",
            "Public Services",
            "\U0001f3db",
            "#64748b",
            [
                ("municipal_fees", "Municipal Fees"),
                ("parking_fines", "Parking Fines"),
                ("permits", "Permits & Licenses"),
                ("public_fees", "Public Fees"),
            ],
        ),
        _cat(
            "donations",
            "Donations",
            "\U0001f381",
            "#f43f5e",
            [
                ("charity", "Charity"),
                ("religious", "Religious"),
            ],
        ),
        _cat(
            "income",
            "Income",
            "\U0001f4b5",
            "#10b981",
            [
                ("salary", "Salary"),
                ("refund", "Refunds"),
                ("benefits", "Benefits"),
                ("other_income", "Other Income"),
            ],
        ),
        _cat(
            "other",
            "Other",
            "\U0001f4e6",
            "#6b7280",
            [
                ("uncategorized", "Uncategorized"),
                ("personal", "Personal Transfers"),
            ],
        ),
    ),
)


# ---------------------------------------------------------------------------
# User-added subcategories
# ---------------------------------------------------------------------------


class CustomSubcategory(BaseModel):
    """Persisted shape of a subcategory the user added under a built-in category."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    name: str
    parent_category_id: str

    @field_validator("id", "name", "parent_category_id")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must be non-empty")
        return v


_STORED_SUBCATEGORIES = TypeAdapter(list[CustomSubcategory])


class CustomSubcategoryStore:
    """Load and save user-added subcategories through a ``KeyValueStore``."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        base: CategoryRegistry = DEFAULT_REGISTRY,
        key: str = CUSTOM_SUBCATEGORIES_KEY,
    ) -> None:
        self._store = store
        self._base = base
        self._key = key

    def load(self) -> tuple[CustomSubcategory, ...]:
        raw = self._store.get(self._key)
        if raw is None:
            return ()
        return tuple(_STORED_SUBCATEGORIES.validate_json(raw))

    def save(self, subcategories: Sequence[CustomSubcategory]) -> None:
        ids = [s.id for s in subcategories]
        if len(set(ids)) != len(ids):
            raise ValueError("custom subcategory ids must be unique")
        payload = _STORED_SUBCATEGORIES.dump_json(list(subcategories))
        self._store.set(self._key, payload.decode("utf-8"))

    def add(
        self, parent_category_id: str, name: str, *, subcategory_id: str | None = None
    ) -> CustomSubcategory:
        parent = self.registry().get(parent_category_id)
        if parent is None:
            raise KeyError(parent_category_id)
        if parent.has_subcategory_named(name):
            raise ValueError(f"subcategory {name.strip()!r} already exists in {parent.id!r}")
        sub = CustomSubcategory(
            id=subcategory_id or f"custom-{uuid.uuid4().hex}",
            name=name,
            parent_category_id=parent.id,
        )
        self.save((*self.load(), sub))
        logger.info("added subcategory %s (%s) under %s", sub.id, sub.name, parent.id)
        return sub

    def remove(self, subcategory_id: str) -> bool:
        subs = self.load()
        kept = tuple(s for s in subs if s.id != subcategory_id)
        if len(kept) == len(subs):
            return False
        self.save(kept)
        return True

    def registry(self) -> CategoryRegistry:
        """The base registry with every stored subcategory merged in."""

        return self._base.with_subcategories(self.load())


__all__ = [
    "CUSTOM_SUBCATEGORIES_KEY",
    "Category",
    "CategoryRegistry",
    "CustomSubcategory",
    "CustomSubcategoryStore",
    "DEFAULT_REGISTRY",
    "Subcategory",
    "validate_rule_targets",
]
