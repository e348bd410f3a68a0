from __future__ import annotations

import logging
from pathlib import Path

import pytest

from spending_analysis.categorize import (
    CategorizationEngine,
    CategoryRule,
    MatchKind,
    RuleSet,
    RuleSource,
    UserRuleStore,
    assign_manual,
    builtin_rules,
    clear_manual,
    new_user_rule,
)
from spending_analysis.models import CategorySource, TransactionBadge
from spending_analysis.storage import InMemoryKeyValueStore
from spending_analysis.taxonomy import (
    DEFAULT_REGISTRY,
    CustomSubcategory,
    CustomSubcategoryStore,
    Subcategory,
    validate_rule_targets,
)
from tests.helpers.db import bootstrap_sqlite_store
from tests.helpers.factories import make_tx

# ---- Helpers ----


def _target(engine: CategorizationEngine, description: str) -> tuple[str, str | None] | None:
    found = engine.match(description)
    return None if found is None else (found.category_id, found.subcategory_id)


# ---- Built-in rules ----


def test_builtin_rules_target_known_categories() -> None:
    assert validate_rule_targets(builtin_rules(), DEFAULT_REGISTRY) == []


def test_builtin_rule_ids_are_stable_and_unique() -> None:
    ids = [r.id for r in builtin_rules()]

    assert len(set(ids)) == len(ids)
    assert all(i.startswith("builtin-") for i in ids)
    assert builtin_rules() is builtin_rules()


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("SL", ("transportation", "public_transit")),
        ("sl", ("transportation", "public_transit")),
        ("SL 12345", ("transportation", "public_transit")),
        ("NETFLIX COM", ("entertainment", "streaming")),
        ("ICA MAXI STOCKHOLM", ("groceries", "supermarket")),
        ("LÖN", ("income", "salary")),
        ("Espresso House Odenplan", ("food_dining", "coffee")),
        ("SLUSSEN BAR", None),
    ],
)
def test_builtin_matching(description: str, expected: tuple[str, str] | None) -> None:
    engine = CategorizationEngine()

    assert _target(engine, description) == expected


def test_exact_and_starts_with_rules_resolved_by_priority() -> None:
    engine = CategorizationEngine()

    exact = engine.match("SL")
    prefix = engine.match("SL 12345")

    assert exact is not None and exact.rule.match_kind is MatchKind.EXACT
    assert exact.rule.priority == 90
    assert prefix is not None and prefix.rule.match_kind is MatchKind.STARTS_WITH
    assert prefix.rule.priority == 80


# ---- Ordering ----


def test_higher_priority_user_rule_wins() -> None:
    rule = new_user_rule("ICA", "food_dining", "restaurant", priority=95)

    engine = CategorizationEngine(RuleSet.default([rule]))

    assert _target(engine, "ICA MAXI") == ("food_dining", "restaurant")


def test_builtin_rule_wins_priority_tie() -> None:
    rule = new_user_rule("NETFLIX", "subscriptions", "other", priority=90)

    engine = CategorizationEngine(RuleSet.default([rule]))

    assert _target(engine, "NETFLIX COM") == ("entertainment", "streaming")


def test_user_rules_keep_creation_order_on_ties() -> None:
    first = new_user_rule("ACME", "shopping", "online", rule_id="user-1")
    second = new_user_rule("ACME", "shopping", "hardware", rule_id="user-2")

    engine = CategorizationEngine([first, second])

    assert _target(engine, "ACME AB") == ("shopping", "online")
    assert [r.id for r in engine.rules if r.source is RuleSource.USER] == ["user-1", "user-2"]


def test_plain_rule_list_keeps_builtin_rules() -> None:
    engine = CategorizationEngine([new_user_rule("ACME", "shopping", "online")])

    assert _target(engine, "ACME") == ("shopping", "online")
    assert _target(engine, "NETFLIX COM") == ("entertainment", "streaming")
    assert len(engine.rules) == len(builtin_rules()) + 1


def test_exact_rule_does_not_match_longer_text() -> None:
    exact = new_user_rule("SL", "transportation", "public_transit", match_kind="exact", priority=90)
    prefix = new_user_rule("SL ", "transportation", "taxi", match_kind="starts_with", priority=70)

    engine = CategorizationEngine(RuleSet(user=(prefix, exact)))

    assert exact.matches("sl")
    assert not exact.matches("SL STATION")
    assert prefix.matches("SL STATION")
    assert _target(engine, "SL") == ("transportation", "public_transit")
    assert _target(engine, "SL STATION") == ("transportation", "taxi")
    assert [r.id for r in engine.rules] == [exact.id, prefix.id]


def test_engine_snapshots_rules() -> None:
    rules = [new_user_rule("ACME", "shopping", "online")]
    engine = CategorizationEngine(rules)

    rules.append(new_user_rule("ACME", "shopping", "hardware", priority=99))

    assert _target(engine, "ACME") == ("shopping", "online")


# ---- Match kinds ----


def test_regex_rule_matches_case_insensitively() -> None:
    rule = new_user_rule(r"^google\s+\w+", "subscriptions", "software", match_kind="regex")

    assert rule.matches("GOOGLE STORAGE")
    assert not rule.matches("PAY GOOGLE")


def test_invalid_regex_never_matches_and_warns_once(caplog: pytest.LogCaptureFixture) -> None:
    rule = new_user_rule("(unclosed", "other", match_kind=MatchKind.REGEX, rule_id="user-bad")

    with caplog.at_level(logging.WARNING, logger="spending_analysis.categorize"):
        assert not rule.matches("(unclosed")
        assert not rule.matches("anything")

    warnings = [r for r in caplog.records if "user-bad" in r.getMessage()]
    assert len(warnings) == 1


def test_rule_requires_pattern_and_category() -> None:
    with pytest.raises(ValueError):
        CategoryRule(id="r", pattern="", category_id="other")
    with pytest.raises(ValueError):
        CategoryRule(id="r", pattern="x", category_id="")
    with pytest.raises(ValueError):
        CategoryRule(
            id="r", pattern="x", category_id="other", match_kind="fuzzy"  # type: ignore[arg-type]
        )


# ---- Categorization passes ----


def test_categorize_assigns_and_counts() -> None:
    txs = [
        make_tx("NETFLIX COM", "-109", "2024-01-15"),
        make_tx("UNKNOWN SHOP", "-20", "2024-01-16"),
    ]

    summary = CategorizationEngine().categorize(txs)

    netflix, unknown = txs
    assert (netflix.category_id, netflix.subcategory_id) == ("entertainment", "streaming")
    assert netflix.category_source is CategorySource.RULE
    assert not netflix.has_badge(TransactionBadge.UNCATEGORIZED)
    assert unknown.category_id is None
    assert unknown.has_badge(TransactionBadge.UNCATEGORIZED)
    assert (summary.total, summary.categorized, summary.uncategorized) == (2, 1, 1)
    assert summary.by_category == {"entertainment": 1}


def test_categorize_is_idempotent() -> None:
    txs = [make_tx("SL", "-42", "2024-01-15"), make_tx("UNKNOWN", "-1", "2024-01-15")]
    engine = CategorizationEngine()

    engine.categorize(txs)
    before = [(t.category_id, t.subcategory_id, t.category_source, list(t.badges)) for t in txs]
    engine.categorize(txs)
    after = [(t.category_id, t.subcategory_id, t.category_source, list(t.badges)) for t in txs]

    assert before == after


def test_manual_assignment_survives_categorization() -> None:
    tx = make_tx("NETFLIX COM", "-109", "2024-01-15")
    assign_manual(tx, "subscriptions", "other")

    summary = CategorizationEngine().categorize([tx])

    assert (tx.category_id, tx.subcategory_id) == ("subscriptions", "other")
    assert tx.category_source is CategorySource.MANUAL
    assert summary.manual == 1

    clear_manual(tx)
    CategorizationEngine().categorize([tx])
    assert tx.category_id == "entertainment"


# ---- User rule persistence ----


def test_user_rule_store_crud() -> None:
    store = UserRuleStore(InMemoryKeyValueStore())
    first = new_user_rule("ACME", "shopping", "online", rule_id="user-1")
    second = new_user_rule(
        "^BOLT", "transportation", "taxi", match_kind="regex", priority=70, rule_id="user-2"
    )

    assert store.load() == ()
    store.add(first)
    store.add(second)
    assert [r.id for r in store.load()] == ["user-1", "user-2"]
    assert store.load()[1].match_kind is MatchKind.REGEX
    assert all(r.source is RuleSource.USER for r in store.load())

    updated = store.update("user-1", priority=99)
    assert updated.priority == 99
    assert store.load()[0].priority == 99

    assert store.remove("user-2") is True
    assert store.remove("user-2") is False
    assert [r.id for r in store.load()] == ["user-1"]


def test_user_rule_store_rejects_bad_edits() -> None:
    store = UserRuleStore(InMemoryKeyValueStore())
    rule = new_user_rule("ACME", "shopping", rule_id="user-1")
    store.add(rule)

    with pytest.raises(ValueError, match="already exists"):
        store.add(rule)
    with pytest.raises(KeyError):
        store.update("user-404", priority=1)
    with pytest.raises(ValueError, match="cannot be changed"):
        store.update("user-1", id="user-2")


def test_user_rule_store_feeds_rule_set() -> None:
    store = UserRuleStore(InMemoryKeyValueStore())
    store.add(new_user_rule("ACME", "shopping", "online", priority=95))

    engine = CategorizationEngine(store.rule_set())

    assert _target(engine, "ACME") == ("shopping", "online")
    assert _target(engine, "SL") == ("transportation", "public_transit")


# ---- Custom subcategories ----


def test_custom_subcategory_makes_user_rule_valid(tmp_path: Path) -> None:
    store = CustomSubcategoryStore(bootstrap_sqlite_store(tmp_path / "kv.sqlite3"))
    rule = new_user_rule("PADEL", "health", "padel", rule_id="user-padel")
    assert validate_rule_targets([rule], store.registry()) == [
        "rule user-padel: unknown subcategory 'padel' in 'health'"
    ]

    store.add("health", "  Padel ", subcategory_id="padel")

    registry = store.registry()
    health = registry.get("health")
    assert health is not None
    assert health.subcategories[-1] == Subcategory("padel", "Padel", is_custom=True)
    assert validate_rule_targets([rule], registry) == []
    assert not DEFAULT_REGISTRY.contains("health", "padel")


def test_custom_subcategory_store_rejects_bad_additions() -> None:
    store = CustomSubcategoryStore(InMemoryKeyValueStore())
    store.add("health", "Padel")

    with pytest.raises(KeyError):
        store.add("pets", "Vet")
    with pytest.raises(ValueError, match="already exists"):
        store.add("health", " padel ")
    with pytest.raises(ValueError, match="already exists"):
        store.add("health", "PHARMACY")

    (sub,) = store.load()
    assert sub.id.startswith("custom-")
    assert store.remove(sub.id) is True
    assert store.remove(sub.id) is False
    assert store.registry() is DEFAULT_REGISTRY


def test_registry_merge_skips_unknown_parents_and_repeats(
    caplog: pytest.LogCaptureFixture,
) -> None:
    custom = [
        CustomSubcategory(id="padel", name="Padel", parent_category_id="health"),
        CustomSubcategory(id="padel", name="Padel again", parent_category_id="health"),
        CustomSubcategory(id="pharmacy", name="Apotek", parent_category_id="health"),
        CustomSubcategory(id="vet", name="Vet", parent_category_id="pets"),
    ]

    with caplog.at_level(logging.WARNING, logger="spending_analysis.taxonomy"):
        registry = DEFAULT_REGISTRY.with_subcategories(custom)

    health = registry.get("health")
    assert health is not None
    assert [s.id for s in health.subcategories].count("padel") == 1
    assert [s.id for s in health.subcategories].count("pharmacy") == 1
    assert registry.get("pets") is None
    assert any("pets" in r.getMessage() for r in caplog.records)
