"""Tests for the rule configuration store."""

import threading

import pytest

from qa_review.domain.exceptions import RuleNotFoundError, ValidationError
from qa_review.domain.models import QARule, RuleCategory
from qa_review.services.rule_store import DEFAULT_QA_RULES, RuleStore


def test_default_rules_in_order(rule_store: RuleStore) -> None:
    assert [rule.id for rule in rule_store.get_rules()] == [
        "formatting_consistency",
        "information_organization",
        "content_completeness",
        "clarity_conciseness",
        "link_consistency",
        "professional_tone",
    ]
    assert sum(rule.weight for rule in DEFAULT_QA_RULES) == pytest.approx(1.0)
    assert all(rule.enabled for rule in rule_store.get_rules())


def test_get_rules_returns_copy(rule_store: RuleStore) -> None:
    rules = rule_store.get_rules()
    rules.clear()
    assert len(rule_store.get_rules()) == 6


def test_update_rule_merges_fields(rule_store: RuleStore) -> None:
    updated = rule_store.update_rule("professional_tone", weight=0.3, enabled=False)

    assert updated.weight == 0.3
    assert not updated.enabled
    assert updated.name == "Professional Tone"
    assert rule_store.get_rule("professional_tone") == updated
    assert "professional_tone" not in [r.id for r in rule_store.get_enabled_rules()]


def test_update_rule_cannot_change_id(rule_store: RuleStore) -> None:
    updated = rule_store.update_rule("professional_tone", id="other", weight=0.2)
    assert updated.id == "professional_tone"
    assert rule_store.get_rule("other") is None


def test_update_rule_unknown_id(rule_store: RuleStore) -> None:
    with pytest.raises(RuleNotFoundError) as exc_info:
        rule_store.update_rule("nope", weight=0.2)
    assert exc_info.value.rule_id == "nope"
    assert "Unknown QA rule: nope" in str(exc_info.value)


def test_update_rule_rejects_invalid_values(rule_store: RuleStore) -> None:
    with pytest.raises(ValidationError):
        rule_store.update_rule("professional_tone", weight=-1)
    assert rule_store.get_rule("professional_tone").weight == 0.10


def test_update_rules_applies_batch(rule_store: RuleStore) -> None:
    rules = rule_store.update_rules(
        [
            {"id": "formatting_consistency", "weight": 0.5},
            {"id": "link_consistency", "enabled": False},
        ]
    )

    by_id = {rule.id: rule for rule in rules}
    assert by_id["formatting_consistency"].weight == 0.5
    assert not by_id["link_consistency"].enabled


def test_update_rules_unknown_id_applies_nothing(rule_store: RuleStore) -> None:
    before = rule_store.get_rules()

    with pytest.raises(RuleNotFoundError):
        rule_store.update_rules(
            [
                {"id": "formatting_consistency", "weight": 0.9},
                {"id": "does_not_exist", "weight": 0.1},
            ]
        )

    assert rule_store.get_rules() == before


def test_update_rules_requires_id(rule_store: RuleStore) -> None:
    with pytest.raises(ValidationError):
        rule_store.update_rules([{"weight": 0.9}])


def test_add_and_remove_rule(rule_store: RuleStore) -> None:
    custom = QARule(id="custom", name="Custom", category=RuleCategory.TECHNICAL)
    rule_store.add_rule(custom)

    assert rule_store.get_rules()[-1] == custom
    with pytest.raises(ValueError):
        rule_store.add_rule(custom)

    assert rule_store.remove_rule("custom")
    assert not rule_store.remove_rule("custom")
    assert rule_store.get_rule("custom") is None


def test_rule_categories() -> None:
    assert RuleStore.rule_categories() == ["formatting", "content", "technical", "links"]


def test_duplicate_initial_rules_rejected() -> None:
    rule = QARule(id="a", name="A")
    with pytest.raises(ValueError):
        RuleStore([rule, rule])


def test_from_overrides_merges_and_adds() -> None:
    store = RuleStore.from_overrides(
        [
            {"id": "clarity_conciseness", "weight": 0.4},
            {"id": "greeting", "name": "Greeting", "weight": 0.05},
        ]
    )

    assert store.get_rule("clarity_conciseness").weight == 0.4
    assert store.get_rule("greeting").name == "Greeting"
    assert len(store.get_rules()) == 7


def test_from_overrides_new_rule_needs_name() -> None:
    with pytest.raises(ValidationError):
        RuleStore.from_overrides([{"id": "nameless", "weight": 0.1}])


def test_concurrent_updates_keep_table_consistent(rule_store: RuleStore) -> None:
    def toggle(rule_id: str) -> None:
        for i in range(50):
            rule_store.update_rule(rule_id, enabled=i % 2 == 0)

    threads = [
        threading.Thread(target=toggle, args=(rule.id,))
        for rule in rule_store.get_rules()
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    rules = rule_store.get_rules()
    assert len(rules) == 6
    # last iteration (i=49) disables every rule
    assert rule_store.get_enabled_rules() == []
