"""Rule configuration store.

Owns the ordered rule table read by every review. Reads return copies;
updates replace one rule at a time (last writer wins per rule), so a review
running during an update sees either the old or the new version of a rule.
"""

import threading
from collections.abc import Iterable, Mapping
from typing import Any, Final

from pydantic import ValidationError as PydanticValidationError

from qa_review.config.logging_config import get_logger
from qa_review.domain.exceptions import RuleNotFoundError, ValidationError
from qa_review.domain.models import QARule, RuleCategory

logger = get_logger(__name__)

DEFAULT_QA_RULES: Final[tuple[QARule, ...]] = (
    QARule(
        id="formatting_consistency",
        name="Formatting Consistency",
        description="Checks for consistent use of bullet points, spacing, and structure",
        weight=0.25,
        category=RuleCategory.FORMATTING,
    ),
    QARule(
        id="information_organization",
        name="Information Organization",
        description="Ensures information is well-organized with clear sections",
        weight=0.20,
        category=RuleCategory.FORMATTING,
    ),
    QARule(
        id="content_completeness",
        name="Content Completeness",
        description="Verifies all necessary information is provided for user decision-making",
        weight=0.20,
        category=RuleCategory.CONTENT,
    ),
    QARule(
        id="clarity_conciseness",
        name="Clarity and Conciseness",
        description="Checks if content is clear, concise, and easy to scan",
        weight=0.15,
        category=RuleCategory.CONTENT,
    ),
    QARule(
        id="link_consistency",
        name="Link Consistency",
        description="Ensures links are properly formatted and consistently presented",
        weight=0.10,
        category=RuleCategory.LINKS,
    ),
    QARule(
        id="professional_tone",
        name="Professional Tone",
        description="Maintains professional and helpful tone throughout",
        weight=0.10,
        category=RuleCategory.CONTENT,
    ),
)


class RuleStore:
    """Thread-safe, ordered mapping from rule id to rule definition."""

    def __init__(self, rules: Iterable[QARule] | None = None) -> None:
        """Initialize the store.

        Args:
            rules: Initial rule set (defaults to ``DEFAULT_QA_RULES``)
        """
        seed = DEFAULT_QA_RULES if rules is None else tuple(rules)
        self._rules: dict[str, QARule] = {}
        for rule in seed:
            if rule.id in self._rules:
                raise ValueError(f"Duplicate QA rule id: {rule.id}")
            self._rules[rule.id] = rule
        self._lock = threading.RLock()

    @classmethod
    def from_overrides(
        cls, overrides: Iterable[Mapping[str, Any]], rules: Iterable[QARule] | None = None
    ) -> "RuleStore":
        """Build a store and merge configured partial overrides onto it.

        Overrides for ids the store does not know are added as new rules, so
        they must carry every required field (at least ``name``).

        Raises:
            ValidationError: If an override is malformed
        """
        store = cls(rules)
        for override in overrides:
            fields = dict(override)
            rule_id = fields.get("id")
            if not rule_id:
                raise ValidationError("Rule override is missing 'id'")
            if store.get_rule(rule_id) is None:
                try:
                    store.add_rule(QARule.model_validate(fields))
                except PydanticValidationError as e:
                    raise ValidationError(f"Invalid rule '{rule_id}': {e}") from e
            else:
                store.update_rule(rule_id, **fields)
        return store

    def get_rules(self) -> list[QARule]:
        """Return every rule, in configured order."""
        with self._lock:
            return list(self._rules.values())

    def get_enabled_rules(self) -> list[QARule]:
        """Return enabled rules, in configured order."""
        with self._lock:
            return [rule for rule in self._rules.values() if rule.enabled]

    def get_rule(self, rule_id: str) -> QARule | None:
        """Return one rule or None."""
        with self._lock:
            return self._rules.get(rule_id)

    def update_rule(self, rule_id: str, **updates: Any) -> QARule:
        """Merge a partial update into an existing rule.

        Args:
            rule_id: Rule to update
            **updates: Fields to change (``id`` may be repeated but not changed)

        Returns:
            The updated rule

        Raises:
            RuleNotFoundError: If the rule does not exist
            ValidationError: If the merged rule is invalid
        """
        updates.pop("id", None)
        with self._lock:
            current = self._rules.get(rule_id)
            if current is None:
                raise RuleNotFoundError(rule_id)
            merged = self._merge(current, updates)
            self._rules[rule_id] = merged

        logger.info(
            "qa_rule_updated",
            rule_id=rule_id,
            fields=sorted(updates),
            enabled=merged.enabled,
            weight=merged.weight,
        )
        return merged

    def update_rules(self, updates: Iterable[Mapping[str, Any]]) -> list[QARule]:
        """Apply several partial updates, each identified by its ``id``.

        Every id and every merged rule is checked before anything is written,
        so a bad entry leaves the table untouched.

        Args:
            updates: Partial rule dicts, each with an ``id``

        Returns:
            Full rule list after the update

        Raises:
            RuleNotFoundError: If an id is unknown
            ValidationError: If an entry lacks an id or produces an invalid rule
        """
        with self._lock:
            staged: dict[str, QARule] = {}
            for entry in updates:
                fields = dict(entry)
                rule_id = fields.pop("id", None)
                if not rule_id:
                    raise ValidationError("Rule update is missing 'id'")
                current = staged.get(rule_id) or self._rules.get(rule_id)
                if current is None:
                    raise RuleNotFoundError(rule_id)
                staged[rule_id] = self._merge(current, fields)

            self._rules.update(staged)
            rules = list(self._rules.values())

        logger.info("qa_rules_updated", rule_ids=list(staged))
        return rules

    def add_rule(self, rule: QARule) -> None:
        """Append a new rule.

        Raises:
            ValueError: If a rule with the same id exists
        """
        with self._lock:
            if rule.id in self._rules:
                raise ValueError(f"Duplicate QA rule id: {rule.id}")
            self._rules[rule.id] = rule
        logger.info("qa_rule_added", rule_id=rule.id)

    def remove_rule(self, rule_id: str) -> bool:
        """Remove a rule. Returns False if it did not exist."""
        with self._lock:
            removed = self._rules.pop(rule_id, None)
        if removed is not None:
            logger.info("qa_rule_removed", rule_id=rule_id)
        return removed is not None

    @staticmethod
    def rule_categories() -> list[str]:
        """Return every rule category value."""
        return [category.value for category in RuleCategory]

    @staticmethod
    def _merge(current: QARule, updates: Mapping[str, Any]) -> QARule:
        try:
            return QARule.model_validate({**current.model_dump(), **updates})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid update for rule '{current.id}': {e}") from e
