"""Rule engine: turns a judge's score vector into per-rule results.

Rules are table-driven. ``RULE_CHECKS`` maps a rule id to a check function
taking a ``RuleInput``; the engine walks the enabled rules in configured
order and calls the matching check. Rules with no check (or whose check
fails unexpectedly) pass with a neutral score so one broken rule never
breaks a review.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from qa_review.config.logging_config import get_logger
from qa_review.domain.models import JudgmentScores, QARule, RuleResult, TaskContext
from qa_review.domain.qa_constants import (
    DETAILED_MESSAGE_MIN_LENGTH,
    MAX_MESSAGE_LENGTH,
    MAX_SCORE,
    MIN_SCORE,
    ORGANIZED_MESSAGE_MIN_LENGTH,
    PASSING_SCORE,
    QA_TRIGGER_MARKER,
    REASONABLE_MESSAGE_MAX_LENGTH,
    REASONABLE_MESSAGE_MIN_LENGTH,
    TOO_LONG_PENALTY,
    UNIMPLEMENTED_RULE_SCORE,
)
from qa_review.services.link_extractor import extract_urls, is_well_formed_url
from qa_review.services.rule_store import RuleStore
from qa_review.services.text_signals import (
    GREETING_PATTERN,
    HELPFUL_CLOSING_PATTERN,
    LAYOUT_MARKERS,
    TRUNCATION_MARKER,
    has_contact_info,
    is_polite,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuleInput:
    """Everything a rule check may look at."""

    message: str
    task_context: TaskContext
    scores: JudgmentScores
    links: tuple[str, ...]
    trigger_marker: str = QA_TRIGGER_MARKER


RuleCheck = Callable[[RuleInput], RuleResult]


def check_formatting_consistency(data: RuleInput) -> RuleResult:
    score = data.scores.formatting_score
    has_layout = any(marker in data.message for marker in LAYOUT_MARKERS)
    return RuleResult(
        rule_id="formatting_consistency",
        passed=score >= PASSING_SCORE,
        score=score,
        feedback=(
            "Good formatting structure"
            if has_layout
            else "Consider adding structure with bullet points or line breaks"
        ),
    )


def check_information_organization(data: RuleInput) -> RuleResult:
    score = data.scores.organization_score
    has_logical_flow = (
        len(data.message) > ORGANIZED_MESSAGE_MIN_LENGTH
        and TRUNCATION_MARKER not in data.message
    )
    return RuleResult(
        rule_id="information_organization",
        passed=score >= PASSING_SCORE,
        score=score,
        feedback=(
            "Information is well organized"
            if has_logical_flow
            else "Consider better organization of information"
        ),
    )


def check_content_completeness(data: RuleInput) -> RuleResult:
    score = data.scores.completeness_score
    has_contact = has_contact_info(data.message, data.trigger_marker)
    is_detailed = len(data.message) > DETAILED_MESSAGE_MIN_LENGTH

    if has_contact and is_detailed:
        feedback = "Complete information with contact details"
    elif has_contact:
        feedback = "Good contact information provided"
    elif is_detailed:
        feedback = "Good detail level"
    else:
        feedback = "Consider adding more complete information"

    return RuleResult(
        rule_id="content_completeness",
        passed=score >= PASSING_SCORE,
        score=score,
        feedback=feedback,
    )


def check_clarity_conciseness(data: RuleInput) -> RuleResult:
    score = data.scores.clarity_score
    length = len(data.message)
    too_long = length > MAX_MESSAGE_LENGTH

    if too_long:
        feedback = "Message is too long, consider condensing"
    elif REASONABLE_MESSAGE_MIN_LENGTH <= length <= REASONABLE_MESSAGE_MAX_LENGTH:
        feedback = "Good clarity and length"
    else:
        feedback = "Consider appropriate message length"

    return RuleResult(
        rule_id="clarity_conciseness",
        passed=score >= PASSING_SCORE and not too_long,
        score=max(score - TOO_LONG_PENALTY, MIN_SCORE) if too_long else score,
        feedback=feedback,
    )


def check_link_consistency(data: RuleInput) -> RuleResult:
    if not data.links:
        return RuleResult(
            rule_id="link_consistency",
            passed=True,
            score=MAX_SCORE,
            feedback="No links to validate",
        )

    score = data.scores.link_score
    all_well_formed = all(is_well_formed_url(link) for link in data.links)
    return RuleResult(
        rule_id="link_consistency",
        passed=score >= PASSING_SCORE and all_well_formed,
        score=score,
        feedback=(
            "Links are properly formatted" if all_well_formed else "Check link formatting"
        ),
    )


def check_professional_tone(data: RuleInput) -> RuleResult:
    score = data.scores.tone_score
    polite = is_polite(data.message)
    has_greeting = bool(GREETING_PATTERN.search(data.message.strip()))
    has_closing = bool(HELPFUL_CLOSING_PATTERN.search(data.message))

    if has_greeting and has_closing and polite:
        feedback = "Professional and helpful tone"
    elif polite:
        feedback = "Good professional tone"
    else:
        feedback = "Consider more professional language"

    return RuleResult(
        rule_id="professional_tone",
        passed=score >= PASSING_SCORE,
        score=score,
        feedback=feedback,
    )


RULE_CHECKS: dict[str, RuleCheck] = {
    "formatting_consistency": check_formatting_consistency,
    "information_organization": check_information_organization,
    "content_completeness": check_content_completeness,
    "clarity_conciseness": check_clarity_conciseness,
    "link_consistency": check_link_consistency,
    "professional_tone": check_professional_tone,
}


def unimplemented_result(rule_id: str) -> RuleResult:
    """Neutral passing result for a rule the engine cannot evaluate."""
    return RuleResult(
        rule_id=rule_id,
        passed=True,
        score=UNIMPLEMENTED_RULE_SCORE,
        feedback="Rule not implemented",
    )


class RuleEngine:
    """Applies enabled rules to a judged message."""

    def __init__(
        self,
        rule_store: RuleStore | None = None,
        checks: dict[str, RuleCheck] | None = None,
        trigger_marker: str = QA_TRIGGER_MARKER,
    ) -> None:
        """Initialize the engine.

        Args:
            rule_store: Source of rules when the caller passes none
            checks: Rule id to check mapping (defaults to ``RULE_CHECKS``)
            trigger_marker: QA trigger marker, never counted as contact info
        """
        self.rule_store = rule_store or RuleStore()
        self._checks: dict[str, RuleCheck] = dict(RULE_CHECKS if checks is None else checks)
        self.trigger_marker = trigger_marker

    def register_check(self, rule_id: str, check: RuleCheck) -> None:
        """Attach (or replace) the check for a rule id."""
        self._checks[rule_id] = check

    def apply_rules(
        self,
        message: str,
        task_context: TaskContext,
        scores: JudgmentScores,
        rules: Sequence[QARule] | None = None,
        links: Sequence[str] | None = None,
    ) -> list[RuleResult]:
        """Evaluate every enabled rule.

        Args:
            message: Message under review
            task_context: Task the message belongs to
            scores: Judge output
            rules: Rule snapshot (defaults to the store's current rules)
            links: Extracted links (extracted from ``message`` when None)

        Returns:
            One result per enabled rule, in rule order
        """
        active = [
            rule
            for rule in (self.rule_store.get_rules() if rules is None else rules)
            if rule.enabled
        ]
        data = RuleInput(
            message=message,
            task_context=task_context,
            scores=scores,
            links=tuple(extract_urls(message) if links is None else links),
            trigger_marker=self.trigger_marker,
        )
        return [self._apply_rule(rule, data) for rule in active]

    def _apply_rule(self, rule: QARule, data: RuleInput) -> RuleResult:
        check = self._checks.get(rule.id)
        if check is None:
            logger.warning("qa_rule_not_implemented", rule_id=rule.id)
            return unimplemented_result(rule.id)

        try:
            result = check(data)
        except Exception as e:
            logger.exception(
                "qa_rule_check_failed",
                rule_id=rule.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return unimplemented_result(rule.id)

        if result.rule_id != rule.id:
            result = result.model_copy(update={"rule_id": rule.id})
        return result
