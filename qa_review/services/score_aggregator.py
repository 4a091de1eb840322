"""Overall score and verdict for a review."""

from collections.abc import Sequence

from qa_review.domain.models import (
    IssueSeverity,
    LinkValidationResult,
    QAIssue,
    QARule,
    ReviewCategory,
    RuleResult,
)
from qa_review.domain.qa_constants import (
    APPROVED_MIN_SCORE,
    LINK_PENALTY_PER_FAILURE,
    MAX_SCORE,
    MIN_SCORE,
    NEEDS_REVISION_MAX_HIGH_ISSUES,
    NEEDS_REVISION_MIN_SCORE,
    NEUTRAL_SCORE,
)
from qa_review.services.score_math import clamp, round_half_up


def calculate_overall_score(
    rule_results: Sequence[RuleResult],
    rules: Sequence[QARule],
    link_results: Sequence[LinkValidationResult] | None = None,
    link_penalty: float = LINK_PENALTY_PER_FAILURE,
) -> float:
    """Weighted mean of rule scores minus a flat penalty per broken link.

    Weights are normalized over the rules that actually produced a result,
    so they need not sum to 1. With no weighted result the base is the
    neutral score.

    Args:
        rule_results: Results of the enabled rules
        rules: Rule snapshot the results were produced from
        link_results: Link probe outcomes (None when nothing was probed)
        link_penalty: Deduction per non-valid link

    Returns:
        Score in [1.0, 10.0] with one decimal

    Example:
        >>> calculate_overall_score([], [])
        7.0
    """
    weights = {rule.id: rule.weight for rule in rules}

    total_score = 0.0
    total_weight = 0.0
    for result in rule_results:
        weight = weights.get(result.rule_id)
        if weight is None:
            continue
        total_score += result.score * weight
        total_weight += weight

    base_score = total_score / total_weight if total_weight > 0 else NEUTRAL_SCORE
    broken_links = sum(1 for link in link_results or () if not link.is_valid)
    final_score = clamp(base_score - broken_links * link_penalty, MIN_SCORE, MAX_SCORE)
    return round_half_up(final_score, 1)


def determine_category(score: float, issues: Sequence[QAIssue]) -> ReviewCategory:
    """Map score and high-severity issue count onto a verdict.

    Example:
        >>> determine_category(8.0, [])
        <ReviewCategory.APPROVED: 'approved'>
    """
    high_severity = sum(1 for issue in issues if issue.severity == IssueSeverity.HIGH)

    if score >= APPROVED_MIN_SCORE and high_severity == 0:
        return ReviewCategory.APPROVED
    if (
        score >= NEEDS_REVISION_MIN_SCORE
        and high_severity <= NEEDS_REVISION_MAX_HIGH_ISSUES
    ):
        return ReviewCategory.NEEDS_REVISION
    return ReviewCategory.REJECTED
