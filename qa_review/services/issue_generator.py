"""Issue and suggestion generation."""

from collections.abc import Iterable, Sequence
from typing import Final

from qa_review.domain.models import (
    IssueSeverity,
    LinkValidationResult,
    QAIssue,
    QARule,
    RuleResult,
)
from qa_review.domain.qa_constants import (
    DEFAULT_SUGGESTION,
    LINK_VALIDATION_RULE_ID,
    MAX_SUGGESTIONS,
    PASSING_SCORE,
)

RULE_SUGGESTIONS: Final[dict[str, str]] = {
    "formatting_consistency": "Use consistent bullet points and maintain proper spacing",
    "information_organization": "Structure information with clear headers and logical grouping",
    "content_completeness": "Include all necessary details and clear next steps",
    "clarity_conciseness": "Break down long paragraphs for better readability",
    "link_consistency": "Ensure all links are working and properly formatted",
    "professional_tone": "Maintain helpful, professional language throughout",
}

FALLBACK_SUGGESTION: Final[str] = "Follow the style guide for best practices"
LINK_SUGGESTION: Final[str] = "Check if the URL is correct and accessible"


def get_suggestion_for_rule(rule_id: str) -> str:
    """Static fix hint for a rule id."""
    return RULE_SUGGESTIONS.get(rule_id, FALLBACK_SUGGESTION)


def generate_issues(
    rule_results: Sequence[RuleResult],
    rules: Sequence[QARule],
    link_results: Sequence[LinkValidationResult] | None = None,
) -> list[QAIssue]:
    """Build issues from failed or low-scoring rules and broken links.

    Args:
        rule_results: Rule outcomes
        rules: Rule snapshot (used for display names)
        link_results: Link probe outcomes

    Returns:
        Rule issues in rule order, then one medium issue per non-valid link
    """
    names = {rule.id: rule.name for rule in rules}
    issues: list[QAIssue] = []

    for result in rule_results:
        if result.passed and result.score >= PASSING_SCORE:
            continue
        name = names.get(result.rule_id, result.rule_id)
        issues.append(
            QAIssue(
                rule_id=result.rule_id,
                severity=IssueSeverity.from_score(result.score),
                message=f"{name}: {result.feedback}",
                suggestion=get_suggestion_for_rule(result.rule_id),
            )
        )

    for link in link_results or ():
        if link.is_valid:
            continue
        issues.append(
            QAIssue(
                rule_id=LINK_VALIDATION_RULE_ID,
                severity=IssueSeverity.MEDIUM,
                message=f"Link validation failed: {link.url}",
                suggestion=LINK_SUGGESTION,
            )
        )

    return issues


def generate_suggestions(
    issues: Sequence[QAIssue], improvements: Iterable[str] = ()
) -> list[str]:
    """Ordered, de-duplicated union of issue hints and judge improvements.

    Returns:
        Between 1 and ``MAX_SUGGESTIONS`` entries

    Example:
        >>> generate_suggestions([])
        ['Message meets quality standards']
    """
    suggestions: list[str] = []
    for candidate in [issue.suggestion for issue in issues] + list(improvements):
        if candidate and candidate not in suggestions:
            suggestions.append(candidate)

    if not suggestions:
        suggestions.append(DEFAULT_SUGGESTION)
    return suggestions[:MAX_SUGGESTIONS]
