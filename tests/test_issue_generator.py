"""Tests for issue and suggestion generation."""

from qa_review.domain.models import (
    IssueSeverity,
    LinkStatus,
    LinkValidationResult,
    QAIssue,
    RuleResult,
)
from qa_review.services import issue_generator
from qa_review.services.rule_store import DEFAULT_QA_RULES


def _result(rule_id: str, score: float, passed: bool | None = None) -> RuleResult:
    return RuleResult(
        rule_id=rule_id,
        passed=score >= 7 if passed is None else passed,
        score=score,
        feedback="needs work",
    )


def test_passing_rules_raise_no_issue() -> None:
    results = [_result(rule.id, 8.0) for rule in DEFAULT_QA_RULES]
    assert issue_generator.generate_issues(results, DEFAULT_QA_RULES) == []


def test_failed_rules_become_issues_with_severity() -> None:
    results = [
        _result("content_completeness", 6.0),
        _result("clarity_conciseness", 4.0),
        _result("professional_tone", 9.0),
    ]

    issues = issue_generator.generate_issues(results, DEFAULT_QA_RULES)

    assert [(i.rule_id, i.severity) for i in issues] == [
        ("content_completeness", IssueSeverity.MEDIUM),
        ("clarity_conciseness", IssueSeverity.HIGH),
    ]
    assert issues[0].message == "Content Completeness: needs work"
    assert issues[0].suggestion == (
        "Include all necessary details and clear next steps"
    )


def test_failed_rule_with_high_score_is_low_severity() -> None:
    """A too-long message can fail clarity while still scoring 7 or more."""
    results = [_result("clarity_conciseness", 8.0, passed=False)]

    issues = issue_generator.generate_issues(results, DEFAULT_QA_RULES)

    assert len(issues) == 1
    assert issues[0].severity == IssueSeverity.LOW


def test_unknown_rule_uses_fallback_suggestion() -> None:
    issues = issue_generator.generate_issues([_result("custom", 3.0)], [])

    assert issues[0].message == "custom: needs work"
    assert issues[0].suggestion == "Follow the style guide for best practices"


def test_broken_links_become_medium_issues() -> None:
    links = [
        LinkValidationResult(url="https://ok.example.com", status=LinkStatus.VALID),
        LinkValidationResult(
            url="https://gone.example.com", status=LinkStatus.INVALID, status_code=404
        ),
        LinkValidationResult(
            url="https://nowhere.invalid", status=LinkStatus.UNREACHABLE
        ),
    ]

    issues = issue_generator.generate_issues([], DEFAULT_QA_RULES, links)

    assert [i.message for i in issues] == [
        "Link validation failed: https://gone.example.com",
        "Link validation failed: https://nowhere.invalid",
    ]
    assert all(i.rule_id == "link_validation" for i in issues)
    assert all(i.severity == IssueSeverity.MEDIUM for i in issues)
    assert all(
        i.suggestion == "Check if the URL is correct and accessible" for i in issues
    )


def test_suggestions_default_when_empty() -> None:
    assert issue_generator.generate_suggestions([]) == [
        "Message meets quality standards"
    ]


def test_suggestions_are_deduplicated_and_ordered() -> None:
    issues = [
        QAIssue(rule_id="a", severity=IssueSeverity.LOW, message="m", suggestion="Fix A"),
        QAIssue(rule_id="b", severity=IssueSeverity.LOW, message="m", suggestion="Fix A"),
        QAIssue(rule_id="c", severity=IssueSeverity.LOW, message="m", suggestion="Fix C"),
    ]

    suggestions = issue_generator.generate_suggestions(issues, ["Fix C", "Add detail"])

    assert suggestions == ["Fix A", "Fix C", "Add detail"]


def test_suggestions_are_capped() -> None:
    improvements = [f"Improvement {i}" for i in range(10)]
    suggestions = issue_generator.generate_suggestions([], improvements)

    assert suggestions == improvements[:5]


def test_get_suggestion_for_rule() -> None:
    assert issue_generator.get_suggestion_for_rule("link_consistency") == (
        "Ensure all links are working and properly formatted"
    )
    assert issue_generator.get_suggestion_for_rule("nope") == (
        "Follow the style guide for best practices"
    )
