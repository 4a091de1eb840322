"""Local heuristic judge.

Dependency-free fallback for the external judge. Starts from a neutral
baseline, adds a small bonus for each positive signal, and derives one score
per dimension:

- Detailed message (> 100 chars)
- Contact information
- No rudeness markers
- Structural punctuation / line breaks
- QA trigger present (asking for review is itself a thoroughness signal)

Every score stays inside [5, 10] so the fallback never produces an extreme.
"""

from typing import Final

from qa_review.domain.models import JudgmentScores
from qa_review.domain.qa_constants import (
    HEURISTIC_BASELINE,
    HEURISTIC_MAX_SCORE,
    HEURISTIC_MIN_SCORE,
    HEURISTIC_SIGNAL_BONUS,
    MAX_SCORE,
    QA_TRIGGER_MARKER,
    REASONABLE_MESSAGE_MIN_LENGTH,
)
from qa_review.services.score_math import clamp, round_half_up
from qa_review.services.text_signals import MessageSignals, detect_signals

# Dimension offsets from the baseline
NO_STRUCTURE_FORMATTING_OFFSET: Final[float] = -1.0
NO_STRUCTURE_ORGANIZATION_OFFSET: Final[float] = -0.5
CONTACT_COMPLETENESS_OFFSET: Final[float] = 0.5
SPARSE_COMPLETENESS_OFFSET: Final[float] = -1.5
"""Neither contact info nor detail: the requester has little to act on."""

BRIEF_CLARITY_OFFSET: Final[float] = -0.5
TERSE_CLARITY_OFFSET: Final[float] = -2.5
"""Below the reasonable minimum length the message reads as curt."""

MALFORMED_LINK_OFFSET: Final[float] = -2.0
POLITE_TONE_OFFSET: Final[float] = 0.5
IMPOLITE_TONE_OFFSET: Final[float] = -1.0


def calculate_baseline(signals: MessageSignals) -> float:
    """Baseline score from positive signals.

    Example:
        >>> calculate_baseline(detect_signals("fix it now"))
        7.5
    """
    positives = [
        signals.is_detailed,
        signals.has_contact_info,
        signals.is_polite,
        signals.has_structure,
        signals.has_qa_trigger,
    ]
    score = HEURISTIC_BASELINE + HEURISTIC_SIGNAL_BONUS * sum(positives)
    return clamp(score, HEURISTIC_MIN_SCORE, HEURISTIC_MAX_SCORE)


def _dimension(baseline: float, offset: float = 0.0) -> float:
    return clamp(
        round_half_up(baseline + offset), HEURISTIC_MIN_SCORE, HEURISTIC_MAX_SCORE
    )


def _build_feedback(signals: MessageSignals) -> str:
    tone = "professional" if signals.is_polite else "casual"
    detail = "good detail" if signals.is_detailed else "basic information"
    parts = [f"Message demonstrates {tone} communication with {detail}."]
    if signals.has_contact_info:
        parts.append("Contact information provided.")
    if signals.has_qa_trigger:
        parts.append("QA review appropriately triggered.")
    return " ".join(parts)


def _specific_issues(signals: MessageSignals) -> list[str]:
    issues: list[str] = []
    if not signals.is_polite:
        issues.append("Consider more professional language")
    if signals.length < REASONABLE_MESSAGE_MIN_LENGTH:
        issues.append("Message is too brief to be actionable")
    if signals.malformed_links:
        issues.append("Some links are not properly formatted")
    return issues


def _improvements(signals: MessageSignals) -> list[str]:
    if not signals.is_detailed:
        return ["Consider adding more specific details"]
    return ["Good level of detail provided"]


def analyze_signals(signals: MessageSignals) -> JudgmentScores:
    """Score already-detected signals.

    Args:
        signals: Message properties

    Returns:
        Complete score vector
    """
    baseline = calculate_baseline(signals)

    if signals.has_contact_info:
        completeness_offset = CONTACT_COMPLETENESS_OFFSET
    elif signals.is_detailed:
        completeness_offset = 0.0
    else:
        completeness_offset = SPARSE_COMPLETENESS_OFFSET

    if signals.length < REASONABLE_MESSAGE_MIN_LENGTH:
        clarity_offset = TERSE_CLARITY_OFFSET
    elif signals.is_detailed:
        clarity_offset = 0.0
    else:
        clarity_offset = BRIEF_CLARITY_OFFSET

    # Reachability is penalized separately; locally a well-formed link is fine
    link_score = (
        _dimension(baseline, MALFORMED_LINK_OFFSET)
        if signals.malformed_links
        else MAX_SCORE
    )

    return JudgmentScores(
        overall_feedback=_build_feedback(signals),
        formatting_score=_dimension(
            baseline, 0.0 if signals.has_structure else NO_STRUCTURE_FORMATTING_OFFSET
        ),
        organization_score=_dimension(
            baseline,
            0.0 if signals.has_structure else NO_STRUCTURE_ORGANIZATION_OFFSET,
        ),
        completeness_score=_dimension(baseline, completeness_offset),
        clarity_score=_dimension(baseline, clarity_offset),
        link_score=link_score,
        tone_score=_dimension(
            baseline, POLITE_TONE_OFFSET if signals.is_polite else IMPOLITE_TONE_OFFSET
        ),
        specific_issues=_specific_issues(signals),
        improvements=_improvements(signals),
    )


def analyze_message(text: str, marker: str = QA_TRIGGER_MARKER) -> JudgmentScores:
    """Judge a message locally.

    Pure and side-effect free: the same text always yields the same vector.

    Args:
        text: Message text
        marker: QA trigger marker

    Returns:
        Complete score vector

    Example:
        >>> scores = analyze_message("fix it now")
        >>> scores.clarity_score
        5.0
    """
    return analyze_signals(detect_signals(text, marker))
