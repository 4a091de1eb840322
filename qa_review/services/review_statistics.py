"""Read-side statistics over stored reviews.

Pure projection: takes already-selected records, never touches storage.
"""

from collections import Counter
from collections.abc import Sequence
from datetime import timedelta
from typing import Final

from qa_review.domain.models import (
    IssueFrequency,
    LinkStatus,
    LinkValidationStats,
    QAReviewRecord,
    QAStats,
    ReviewCategory,
    ScoreBandCount,
)
from qa_review.services.score_math import round_half_up

TIMEFRAMES: Final[dict[str, timedelta]] = {
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
"""Supported statistics windows."""

DEFAULT_TIMEFRAME: Final[str] = "1d"
"""Window used for unrecognized timeframe strings."""

SCORE_BANDS: Final[tuple[tuple[str, float], ...]] = (
    ("9-10", 9.0),
    ("7-8", 7.0),
    ("5-6", 5.0),
    ("1-4", 1.0),
)
"""Score bands with their lower bound, highest first."""

TOP_ISSUES_LIMIT: Final[int] = 5


def resolve_timeframe(timeframe: str | None) -> tuple[str, timedelta]:
    """Normalize a timeframe string.

    Example:
        >>> resolve_timeframe("90d")
        ('1d', datetime.timedelta(days=1))
    """
    if timeframe in TIMEFRAMES:
        return timeframe, TIMEFRAMES[timeframe]
    return DEFAULT_TIMEFRAME, TIMEFRAMES[DEFAULT_TIMEFRAME]


def score_band(score: float) -> str:
    """Band label for a score (scores below 1 fall in the lowest band)."""
    for label, lower in SCORE_BANDS:
        if score >= lower:
            return label
    return SCORE_BANDS[-1][0]


def common_issues(
    records: Sequence[QAReviewRecord], limit: int = TOP_ISSUES_LIMIT
) -> list[IssueFrequency]:
    """Most frequent issue rule ids, most frequent first."""
    counts: Counter[str] = Counter()
    for record in records:
        counts.update(issue.rule_id or "unknown" for issue in record.result.issues)
    return [
        IssueFrequency(rule_id=rule_id, count=count)
        for rule_id, count in counts.most_common(limit)
    ]


def score_distribution(records: Sequence[QAReviewRecord]) -> list[ScoreBandCount]:
    """Review count per score band, in band order."""
    counts = Counter(score_band(record.score) for record in records)
    return [ScoreBandCount(range=label, count=counts[label]) for label, _ in SCORE_BANDS]


def link_validation_stats(records: Sequence[QAReviewRecord]) -> LinkValidationStats:
    """Aggregate link probe outcomes across reviews."""
    statuses = Counter(
        link.status
        for record in records
        for link in record.result.link_validation or ()
    )
    total = sum(statuses.values())
    valid = statuses[LinkStatus.VALID]
    return LinkValidationStats(
        total_links=total,
        valid_links=valid,
        invalid_links=statuses[LinkStatus.INVALID],
        unreachable_links=statuses[LinkStatus.UNREACHABLE],
        valid_percentage=int(round_half_up(valid / total * 100)) if total else 0,
    )


def build_stats(
    records: Sequence[QAReviewRecord],
    task_id: str | None = None,
    timeframe: str = DEFAULT_TIMEFRAME,
) -> QAStats:
    """Summarize a set of reviews.

    Args:
        records: Reviews already filtered to the task and window
        task_id: Task the reviews belong to (None = all tasks)
        timeframe: Window label echoed into the result

    Returns:
        Statistics projection
    """
    categories = Counter(record.category for record in records)
    average = (
        round_half_up(sum(record.score for record in records) / len(records), 1)
        if records
        else 0.0
    )
    return QAStats(
        task_id=task_id,
        timeframe=timeframe,
        total_reviews=len(records),
        average_score=average,
        approved_count=categories[ReviewCategory.APPROVED],
        needs_revision_count=categories[ReviewCategory.NEEDS_REVISION],
        rejected_count=categories[ReviewCategory.REJECTED],
        common_issues=common_issues(records),
        score_distribution=score_distribution(records),
        link_validation_stats=link_validation_stats(records),
    )
