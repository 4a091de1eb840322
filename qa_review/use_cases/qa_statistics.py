"""QA statistics and review listing use cases."""

from datetime import datetime

from qa_review.adapters.query_builders import ReviewQueryCriteria
from qa_review.config.logging_config import get_logger
from qa_review.domain.models import (
    QAReviewRecord,
    QAStats,
    ReviewCategory,
    ReviewStatus,
    utc_now,
)
from qa_review.domain.protocols import ReviewRepositoryProtocol
from qa_review.services.review_statistics import build_stats, resolve_timeframe

logger = get_logger(__name__)


def get_qa_statistics(
    repository: ReviewRepositoryProtocol,
    task_id: str | None = None,
    timeframe: str = "7d",
    *,
    now: datetime | None = None,
) -> QAStats:
    """Statistics over the reviews of a task within a time window.

    Args:
        repository: Review storage
        task_id: Task to summarize (None = all tasks)
        timeframe: "1d", "7d" or "30d" (anything else means "1d")
        now: Reference time (defaults to current UTC time)

    Returns:
        Statistics projection
    """
    label, window = resolve_timeframe(timeframe)
    start = (now or utc_now()) - window
    records = repository.query_reviews(
        ReviewQueryCriteria(task_id=task_id, created_after=start)
    )
    stats = build_stats(records, task_id=task_id, timeframe=label)

    logger.info(
        "qa_stats_generated",
        task_id=task_id or "all_tasks",
        timeframe=label,
        total_reviews=stats.total_reviews,
        average_score=stats.average_score,
    )
    return stats


def list_qa_reviews(
    repository: ReviewRepositoryProtocol,
    task_id: str,
    status: ReviewStatus | str | None = None,
    category: ReviewCategory | str | None = None,
    limit: int | None = None,
) -> list[QAReviewRecord]:
    """Reviews of a task, newest first, optionally filtered.

    Raises:
        ValueError: If status or category is not a known value
    """
    criteria = ReviewQueryCriteria(
        task_id=task_id,
        status=ReviewStatus(status) if status is not None else None,
        category=ReviewCategory(category) if category is not None else None,
        limit=limit,
    )
    return repository.query_reviews(criteria)
