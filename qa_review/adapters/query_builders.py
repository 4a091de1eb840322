"""Query criteria for stored QA reviews.

Instead of filtering review lists ad hoc at every call site, build a
criteria object and let the repository apply it.
"""

from dataclasses import dataclass
from datetime import datetime

from qa_review.domain.models import QAReviewRecord, ReviewCategory, ReviewStatus


@dataclass
class ReviewQueryCriteria:
    """Criteria for querying stored reviews.

    Example:
        >>> criteria = ReviewQueryCriteria(
        ...     task_id="42",
        ...     category=ReviewCategory.REJECTED,
        ... )
        >>> criteria.matches(record)
        True
    """

    task_id: str | None = None
    """Only reviews of this task (None = all tasks)"""

    status: ReviewStatus | None = None
    """Only reviews with this workflow status"""

    category: ReviewCategory | None = None
    """Only reviews with this verdict"""

    created_after: datetime | None = None
    """Only reviews created at or after this timestamp"""

    message_id: str | None = None
    """Only reviews of this message"""

    limit: int | None = None
    """Maximum reviews returned (None = unlimited)"""

    order_desc: bool = True
    """Newest first when True"""

    def matches(self, record: QAReviewRecord) -> bool:
        """Check whether a stored review satisfies every filter."""
        if self.task_id is not None and record.task_id != self.task_id:
            return False
        if self.message_id is not None and record.message_id != self.message_id:
            return False
        if self.status is not None and record.status != self.status:
            return False
        if self.category is not None and record.category != self.category:
            return False
        if self.created_after is not None and record.created_at < self.created_after:
            return False
        return True

    def apply(self, records: list[QAReviewRecord]) -> list[QAReviewRecord]:
        """Filter, order and limit a list of reviews."""
        # Ties on created_at keep insertion order (later insert = newer)
        indexed = [
            (position, record)
            for position, record in enumerate(records)
            if self.matches(record)
        ]
        indexed.sort(
            key=lambda item: (item[1].created_at, item[0]), reverse=self.order_desc
        )
        selected = [record for _, record in indexed]
        if self.limit is not None:
            selected = selected[: self.limit]
        return selected
