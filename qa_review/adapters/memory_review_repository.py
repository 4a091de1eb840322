"""In-memory review repository.

Implements ReviewRepositoryProtocol over a process-local list. Reviews are
append-only; queries go through ``ReviewQueryCriteria``.
"""

import threading
from uuid import UUID

from qa_review.adapters.query_builders import ReviewQueryCriteria
from qa_review.config.logging_config import get_logger
from qa_review.domain.exceptions import RepositoryError
from qa_review.domain.models import QAReviewRecord

logger = get_logger(__name__)


class InMemoryReviewRepository:
    """Thread-safe, process-local review storage."""

    def __init__(self) -> None:
        self._records: list[QAReviewRecord] = []
        self._by_id: dict[UUID, QAReviewRecord] = {}
        self._lock = threading.RLock()

    def save_review(self, record: QAReviewRecord) -> QAReviewRecord:
        """Append a review.

        Raises:
            RepositoryError: If a review with the same id is already stored
        """
        with self._lock:
            if record.id in self._by_id:
                raise RepositoryError(f"Review already stored: {record.id}")
            self._records.append(record)
            self._by_id[record.id] = record

        logger.debug(
            "qa_review_saved",
            review_id=str(record.id),
            task_id=record.task_id,
            message_id=record.message_id,
        )
        return record

    def get_review(self, review_id: UUID) -> QAReviewRecord | None:
        with self._lock:
            return self._by_id.get(review_id)

    def query_reviews(self, criteria: ReviewQueryCriteria) -> list[QAReviewRecord]:
        with self._lock:
            snapshot = list(self._records)
        return criteria.apply(snapshot)

    def count(self) -> int:
        with self._lock:
            return len(self._records)
