"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
"""

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID

from qa_review.domain.models import (
    ConversationMessage,
    JudgmentScores,
    LinkValidationResult,
    QAReviewRecord,
    TaskContext,
)

if TYPE_CHECKING:
    from qa_review.adapters.query_builders import ReviewQueryCriteria


EventHandler = Callable[[str, dict[str, Any]], None]
"""Subscriber callback: ``(event_name, payload)``."""


class LinkValidatorProtocol(Protocol):
    """Probes URLs for reachability."""

    def validate_links(self, urls: Sequence[str]) -> list[LinkValidationResult]:
        """Validate URLs.

        Args:
            urls: URLs to probe

        Returns:
            One result per URL, in input order. Never raises.
        """
        ...


class JudgmentClientProtocol(Protocol):
    """Remote language-analysis service producing a score vector."""

    def judge(
        self,
        message: str,
        task_context: TaskContext,
        history: Sequence[ConversationMessage],
    ) -> JudgmentScores:
        """Judge a message.

        Args:
            message: Message under review
            task_context: Task the message belongs to
            history: Most recent prior messages (already windowed)

        Returns:
            Parsed score vector

        Raises:
            LLMAPIError: On API communication errors
            ValidationError: On malformed or non-parseable output
        """
        ...


class ReviewRepositoryProtocol(Protocol):
    """Storage for completed reviews."""

    def save_review(self, record: QAReviewRecord) -> QAReviewRecord:
        """Append a review.

        Raises:
            RepositoryError: On storage errors
        """
        ...

    def get_review(self, review_id: UUID) -> QAReviewRecord | None:
        """Fetch a review by id."""
        ...

    def query_reviews(self, criteria: "ReviewQueryCriteria") -> list[QAReviewRecord]:
        """Return reviews matching the criteria."""
        ...


class EventPublisherProtocol(Protocol):
    """Fan-out of review notifications to interested observers."""

    def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        """Publish an event on a channel. Must not raise for subscriber errors."""
        ...
