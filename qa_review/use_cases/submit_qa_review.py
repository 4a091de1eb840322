"""Submit QA review use case.

Caller-side flow run when a chat message asks for a review: review the
message, store the result, notify the task's observers. A failed review is
reported in the returned submission and on the task channel; it never
propagates into the message-send path.
"""

from typing import Any, Final

from qa_review.adapters.event_publisher import (
    QA_REVIEW_COMPLETED,
    QA_REVIEW_FAILED,
    QA_STATS_UPDATED,
    task_channel,
)
from qa_review.config.logging_config import get_logger
from qa_review.domain.exceptions import InvalidReviewRequestError
from qa_review.domain.models import (
    QAReviewRecord,
    ReviewStatus,
    ReviewSubmission,
    utc_now,
)
from qa_review.domain.protocols import EventPublisherProtocol, ReviewRepositoryProtocol
from qa_review.observability.tracing import correlation_scope
from qa_review.services.text_signals import contains_qa_trigger
from qa_review.use_cases.perform_qa_review import (
    HistoryInput,
    QAReviewEngine,
    TaskContextInput,
)

logger = get_logger(__name__)

NOTIFICATION_FAILED: Final[str] = "Review stored but task observers were not notified"
"""Submission error when the review was saved but broadcasting it failed."""


def _publish(
    publisher: EventPublisherProtocol,
    channel: str,
    event: str,
    payload: dict[str, Any],
) -> bool:
    """Publish one event; a failing relay is logged, not raised."""
    try:
        publisher.publish(channel, event, payload)
    except Exception as e:
        logger.exception(
            "qa_event_publish_failed",
            channel=channel,
            event_name=event,
            error=str(e),
        )
        return False
    return True


def _completed_payload(record: QAReviewRecord) -> dict[str, Any]:
    qa_result = record.result.to_payload()
    qa_result.update(
        {
            "reviewId": str(record.id),
            "status": record.status.value,
            "timestamp": record.created_at.isoformat(),
        }
    )
    return {
        "messageId": record.message_id,
        "taskId": record.task_id,
        "qaResult": qa_result,
        "timestamp": utc_now().isoformat(),
    }


def submit_qa_review(
    engine: QAReviewEngine,
    repository: ReviewRepositoryProtocol,
    publisher: EventPublisherProtocol,
    message_id: str,
    task_id: str,
    message_content: str,
    task_context: TaskContextInput = None,
    history: HistoryInput = None,
    *,
    require_trigger: bool = False,
    trigger_marker: str | None = None,
    correlation_id: str | None = None,
) -> ReviewSubmission:
    """Review a message, store the outcome and broadcast it.

    Args:
        engine: Review engine
        repository: Review storage
        publisher: Event fan-out
        message_id: Id of the reviewed message
        task_id: Task the message belongs to
        message_content: Message text
        task_context: Task details for the judge
        history: Prior messages of the task conversation
        require_trigger: Skip messages without the trigger marker
        trigger_marker: Marker override (defaults to the engine's)
        correlation_id: Optional correlation id for logs

    Returns:
        Submission with the stored record, or with ``error`` set when the
        review failed. A stored review whose broadcast failed keeps its
        record and carries ``NOTIFICATION_FAILED``
    """
    with correlation_scope(correlation_id):
        marker = trigger_marker or engine.judgment_adapter.trigger_marker
        if require_trigger and not contains_qa_trigger(message_content or "", marker):
            logger.debug("qa_review_not_triggered", message_id=message_id)
            return ReviewSubmission(
                message_id=message_id, task_id=task_id, triggered=False
            )

        channel = task_channel(task_id)
        try:
            if not message_id or not task_id or not message_content:
                raise InvalidReviewRequestError(
                    "Message ID, task ID, and message content are required"
                )

            result = engine.review(message_content, task_context, history)
            record = QAReviewRecord(
                message_id=message_id,
                task_id=task_id,
                message_content=message_content,
                result=result,
                status=ReviewStatus.from_category(result.category),
            )
            repository.save_review(record)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error(
                "qa_review_submission_failed",
                message_id=message_id,
                task_id=task_id,
                error=error,
                error_type=type(e).__name__,
            )
            _publish(
                publisher,
                channel,
                QA_REVIEW_FAILED,
                {
                    "messageId": message_id,
                    "taskId": task_id,
                    "error": error,
                    "timestamp": utc_now().isoformat(),
                },
            )
            return ReviewSubmission(
                message_id=message_id, task_id=task_id, triggered=True, error=error
            )

        completed_sent = _publish(
            publisher, channel, QA_REVIEW_COMPLETED, _completed_payload(record)
        )
        stats_sent = _publish(
            publisher,
            channel,
            QA_STATS_UPDATED,
            {
                "taskId": task_id,
                "timestamp": utc_now().isoformat(),
                "triggeredBy": "qa_review",
            },
        )
        delivered = completed_sent and stats_sent

        logger.info(
            "qa_review_submitted",
            review_id=str(record.id),
            message_id=message_id,
            task_id=task_id,
            score=record.score,
            status=record.status.value,
            notified=delivered,
        )
        return ReviewSubmission(
            message_id=message_id,
            task_id=task_id,
            triggered=True,
            record=record,
            error=None if delivered else NOTIFICATION_FAILED,
        )
