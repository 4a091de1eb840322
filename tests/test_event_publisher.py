"""Tests for the in-process event publisher and correlation scopes."""

from typing import Any

import structlog

from qa_review.adapters.event_publisher import InMemoryEventPublisher, task_channel
from qa_review.observability.tracing import CORRELATION_ID_KEY, correlation_scope


def test_publish_reaches_only_channel_subscribers() -> None:
    publisher = InMemoryEventPublisher()
    seen: list[tuple[str, dict[str, Any]]] = []
    other: list[str] = []
    publisher.subscribe(task_channel("1"), lambda e, p: seen.append((e, p)))
    publisher.subscribe(task_channel("2"), lambda e, p: other.append(e))

    publisher.publish("task_1", "qa_stats_updated", {"taskId": "1"})

    assert seen == [("qa_stats_updated", {"taskId": "1"})]
    assert other == []


def test_unsubscribe() -> None:
    publisher = InMemoryEventPublisher()
    seen: list[str] = []

    def handler(event: str, payload: dict[str, Any]) -> None:
        seen.append(event)

    publisher.subscribe("task_1", handler)
    assert publisher.unsubscribe("task_1", handler)
    assert not publisher.unsubscribe("task_1", handler)
    assert not publisher.unsubscribe("task_9", handler)

    publisher.publish("task_1", "qa_review_completed", {})

    assert seen == []


def test_publish_without_subscribers_is_noop() -> None:
    InMemoryEventPublisher().publish("task_404", "qa_review_failed", {"error": "x"})


def test_failing_handler_does_not_stop_delivery() -> None:
    publisher = InMemoryEventPublisher()
    seen: list[str] = []

    def broken(event: str, payload: dict[str, Any]) -> None:
        raise RuntimeError("socket closed")

    publisher.subscribe("task_3", broken)
    publisher.subscribe("task_3", lambda e, p: seen.append(e))

    publisher.publish("task_3", "qa_review_completed", {"taskId": "3"})

    assert seen == ["qa_review_completed"]


def test_correlation_scope_binds_and_unbinds() -> None:
    structlog.contextvars.clear_contextvars()

    with correlation_scope() as correlation_id:
        assert structlog.contextvars.get_contextvars()[CORRELATION_ID_KEY] == (
            correlation_id
        )

    assert CORRELATION_ID_KEY not in structlog.contextvars.get_contextvars()


def test_nested_correlation_scope_restores_outer_id() -> None:
    structlog.contextvars.clear_contextvars()

    with correlation_scope("outer") as outer:
        with correlation_scope() as reused:
            assert reused == "outer"
        with correlation_scope("inner") as inner:
            assert inner == "inner"
        assert structlog.contextvars.get_contextvars()[CORRELATION_ID_KEY] == outer

    assert CORRELATION_ID_KEY not in structlog.contextvars.get_contextvars()
