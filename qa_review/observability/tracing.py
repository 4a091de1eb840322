"""Helpers for correlation identifiers in logs."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

import structlog

from qa_review.config.logging_config import bind_context, unbind_context

CORRELATION_ID_KEY = "review_correlation_id"


@contextmanager
def correlation_scope(existing_id: str | None = None) -> Iterator[str]:
    """Bind a correlation identifier for the lifetime of one review.

    Nested scopes reuse the id already bound unless a new one is given, and
    the outer id is restored on exit.
    """

    previous = structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)
    correlation_id = existing_id or previous or str(uuid4())
    bind_context(**{CORRELATION_ID_KEY: correlation_id})
    try:
        yield correlation_id
    finally:
        if previous is None:
            unbind_context(CORRELATION_ID_KEY)
        else:
            bind_context(**{CORRELATION_ID_KEY: previous})


__all__ = ["CORRELATION_ID_KEY", "correlation_scope"]
