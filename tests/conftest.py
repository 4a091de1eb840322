"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest

from qa_review.adapters.event_publisher import InMemoryEventPublisher
from qa_review.adapters.judgment_adapter import JudgmentAdapter
from qa_review.adapters.memory_review_repository import InMemoryReviewRepository
from qa_review.config.settings import Settings
from qa_review.domain.models import (
    ConversationMessage,
    JudgmentScores,
    LinkStatus,
    LinkValidationResult,
    TaskContext,
)
from qa_review.services.rule_store import RuleStore
from qa_review.use_cases.perform_qa_review import QAReviewEngine

OAUTH_MESSAGE = (
    "Hi, thanks for reaching out. I've fixed the OAuth issue, here's the doc: "
    "https://docs.example.com/oauth. Contact me at ops@example.com. @QAreview"
)
UNREACHABLE_URL = "https://this-domain-does-not-exist-xyz123.invalid"


def make_scores(**overrides: Any) -> JudgmentScores:
    """Build a score vector with every dimension at 8 unless overridden."""

    values: dict[str, Any] = {
        "overall_feedback": "Solid answer.",
        "formatting_score": 8.0,
        "organization_score": 8.0,
        "completeness_score": 8.0,
        "clarity_score": 8.0,
        "link_score": 8.0,
        "tone_score": 8.0,
        "specific_issues": [],
        "improvements": [],
    }
    values.update(overrides)
    return JudgmentScores(**values)


class FakeLinkValidator:
    """Link validator answering from a URL -> status table (valid by default)."""

    def __init__(self, statuses: dict[str, LinkStatus] | None = None) -> None:
        self.statuses = statuses or {}
        self.calls: list[list[str]] = []

    def validate_links(self, urls: Sequence[str]) -> list[LinkValidationResult]:
        self.calls.append(list(urls))
        results = []
        for url in urls:
            status = self.statuses.get(url, LinkStatus.VALID)
            if status == LinkStatus.VALID:
                results.append(
                    LinkValidationResult(url=url, status=status, status_code=200)
                )
            elif status == LinkStatus.INVALID:
                results.append(
                    LinkValidationResult(
                        url=url,
                        status=status,
                        status_code=404,
                        error="HTTP 404: Not Found",
                    )
                )
            else:
                results.append(
                    LinkValidationResult(
                        url=url, status=status, error="Domain not found"
                    )
                )
        return results


class FakeJudge:
    """External judge returning fixed scores or raising a fixed error."""

    def __init__(
        self,
        scores: JudgmentScores | None = None,
        error: Exception | None = None,
    ) -> None:
        self.scores = scores or make_scores()
        self.error = error
        self.calls: list[tuple[str, TaskContext, list[ConversationMessage]]] = []

    def judge(
        self,
        message: str,
        task_context: TaskContext,
        history: Sequence[ConversationMessage],
    ) -> JudgmentScores:
        self.calls.append((message, task_context, list(history)))
        if self.error is not None:
            raise self.error
        return self.scores


@pytest.fixture
def settings() -> Settings:
    """Settings from config/main.yaml without an API key."""

    return Settings(openai_api_key=None)


@pytest.fixture
def rule_store() -> RuleStore:
    return RuleStore()


@pytest.fixture
def link_validator() -> FakeLinkValidator:
    return FakeLinkValidator({UNREACHABLE_URL: LinkStatus.UNREACHABLE})


@pytest.fixture
def engine(rule_store: RuleStore, link_validator: FakeLinkValidator) -> QAReviewEngine:
    """Heuristic-only engine with faked link probes."""

    return QAReviewEngine(
        rule_store=rule_store,
        link_validator=link_validator,
        judgment_adapter=JudgmentAdapter(),
    )


@pytest.fixture
def repository() -> InMemoryReviewRepository:
    return InMemoryReviewRepository()


@pytest.fixture
def publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def task_context() -> TaskContext:
    return TaskContext(
        title="Fix login issue for enterprise customers",
        status="ongoing",
        priority="high",
        requester_name="Alice Cooper",
    )
