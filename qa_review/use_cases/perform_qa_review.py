"""Perform QA review use case.

Single-pass pipeline for one message:

1. Validate input
2. Snapshot enabled rules (engine and aggregator see the same set)
3. Extract links, probe them (only when there are any)
4. Judge the message (external judge with heuristic fallback)
5. Apply rules
6. Score, collect issues and suggestions, decide the verdict

Only ``QAReviewFailedError`` leaves ``QAReviewEngine.review``.
"""

from collections.abc import Mapping, Sequence
from time import perf_counter
from typing import Any

from qa_review.adapters.judgment_adapter import JudgmentAdapter, create_judgment_adapter
from qa_review.adapters.link_validator import HttpLinkValidator
from qa_review.config.logging_config import get_logger
from qa_review.config.settings import Settings
from qa_review.domain.exceptions import InvalidReviewRequestError, QAReviewFailedError
from qa_review.domain.models import (
    ConversationMessage,
    LinkValidationResult,
    QAResult,
    TaskContext,
)
from qa_review.domain.protocols import JudgmentClientProtocol, LinkValidatorProtocol
from qa_review.domain.qa_constants import LINK_PENALTY_PER_FAILURE
from qa_review.observability.tracing import correlation_scope
from qa_review.services.issue_generator import generate_issues, generate_suggestions
from qa_review.services.link_extractor import extract_urls
from qa_review.services.rule_engine import RuleEngine
from qa_review.services.rule_store import RuleStore
from qa_review.services.score_aggregator import (
    calculate_overall_score,
    determine_category,
)

logger = get_logger(__name__)

TaskContextInput = TaskContext | Mapping[str, Any] | None
HistoryInput = Sequence[ConversationMessage | Mapping[str, Any]] | None


def _coerce_task_context(task_context: TaskContextInput) -> TaskContext:
    if task_context is None:
        return TaskContext()
    if isinstance(task_context, TaskContext):
        return task_context
    # Unknown or null fields fall back to the model defaults
    return TaskContext.model_validate(
        {key: value for key, value in task_context.items() if value is not None}
    )


def _coerce_history(history: HistoryInput) -> list[ConversationMessage]:
    if not history:
        return []
    messages: list[ConversationMessage] = []
    for item in history:
        if isinstance(item, ConversationMessage):
            messages.append(item)
        elif isinstance(item, Mapping):
            messages.append(
                ConversationMessage.model_validate(
                    {key: value for key, value in item.items() if value is not None}
                )
            )
    return messages


class QAReviewEngine:
    """Reviews one message at a time; safe to share across threads."""

    def __init__(
        self,
        rule_store: RuleStore | None = None,
        link_validator: LinkValidatorProtocol | None = None,
        judgment_adapter: JudgmentAdapter | None = None,
        rule_engine: RuleEngine | None = None,
        link_penalty: float = LINK_PENALTY_PER_FAILURE,
    ) -> None:
        """Initialize the engine.

        Args:
            rule_store: Shared rule configuration
            link_validator: URL prober (HTTP HEAD by default)
            judgment_adapter: Judge with fallback (heuristic only by default)
            rule_engine: Rule checks (built over ``rule_store`` by default)
            link_penalty: Score deduction per broken or unreachable link
        """
        self.rule_store = rule_store or RuleStore()
        self.link_validator = link_validator or HttpLinkValidator()
        self.judgment_adapter = judgment_adapter or JudgmentAdapter()
        self.rule_engine = rule_engine or RuleEngine(
            self.rule_store, trigger_marker=self.judgment_adapter.trigger_marker
        )
        self.link_penalty = link_penalty

    def review(
        self,
        message: str,
        task_context: TaskContextInput = None,
        history: HistoryInput = None,
        *,
        correlation_id: str | None = None,
    ) -> QAResult:
        """Review a message.

        Args:
            message: Message text
            task_context: Task the message belongs to (defaults filled in)
            history: Prior messages of the conversation
            correlation_id: Optional correlation id for logs

        Returns:
            Complete review result

        Raises:
            QAReviewFailedError: If the review could not be completed
        """
        with correlation_scope(correlation_id):
            try:
                return self._review(message, task_context, history)
            except QAReviewFailedError:
                raise
            except Exception as e:
                logger.error(
                    "qa_review_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise QAReviewFailedError(str(e) or type(e).__name__) from e

    def _review(
        self,
        message: str,
        task_context: TaskContextInput,
        history: HistoryInput,
    ) -> QAResult:
        if not isinstance(message, str) or not message:
            raise InvalidReviewRequestError("Invalid message content provided")

        started = perf_counter()
        context = _coerce_task_context(task_context)
        prior_messages = _coerce_history(history)
        rules = self.rule_store.get_enabled_rules()

        logger.info(
            "qa_review_started",
            message_length=len(message),
            history_length=len(prior_messages),
            enabled_rules=len(rules),
        )

        links = extract_urls(message)
        link_results: list[LinkValidationResult] = []
        if links:
            link_results = self.link_validator.validate_links(links)

        scores = self.judgment_adapter.judge_with_fallback(
            message, context, prior_messages
        )

        rule_results = self.rule_engine.apply_rules(
            message, context, scores, rules=rules, links=links
        )
        score = calculate_overall_score(
            rule_results, rules, link_results, self.link_penalty
        )
        issues = generate_issues(rule_results, rules, link_results)
        suggestions = generate_suggestions(issues, scores.improvements)
        category = determine_category(score, issues)

        result = QAResult(
            score=score,
            feedback=scores.overall_feedback,
            suggestions=suggestions,
            issues=issues,
            link_validation=link_results or None,
            rule_results=rule_results,
            category=category,
        )

        logger.info(
            "qa_review_completed",
            score=score,
            category=category.value,
            issues_count=len(issues),
            links_count=len(links),
            duration_ms=int((perf_counter() - started) * 1000),
        )
        return result


def build_engine(
    settings: Settings,
    *,
    rule_store: RuleStore | None = None,
    link_validator: LinkValidatorProtocol | None = None,
    judge_client: JudgmentClientProtocol | None = None,
) -> QAReviewEngine:
    """Wire an engine from settings.

    Args:
        settings: Application settings
        rule_store: Shared rule store (built from settings overrides when None)
        link_validator: URL prober (HTTP validator from settings when None)
        judge_client: External judge (OpenAI client when a key is configured)

    Returns:
        Ready engine
    """
    store = rule_store or RuleStore.from_overrides(settings.qa_rules)
    return QAReviewEngine(
        rule_store=store,
        link_validator=link_validator or HttpLinkValidator.from_settings(settings),
        judgment_adapter=create_judgment_adapter(settings, client=judge_client),
        link_penalty=settings.link_penalty,
    )
