"""Judgment adapter: external judge with heuristic fallback.

The capability (external judge or not) is decided once at construction.
With a judge, each call produces an explicit ``JudgmentOutcome``; a failed
outcome falls back to the local heuristic for that call only.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

from qa_review.adapters.llm_client import LLMJudgeClient
from qa_review.config.logging_config import get_logger
from qa_review.domain.judgment import (
    JudgeDisabled,
    JudgeEnabled,
    JudgeMode,
    JudgmentFailed,
    JudgmentOutcome,
    JudgmentSucceeded,
)
from qa_review.domain.models import ConversationMessage, JudgmentScores, TaskContext
from qa_review.domain.protocols import JudgmentClientProtocol
from qa_review.domain.qa_constants import HISTORY_WINDOW, QA_TRIGGER_MARKER
from qa_review.services.heuristic_analyzer import analyze_message

if TYPE_CHECKING:
    from qa_review.config.settings import Settings

logger = get_logger(__name__)


class JudgmentAdapter:
    """Produces a score vector for every message, whatever the judge does."""

    def __init__(
        self,
        mode: JudgeMode | None = None,
        trigger_marker: str = QA_TRIGGER_MARKER,
        history_window: int = HISTORY_WINDOW,
    ) -> None:
        """Initialize adapter.

        Args:
            mode: External judge capability (disabled when None)
            trigger_marker: QA trigger marker, for the heuristic
            history_window: Prior messages handed to the external judge
        """
        self.mode: JudgeMode = mode or JudgeDisabled()
        self.trigger_marker = trigger_marker
        self.history_window = history_window

    @property
    def uses_external_judge(self) -> bool:
        return isinstance(self.mode, JudgeEnabled)

    def judge(
        self,
        message: str,
        task_context: TaskContext,
        history: Sequence[ConversationMessage] = (),
    ) -> JudgmentOutcome:
        """Ask the external judge once.

        Returns:
            ``JudgmentSucceeded`` with the scores, or ``JudgmentFailed`` when
            the judge is disabled or the call failed
        """
        if isinstance(self.mode, JudgeDisabled):
            return JudgmentFailed(reason=self.mode.reason, error_type="JudgeDisabled")

        window = list(history)[-self.history_window :] if self.history_window else []
        try:
            scores = self.mode.client.judge(message, task_context, window)
        except Exception as e:
            return JudgmentFailed(reason=str(e), error_type=type(e).__name__)
        return JudgmentSucceeded(scores=scores)

    def judge_with_fallback(
        self,
        message: str,
        task_context: TaskContext,
        history: Sequence[ConversationMessage] = (),
    ) -> JudgmentScores:
        """Score a message, substituting the heuristic when the judge fails.

        Never raises.
        """
        if isinstance(self.mode, JudgeDisabled):
            return analyze_message(message, self.trigger_marker)

        outcome = self.judge(message, task_context, history)
        if isinstance(outcome, JudgmentSucceeded):
            return outcome.scores

        logger.warning(
            "judgment_fallback",
            reason=outcome.reason,
            error_type=outcome.error_type,
        )
        return analyze_message(message, self.trigger_marker)


def create_judgment_adapter(
    settings: "Settings", client: JudgmentClientProtocol | None = None
) -> JudgmentAdapter:
    """Decide the judge capability once from settings.

    Args:
        settings: Application settings
        client: Pre-built judge (skips OpenAI client construction)

    Returns:
        Adapter with the external judge enabled iff a client is given or an
        API key is configured
    """
    mode: JudgeMode
    if client is not None:
        mode = JudgeEnabled(client=client)
    elif settings.has_llm_credentials:
        mode = JudgeEnabled(client=LLMJudgeClient.from_settings(settings))
    else:
        mode = JudgeDisabled()

    logger.info(
        "judgment_mode_selected",
        external_judge=isinstance(mode, JudgeEnabled),
    )
    return JudgmentAdapter(
        mode=mode,
        trigger_marker=settings.qa_trigger_marker,
        history_window=settings.qa_history_window,
    )
