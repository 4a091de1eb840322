"""Tagged variants for the external judgment capability and its outcomes.

The capability is decided once, when the adapter is built:

    JudgeDisabled            -> every review uses the heuristic judge
    JudgeEnabled(client)     -> every review asks the external judge first

Each external call yields an explicit outcome instead of raising:

    JudgmentSucceeded(scores) | JudgmentFailed(reason)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from qa_review.domain.models import JudgmentScores

if TYPE_CHECKING:
    from qa_review.domain.protocols import JudgmentClientProtocol


@dataclass(frozen=True)
class JudgeDisabled:
    """No external judge configured for this process."""

    reason: str = "no API key configured"


@dataclass(frozen=True)
class JudgeEnabled:
    """External judge available through ``client``."""

    client: JudgmentClientProtocol


JudgeMode = JudgeDisabled | JudgeEnabled


@dataclass(frozen=True)
class JudgmentSucceeded:
    """External judge answered with a well-formed score vector."""

    scores: JudgmentScores


@dataclass(frozen=True)
class JudgmentFailed:
    """External judge call failed; ``reason`` is for logs only."""

    reason: str
    error_type: str = "Exception"


JudgmentOutcome = JudgmentSucceeded | JudgmentFailed
