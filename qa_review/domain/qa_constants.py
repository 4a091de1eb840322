"""Scoring constants and thresholds for the QA review engine.

Rule weights live in the rule store (see ``DEFAULT_QA_RULES`` in
``qa_review.services.rule_store``); the limits and business rules that apply
to every review are defined here.
"""

from typing import Final

# Score scale
MIN_SCORE: Final[float] = 1.0
"""Lowest score any rule or review can carry."""

MAX_SCORE: Final[float] = 10.0
"""Highest score any rule or review can carry."""

NEUTRAL_SCORE: Final[float] = 7.0
"""Overall score used when no enabled rule carries weight.

Business rule: with every rule disabled there is nothing to judge, so the
review lands on the heuristic baseline instead of an extreme.
"""

UNIMPLEMENTED_RULE_SCORE: Final[float] = 8.0
"""Score given to an enabled rule that has no check registered."""

PASSING_SCORE: Final[float] = 7.0
"""Rule scores at or above this value pass (and raise no issue)."""

# Issue severity thresholds
HIGH_SEVERITY_BELOW: Final[float] = 5.0
"""Rule scores strictly below this value produce a high-severity issue."""

MEDIUM_SEVERITY_BELOW: Final[float] = 7.0
"""Rule scores strictly below this value (and >= 5) produce a medium issue."""

# Category gates
APPROVED_MIN_SCORE: Final[float] = 8.0
"""Minimum overall score for ``approved`` (also requires zero high issues)."""

NEEDS_REVISION_MIN_SCORE: Final[float] = 6.0
"""Minimum overall score for ``needs_revision``."""

NEEDS_REVISION_MAX_HIGH_ISSUES: Final[int] = 1
"""Maximum high-severity issues tolerated for ``needs_revision``.

Example:
    - score 9.5, 2 high issues → rejected
    - score 8.0, 1 high issue → needs_revision
"""

# Link handling
LINK_PENALTY_PER_FAILURE: Final[float] = 0.5
"""Flat deduction per non-valid link, applied after rule weighting.

Accumulation is unbounded: many broken links can pull a review down to the
floor even when every rule passes. The final clamp keeps the score >= 1.
"""

LINK_TIMEOUT_SECONDS: Final[float] = 5.0
"""Per-URL probe timeout."""

LINK_MAX_REDIRECTS: Final[int] = 3
"""Redirect hops tolerated per probe."""

LINK_MAX_WORKERS: Final[int] = 4
"""Concurrent link probes per review."""

# Heuristic judge
HEURISTIC_BASELINE: Final[float] = 7.0
"""Starting point of the local judge before signal bonuses."""

HEURISTIC_SIGNAL_BONUS: Final[float] = 0.5
"""Increment per positive signal detected by the local judge."""

HEURISTIC_MIN_SCORE: Final[float] = 5.0
"""Lower bound of every heuristic score."""

HEURISTIC_MAX_SCORE: Final[float] = 10.0
"""Upper bound of every heuristic score."""

# Message length thresholds (characters)
DETAILED_MESSAGE_MIN_LENGTH: Final[int] = 100
"""Messages longer than this count as detailed."""

ORGANIZED_MESSAGE_MIN_LENGTH: Final[int] = 50
"""Messages longer than this (without truncation) read as organized."""

REASONABLE_MESSAGE_MIN_LENGTH: Final[int] = 20
"""Lower bound of the ideal message length band."""

REASONABLE_MESSAGE_MAX_LENGTH: Final[int] = 800
"""Upper bound of the ideal message length band."""

MAX_MESSAGE_LENGTH: Final[int] = 1500
"""Messages longer than this always fail the clarity rule."""

TOO_LONG_PENALTY: Final[float] = 2.0
"""Deduction applied to the clarity score of an over-long message."""

# Output limits
MAX_SUGGESTIONS: Final[int] = 5
"""Maximum suggestions attached to a review."""

DEFAULT_SUGGESTION: Final[str] = "Message meets quality standards"
"""Suggestion emitted when a review produced nothing to improve."""

# Trigger and context
QA_TRIGGER_MARKER: Final[str] = "@QAreview"
"""Substring that makes the chat layer request a review."""

HISTORY_WINDOW: Final[int] = 3
"""Prior conversation messages handed to the external judge."""

LINK_VALIDATION_RULE_ID: Final[str] = "link_validation"
"""Synthetic rule id carried by issues raised for broken links."""
