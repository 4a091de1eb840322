"""Custom exception hierarchy for the QA review engine.

Following error taxonomy: retryable, non-retryable, validation.
Link probes and judge calls never raise past their own component; only
orchestrator-level failures surface, as ``QAReviewFailedError``.
"""


class QAReviewError(Exception):
    """Base exception for all application errors."""

    pass


class RetryableError(QAReviewError):
    """Errors that can be retried (network issues, temporary failures)."""

    pass


class NonRetryableError(QAReviewError):
    """Errors that should not be retried (validation, logic errors)."""

    pass


class ValidationError(NonRetryableError):
    """Data validation errors (e.g. malformed judge output)."""

    pass


class InvalidReviewRequestError(NonRetryableError):
    """Review requested without the content or identifiers it needs."""

    pass


class RuleNotFoundError(NonRetryableError):
    """Rule configuration refers to an unknown rule id."""

    def __init__(self, rule_id: str) -> None:
        """Initialize with the offending rule id."""
        self.rule_id = rule_id
        super().__init__(f"Unknown QA rule: {rule_id}")


class LLMAPIError(RetryableError):
    """LLM API communication errors."""

    pass


class RepositoryError(RetryableError):
    """Review storage errors."""

    pass


class QAReviewFailedError(QAReviewError):
    """A review could not be completed.

    The only error the engine lets escape; callers log it and report the
    review as failed without touching the message that triggered it.
    """

    def __init__(self, reason: str) -> None:
        """Initialize with the underlying failure description."""
        self.reason = reason
        super().__init__(f"QA review failed: {reason}")
