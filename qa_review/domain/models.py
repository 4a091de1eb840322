"""Domain models for the QA review engine.

All models use Pydantic v2 for validation and serialization. Review output
models serialize with camelCase aliases (``ruleResults``, ``linkValidation``)
because that is the shape the chat layer broadcasts.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

import pytz
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from qa_review.domain.qa_constants import (
    HIGH_SEVERITY_BELOW,
    MAX_SCORE,
    MEDIUM_SEVERITY_BELOW,
    MIN_SCORE,
)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(tz=pytz.UTC)


class RuleCategory(str, Enum):
    """Rule grouping shown in the rule configuration surface."""

    FORMATTING = "formatting"
    CONTENT = "content"
    TECHNICAL = "technical"
    LINKS = "links"


class LinkStatus(str, Enum):
    """Outcome of a single link probe."""

    VALID = "valid"
    INVALID = "invalid"
    UNREACHABLE = "unreachable"


class IssueSeverity(str, Enum):
    """Severity of a detected issue."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_score(cls, score: float) -> "IssueSeverity":
        """Derive severity from the originating rule score.

        Example:
            >>> IssueSeverity.from_score(4.0)
            <IssueSeverity.HIGH: 'high'>
            >>> IssueSeverity.from_score(6.0)
            <IssueSeverity.MEDIUM: 'medium'>
        """
        if score < HIGH_SEVERITY_BELOW:
            return cls.HIGH
        if score < MEDIUM_SEVERITY_BELOW:
            return cls.MEDIUM
        return cls.LOW


class ReviewCategory(str, Enum):
    """Final verdict of a review."""

    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"
    REJECTED = "rejected"


class ReviewStatus(str, Enum):
    """Workflow status of a stored review."""

    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING = "pending"

    @classmethod
    def from_category(cls, category: ReviewCategory) -> "ReviewStatus":
        """Map a review verdict onto the stored workflow status."""
        if category == ReviewCategory.APPROVED:
            return cls.APPROVED
        if category == ReviewCategory.REJECTED:
            return cls.REJECTED
        return cls.PENDING


class CamelModel(BaseModel):
    """Base for models exchanged with the chat layer (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_payload(self) -> dict[str, object]:
        """Serialize to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class QARule(BaseModel):
    """Named, weighted rule applied to every reviewed message."""

    id: str = Field(..., min_length=1, description="Stable rule identifier")
    name: str = Field(..., description="Human readable rule name")
    description: str = Field(default="", description="What the rule checks")
    enabled: bool = Field(default=True, description="Disabled rules are skipped")
    weight: float = Field(
        default=0.1,
        ge=0.0,
        description="Relative weight in the overall score (normalized by the aggregator)",
    )
    category: RuleCategory = Field(
        default=RuleCategory.CONTENT, description="Rule grouping"
    )


class RuleResult(CamelModel):
    """Outcome of one rule for one review."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    passed: bool
    score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    feedback: str = ""


class LinkValidationResult(CamelModel):
    """Outcome of probing one URL."""

    model_config = ConfigDict(frozen=True)

    url: str
    status: LinkStatus
    status_code: int | None = None
    error: str | None = None
    redirected_to: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.status == LinkStatus.VALID


class QAIssue(CamelModel):
    """One detected problem with a suggested fix."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: IssueSeverity
    message: str
    suggestion: str


class JudgmentScores(CamelModel):
    """Sub-score vector produced by a judge (heuristic or external).

    The camelCase aliases double as the JSON contract requested from the
    external judge, so a remote response validates straight into this model.
    """

    model_config = ConfigDict(frozen=True)

    overall_feedback: str = Field(..., min_length=1)
    formatting_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    organization_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    completeness_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    clarity_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    link_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    tone_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    specific_issues: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)

    @field_validator("specific_issues", "improvements", mode="before")
    @classmethod
    def _drop_blank_entries(cls, value: object) -> object:
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str) and item.strip()]
        return value


class TaskContext(BaseModel):
    """Task the reviewed message belongs to.

    Every field has a default so a partially known task never fails a review.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = "Unknown task"
    status: str = "unknown"
    priority: str = "medium"
    requester_name: str = "Unknown"


class ConversationMessage(BaseModel):
    """Prior message of the same task conversation.

    Chat-layer records name the author ``sender``; ``sender_name`` is
    accepted too.
    """

    model_config = ConfigDict(extra="ignore")

    sender_name: str = Field(
        default="Unknown", validation_alias=AliasChoices("sender_name", "sender")
    )
    content: str = ""
    created_at: datetime | None = None


class QAResult(CamelModel):
    """Immutable output of one review."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    feedback: str
    suggestions: list[str] = Field(..., min_length=1)
    issues: list[QAIssue] = Field(default_factory=list)
    link_validation: list[LinkValidationResult] | None = None
    rule_results: list[RuleResult] = Field(default_factory=list)
    category: ReviewCategory

    @property
    def high_severity_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == IssueSeverity.HIGH)


class QAReviewRecord(CamelModel):
    """Stored review: a result plus the identity the caller assigned to it."""

    id: UUID = Field(default_factory=uuid4)
    message_id: str
    task_id: str
    message_content: str
    result: QAResult
    status: ReviewStatus
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def category(self) -> ReviewCategory:
        return self.result.category


class ReviewSubmission(BaseModel):
    """What the chat layer gets back after asking for a review."""

    message_id: str
    task_id: str
    triggered: bool
    record: QAReviewRecord | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.record is not None and self.error is None


class IssueFrequency(CamelModel):
    """How often a rule raised issues in a stats window."""

    rule_id: str
    count: int


class ScoreBandCount(CamelModel):
    """Number of reviews whose score falls in a band."""

    range: str
    count: int


class LinkValidationStats(CamelModel):
    """Aggregate of link probes across reviews."""

    total_links: int = 0
    valid_links: int = 0
    invalid_links: int = 0
    unreachable_links: int = 0
    valid_percentage: int = 0


class QAStats(CamelModel):
    """Read-side projection over stored reviews of one task."""

    task_id: str | None
    timeframe: str
    total_reviews: int
    average_score: float
    approved_count: int
    needs_revision_count: int
    rejected_count: int
    common_issues: list[IssueFrequency] = Field(default_factory=list)
    score_distribution: list[ScoreBandCount] = Field(default_factory=list)
    link_validation_stats: LinkValidationStats = Field(
        default_factory=LinkValidationStats
    )
