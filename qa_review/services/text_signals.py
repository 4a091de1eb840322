"""Message property detectors shared by the heuristic judge and the rules.

Each detector looks at one direct property of the raw message text.
"""

import re
from dataclasses import dataclass
from typing import Final

from qa_review.domain.qa_constants import (
    DETAILED_MESSAGE_MIN_LENGTH,
    QA_TRIGGER_MARKER,
)
from qa_review.services.link_extractor import extract_urls, is_well_formed_url

CONTACT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"@|\bphone\b|\bcontact\b|\+\d|\b\d{3}[-.\s]\d{3}[-.\s]\d{4}\b",
    flags=re.IGNORECASE,
)
"""Contact-identifying tokens: e-mail/handle '@', phone words or numbers, 'contact'."""

NEGATIVE_SENTIMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\b(bad|terrible|awful|sucks|stupid)\b", flags=re.IGNORECASE
)
"""Rudeness markers that cost tone points."""

GREETING_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(hi|hello|hey|thanks|thank you|good (morning|afternoon|evening))\b",
    flags=re.IGNORECASE,
)
"""Professional opening at the start of the message."""

HELPFUL_CLOSING_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"let me know|please|help|contact|reach out", flags=re.IGNORECASE
)
"""Helpful closing / call to action anywhere in the message."""

STRUCTURE_CHARACTERS: Final[tuple[str, ...]] = ("\n", ".", ",")
"""Punctuation that signals sentences or sections."""

LAYOUT_MARKERS: Final[tuple[str, ...]] = ("\n", "•", "-")
"""Visual layout markers (line breaks, bullets, dashes)."""

TRUNCATION_MARKER: Final[str] = "..."


@dataclass(frozen=True)
class MessageSignals:
    """Direct properties of a message used for scoring."""

    length: int
    is_detailed: bool
    has_contact_info: bool
    is_polite: bool
    has_structure: bool
    has_layout_markers: bool
    has_qa_trigger: bool
    has_greeting: bool
    has_helpful_closing: bool
    is_truncated: bool
    links: tuple[str, ...]
    malformed_links: tuple[str, ...]

    @property
    def has_links(self) -> bool:
        return bool(self.links)


def strip_trigger(text: str, marker: str = QA_TRIGGER_MARKER) -> str:
    """Remove the QA trigger marker so its '@' is not read as contact info."""
    return re.sub(re.escape(marker), " ", text, flags=re.IGNORECASE)


def has_contact_info(text: str, marker: str = QA_TRIGGER_MARKER) -> bool:
    """Check for contact-identifying tokens outside the trigger marker.

    Example:
        >>> has_contact_info("Reach me at ops@example.com")
        True
        >>> has_contact_info("fix it now @QAreview")
        False
    """
    return bool(CONTACT_PATTERN.search(strip_trigger(text, marker)))


def is_polite(text: str) -> bool:
    """Check that no rudeness marker appears."""
    return NEGATIVE_SENTIMENT_PATTERN.search(text) is None


def contains_qa_trigger(text: str, marker: str = QA_TRIGGER_MARKER) -> bool:
    """Check whether a message asks for a QA review.

    Example:
        >>> contains_qa_trigger("Done, see the doc @QAreview")
        True
    """
    return bool(text) and marker.lower() in text.lower()


def detect_signals(text: str, marker: str = QA_TRIGGER_MARKER) -> MessageSignals:
    """Collect every message property used by the judges and rules.

    Args:
        text: Raw message text
        marker: QA trigger marker

    Returns:
        Detected signals
    """
    links = tuple(extract_urls(text))
    return MessageSignals(
        length=len(text),
        is_detailed=len(text) > DETAILED_MESSAGE_MIN_LENGTH,
        has_contact_info=has_contact_info(text, marker),
        is_polite=is_polite(text),
        has_structure=any(char in text for char in STRUCTURE_CHARACTERS),
        has_layout_markers=any(char in text for char in LAYOUT_MARKERS),
        has_qa_trigger=contains_qa_trigger(text, marker),
        has_greeting=bool(GREETING_PATTERN.search(text.strip())),
        has_helpful_closing=bool(HELPFUL_CLOSING_PATTERN.search(text)),
        is_truncated=TRUNCATION_MARKER in text,
        links=links,
        malformed_links=tuple(url for url in links if not is_well_formed_url(url)),
    )
