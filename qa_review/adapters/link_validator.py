"""HTTP link validator.

Implements LinkValidatorProtocol with ``requests`` HEAD probes run on a
small thread pool. Every URL yields exactly one result; probe failures are
classified, never raised.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Final

import requests

from qa_review.config.logging_config import get_logger
from qa_review.domain.models import LinkStatus, LinkValidationResult
from qa_review.domain.qa_constants import (
    LINK_MAX_REDIRECTS,
    LINK_MAX_WORKERS,
    LINK_TIMEOUT_SECONDS,
)

if TYPE_CHECKING:
    from qa_review.config.settings import Settings

DNS_FAILURE_MARKERS: Final[tuple[str, ...]] = (
    "name or service not known",
    "getaddrinfo failed",
    "nodename nor servname",
    "nameresolutionerror",
    "failed to resolve",
    "temporary failure in name resolution",
)
"""Lowercased fragments of connection errors caused by DNS resolution."""

USER_AGENT: Final[str] = "qa-review-link-validator/1.0"

logger = get_logger(__name__)


def is_dns_failure(error: Exception) -> bool:
    """Check whether a connection error comes from hostname resolution."""
    text = f"{type(error).__name__} {error}".lower()
    return any(marker in text for marker in DNS_FAILURE_MARKERS)


class HttpLinkValidator:
    """Probes URLs with HEAD requests."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = LINK_TIMEOUT_SECONDS,
        max_redirects: int = LINK_MAX_REDIRECTS,
        max_workers: int = LINK_MAX_WORKERS,
    ) -> None:
        """Initialize validator.

        Args:
            session: HTTP session dedicated to this validator (a new one
                carrying the validator User-Agent is created when None). Its
                ``max_redirects`` is overwritten and the worker threads share it;
                headers are left as given.
            timeout: Per-request timeout in seconds
            max_redirects: Redirect hops followed per probe
            max_workers: Concurrent probes
        """
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = USER_AGENT
        session.max_redirects = max_redirects
        self.session = session
        self.timeout = timeout
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_settings(
        cls, settings: "Settings", session: requests.Session | None = None
    ) -> "HttpLinkValidator":
        """Build a validator from application settings."""
        return cls(
            session=session,
            timeout=settings.link_timeout_seconds,
            max_redirects=settings.link_max_redirects,
            max_workers=settings.link_max_workers,
        )

    def validate_links(self, urls: Sequence[str]) -> list[LinkValidationResult]:
        """Validate URLs concurrently.

        Args:
            urls: URLs to probe

        Returns:
            One result per URL, in input order
        """
        if not urls:
            return []

        workers = min(self.max_workers, len(urls))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(self.validate_link, urls))

        logger.info(
            "link_validation_finished",
            total=len(results),
            valid=sum(1 for result in results if result.is_valid),
        )
        return results

    def validate_link(self, url: str) -> LinkValidationResult:
        """Probe a single URL. Never raises."""
        try:
            response = self.session.head(
                url, timeout=self.timeout, allow_redirects=True
            )
        except requests.exceptions.Timeout:
            return self._unreachable(url, "Request timeout")
        except requests.exceptions.ConnectionError as e:
            if is_dns_failure(e):
                return self._unreachable(url, "Domain not found")
            return self._unreachable(url, str(e) or "Unknown error occurred")
        except Exception as e:
            return self._unreachable(url, str(e) or "Unknown error occurred")

        if response.status_code >= 400:
            logger.debug("link_invalid", url=url, status_code=response.status_code)
            return LinkValidationResult(
                url=url,
                status=LinkStatus.INVALID,
                status_code=response.status_code,
                error=f"HTTP {response.status_code}: {response.reason}",
            )

        # requests normalizes URLs ("https://x.com" -> "https://x.com/"), so
        # only a followed redirect counts as a new location
        redirected_to = (
            response.url if response.history and response.url != url else None
        )
        return LinkValidationResult(
            url=url,
            status=LinkStatus.VALID,
            status_code=response.status_code,
            redirected_to=redirected_to,
        )

    @staticmethod
    def _unreachable(url: str, error: str) -> LinkValidationResult:
        logger.debug("link_unreachable", url=url, error=error)
        return LinkValidationResult(url=url, status=LinkStatus.UNREACHABLE, error=error)
