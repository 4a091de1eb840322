"""LLM client adapter for message quality judgment.

Implements JudgmentClientProtocol with OpenAI integration.
"""

import hashlib
import json
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

import yaml
from openai import APIError, OpenAI
from openai import RateLimitError as OpenAIRateLimitError
from pydantic import ValidationError as PydanticValidationError

from qa_review.config.logging_config import get_logger
from qa_review.domain.exceptions import LLMAPIError, ValidationError
from qa_review.domain.models import ConversationMessage, JudgmentScores, TaskContext
from qa_review.domain.qa_constants import HISTORY_WINDOW

if TYPE_CHECKING:
    from qa_review.config.settings import Settings

PREVIEW_LENGTH_RESPONSE: Final[int] = 500
"""Maximum characters of a bad response kept in logs."""

DEFAULT_PROMPT_PATH: Final[Path] = Path("config/prompts/qa_review.yaml")

logger = get_logger(__name__)


@dataclass(frozen=True)
class PromptFileData:
    """Loaded prompt payload with metadata."""

    content: str
    version: str | None
    checksum: str
    size_bytes: int
    path: Path


@dataclass
class _PromptCacheEntry:
    """Cache entry storing metadata for a prompt file."""

    mtime: float
    data: PromptFileData


_PROMPT_CACHE: dict[Path, _PromptCacheEntry] = {}


def load_prompt_from_file(file_path: str) -> PromptFileData:
    """Load prompt template from a file with caching and metadata.

    Args:
        file_path: Path to the prompt file (relative paths resolve against the
            working directory, then the repository root)

    Returns:
        Prompt payload metadata

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If YAML prompt file has invalid structure
    """
    raw_path = Path(file_path).expanduser()
    path = raw_path if raw_path.is_absolute() else (Path.cwd() / raw_path).resolve()

    if not path.exists():
        repo_root = Path(__file__).resolve().parents[2]
        alt_path = (repo_root / raw_path).resolve()
        if alt_path.exists():
            path = alt_path
        else:
            raise FileNotFoundError(f"Prompt file not found: {file_path}")

    stat_result = path.stat()
    cache_entry = _PROMPT_CACHE.get(path)
    if cache_entry and cache_entry.mtime == stat_result.st_mtime:
        return cache_entry.data

    if path.suffix.lower() in {".yaml", ".yml"}:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(parsed, dict):
            raise ValueError(f"Prompt YAML must be a mapping: {path}")

        version = parsed.get("version")
        if not isinstance(version, str):
            raise ValueError(f"Prompt YAML missing 'version' string: {path}")

        system_prompt = parsed.get("system")
        if not isinstance(system_prompt, str):
            raise ValueError(f"Prompt YAML missing 'system' string: {path}")
    else:
        system_prompt = path.read_text(encoding="utf-8")
        version = None

    encoded = system_prompt.encode("utf-8")
    prompt_data = PromptFileData(
        content=system_prompt,
        version=version,
        checksum=hashlib.sha256(encoded).hexdigest(),
        size_bytes=len(encoded),
        path=path,
    )

    _PROMPT_CACHE[path] = _PromptCacheEntry(
        mtime=stat_result.st_mtime, data=prompt_data
    )
    return prompt_data


class LLMJudgeClient:
    """OpenAI client scoring support messages."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        timeout: int = 30,
        max_tokens: int = 1000,
        history_window: int = HISTORY_WINDOW,
        prompt_file: str | None = None,
        client: OpenAI | None = None,
    ) -> None:
        """Initialize LLM client.

        Args:
            api_key: OpenAI API key
            model: Model name
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            max_tokens: Maximum output tokens
            history_window: Prior messages included in the prompt
            prompt_file: Path to prompt YAML (defaults to config/prompts/qa_review.yaml)
            client: Pre-built OpenAI client (tests)
        """
        self.client = client or OpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.history_window = history_window

        prompt_data = load_prompt_from_file(prompt_file or str(DEFAULT_PROMPT_PATH))
        self.system_prompt = prompt_data.content
        self.prompt_version = prompt_data.version

        logger.info(
            "llm_system_prompt_ready",
            prompt_hash=prompt_data.checksum,
            prompt_version=prompt_data.version,
            prompt_path=str(prompt_data.path),
            prompt_size_bytes=prompt_data.size_bytes,
        )

    @classmethod
    def from_settings(
        cls, settings: "Settings", client: OpenAI | None = None
    ) -> "LLMJudgeClient":
        """Build a client from application settings.

        Raises:
            ValueError: If no API key is configured
        """
        if settings.openai_api_key is None:
            raise ValueError("OPENAI_API_KEY is not configured")
        return cls(
            api_key=settings.openai_api_key.get_secret_value(),
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout_seconds,
            max_tokens=settings.llm_max_tokens,
            history_window=settings.qa_history_window,
            prompt_file=settings.llm_prompt_file,
            client=client,
        )

    def judge(
        self,
        message: str,
        task_context: TaskContext,
        history: Sequence[ConversationMessage],
    ) -> JudgmentScores:
        """Score a message.

        Args:
            message: Message under review
            task_context: Task the message belongs to
            history: Prior messages of the conversation

        Returns:
            Validated score vector

        Raises:
            LLMAPIError: On API communication errors
            ValidationError: On response validation failure
        """
        start_time = time.time()
        prompt = self._build_prompt(message, task_context, history)

        logger.debug(
            "llm_judge_request",
            model=self.model,
            temperature=self.temperature,
            prompt_length=len(prompt),
        )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except OpenAIRateLimitError as e:
            raise LLMAPIError(f"Rate limit exceeded: {e}") from e
        except APIError as e:
            raise LLMAPIError(f"OpenAI API error: {e}") from e
        except Exception as e:
            raise LLMAPIError(f"Unexpected error: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValidationError("Empty response from LLM")

        try:
            response_data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(
                "llm_judge_invalid_json",
                preview=content[:PREVIEW_LENGTH_RESPONSE],
            )
            raise ValidationError(f"Invalid JSON from LLM: {e}") from e

        try:
            scores = JudgmentScores.model_validate(response_data)
        except PydanticValidationError as e:
            raise ValidationError(f"Response validation failed: {e}") from e

        usage = response.usage
        logger.info(
            "llm_judge_response",
            model=self.model,
            latency_ms=latency_ms,
            tokens_in=usage.prompt_tokens if usage else 0,
            tokens_out=usage.completion_tokens if usage else 0,
        )
        return scores

    def _build_prompt(
        self,
        message: str,
        task_context: TaskContext,
        history: Sequence[ConversationMessage],
    ) -> str:
        """Build user prompt for LLM.

        Args:
            message: Message under review
            task_context: Task context
            history: Prior messages (only the last ``history_window`` are used)

        Returns:
            Formatted prompt
        """
        recent = list(history)[-self.history_window :] if self.history_window else []

        prompt_parts = [
            "CONTEXT:",
            f"Task: {task_context.title}",
            f"Status: {task_context.status}",
            f"Priority: {task_context.priority}",
            f"Requester: {task_context.requester_name}",
        ]

        if recent:
            prompt_parts.append("\nCONVERSATION HISTORY:")
            prompt_parts.extend(f"{msg.sender_name}: {msg.content}" for msg in recent)

        prompt_parts.append(f"\nMESSAGE TO REVIEW:\n{message}")
        return "\n".join(prompt_parts)
