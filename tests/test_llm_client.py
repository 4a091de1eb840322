"""Tests for the OpenAI judge client and prompt loading."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import pytest
from pytest_mock import MockerFixture

from qa_review.adapters import llm_client
from qa_review.adapters.llm_client import LLMJudgeClient, load_prompt_from_file
from qa_review.config.settings import Settings
from qa_review.domain.exceptions import LLMAPIError, ValidationError
from qa_review.domain.models import ConversationMessage, TaskContext

VALID_PAYLOAD = {
    "overallFeedback": "Clear and professional.",
    "formattingScore": 8,
    "organizationScore": 7,
    "completenessScore": 9,
    "clarityScore": 9,
    "linkScore": 10,
    "toneScore": 8,
    "specificIssues": ["Missing next steps", ""],
    "improvements": ["Add an ETA"],
}


@pytest.fixture(autouse=True)
def clear_prompt_cache() -> None:
    """Ensure prompt cache is cleared between tests."""

    llm_client._PROMPT_CACHE.clear()


def _openai_client(mocker: MockerFixture, content: str | None) -> Any:
    client = mocker.MagicMock()
    response = mocker.MagicMock()
    response.choices = [mocker.MagicMock()]
    response.choices[0].message.content = content
    response.usage.prompt_tokens = 120
    response.usage.completion_tokens = 40
    client.chat.completions.create.return_value = response
    return client


def _judge(client: Any, **kwargs: Any) -> LLMJudgeClient:
    return LLMJudgeClient(api_key="sk-test", client=client, **kwargs)


class TestPromptLoading:
    """Validate prompt loading from YAML and plain text files."""

    def test_loads_review_prompt_with_version(self) -> None:
        prompt = load_prompt_from_file("config/prompts/qa_review.yaml")

        assert prompt.version == "qa-review-2025-01"
        assert "overallFeedback" in prompt.content
        assert (
            prompt.checksum
            == hashlib.sha256(prompt.content.encode("utf-8")).hexdigest()
        )

    def test_supports_text_prompts(self, tmp_path: Path) -> None:
        prompt_file = tmp_path / "legacy.txt"
        prompt_file.write_text("Plain prompt content")

        prompt = load_prompt_from_file(str(prompt_file))

        assert prompt.version is None
        assert prompt.content == "Plain prompt content"

    def test_yaml_without_version_is_rejected(self, tmp_path: Path) -> None:
        prompt_file = tmp_path / "broken.yaml"
        prompt_file.write_text("system: hello\n")

        with pytest.raises(ValueError, match="version"):
            load_prompt_from_file(str(prompt_file))

    def test_missing_file(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_prompt_from_file("config/prompts/does_not_exist.yaml")

    def test_cache_hit_without_mtime_change(self, tmp_path: Path) -> None:
        prompt_file = tmp_path / "cached.yaml"
        prompt_file.write_text('version: "v1"\nsystem: first\n')

        first = load_prompt_from_file(str(prompt_file))
        second = load_prompt_from_file(str(prompt_file))

        assert first is second


def test_judge_parses_camel_case_response(mocker: MockerFixture) -> None:
    client = _openai_client(mocker, json.dumps(VALID_PAYLOAD))
    judge = _judge(client, model="gpt-4o-mini", temperature=0.3, max_tokens=500)

    scores = judge.judge("Fixed, see docs.", TaskContext(), [])

    assert scores.overall_feedback == "Clear and professional."
    assert scores.organization_score == 7.0
    assert scores.link_score == 10.0
    assert scores.specific_issues == ["Missing next steps"]
    assert scores.improvements == ["Add an ETA"]

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 500
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0]["role"] == "system"
    assert "Fixed, see docs." in kwargs["messages"][1]["content"]


def test_judge_empty_response(mocker: MockerFixture) -> None:
    judge = _judge(_openai_client(mocker, ""))

    with pytest.raises(ValidationError, match="Empty response"):
        judge.judge("msg", TaskContext(), [])


def test_judge_invalid_json(mocker: MockerFixture) -> None:
    judge = _judge(_openai_client(mocker, "not json"))

    with pytest.raises(ValidationError, match="Invalid JSON"):
        judge.judge("msg", TaskContext(), [])


def test_judge_missing_field(mocker: MockerFixture) -> None:
    payload = dict(VALID_PAYLOAD)
    del payload["toneScore"]
    judge = _judge(_openai_client(mocker, json.dumps(payload)))

    with pytest.raises(ValidationError, match="Response validation failed"):
        judge.judge("msg", TaskContext(), [])


def test_judge_out_of_range_score(mocker: MockerFixture) -> None:
    payload = dict(VALID_PAYLOAD, clarityScore=11)
    judge = _judge(_openai_client(mocker, json.dumps(payload)))

    with pytest.raises(ValidationError):
        judge.judge("msg", TaskContext(), [])


def test_judge_api_failure(mocker: MockerFixture) -> None:
    client = _openai_client(mocker, None)
    client.chat.completions.create.side_effect = RuntimeError("connection reset")
    judge = _judge(client)

    with pytest.raises(LLMAPIError, match="connection reset"):
        judge.judge("msg", TaskContext(), [])


def test_prompt_includes_context_and_recent_history(mocker: MockerFixture) -> None:
    judge = _judge(_openai_client(mocker, None), history_window=3)
    history = [
        ConversationMessage(sender_name=f"user{i}", content=f"message {i}")
        for i in range(5)
    ]
    context = TaskContext(
        title="Login broken", status="ongoing", priority="high", requester_name="Alice"
    )

    prompt = judge._build_prompt("Fixed it.", context, history)

    assert "Task: Login broken" in prompt
    assert "Status: ongoing" in prompt
    assert "Priority: high" in prompt
    assert "Requester: Alice" in prompt
    assert "user0: message 0" not in prompt
    assert "user1: message 1" not in prompt
    assert "user2: message 2" in prompt
    assert "user4: message 4" in prompt
    assert prompt.endswith("MESSAGE TO REVIEW:\nFixed it.")


def test_prompt_names_senders_of_chat_records(mocker: MockerFixture) -> None:
    judge = _judge(_openai_client(mocker, None), history_window=3)
    history = [
        ConversationMessage.model_validate(record)
        for record in (
            {"sender": "Alice", "content": "Any update?"},
            {"sender_name": "Bob", "content": "Working on it"},
            {"content": "ping"},
        )
    ]

    prompt = judge._build_prompt("Fixed it.", TaskContext(), history)

    assert "Alice: Any update?" in prompt
    assert "Bob: Working on it" in prompt
    assert "Unknown: ping" in prompt


def test_prompt_without_history(mocker: MockerFixture) -> None:
    judge = _judge(_openai_client(mocker, None))

    prompt = judge._build_prompt("Fixed it.", TaskContext(), [])

    assert "CONVERSATION HISTORY" not in prompt
    assert "Task: Unknown task" in prompt


def test_from_settings_requires_key() -> None:
    with pytest.raises(ValueError):
        LLMJudgeClient.from_settings(Settings(openai_api_key=None))


def test_from_settings(mocker: MockerFixture) -> None:
    settings = Settings(openai_api_key="sk-test", llm_model="gpt-4o", llm_max_tokens=300)
    judge = LLMJudgeClient.from_settings(settings, client=_openai_client(mocker, None))

    assert judge.model == "gpt-4o"
    assert judge.max_tokens == 300
    assert judge.prompt_version == "qa-review-2025-01"
