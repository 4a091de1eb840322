"""Tests for YAML-backed settings."""

import shutil
from pathlib import Path

import pytest
from pydantic import SecretStr

from qa_review.config.settings import Settings, deep_merge, load_all_configs

REPO_SCHEMA = Path("config/schemas/main.schema.json")


def test_yaml_values_are_loaded(settings: Settings) -> None:
    assert settings.llm_model == "gpt-4o-mini"
    assert settings.qa_trigger_marker == "@QAreview"
    assert settings.qa_history_window == 3
    assert settings.link_penalty == 0.5
    assert settings.link_max_redirects == 3
    assert len(settings.qa_rules) == 6
    assert settings.qa_rules[0] == {"id": "formatting_consistency", "weight": 0.25}
    assert not settings.has_llm_credentials


def test_explicit_values_win_over_yaml() -> None:
    settings = Settings(openai_api_key=None, link_penalty=1.5, qa_history_window=0)

    assert settings.link_penalty == 1.5
    assert settings.qa_history_window == 0
    assert settings.llm_model == "gpt-4o-mini"


@pytest.mark.parametrize("value", ["", "   "])
def test_blank_api_key_is_missing(value: str) -> None:
    assert Settings(openai_api_key=value).openai_api_key is None


def test_api_key_is_secret() -> None:
    settings = Settings(openai_api_key="sk-test")

    assert isinstance(settings.openai_api_key, SecretStr)
    assert settings.openai_api_key.get_secret_value() == "sk-test"
    assert "sk-test" not in repr(settings)
    assert settings.has_llm_credentials


def test_deep_merge_nested() -> None:
    merged = deep_merge(
        {"links": {"timeout_seconds": 5, "penalty": 0.5}, "qa": {"history_window": 3}},
        {"links": {"penalty": 1.0}},
    )

    assert merged == {
        "links": {"timeout_seconds": 5, "penalty": 1.0},
        "qa": {"history_window": 3},
    }


def test_extra_yaml_files_override_main(tmp_path: Path) -> None:
    (tmp_path / "main.yaml").write_text("links:\n  penalty: 0.5\n  max_workers: 4\n")
    (tmp_path / "overrides.yaml").write_text("links:\n  penalty: 2.0\n")

    config = load_all_configs(tmp_path)

    assert config["links"] == {"penalty": 2.0, "max_workers": 4}


def test_schema_violation_raises(tmp_path: Path) -> None:
    (tmp_path / "schemas").mkdir()
    shutil.copy(REPO_SCHEMA, tmp_path / "schemas" / "main.schema.json")
    (tmp_path / "main.yaml").write_text("links:\n  penalty: -1\n")

    with pytest.raises(ValueError, match="Config validation failed for main"):
        load_all_configs(tmp_path)


def test_unknown_key_rejected_by_schema(tmp_path: Path) -> None:
    (tmp_path / "schemas").mkdir()
    shutil.copy(REPO_SCHEMA, tmp_path / "schemas" / "main.schema.json")
    (tmp_path / "main.yaml").write_text("qa:\n  trigger: '@review'\n")

    with pytest.raises(ValueError):
        load_all_configs(tmp_path)


def test_missing_config_dir_is_empty(tmp_path: Path) -> None:
    assert load_all_configs(tmp_path / "absent") == {}
