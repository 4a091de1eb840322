"""Application settings with Pydantic Settings validation.

Secrets (API keys) are loaded from the environment or a .env file.
Non-sensitive configuration is loaded from config/main.yaml and config/*.yaml
files. All configs are merged and validated against JSON schemas when present.
"""

import json
from pathlib import Path
from typing import Any, Final, cast

import yaml
from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from qa_review.config.logging_config import get_logger
from qa_review.domain.qa_constants import (
    HISTORY_WINDOW,
    LINK_MAX_REDIRECTS,
    LINK_MAX_WORKERS,
    LINK_PENALTY_PER_FAILURE,
    LINK_TIMEOUT_SECONDS,
    QA_TRIGGER_MARKER,
)

CONFIG_DIR: Final[Path] = Path("config")
SCHEMA_DIR: Final[Path] = CONFIG_DIR / "schemas"
MAIN_CONFIG_NAME: Final[str] = "main.yaml"

LLM_MODEL_DEFAULT: Final[str] = "gpt-4o-mini"
LLM_TEMPERATURE_DEFAULT: Final[float] = 0.3
LLM_TIMEOUT_SECONDS_DEFAULT: Final[int] = 30
LLM_MAX_TOKENS_DEFAULT: Final[int] = 1000
LLM_PROMPT_FILE_DEFAULT: Final[str] = "config/prompts/qa_review.yaml"

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str, schema_dir: Path = SCHEMA_DIR) -> dict[str, Any]:
    """Load JSON Schema from config/schemas/.

    Args:
        schema_name: Schema name without extension (e.g., "main")
        schema_dir: Directory holding ``<name>.schema.json`` files

    Returns:
        JSON Schema dictionary or empty dict if not found
    """
    schema_path = schema_dir / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(
            "config_schema_load_failed",
            schema=schema_name,
            error=str(e),
        )
        return {}


def validate_config_section(
    config: dict[str, Any],
    schema_name: str,
    file_path: str = "",
    schema_dir: Path = SCHEMA_DIR,
) -> None:
    """Validate config section against JSON Schema.

    Args:
        config: Configuration dictionary to validate
        schema_name: Name of schema to validate against
        file_path: Optional file path for error messages
        schema_dir: Directory holding the schemas

    Raises:
        ValueError: If validation fails
    """
    schema = load_schema(schema_name, schema_dir)
    if not schema:
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ValueError(error_msg) from e


def load_all_configs(config_dir: Path = CONFIG_DIR) -> dict[str, Any]:
    """Load and merge all YAML configs from the config directory.

    Loading order (later overrides earlier):
    1. config/main.yaml
    2. All other config/*.yaml files (sorted alphabetically)

    Each file is validated against ``config/schemas/<stem>.schema.json`` if
    that schema exists.

    Args:
        config_dir: Directory to scan

    Returns:
        Merged configuration dictionary

    Raises:
        ValueError: If a file violates its schema
    """
    merged_config: dict[str, Any] = {}
    schema_dir = config_dir / "schemas"
    loaded = 0

    main_path = config_dir / MAIN_CONFIG_NAME
    yaml_files: list[Path] = []
    if config_dir.exists() and config_dir.is_dir():
        yaml_files = sorted(
            f for f in config_dir.glob("*.yaml") if f.name != MAIN_CONFIG_NAME
        )
    if main_path.exists():
        yaml_files.insert(0, main_path)

    for yaml_file in yaml_files:
        schema_name = yaml_file.stem
        try:
            with open(yaml_file, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "config_file_load_failed",
                path=str(yaml_file),
                error=str(e),
            )
            continue

        try:
            validate_config_section(
                file_config, schema_name, str(yaml_file), schema_dir
            )
        except ValueError as e:
            logger.error(
                "config_validation_failed",
                path=str(yaml_file),
                schema=schema_name,
                error=str(e),
            )
            raise

        merged_config = deep_merge(merged_config, file_config)
        loaded += 1
        logger.debug("config_file_loaded", path=str(yaml_file), schema=schema_name)

    logger.debug("config_load_complete", file_count=loaded)
    return merged_config


class Settings(BaseSettings):
    """Application settings.

    Secrets are loaded from the environment / .env file.
    Non-sensitive config is loaded from config/*.yaml with fallback to defaults.
    Explicit keyword arguments and environment values win over YAML.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from .env) ===

    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key (from .env). Without it the heuristic judge is used",
    )

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def _blank_secret_is_missing(cls, value: SecretStr | str | None) -> Any:
        if value is None:
            return None
        secret_value = (
            value.get_secret_value() if isinstance(value, SecretStr) else str(value)
        )
        if not secret_value.strip():
            return None
        return value

    def __init__(self, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        llm_config = config.get("llm") or {}
        _assign("llm_model", llm_config.get("model"))
        _assign("llm_temperature", llm_config.get("temperature"))
        _assign("llm_timeout_seconds", llm_config.get("timeout_seconds"))
        _assign("llm_max_tokens", llm_config.get("max_tokens"))
        _assign("llm_prompt_file", llm_config.get("prompt_file"))

        qa_config = config.get("qa") or {}
        _assign("qa_trigger_marker", qa_config.get("trigger_marker"))
        _assign("qa_history_window", qa_config.get("history_window"))
        rule_overrides = qa_config.get("rules")
        if isinstance(rule_overrides, list):
            _assign("qa_rules", [dict(rule) for rule in rule_overrides])

        links_config = config.get("links") or {}
        _assign("link_timeout_seconds", links_config.get("timeout_seconds"))
        _assign("link_max_redirects", links_config.get("max_redirects"))
        _assign("link_max_workers", links_config.get("max_workers"))
        _assign("link_penalty", links_config.get("penalty"))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))
        _assign("json_logs", logging_config.get("json"))

    # LLM configuration
    llm_model: str = Field(default=LLM_MODEL_DEFAULT, description="OpenAI model to use")
    llm_temperature: float = Field(
        default=LLM_TEMPERATURE_DEFAULT, ge=0.0, le=2.0, description="LLM temperature"
    )
    llm_timeout_seconds: int = Field(
        default=LLM_TIMEOUT_SECONDS_DEFAULT, ge=1, description="LLM request timeout"
    )
    llm_max_tokens: int = Field(
        default=LLM_MAX_TOKENS_DEFAULT, ge=1, description="Maximum judge output tokens"
    )
    llm_prompt_file: str = Field(
        default=LLM_PROMPT_FILE_DEFAULT, description="Path to the judge prompt YAML"
    )

    # Review configuration
    qa_trigger_marker: str = Field(
        default=QA_TRIGGER_MARKER,
        min_length=1,
        description="Substring that requests a review",
    )
    qa_history_window: int = Field(
        default=HISTORY_WINDOW,
        ge=0,
        description="Prior messages passed to the external judge",
    )
    qa_rules: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Partial rule overrides (each with an 'id') merged onto the defaults",
    )

    # Link validation
    link_timeout_seconds: float = Field(
        default=LINK_TIMEOUT_SECONDS, gt=0, description="Per-URL probe timeout"
    )
    link_max_redirects: int = Field(
        default=LINK_MAX_REDIRECTS, ge=0, description="Redirect hops per probe"
    )
    link_max_workers: int = Field(
        default=LINK_MAX_WORKERS, ge=1, description="Concurrent probes per review"
    )
    link_penalty: float = Field(
        default=LINK_PENALTY_PER_FAILURE,
        ge=0.0,
        description="Score deduction per broken or unreachable link",
    )

    # Observability
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON logs")

    @property
    def has_llm_credentials(self) -> bool:
        """True when an external judge can be configured."""
        return self.openai_api_key is not None


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
