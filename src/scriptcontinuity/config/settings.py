"""scriptcontinuity configuration settings."""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scriptcontinuity.exceptions import ConfigurationError, check_config_keys


class ContinuitySettings(BaseSettings):
    """scriptcontinuity configuration settings.

    Settings are loaded with the following precedence (highest to lowest):
    1. CLI arguments (when provided via command flags)
    2. Config file values (YAML, TOML, or JSON); later files override earlier
    3. Environment variables (prefixed with SCRIPTCONTINUITY_)
       Example: export SCRIPTCONTINUITY_LLM_ENDPOINT=http://localhost:1234/v1
    4. .env file (in current directory or specified path)
    5. Default values (defined in field declarations below)
    """

    model_config = SettingsConfigDict(
        env_prefix="SCRIPTCONTINUITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Debug settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Logging settings
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        pattern="^(?i)(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (console, json, structured)",
        pattern="^(?i)(console|json|structured)$",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    # Generative service settings
    llm_endpoint: str | None = Field(
        default=None,
        description="OpenAI-compatible API endpoint URL",
    )
    llm_api_key: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible endpoint",
    )
    llm_model: str | None = Field(
        default=None,
        description="Model to request completions from",
    )
    llm_temperature: float = Field(
        default=0.3,
        description="Sampling temperature for completions",
        ge=0.0,
        le=2.0,
    )
    llm_timeout: float = Field(
        default=120.0,
        description="HTTP timeout in seconds for one completion request",
        gt=0.0,
    )

    # Retry settings
    retry_attempts: int = Field(
        default=3,
        description="Total attempts per service call (1 = no retry)",
        ge=1,
    )
    retry_fixed_delay: float = Field(
        default=2.0,
        description="Delay in seconds before the single retry of a generic failure",
        ge=0.0,
    )
    retry_backoff_base: float = Field(
        default=2.0,
        description="Base of the exponential backoff applied to rate limits",
        ge=1.0,
    )

    # Analysis settings
    chunk_size: int = Field(
        default=60000,
        description="Maximum characters of script text per scene-structure prompt",
        ge=1000,
    )
    chunk_lookback: int = Field(
        default=5000,
        description="Characters before the chunk bound searched for a heading",
        ge=0,
    )
    chunk_lookahead: int = Field(
        default=1000,
        description="Characters after the chunk bound searched for a heading",
        ge=0,
    )
    max_script_length: int = Field(
        default=200000,
        description="Scripts longer than this are truncated before analysis",
        ge=1000,
    )
    inter_call_delay: float = Field(
        default=0.5,
        description="Pause in seconds between consecutive chunk requests",
        ge=0.0,
    )
    max_tokens_scenes: int = Field(default=8000, ge=1)
    max_tokens_characters: int = Field(default=8000, ge=1)
    max_tokens_continuity: int = Field(default=4000, ge=1)
    max_tokens_timeline: int = Field(default=4000, ge=1)
    max_tokens_descriptions: int = Field(default=4000, ge=1)

    @field_validator("log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        """Expand environment variables and ~ in path settings."""
        if v is None:
            return None
        if isinstance(v, Path):
            return v.resolve()
        if isinstance(v, str):
            return Path(os.path.expandvars(v)).expanduser().resolve()
        raise ValueError(
            f"Path fields must be string or Path, got {type(v).__name__}: {v!r}"
        )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Normalize log level to uppercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.upper()
        raise ValueError(f"log_level must be a string, got {type(v).__name__}")

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: Any) -> str:
        """Normalize log format to lowercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.lower()
        raise ValueError(f"log_format must be a string, got {type(v).__name__}")

    @field_validator("llm_model", mode="before")
    @classmethod
    def normalize_llm_model(cls, v: Any) -> Any:
        """Treat placeholders like "default" or "" as unset."""
        if isinstance(v, str) and v.strip().lower() in {"", "default", "auto", "none"}:
            return None
        return v

    @property
    def llm_configured(self) -> bool:
        """Whether an endpoint and key are both present."""
        return bool(self.llm_endpoint and self.llm_api_key)

    @classmethod
    def from_env(cls) -> ContinuitySettings:
        """Create settings from environment variables."""
        return cls()

    @classmethod
    def from_file(cls, config_path: Path | str) -> ContinuitySettings:
        """Load settings from a configuration file.

        Args:
            config_path: Path to configuration file (YAML, TOML, or JSON).

        Returns:
            Settings loaded from the file.

        Raises:
            ConfigurationError: If file format is not supported.
            FileNotFoundError: If config file doesn't exist.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        suffix = config_path.suffix.lower()

        if suffix in {".yml", ".yaml"}:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        elif suffix == ".json":
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise ConfigurationError(
                message=f"Unsupported configuration file format: {suffix}",
                hint="Use one of the supported formats: .yml, .yaml, .toml, or .json",
                details={
                    "file": str(config_path),
                    "detected_format": suffix,
                    "supported_formats": [".yml", ".yaml", ".toml", ".json"],
                },
            )

        check_config_keys(data)

        return cls(**data)

    @classmethod
    def from_multiple_sources(
        cls,
        config_files: list[Path | str] | None = None,
        env_file: Path | str | None = None,
        cli_args: dict[str, Any] | None = None,
    ) -> ContinuitySettings:
        """Load settings with proper precedence from multiple sources.

        Args:
            config_files: Config files to load (later files override earlier).
            env_file: Path to .env file (default: .env in current directory).
            cli_args: Dictionary of CLI arguments; None values are ignored.

        Returns:
            Merged settings from all sources.
        """
        data: dict[str, Any] = {}

        for config_file in config_files or []:
            try:
                file_settings = cls.from_file(config_file)
            except FileNotFoundError:
                from scriptcontinuity.config.logging import get_logger

                get_logger(__name__).warning(
                    "Configuration file not found, using defaults",
                    config_file=str(config_file),
                )
                continue
            data.update(file_settings.model_dump(exclude_unset=True))

        if env_file:
            settings = cast(
                "ContinuitySettings", cast(Any, cls)(_env_file=env_file, **data)
            )
        else:
            settings = cls(**data)

        if cli_args:
            cli_data = {k: v for k, v in cli_args.items() if v is not None}
            if cli_data:
                updated = settings.model_dump()
                updated.update(cli_data)
                settings = cls(**updated)

        return settings


_settings: ContinuitySettings | None = None


def _get_config_paths() -> list[Path | str]:
    """Existing config files in priority order (later files override earlier)."""
    potential_paths = [
        Path.home() / ".config" / "scriptcontinuity" / "config.yaml",
        Path.home() / ".config" / "scriptcontinuity" / "config.toml",
        Path.cwd() / "scriptcontinuity.yaml",
        Path.cwd() / "scriptcontinuity.toml",
        Path.cwd() / "scriptcontinuity.json",
    ]
    existing: list[Path | str] = []
    for path in potential_paths:
        try:
            if path.is_file():
                existing.append(path)
        except OSError:
            continue
    return existing


def get_settings() -> ContinuitySettings:
    """Get the global settings instance, loading it on first use."""
    global _settings
    if _settings is None:
        config_paths = _get_config_paths()
        if config_paths:
            _settings = ContinuitySettings.from_multiple_sources(
                config_files=config_paths
            )
        else:
            _settings = ContinuitySettings.from_env()
    return _settings


def set_settings(settings: ContinuitySettings) -> None:
    """Set the global settings instance.

    Args:
        settings: Settings instance to use globally.
    """
    global _settings
    _settings = settings


def clear_settings_cache() -> None:
    """Force get_settings() to re-read environment and config files."""
    global _settings
    _settings = None


def reset_settings() -> None:
    """Reset the global settings instance."""
    clear_settings_cache()
