"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation.
A YAML config file provides defaults; environment variables override it.
"""

import json
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.defaults import DEFAULT_PATTERNS, DEFAULT_REDACTION_TEXT, DEFAULT_SENSITIVE_FIELDS
from .core.policy import FieldMatchMode, MaskingStrategy, RedactionMode

CONFIG_FILE_ENV = "LOGREDACT_CONFIG_FILE"
PLACEHOLDER_REPEAT = 8


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = os.environ.get(CONFIG_FILE_ENV)

    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            "../../config.yaml",  # Project root from src/logredact
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


class PatternSettings(BaseModel):
    """One named content pattern."""

    name: str = Field(description="Pattern name, used in metrics")
    pattern: str = Field(description="Regular expression")
    priority: Optional[int] = Field(default=None, description="Lower runs first; defaults to list position")
    ignore_case: bool = Field(default=False, description="Compile case-insensitively")


def _default_patterns() -> List[PatternSettings]:
    return [
        PatternSettings(name=name, pattern=pattern, ignore_case=ignore_case)
        for name, pattern, ignore_case in DEFAULT_PATTERNS
    ]


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    max_payload_bytes: int = Field(default=1048576, description="Maximum request body size (1MB)")

    model_config = SettingsConfigDict(env_prefix="LOGREDACT_SERVER_")


class LoggingSettings(BaseSettings):
    """Log output configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="console", description="Renderer: console or json")

    @field_validator("level", mode="before")
    def normalize_level(cls, v: Any) -> str:
        return str(v).upper()

    @field_validator("format", mode="before")
    def validate_format(cls, v: Any) -> str:
        value = str(v).strip().lower()
        if value not in ("console", "json"):
            raise ValueError(f"Unknown log format: {v!r} (expected console or json)")
        return value

    model_config = SettingsConfigDict(env_prefix="LOGREDACT_LOGGING_")


class RedactionSettings(BaseSettings):
    """Redaction policy configuration."""

    enabled: bool = Field(default=True, description="Master switch")
    redaction_text: str = Field(default=DEFAULT_REDACTION_TEXT, description="Placeholder for redacted values")
    redaction_character: Optional[str] = Field(
        default=None,
        description="If set, the placeholder is this character repeated 8 times",
    )
    sensitive_fields: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SENSITIVE_FIELDS),
        description="Field names whose values are always masked",
    )
    patterns: List[PatternSettings] = Field(
        default_factory=_default_patterns,
        description="Ordered content patterns",
    )
    mode: RedactionMode = Field(default=RedactionMode.FULL, description="Masking mode")
    field_strategies: Dict[str, MaskingStrategy] = Field(
        default_factory=dict,
        description="Field name to masking strategy",
    )
    field_match: FieldMatchMode = Field(default=FieldMatchMode.SUBSTRING, description="Field name matching")
    hash_salt: str = Field(default="", description="Salt for the hash strategy")
    max_depth: int = Field(default=32, ge=1, description="Nesting depth at which containers are masked wholesale")

    @field_validator("sensitive_fields", mode="before")
    def parse_sensitive_fields(cls, v: Any) -> Any:
        """Accept a comma separated string as well as a list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("patterns", mode="before")
    def parse_patterns(cls, v: Any) -> Any:
        """Accept a name -> pattern mapping as well as a list of entries."""
        if isinstance(v, dict):
            return [{"name": name, "pattern": pattern} for name, pattern in v.items()]
        return v

    @field_validator("mode", mode="before")
    def parse_mode(cls, v: Any) -> RedactionMode:
        if isinstance(v, str) and v.strip().isdigit():
            v = int(v)
        return RedactionMode.parse(v)

    @field_validator("field_strategies", mode="before")
    def parse_field_strategies(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(name): MaskingStrategy.parse(strategy) for name, strategy in v.items()}
        return v

    @field_validator("field_match", mode="before")
    def parse_field_match(cls, v: Any) -> FieldMatchMode:
        return FieldMatchMode.parse(v)

    @model_validator(mode="after")
    def apply_redaction_character(self) -> "RedactionSettings":
        if self.redaction_character:
            self.redaction_text = self.redaction_character[0] * PLACEHOLDER_REPEAT
        return self

    model_config = SettingsConfigDict(env_prefix="LOGREDACT_REDACTION_")


class Settings(BaseSettings):
    """Main application settings."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    redaction: RedactionSettings = Field(default_factory=RedactionSettings)

    model_config = SettingsConfigDict(env_prefix="LOGREDACT_", case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""

    # Load config file data
    config_data = load_config_file()

    # Set environment variables from config file if they don't exist
    # This allows config file to provide defaults, env vars to override
    if config_data:
        _set_env_from_config(config_data)

    # Let Pydantic Settings handle the rest (env vars override config file)
    settings = Settings()
    return settings


_SECTIONS = {
    "server": ("LOGREDACT_SERVER_", ServerSettings),
    "logging": ("LOGREDACT_LOGGING_", LoggingSettings),
    "redaction": ("LOGREDACT_REDACTION_", RedactionSettings),
}


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    for section, (prefix, settings_cls) in _SECTIONS.items():
        values = config_data.get(section) or {}
        if not isinstance(values, dict):
            continue

        for key, value in values.items():
            if key not in settings_cls.model_fields or value is None:
                continue

            env_var = f"{prefix}{key.upper()}"
            if env_var in os.environ:
                continue

            # Complex values travel as JSON, which pydantic-settings decodes
            if isinstance(value, (dict, list)):
                os.environ[env_var] = json.dumps(value)
            else:
                os.environ[env_var] = str(value)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
