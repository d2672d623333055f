# src/mapwright/core/config.py
"""
Configuration schema and loading for mapwright.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from datetime import date
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from mapwright.contracts.enums import DuplicateEdgePolicy

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class LoggingSettings(BaseModel):
    """Logging output configuration.

    Example YAML:
        logging:
          level: DEBUG
          json_output: true
    """

    model_config = {"frozen": True}

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        normalized = v.upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return normalized


class ResolutionSettings(BaseModel):
    """Value resolution behaviour.

    Example YAML:
        resolution:
          duplicate_edge_policy: reject
          today: 2025-01-31
    """

    model_config = {"frozen": True}

    duplicate_edge_policy: DuplicateEdgePolicy = Field(
        default=DuplicateEdgePolicy.WARN,
        description="What to do when several edges write the same target field",
    )
    today: date | None = Field(
        default=None,
        description="Fixed 'today' for date-relative IfThen comparisons (None = local date)",
    )


class ExportSettings(BaseModel):
    """Defaults applied when producing documents."""

    model_config = {"frozen": True}

    default_name: str = Field(default="Untitled Mapping", description="Mapping name when none is given")
    execution_version: str = Field(default="1.0.0", description="Version string of Execution Config documents")
    author: str = Field(default="mapwright", description="metadata.author of exported documents")
    indent: Literal[0, 2, 4] = Field(default=2, description="JSON indent for Visual Config files (0 = compact)")


class MapwrightSettings(BaseModel):
    """Top-level mapwright configuration.

    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    resolution: ResolutionSettings = Field(default_factory=ResolutionSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)


def default_settings() -> MapwrightSettings:
    """Settings with every default applied (no file, no environment)."""
    return MapwrightSettings()


def load_settings(config_path: Path) -> MapwrightSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (MAPWRIGHT_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: MAPWRIGHT_LOGGING__LEVEL for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated MapwrightSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="MAPWRIGHT",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic expects lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return MapwrightSettings(**raw_config)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value
