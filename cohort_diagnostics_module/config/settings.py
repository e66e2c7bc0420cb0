"""Typed runtime settings and static module metadata loading."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cohort_diagnostics_module.domain import ModuleMetadata


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings or module metadata cannot be loaded or validated."""


class ModuleSettings(BaseSettings):
    """Process-level settings resolved once at startup.

    Environment variable names map directly to field names in uppercase.
    Example: `diagnostics_engine_target` reads from `DIAGNOSTICS_ENGINE_TARGET`.

    Attributes:
        module_metadata_path: Location of the static `MetaData.json` file.
        diagnostics_engine_target: Dotted path of the diagnostics engine adapter.
        cohort_compiler_target: Optional dotted path of a separate cohort compiler adapter.
        log_level: Root logging level for CLI runs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    module_metadata_path: Path = Field(default=Path("MetaData.json"))
    diagnostics_engine_target: str = Field(min_length=1)
    cohort_compiler_target: str | None = Field(default=None)
    log_level: str = Field(default="INFO")

    @field_validator("diagnostics_engine_target")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("cohort_compiler_target")
    @classmethod
    def _blank_compiler_target_is_unset(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unsupported log level {value!r}")
        return normalized


def config_load_settings() -> ModuleSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        ModuleSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return ModuleSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error


def config_load_module_metadata(metadata_path: Path | str) -> ModuleMetadata:
    """Load static module metadata such as the results table prefix.

    Args:
        metadata_path: Location of `MetaData.json`.

    Returns:
        ModuleMetadata: Validated module metadata.

    Raises:
        SettingsLoadError: Raised when the file is missing, unreadable, or invalid.
    """

    resolved_path = Path(metadata_path)
    if not resolved_path.is_file():
        raise SettingsLoadError(f"Module metadata file not found: {resolved_path}")

    try:
        with resolved_path.open("r", encoding="utf-8") as metadata_file:
            payload = json.load(metadata_file)
    except (OSError, json.JSONDecodeError) as error:
        raise SettingsLoadError(f"Module metadata file {resolved_path} could not be read: {error}") from error

    try:
        return ModuleMetadata.model_validate(payload)
    except ValidationError as error:
        raise SettingsLoadError(f"Module metadata validation failed for {resolved_path}. Details: {error}") from error
