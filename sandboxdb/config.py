"""Configuration loading for the sandboxdb harness.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HarnessSettings(BaseSettings):
    """Harness configuration loaded from environment.

    Every field can be set with a ``SANDBOXDB_`` prefixed environment
    variable, e.g. ``SANDBOXDB_CLIENT_LABEL=client``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SANDBOXDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Sandbox configuration
    sandbox_name: str = Field(
        default="database-test",
        description="Name of the sandbox directory under the temporary root",
    )
    sandbox_root: Path | None = Field(
        default=None,
        description="Explicit sandbox root; overrides <tmp>/sandboxdb/<sandbox_name>",
    )

    # Database configuration
    client_label: str = Field(
        default="client",
        description="Logical label the test database is opened under",
    )
    database_extension: str = Field(
        default="db",
        description="Extension of the generated database filename",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("sandbox_name", "client_label", "database_extension")
    @classmethod
    def validate_path_component(cls, v: str) -> str:
        """Ensure names are usable as a single path component."""
        v = v.strip()
        if not v:
            raise ValueError("must be a non-empty string")
        if "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"must be a single path component, got {v!r}")
        return v

    @property
    def resolved_sandbox_root(self) -> Path:
        """The directory the sandbox wipes and populates."""
        if self.sandbox_root is not None:
            return self.sandbox_root
        return Path(tempfile.gettempdir()) / "sandboxdb" / self.sandbox_name


def load_settings(env_file: str | None = None) -> HarnessSettings:
    """Load harness settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated HarnessSettings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return HarnessSettings(_env_file=env_file)  # type: ignore[call-arg]
    return HarnessSettings()


__all__ = ["HarnessSettings", "load_settings"]
