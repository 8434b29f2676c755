"""Configuration for the relay server.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The App identity (ID + private key) is read once at startup and treated as
immutable for the lifetime of the process.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS: tuple[str, ...] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class RelaySettings(BaseSettings):
    """Settings for the GitHub App relay.

    Environment variables:
    - GITHUB_APP_ID
    - GITHUB_PRIVATE_KEY_PATH or GITHUB_PRIVATE_KEY
    - GITHUB_WEBHOOK_SECRET
    - API_SECRET
    - GITHUB_BASE_URL         (optional)
    - GITHUB_APP_SLUG         (optional)
    - GITHUB_TIMEOUT_SECONDS  (optional)
    - HOST, PORT              (optional)
    - LOG_LEVEL               (optional)

    Notes:
        Tests can point at a specific env file via `RelaySettings(_env_file=path)`.
    """

    # Empty defaults keep `RelaySettings()` type-checkable; the validator below
    # enforces that real values are provided.
    github_app_id: str = Field(
        default="",
        validation_alias="GITHUB_APP_ID",
        description="Numeric GitHub App identifier",
    )
    github_private_key_path: Path | None = Field(
        default=None,
        validation_alias="GITHUB_PRIVATE_KEY_PATH",
        description="Path to the App's PEM private key",
    )
    github_private_key: str = Field(
        default="",
        validation_alias="GITHUB_PRIVATE_KEY",
        description="Inline PEM private key (alternative to GITHUB_PRIVATE_KEY_PATH)",
    )
    github_webhook_secret: str = Field(
        default="",
        validation_alias="GITHUB_WEBHOOK_SECRET",
        description="Shared secret used to sign webhook deliveries",
    )
    api_secret: str = Field(
        default="",
        validation_alias="API_SECRET",
        description="Bearer secret required on /api/* requests",
    )

    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    github_app_slug: str = Field(
        default="",
        validation_alias="GITHUB_APP_SLUG",
        description="App slug, only used to print the install URL at startup",
    )
    github_timeout_seconds: int = Field(
        default=15,
        validation_alias="GITHUB_TIMEOUT_SECONDS",
        ge=1,
        le=300,
    )

    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=3000, validation_alias="PORT", ge=1, le=65535)

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def _require_app_identity(self) -> RelaySettings:
        missing: list[str] = []
        if not self.github_app_id.strip():
            missing.append("GITHUB_APP_ID")
        if self.github_private_key_path is None and not self.github_private_key.strip():
            missing.append("GITHUB_PRIVATE_KEY_PATH (or GITHUB_PRIVATE_KEY)")
        if not self.github_webhook_secret:
            missing.append("GITHUB_WEBHOOK_SECRET")
        if not self.api_secret:
            missing.append("API_SECRET")
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")
        return self

    def load_private_key(self) -> str:
        """Return the PEM private key, reading it from disk when a path is configured."""

        if self.github_private_key.strip():
            return self.github_private_key
        assert self.github_private_key_path is not None
        return self.github_private_key_path.read_text(encoding="utf-8")

    @property
    def install_url(self) -> str | None:
        slug = self.github_app_slug.strip()
        if not slug:
            return None
        return f"https://github.com/apps/{slug}/installations/new"
