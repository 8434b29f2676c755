"""Unit tests for relay settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from hud_github_relay.relay.config import RelaySettings

_ENV_VARS = (
    "GITHUB_APP_ID",
    "GITHUB_PRIVATE_KEY_PATH",
    "GITHUB_PRIVATE_KEY",
    "GITHUB_WEBHOOK_SECRET",
    "API_SECRET",
    "GITHUB_BASE_URL",
    "GITHUB_APP_SLUG",
    "GITHUB_TIMEOUT_SECONDS",
    "HOST",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_settings_loads_from_dotenv(clean_env: Path, private_key_file: Path) -> None:
    (clean_env / ".env").write_text(
        "\n".join(
            [
                "GITHUB_APP_ID=12345",
                f"GITHUB_PRIVATE_KEY_PATH={private_key_file}",
                "GITHUB_WEBHOOK_SECRET=hook-secret",
                "API_SECRET=api-secret",
                "PORT=8080",
                "LOG_LEVEL=DEBUG",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = RelaySettings()

    assert settings.github_app_id == "12345"
    assert settings.github_private_key_path == private_key_file
    assert settings.github_webhook_secret == "hook-secret"
    assert settings.api_secret == "api-secret"
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"


def test_settings_defaults(clean_env: Path, private_key_file: Path) -> None:
    settings = RelaySettings(
        GITHUB_APP_ID="1",
        GITHUB_PRIVATE_KEY_PATH=str(private_key_file),
        GITHUB_WEBHOOK_SECRET="w",
        API_SECRET="a",
    )

    assert settings.github_base_url == "https://api.github.com"
    assert settings.github_timeout_seconds == 15
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000
    assert settings.log_level == "INFO"
    assert settings.install_url is None


def test_settings_environment_overrides(
    clean_env: Path, private_key_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("GITHUB_APP_ID", "777")
    monkeypatch.setenv("GITHUB_PRIVATE_KEY_PATH", str(private_key_file))
    monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "w")
    monkeypatch.setenv("API_SECRET", "a")
    monkeypatch.setenv("GITHUB_APP_SLUG", "hud-bug-reporter")

    settings = RelaySettings()

    assert settings.github_app_id == "777"
    assert settings.install_url == "https://github.com/apps/hud-bug-reporter/installations/new"


def test_missing_required_settings_are_reported(clean_env: Path) -> None:
    with pytest.raises(ValidationError) as exc_info:
        RelaySettings()

    message = str(exc_info.value)
    assert "GITHUB_APP_ID" in message
    assert "GITHUB_PRIVATE_KEY_PATH" in message
    assert "GITHUB_WEBHOOK_SECRET" in message
    assert "API_SECRET" in message


def test_private_key_is_read_from_path(
    clean_env: Path, private_key_file: Path, private_key_pem: str
) -> None:
    settings = RelaySettings(
        GITHUB_APP_ID="1",
        GITHUB_PRIVATE_KEY_PATH=str(private_key_file),
        GITHUB_WEBHOOK_SECRET="w",
        API_SECRET="a",
    )

    assert settings.load_private_key() == private_key_pem


def test_inline_private_key_is_accepted(clean_env: Path, private_key_pem: str) -> None:
    settings = RelaySettings(
        GITHUB_APP_ID="1",
        GITHUB_PRIVATE_KEY=private_key_pem,
        GITHUB_WEBHOOK_SECRET="w",
        API_SECRET="a",
    )

    assert settings.github_private_key_path is None
    assert settings.load_private_key() == private_key_pem


def test_missing_private_key_file_raises(clean_env: Path) -> None:
    settings = RelaySettings(
        GITHUB_APP_ID="1",
        GITHUB_PRIVATE_KEY_PATH=str(clean_env / "missing.pem"),
        GITHUB_WEBHOOK_SECRET="w",
        API_SECRET="a",
    )

    with pytest.raises(FileNotFoundError):
        settings.load_private_key()


@pytest.mark.parametrize(("raw", "expected"), [("debug", "DEBUG"), (" Warning ", "WARNING")])
def test_log_level_is_normalized(
    clean_env: Path, private_key_file: Path, raw: str, expected: str
) -> None:
    settings = RelaySettings(
        GITHUB_APP_ID="1",
        GITHUB_PRIVATE_KEY_PATH=str(private_key_file),
        GITHUB_WEBHOOK_SECRET="w",
        API_SECRET="a",
        LOG_LEVEL=raw,
    )

    assert settings.log_level == expected


@pytest.mark.parametrize("raw", ["verbose", "", "5"])
def test_unknown_log_level_is_rejected(clean_env: Path, private_key_file: Path, raw: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        RelaySettings(
            GITHUB_APP_ID="1",
            GITHUB_PRIVATE_KEY_PATH=str(private_key_file),
            GITHUB_WEBHOOK_SECRET="w",
            API_SECRET="a",
            LOG_LEVEL=raw,
        )

    assert "LOG_LEVEL must be one of" in str(exc_info.value)
