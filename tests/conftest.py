"""Test configuration and fixtures."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import Mock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from hud_github_relay.relay.config import RelaySettings
from hud_github_relay.relay.github.credentials import CredentialProvider, InstallationToken

API_SECRET = "test-api-secret"
WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def api_secret() -> str:
    return API_SECRET


@pytest.fixture
def webhook_secret() -> str:
    return WEBHOOK_SECRET


@pytest.fixture(scope="session")
def private_key_pem() -> str:
    """Provide a throwaway RSA key in PEM form."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def private_key_file(tmp_path: Path, private_key_pem: str) -> Path:
    path = tmp_path / "app.private-key.pem"
    path.write_text(private_key_pem, encoding="utf-8")
    return path


@pytest.fixture
def settings(private_key_file: Path) -> RelaySettings:
    """Provide relay settings that do not read the environment's .env file."""
    return RelaySettings(
        _env_file=None,
        GITHUB_APP_ID="12345",
        GITHUB_PRIVATE_KEY_PATH=str(private_key_file),
        GITHUB_WEBHOOK_SECRET=WEBHOOK_SECRET,
        API_SECRET=API_SECRET,
    )


@pytest.fixture
def credentials() -> Mock:
    """Provide a credential provider that hands out a fixed installation token."""
    provider = Mock(spec=CredentialProvider)
    provider.get_installation_token.side_effect = lambda installation_id: InstallationToken(
        installation_id=installation_id,
        token="ghs_installation_token",
        expires_at=datetime(2030, 1, 1, tzinfo=UTC),
    )
    return provider


@pytest.fixture
def github() -> Mock:
    """Provide a PyGithub stand-in whose create_issue returns issue #7."""
    client = Mock()
    issue = Mock()
    issue.number = 7
    issue.html_url = "https://github.com/o/r/issues/7"
    issue.title = "t"
    client.get_repo.return_value.create_issue.return_value = issue
    return client


@pytest.fixture
def github_factory(github: Mock) -> Mock:
    return Mock(return_value=github)
