"""GitHub App integration: credentials and installation-scoped issue creation."""

from __future__ import annotations

from hud_github_relay.relay.github.credentials import (
    AppCredential,
    AppToken,
    CredentialProvider,
    InstallationToken,
)
from hud_github_relay.relay.github.issue_relay import IssueRelay, IssueRequest, IssueResult

__all__ = [
    "AppCredential",
    "AppToken",
    "CredentialProvider",
    "InstallationToken",
    "IssueRelay",
    "IssueRequest",
    "IssueResult",
]
