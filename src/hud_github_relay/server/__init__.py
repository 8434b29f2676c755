"""FastAPI server adapter for hud-github-relay.

Design intent:
- Keep GitHub and registry logic in `hud_github_relay.relay.*`
- Keep server-specific concerns (routing, auth header, error rendering) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from hud_github_relay.server.app import create_app
