"""Hud GitHub Relay.

A thin server that relays bug reports to customer repositories through a
GitHub App:
- installation-scoped issue creation behind a bearer secret
- webhook signature verification
- an in-memory customer → installation registry
"""

__version__ = "0.1.0"

from hud_github_relay.relay.config import RelaySettings

__all__ = ["__version__", "RelaySettings"]
