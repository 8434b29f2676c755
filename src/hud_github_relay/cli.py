"""Console entrypoint; the implementation lives in `hud_github_relay.relay.main`."""

from __future__ import annotations

from hud_github_relay.relay.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
