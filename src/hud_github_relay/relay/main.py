"""CLI entrypoint for the relay server."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from pydantic import ValidationError

from hud_github_relay import __version__
from hud_github_relay.relay.config import RelaySettings
from hud_github_relay.relay.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hud-github-relay",
        description="Relay bug reports to customer repositories through a GitHub App",
    )
    parser.add_argument(
        "--version", action="version", version=f"hud-github-relay {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=None, help="Bind address (defaults to HOST)")
    serve.add_argument("--port", type=int, default=None, help="Listen port (defaults to PORT)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = RelaySettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        if args.command == "serve":
            # Imported here so `--help` works without the server stack loaded.
            from hud_github_relay.server.app import create_app

            try:
                app = create_app(settings)
            except OSError as e:
                logger.error(
                    "Could not read GitHub App private key",
                    extra={"path": str(settings.github_private_key_path), "error": str(e)},
                )
                return 2

            host = args.host or settings.host
            port = args.port or settings.port
            logger.info(
                f"Hud GitHub relay running on port {port}",
                extra={
                    "host": host,
                    "webhook_url": f"http://localhost:{port}/webhook",
                    "install_url": settings.install_url,
                },
            )
            uvicorn.run(app, host=host, port=port, log_config=None)
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
