"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

import pytest

from hud_github_relay.relay.logging import JsonFormatter, configure_logging


def _record(msg: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="hud_github_relay.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_emits_structured_fields() -> None:
    line = JsonFormatter().format(_record("Created issue #7 in o/r", issue_number=7))

    payload = json.loads(line)
    assert payload["level"] == "INFO"
    assert payload["logger"] == "hud_github_relay.test"
    assert payload["message"] == "Created issue #7 in o/r"
    assert payload["extra"] == {"issue_number": 7}
    assert "exception" not in payload


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("failed")
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_configure_logging_replaces_root_handlers(capsys: pytest.CaptureFixture[str]) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("debug")
        configure_logging("info")

        assert len(root.handlers) == 1
        assert root.level == logging.INFO
        assert logging.getLogger("github").level >= logging.INFO

        logging.getLogger("hud_github_relay.test").info("hello", extra={"repo": "o/r"})
        out = capsys.readouterr().out.strip().splitlines()
        assert json.loads(out[-1])["extra"] == {"repo": "o/r"}
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)


def test_json_formatter_renders_non_json_values_as_strings() -> None:
    created = datetime(2030, 1, 1, tzinfo=UTC)

    payload = json.loads(JsonFormatter().format(_record("registered", created_at=created)))

    assert payload["extra"] == {"created_at": "2030-01-01 00:00:00+00:00"}


def test_configure_logging_routes_uvicorn_through_root() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    access = logging.getLogger("uvicorn.access")
    access.addHandler(logging.NullHandler())
    access.propagate = False
    try:
        configure_logging("INFO")

        assert access.handlers == []
        assert access.propagate is True
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
