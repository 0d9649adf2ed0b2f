from __future__ import annotations

import json
import logging

from trainops.utils.logging import JsonFormatter, setup_logging


def test_json_formatter_includes_extras() -> None:
    record = logging.LogRecord("trainops.x", logging.INFO, __file__, 1, "tick %d", (3,), None)
    record.interval_ms = 500
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "trainops.x"
    assert payload["message"] == "tick 3"
    assert payload["interval_ms"] == 500


def test_setup_logging_quiets_dash() -> None:
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        setup_logging("debug")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("werkzeug").level == logging.CRITICAL
        assert logging.getLogger("dash").propagate is False
    finally:
        root.setLevel(saved_level)
        root.handlers[:] = saved_handlers
