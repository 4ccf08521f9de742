"""Unit tests for the JSON log formatter."""

from __future__ import annotations

import json
import logging

from hitl_flows.logging import JsonFormatter, configure_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        "hitl_flows.test", logging.WARNING, __file__, 1, "Flow %s", ("aborted",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_lifts_flow_context() -> None:
    payload = json.loads(
        JsonFormatter().format(_record(flow_id="ctx", step_id="s1", cancelled_steps=2))
    )

    assert payload["message"] == "Flow aborted"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "hitl_flows.test"
    assert payload["flow_id"] == "ctx"
    assert payload["step_id"] == "s1"
    assert payload["extra"] == {"cancelled_steps": 2}


def test_formatter_without_extras() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert "extra" not in payload
    assert "flow_id" not in payload


def test_configure_logging_installs_single_json_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("debug")
        configure_logging("info")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.INFO
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
