"""Structured Logging — JSON formatter surfaces graph context fields."""

import json
import logging

from app.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "app.services.connection_service", logging.INFO, __file__, 1,
        "Connection accept", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_extras():
    payload = json.loads(JSONFormatter().format(_record(
        user_id="u1", connection_id="c1", from_status="pending", to_status="accepted",
    )))
    assert payload["message"] == "Connection accept"
    assert payload["level"] == "INFO"
    assert payload["from_status"] == "pending"
    assert payload["to_status"] == "accepted"
    assert payload["connection_id"] == "c1"


def test_json_formatter_omits_missing_extras():
    payload = json.loads(JSONFormatter().format(_record()))
    assert "user_id" not in payload
    assert "candidate_count" not in payload


def test_setup_logging_does_not_stack_handlers():
    setup_logging("DEBUG", "json")
    setup_logging("INFO", "text")
    ours = [h for h in logging.root.handlers if h.get_name() == "neighbor_graph"]
    assert len(ours) == 1
    assert not isinstance(ours[0].formatter, JSONFormatter)
    assert logging.root.level == logging.INFO
