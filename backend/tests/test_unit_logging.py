import json
import logging

from jobmatch.platform.logging import JsonFormatter, setup_logging
from jobmatch.platform.request_context import reset_analysis_id, set_analysis_id, set_request_id


def _record(message="hello"):
    return logging.LogRecord("jobmatch.test", logging.INFO, __file__, 1, message, None, None)


def test_json_formatter_includes_context_ids():
    set_request_id("req-123")
    token = set_analysis_id("an-456")
    try:
        payload = json.loads(JsonFormatter().format(_record()))
    finally:
        reset_analysis_id(token)

    assert payload["level"] == "INFO"
    assert payload["logger"] == "jobmatch.test"
    assert payload["message"] == "hello"
    assert payload["request_id"] == "req-123"
    assert payload["analysis_id"] == "an-456"


def test_json_formatter_omits_unset_analysis_id():
    payload = json.loads(JsonFormatter().format(_record()))
    assert "analysis_id" not in payload


def test_setup_logging_installs_single_handler():
    root = setup_logging(level="DEBUG", fmt="json")
    try:
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("anthropic").level == logging.WARNING
    finally:
        setup_logging(fmt="text")


def test_unknown_level_falls_back_to_info():
    root = setup_logging(level="chatty", fmt="text")
    assert root.level == logging.INFO
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
