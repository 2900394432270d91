import json
import logging
import tempfile
from pathlib import Path

from chat_core.infrastructure.logging.logger import JsonFormatter, add_console_handler, setup_logger


def make_record(msg, **fields):
    record = logging.LogRecord("chat_core", logging.INFO, __file__, 1, msg, None, None)
    record.extra = fields
    return record


def test_formatter_merges_extra_fields():
    line = JsonFormatter().format(make_record("Sending query", trace_id="tr-1", query="hello"))
    payload = json.loads(line)
    assert payload["msg"] == "Sending query"
    assert payload["level"] == "INFO"
    assert payload["trace_id"] == "tr-1"
    assert payload["query"] == "hello"
    assert payload["ts"].endswith("Z")


def test_formatter_redacts_conversation_text():
    line = JsonFormatter(redact_content=True).format(
        make_record("Completed query", trace_id="tr-1", query="secret question", answer="secret", chunks=2)
    )
    payload = json.loads(line)
    assert payload["query"] == "<redacted 15 chars>"
    assert payload["answer"] == "<redacted 6 chars>"
    assert payload["trace_id"] == "tr-1"
    assert payload["chunks"] == 2


def test_setup_logger_does_not_stack_handlers():
    with tempfile.TemporaryDirectory() as d:
        logger = setup_logger(log_dir=str(Path(d) / "logs"))
        before = len(logger.handlers)
        assert setup_logger(log_dir=str(Path(d) / "logs")) is logger
        assert len(logger.handlers) == before


def test_console_handler_added_once():
    logger = logging.getLogger("chat_core")
    first = add_console_handler(logging.WARNING)
    try:
        second = add_console_handler(logging.DEBUG)
        assert first is second
        assert first.level == logging.DEBUG
        assert sum(1 for h in logger.handlers if getattr(h, "_chat_core_console", False)) == 1
    finally:
        logger.removeHandler(first)
