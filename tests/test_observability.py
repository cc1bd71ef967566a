from __future__ import annotations

import logging
import sys

import pytest

from warmwelcome.observability import MessageOnlyFormatter, configure_logging


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def _record_with_traceback() -> logging.LogRecord:
    try:
        raise ValueError("boom")
    except ValueError:
        exc_info = sys.exc_info()
    return logging.LogRecord("shopify.api", logging.ERROR, __file__, 1, "Shopify call failed", None, exc_info)


def test_production_logging_strips_tracebacks(restore_root_logging):
    handler = configure_logging("production")

    assert isinstance(handler.formatter, MessageOnlyFormatter)
    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING

    record = _record_with_traceback()
    output = handler.format(record)
    assert output.endswith("[shopify.api] Shopify call failed")
    assert "Traceback" not in output
    assert record.exc_info is not None
    assert "Traceback" in logging.Formatter().format(record)


def test_development_logging_keeps_tracebacks(restore_root_logging):
    handler = configure_logging("development")

    assert not isinstance(handler.formatter, MessageOnlyFormatter)
    assert logging.getLogger().level == logging.DEBUG
    assert "Traceback" in handler.format(_record_with_traceback())


def test_reconfiguring_replaces_previous_handler(restore_root_logging):
    first = configure_logging("production")
    second = configure_logging("production")

    handlers = logging.getLogger().handlers
    assert second in handlers
    assert first not in handlers
