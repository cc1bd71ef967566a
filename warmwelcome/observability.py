from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler: logging.Handler | None = None


class MessageOnlyFormatter(logging.Formatter):
    """Formats records without tracebacks or stack info.

    The record itself is left untouched, so other handlers still see the
    exception details.
    """

    def format(self, record: logging.LogRecord) -> str:
        saved = record.exc_info, record.exc_text, record.stack_info
        record.exc_info, record.exc_text, record.stack_info = None, None, None
        try:
            return super().format(record)
        finally:
            record.exc_info, record.exc_text, record.stack_info = saved


def configure_logging(environment: str) -> logging.Handler:
    global _handler

    production = environment.lower() == "production"
    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    formatter_cls = MessageOnlyFormatter if production else logging.Formatter
    handler = logging.StreamHandler()
    handler.setFormatter(formatter_cls(_LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.INFO if production else logging.DEBUG)
    # httpx logs full request URLs at INFO, which include OAuth codes.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _handler = handler
    return handler
