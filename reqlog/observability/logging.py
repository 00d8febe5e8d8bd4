from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import IO

from reqlog.config import Settings, get_settings
from reqlog.observability.context import EMPTY_CONTEXT
from reqlog.observability.context_handler import ContextHandler
from reqlog.observability.handlers import ConsoleHandler, Handler, JSONHandler
from reqlog.observability.logger import Logger, get_default, set_default
from reqlog.observability.records import Attr, Level, Record, Source


_CONFIGURED = False
_STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class StdlibBridgeHandler(logging.Handler):
    """Forwards stdlib ``logging`` records (uvicorn, libraries) to the default logger."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = Level.coerce(record.levelno)
            handler = get_default().handler
            if not handler.is_enabled(EMPTY_CONTEXT, level):
                return
            exc_info = record.exc_info if record.exc_info and record.exc_info[0] is not None else None
            handler.handle(
                EMPTY_CONTEXT,
                Record(
                    time=datetime.fromtimestamp(record.created, tz=timezone.utc),
                    level=level,
                    message=record.getMessage(),
                    attrs=(Attr("logger", record.name),),
                    source=Source(function=record.funcName, file=record.pathname, line=record.lineno),
                    exc_info=exc_info,
                ),
            )
        except Exception:
            self.handleError(record)


def build_handler(settings: Settings, stream: IO[str] | None = None) -> Handler:
    """The sink described by ``settings``, wrapped so records carry request metadata."""

    stream = stream if stream is not None else sys.stdout
    sink: Handler
    if settings.log_format == "console":
        sink = ConsoleHandler(stream, level=settings.level, add_source=settings.log_add_source)
    else:
        sink = JSONHandler(stream, level=settings.level, add_source=settings.log_add_source)
    return ContextHandler(sink)


def configure_logging(settings: Settings | None = None, stream: IO[str] | None = None) -> None:
    """Install the default logger and route stdlib/uvicorn logging through it.

    Safe to call multiple times (no-op after first call).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = settings or get_settings()
    set_default(Logger(build_handler(settings, stream)))

    bridge = StdlibBridgeHandler()
    root = logging.getLogger()
    root.handlers = [bridge]
    root.setLevel(settings.level)

    for name in _STDLIB_LOGGERS:
        logger = logging.getLogger(name)
        logger.handlers = [bridge]
        logger.propagate = False
        logger.setLevel(settings.level)

    _CONFIGURED = True


def reset_logging() -> None:
    """Undo ``configure_logging`` (used by tests)."""

    global _CONFIGURED
    set_default(None)
    root = logging.getLogger()
    root.handlers = []
    root.setLevel(logging.WARNING)
    for name in _STDLIB_LOGGERS:
        logger = logging.getLogger(name)
        logger.handlers = []
        logger.propagate = True
    _CONFIGURED = False
