"""Logging frontend and the process-wide default logger.

    from reqlog.observability import logger as log

    log.info("Logging customer data", ctx=ctx, customer=customer)

``ctx`` is the request's ``RequestContext`` (empty when omitted) and the only reserved
keyword; the message is positional-only, so fields may be named ``msg``. Keyword fields become
record attributes in call order; values implementing ``log_value()`` are resolved here,
before any handler sees them.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from typing import Any

from reqlog.observability.context import EMPTY_CONTEXT, RequestContext
from reqlog.observability.context_handler import ContextHandler
from reqlog.observability.handlers import Handler, JSONHandler
from reqlog.observability.records import Attr, Level, Record, Source


_THIS_FILE = os.path.normcase(__file__)


def _caller_source() -> Source | None:
    frame = sys._getframe(1)
    while frame is not None and os.path.normcase(frame.f_code.co_filename) == _THIS_FILE:
        frame = frame.f_back
    if frame is None:
        return None
    return Source(function=frame.f_code.co_name, file=frame.f_code.co_filename, line=frame.f_lineno)


class Logger:
    def __init__(self, handler: Handler) -> None:
        self._handler = handler

    @property
    def handler(self) -> Handler:
        return self._handler

    def bind(self, **fields: Any) -> "Logger":
        """Derived logger whose records always carry ``fields``."""

        if not fields:
            return self
        return Logger(self._handler.with_attrs([Attr.of(key, value) for key, value in fields.items()]))

    def with_group(self, name: str) -> "Logger":
        """Derived logger nesting all subsequent fields under ``name``."""

        if not name:
            return self
        return Logger(self._handler.with_group(name))

    def enabled(self, level: Level, ctx: RequestContext | None = None) -> bool:
        return self._handler.is_enabled(ctx if ctx is not None else EMPTY_CONTEXT, Level.coerce(level))

    def log(self, level: Level, msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
        self._emit(level, msg, ctx, fields, None)

    def debug(self, msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
        self._emit(Level.DEBUG, msg, ctx, fields, None)

    def info(self, msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
        self._emit(Level.INFO, msg, ctx, fields, None)

    def warning(self, msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
        self._emit(Level.WARNING, msg, ctx, fields, None)

    def error(self, msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
        self._emit(Level.ERROR, msg, ctx, fields, None)

    def critical(self, msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
        self._emit(Level.CRITICAL, msg, ctx, fields, None)

    def exception(self, msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
        """Log at ERROR with the exception currently being handled."""

        exc_info = sys.exc_info()
        self._emit(Level.ERROR, msg, ctx, fields, exc_info if exc_info[0] is not None else None)

    def _emit(
        self,
        level: Level,
        msg: str,
        ctx: RequestContext | None,
        fields: dict[str, Any],
        exc_info: Any,
    ) -> None:
        ctx = ctx if ctx is not None else EMPTY_CONTEXT
        level = Level.coerce(level)
        if not self._handler.is_enabled(ctx, level):
            return

        record = Record(
            time=datetime.now(timezone.utc),
            level=level,
            message=msg,
            attrs=tuple(Attr.of(key, value) for key, value in fields.items()),
            source=_caller_source(),
            exc_info=exc_info,
        )
        self._handler.handle(ctx, record)


_DEFAULT: Logger | None = None


def get_default() -> Logger:
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = Logger(ContextHandler(JSONHandler(sys.stdout)))
    return _DEFAULT


def set_default(logger: Logger | None) -> None:
    """Install ``logger`` as the process-wide default (``None`` restores the lazy default)."""

    global _DEFAULT
    _DEFAULT = logger


def debug(msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
    get_default().debug(msg, ctx=ctx, **fields)


def info(msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
    get_default().info(msg, ctx=ctx, **fields)


def warning(msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
    get_default().warning(msg, ctx=ctx, **fields)


def error(msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
    get_default().error(msg, ctx=ctx, **fields)


def exception(msg: str, /, *, ctx: RequestContext | None = None, **fields: Any) -> None:
    get_default().exception(msg, ctx=ctx, **fields)
