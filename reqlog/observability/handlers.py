from __future__ import annotations

import copy
import dataclasses
import sys
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from enum import Enum
from threading import Lock
from typing import IO, Any, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel
from structlog.typing import Processor

from reqlog.observability.context import RequestContext
from reqlog.observability.records import Attr, Group, Level, LogValuer, Record, resolve


# Keys the sink writes itself; caller fields with these names are written as "fields.<key>".
RESERVED_KEYS = frozenset({"time", "level", "msg", "source", "exc_info", "exception"})
FIELDS_PREFIX = "fields."


@runtime_checkable
class Handler(Protocol):
    """A sink (or a decorator over one) that turns records into output."""

    def is_enabled(self, ctx: RequestContext, level: Level) -> bool: ...

    def handle(self, ctx: RequestContext, record: Record) -> None: ...

    def with_attrs(self, attrs: Sequence[Attr]) -> "Handler": ...

    def with_group(self, name: str) -> "Handler": ...


def to_jsonable(value: Any) -> Any:
    """Structural serialization; loggable values are resolved at any depth."""

    if isinstance(value, LogValuer):
        return to_jsonable(resolve(value))
    if isinstance(value, Group):
        return _attrs_to_dict(value.attrs)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return to_jsonable(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return {
            (info.alias or name): to_jsonable(getattr(value, name)) for name, info in type(value).model_fields.items()
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return str(value)


def _attrs_to_dict(attrs: Sequence[Attr]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for attr in attrs:
        # Empty groups are dropped entirely.
        if attr.is_empty_group():
            continue
        out[attr.key] = to_jsonable(attr.value)
    return out


def _nest(base: dict[str, Any], path: tuple[str, ...], items: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``base`` with ``items`` merged at ``path``; only the path is copied."""

    merged = dict(base)
    if not path:
        merged.update(items)
        return merged
    head, rest = path[0], path[1:]
    child = merged.get(head)
    merged[head] = _nest(child if isinstance(child, dict) else {}, rest, items)
    return merged


class StructlogHandler:
    """Sink that renders records through a structlog processor chain into a text stream.

    Attributes bound with ``with_attrs`` and groups opened with ``with_group`` are kept as
    pre-built nested dicts; each derived handler gets its own copy and shares the stream and
    the write lock with its parent.
    """

    def __init__(
        self,
        stream: IO[str] | None = None,
        *,
        level: Level = Level.INFO,
        add_source: bool = False,
        renderer: Processor,
    ) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._level = Level(level)
        self._add_source = add_source
        self._processors: list[Processor] = [structlog.processors.format_exc_info, renderer]
        self._bound: dict[str, Any] = {}
        self._groups: tuple[str, ...] = ()
        self._lock = Lock()

    @property
    def level(self) -> Level:
        return self._level

    def is_enabled(self, ctx: RequestContext, level: Level) -> bool:
        _ = ctx
        return level >= self._level

    def handle(self, ctx: RequestContext, record: Record) -> None:
        _ = ctx
        event: dict[str, Any] = {
            "time": record.time.isoformat(),
            "level": self._level_name(record.level),
            "msg": record.message,
        }
        if self._add_source and record.source is not None:
            event["source"] = dataclasses.asdict(record.source)

        body = _nest(self._bound, self._groups, _attrs_to_dict(record.attrs))
        for key, value in body.items():
            event[f"{FIELDS_PREFIX}{key}" if key in RESERVED_KEYS else key] = value
        if record.exc_info is not None:
            event["exc_info"] = record.exc_info

        rendered: Any = event
        method_name = record.level.name.lower()
        for processor in self._processors:
            rendered = processor(None, method_name, rendered)

        with self._lock:
            self._stream.write(f"{rendered}\n")
            self._stream.flush()

    def with_attrs(self, attrs: Sequence[Attr]) -> "StructlogHandler":
        if not attrs:
            return self
        clone = self._clone()
        clone._bound = _nest(self._bound, self._groups, _attrs_to_dict(attrs))
        return clone

    def with_group(self, name: str) -> "StructlogHandler":
        if not name:
            return self
        clone = self._clone()
        clone._groups = self._groups + (name,)
        return clone

    def _clone(self) -> "StructlogHandler":
        return copy.copy(self)

    def _level_name(self, level: Level) -> str:
        return level.name


class JSONHandler(StructlogHandler):
    """One JSON object per line."""

    def __init__(self, stream: IO[str] | None = None, *, level: Level = Level.INFO, add_source: bool = False) -> None:
        super().__init__(
            stream,
            level=level,
            add_source=add_source,
            renderer=structlog.processors.JSONRenderer(default=to_jsonable),
        )


class ConsoleHandler(StructlogHandler):
    """Human-readable single-line output for local development."""

    def __init__(
        self,
        stream: IO[str] | None = None,
        *,
        level: Level = Level.INFO,
        add_source: bool = False,
        colors: bool = False,
    ) -> None:
        super().__init__(
            stream,
            level=level,
            add_source=add_source,
            renderer=structlog.dev.ConsoleRenderer(colors=colors, event_key="msg", timestamp_key="time"),
        )

    def _level_name(self, level: Level) -> str:
        # ConsoleRenderer keys its level styles by lower-case name.
        return level.name.lower()
