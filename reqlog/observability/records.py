"""Log records, attributes and the loggable-value protocol.

A ``Record`` is one log event. Its attributes are ``Attr`` pairs whose values are either
plain scalars, nested ``Group`` values, or arbitrary objects that the sink serializes
structurally. Domain types that want to control their own representation implement
``log_value()`` (see ``LogValuer``); the frontend resolves those before the record is built,
so fields a type does not select are never handed to a sink.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import TracebackType
from typing import Any, Protocol, Union, runtime_checkable


Scalar = Union[str, int, float, bool, None]
ExcInfo = tuple[type[BaseException], BaseException, Union[TracebackType, None]]

# Bound on log_value() chains, so a value returning itself cannot hang a log call.
MAX_LOG_VALUE_HOPS = 100


class Level(enum.IntEnum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @classmethod
    def coerce(cls, value: int) -> "Level":
        """Map a stdlib numeric level to the nearest defined level at or below it."""

        chosen = cls.DEBUG
        for level in cls:
            if value >= level:
                chosen = level
        return chosen

    @classmethod
    def parse(cls, name: str) -> "Level":
        key = name.strip().upper()
        if key == "WARN":
            key = "WARNING"
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


@runtime_checkable
class LogValuer(Protocol):
    def log_value(self) -> "LogValue": ...


@dataclass(frozen=True)
class Group:
    """An ordered set of attributes rendered as a nested object."""

    attrs: tuple["Attr", ...] = ()

    @classmethod
    def of(cls, *attrs: "Attr") -> "Group":
        return cls(tuple(attrs))


LogValue = Union[Scalar, Group]


def group(**fields: Any) -> Group:
    """Build a group from keyword fields, preserving their order."""

    return Group(tuple(Attr.of(key, value) for key, value in fields.items()))


def resolve(value: Any) -> Any:
    """Replace loggable values with their own representation, recursively through groups."""

    hops = 0
    while isinstance(value, LogValuer):
        if hops >= MAX_LOG_VALUE_HOPS:
            return "!ERROR:log_value() loop detected"
        value = value.log_value()
        hops += 1

    if isinstance(value, Group):
        return Group(tuple(Attr(attr.key, resolve(attr.value)) for attr in value.attrs))
    return value


@dataclass(frozen=True)
class Attr:
    key: str
    value: Any

    @classmethod
    def of(cls, key: str, value: Any) -> "Attr":
        return cls(key, resolve(value))

    def is_empty_group(self) -> bool:
        return isinstance(self.value, Group) and not self.value.attrs


@dataclass(frozen=True)
class Source:
    function: str
    file: str
    line: int


@dataclass(frozen=True)
class Record:
    time: datetime
    level: Level
    message: str
    attrs: tuple[Attr, ...] = ()
    source: Source | None = None
    exc_info: ExcInfo | None = field(default=None, compare=False)

    def with_attrs(self, *attrs: Attr) -> "Record":
        """Return a copy with ``attrs`` appended after the existing attributes."""

        return replace(self, attrs=self.attrs + tuple(attrs))
