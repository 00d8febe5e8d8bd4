from __future__ import annotations

from collections.abc import Sequence

from reqlog.observability.context import METADATA_KEYS, RequestContext
from reqlog.observability.handlers import Handler
from reqlog.observability.records import Attr, Group, Level, Record


META_GROUP_KEY = "meta_information"


def metadata_group(ctx: RequestContext) -> Attr:
    """The ``meta_information`` group for ``ctx``; unset keys read as empty strings."""

    return Attr(META_GROUP_KEY, Group(tuple(Attr(key, ctx.get(key)) for key in METADATA_KEYS)))


class ContextHandler:
    """Decorates any handler so every record carries the request's metadata group.

    Level filtering stays with the wrapped handler. Derived handlers (``with_attrs`` /
    ``with_group``) are wrapped again, so a logger bound with extra fields keeps enriching.
    """

    def __init__(self, inner: Handler) -> None:
        self._inner = inner

    @property
    def inner(self) -> Handler:
        return self._inner

    def is_enabled(self, ctx: RequestContext, level: Level) -> bool:
        return self._inner.is_enabled(ctx, level)

    def handle(self, ctx: RequestContext, record: Record) -> None:
        return self._inner.handle(ctx, record.with_attrs(metadata_group(ctx)))

    def with_attrs(self, attrs: Sequence[Attr]) -> "ContextHandler":
        return ContextHandler(self._inner.with_attrs(attrs))

    def with_group(self, name: str) -> "ContextHandler":
        return ContextHandler(self._inner.with_group(name))
