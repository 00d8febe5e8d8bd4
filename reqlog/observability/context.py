"""Request-scoped metadata carried alongside an in-flight request.

``RequestContext`` is an immutable association list: ``put`` returns a new context and never
touches the one it was called on, so a snapshot handed to one task can't change under it
when another stage derives a new context. The context travels with the request inside the
ASGI scope (under ``LOG_CONTEXT_SCOPE_KEY``); middleware substitutes a copied scope rather
than mutating the one it received.
"""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from typing import Any

from starlette.requests import Request


CORRELATION_ID = "correlation_id"
REQUEST_METHOD = "request_method"
REQUEST_PATH = "request_path"
REQUEST_USER_AGENT = "request_user_agent"

METADATA_KEYS: tuple[str, ...] = (CORRELATION_ID, REQUEST_METHOD, REQUEST_PATH, REQUEST_USER_AGENT)

LOG_CONTEXT_SCOPE_KEY = "reqlog.context"


class RequestContext:
    __slots__ = ("_items",)

    def __init__(self, items: tuple[tuple[str, Any], ...] = ()) -> None:
        self._items = items

    @classmethod
    def empty(cls) -> "RequestContext":
        return EMPTY_CONTEXT

    def put(self, key: str, value: Any) -> "RequestContext":
        return RequestContext(self._items + ((key, value),))

    def get(self, key: str, default: str = "") -> str:
        """Return the string bound to ``key``, or ``default`` if unbound or not a string."""

        for bound_key, value in reversed(self._items):
            if bound_key == key:
                return value if isinstance(value, str) else default
        return default

    def as_dict(self) -> dict[str, Any]:
        return dict(self._items)

    def __contains__(self, key: object) -> bool:
        return any(bound_key == key for bound_key, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self.as_dict())

    def __len__(self) -> int:
        return len(self.as_dict())

    def __repr__(self) -> str:
        return f"RequestContext({self.as_dict()!r})"


EMPTY_CONTEXT = RequestContext()


def request_context(scope: MutableMapping[str, Any]) -> RequestContext:
    ctx = scope.get(LOG_CONTEXT_SCOPE_KEY)
    return ctx if isinstance(ctx, RequestContext) else EMPTY_CONTEXT


def with_request_context(scope: MutableMapping[str, Any], ctx: RequestContext) -> dict[str, Any]:
    """Return a shallow copy of ``scope`` carrying ``ctx``; the original scope is left as-is."""

    return {**scope, LOG_CONTEXT_SCOPE_KEY: ctx}


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the context the middleware attached to this request."""

    return request_context(request.scope)
