from __future__ import annotations

from typing import Any, Callable

from starlette.datastructures import Headers

from reqlog.config import get_settings
from reqlog.observability.context import (
    CORRELATION_ID,
    REQUEST_METHOD,
    REQUEST_PATH,
    REQUEST_USER_AGENT,
    RequestContext,
    request_context,
    with_request_context,
)
from reqlog.observability.correlation import generate_correlation_id


IdFactory = Callable[[RequestContext], str]


def _default_id_factory(ctx: RequestContext) -> str:
    return generate_correlation_id(ctx, fallback_length=get_settings().correlation_id_fallback_length)


def _request_target(scope: dict[str, Any]) -> str:
    """Path as sent by the client, including the query string."""

    raw_path = scope.get("raw_path")
    # Some servers leave the query string on raw_path.
    path = raw_path.decode("latin-1").split("?", 1)[0] if raw_path else scope.get("path", "")
    query = scope.get("query_string") or b""
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path


class CorrelationIdMiddleware:
    """Puts a fresh correlation_id into the request's log context."""

    def __init__(self, app: Callable[..., Any], *, id_factory: IdFactory | None = None) -> None:
        self.app = app
        self._id_factory = id_factory or _default_id_factory

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> Any:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        ctx = request_context(scope)
        ctx = ctx.put(CORRELATION_ID, self._id_factory(ctx))
        return await self.app(with_request_context(scope, ctx), receive, send)


class RouteMetadataMiddleware:
    """Puts the request method, target and user agent into the request's log context."""

    def __init__(self, app: Callable[..., Any]) -> None:
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> Any:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        headers = Headers(scope=scope)
        ctx = request_context(scope)
        ctx = ctx.put(REQUEST_PATH, _request_target(scope))
        ctx = ctx.put(REQUEST_METHOD, scope.get("method", ""))
        ctx = ctx.put(REQUEST_USER_AGENT, headers.get("user-agent", ""))
        return await self.app(with_request_context(scope, ctx), receive, send)


def install_request_metadata(app: Any, *, id_factory: IdFactory | None = None) -> None:
    """Add both middlewares so the correlation id is assigned first."""

    # add_middleware prepends: the last one added runs outermost.
    app.add_middleware(RouteMetadataMiddleware)
    app.add_middleware(CorrelationIdMiddleware, id_factory=id_factory)
