from __future__ import annotations

import io
import json
from collections.abc import AsyncIterator, Callable

import pytest
from httpx import ASGITransport, AsyncClient

from reqlog.config import get_settings
from reqlog.main import app
from reqlog.observability.context_handler import ContextHandler
from reqlog.observability.handlers import JSONHandler
from reqlog.observability.logger import Logger, set_default
from reqlog.observability.logging import reset_logging
from reqlog.observability.records import Level


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    get_settings.cache_clear()
    reset_logging()

    yield

    reset_logging()
    get_settings.cache_clear()


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def read_logs(log_stream: io.StringIO) -> Callable[[], list[dict]]:
    """Install a JSON default logger on ``log_stream`` and return a reader for its lines."""

    set_default(Logger(ContextHandler(JSONHandler(log_stream, level=Level.DEBUG, add_source=True))))

    def _read() -> list[dict]:
        return [json.loads(line) for line in log_stream.getvalue().splitlines() if line.strip()]

    return _read


@pytest.fixture
async def api_client(read_logs) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
