"""Correlation ID generation.

Every request gets an id. ``uuid4`` is the normal path; if it fails (e.g. the OS entropy
source is unavailable) the failure is logged and a random alphanumeric id from a
time-seeded ``random.Random`` is used instead, so the request still proceeds.
"""

from __future__ import annotations

import random
import string
import time
import uuid
from typing import Any, Callable

from reqlog.observability import logger as log
from reqlog.observability.context import EMPTY_CONTEXT, RequestContext


FALLBACK_CHARSET = string.ascii_lowercase + string.ascii_uppercase + string.digits
DEFAULT_FALLBACK_LENGTH = 32


def random_string(length: int, *, rng: random.Random | None = None) -> str:
    if length <= 0:
        raise ValueError("length must be positive")
    rng = rng or random.Random(time.time_ns())
    return "".join(rng.choice(FALLBACK_CHARSET) for _ in range(length))


def generate_correlation_id(
    ctx: RequestContext = EMPTY_CONTEXT,
    *,
    uuid_factory: Callable[[], Any] = uuid.uuid4,
    fallback_length: int = DEFAULT_FALLBACK_LENGTH,
) -> str:
    try:
        return str(uuid_factory())
    except Exception as exc:  # noqa: BLE001
        # ctx has no correlation id yet; the record goes out with blank metadata.
        log.error("Error in generating unique correlation id", ctx=ctx, error=str(exc))
        return random_string(fallback_length)
