"""Request-scoped structured logging.

Middleware records a correlation id plus method, target and user agent into an immutable
per-request context; ``ContextHandler`` adds them to every record as ``meta_information``
before the structlog-rendered sink writes it out.
"""
