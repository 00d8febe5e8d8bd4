"""Request-scoped structured logging for FastAPI services."""

__version__ = "0.1.0"
