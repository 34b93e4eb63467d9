"""Logging configuration and utilities."""

import secrets
from typing import Any

import structlog


def get_context_logger(name: str) -> structlog.BoundLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def new_resolve_id() -> str:
    """Generate a 12-character correlation id for one resolution."""
    return secrets.token_hex(6)


class ResolveLogContext:
    """Context manager binding per-resolution fields into structlog contextvars.

    Contextvars are task-local, so concurrent resolutions on the same
    resolver log with their own ``resolve_id``.
    """

    def __init__(self, **context: Any):
        """Initialize with context variables.

        Args:
            **context: Context key-value pairs
        """
        context.setdefault("resolve_id", new_resolve_id())
        self.context = context
        self._tokens: dict[str, Any] = {}

    @property
    def resolve_id(self) -> str:
        return self.context["resolve_id"]

    def __enter__(self):
        """Enter context."""
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context, restoring whatever was bound before."""
        structlog.contextvars.reset_contextvars(**self._tokens)


def bind_resolution_fields(**kwargs: Any) -> None:
    """Bind additional fields into the current resolution log context.

    Args:
        **kwargs: Context key-value pairs
    """
    structlog.contextvars.bind_contextvars(**kwargs)


__all__ = [
    "get_context_logger",
    "new_resolve_id",
    "ResolveLogContext",
    "bind_resolution_fields",
]
