"""Logging configuration package."""

from .main import (
    ResolveLogContext,
    bind_resolution_fields,
    get_context_logger,
    new_resolve_id,
)


__all__ = [
    "get_context_logger",
    "new_resolve_id",
    "ResolveLogContext",
    "bind_resolution_fields",
]
