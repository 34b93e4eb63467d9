"""VAST event and error code constants."""

from enum import Enum, IntEnum


class VastEvents(str, Enum):
    """Event type constants for structured logging."""

    # Resolution events
    RESOLVE_STARTED = "vast.resolve.started"
    RESOLVE_COMPLETED = "vast.resolve.completed"
    RESOLVE_FAILED = "vast.resolve.failed"

    # Fetch events
    FETCH_STARTED = "vast.fetch.started"
    FETCH_COMPLETED = "vast.fetch.completed"
    FETCH_FAILED = "vast.fetch.failed"

    # Parser events
    PARSE_STARTED = "vast.parse.started"
    PARSE_SUCCESS = "vast.parse.success"
    PARSE_FAILED = "vast.parse.failed"

    # Wrapper events
    WRAPPER_FOLLOWED = "vast.wrapper.followed"
    WRAPPER_MERGED = "vast.wrapper.merged"
    WRAPPER_LIMIT_REACHED = "vast.wrapper.limit_reached"
    WRAPPER_FAILED = "vast.wrapper.failed"

    # Tracking events
    TRACKING_EVENT_SENT = "vast.tracking.sent"
    TRACKING_FAILED = "vast.tracking.failed"
    ERROR_DISPATCHED = "vast.error.dispatched"


class ResolverChannel(str, Enum):
    """Lifecycle notification channels a resolver emits on."""

    RESOLVING = "VAST-resolving"
    RESOLVED = "VAST-resolved"
    ERROR = "VAST-error"


class VastErrorCode(IntEnum):
    """VAST error codes raised by the resolution engine."""

    SCHEMA_VALIDATION = 101
    WRAPPER_FAILED = 301
    WRAPPER_LIMIT = 302
    NO_ADS = 303
    UNDEFINED = 900


__all__ = ["VastEvents", "ResolverChannel", "VastErrorCode"]
