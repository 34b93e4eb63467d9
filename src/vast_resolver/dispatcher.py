"""Typed lifecycle notifications and the per-resolver dispatcher."""

from dataclasses import dataclass, field
from typing import Any, Callable

from .events import ResolverChannel
from .exceptions import VastException
from .log_config import get_context_logger
from .models import AdExtension, AdSystem


@dataclass(frozen=True)
class ResolvingEvent:
    """A document at ``wrapper_depth`` is about to be fetched."""

    url: str
    wrapper_depth: int
    original_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "wrapperDepth": self.wrapper_depth,
            "originalUrl": self.original_url,
        }


@dataclass(frozen=True)
class ResolvedEvent:
    """A fetch finished; exactly one of ``error``/``xml`` is set."""

    url: str
    wrapper_depth: int
    error: VastException | None = None
    xml: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "error": self.error,
            "xml": self.xml,
            "wrapperDepth": self.wrapper_depth,
        }


@dataclass(frozen=True)
class VastErrorEvent:
    """One in-chain error reported to the caller."""

    error_code: int
    error_message: str | None = None
    extensions: list[AdExtension] = field(default_factory=list)
    system: AdSystem | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ERRORCODE": self.error_code,
            "ERRORMESSAGE": self.error_message or "",
            "extensions": self.extensions,
            "system": self.system,
        }


Handler = Callable[[Any], None]


class EventDispatcher:
    """Named-channel publish/subscribe registry.

    Owned by one resolver instance; every resolution running on that
    instance notifies the same subscribers. A handler that raises is
    logged and does not stop delivery to the remaining handlers.
    """

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = {}
        self.logger = get_context_logger("vast_dispatcher")

    @staticmethod
    def _key(channel: ResolverChannel | str) -> str:
        return channel.value if isinstance(channel, ResolverChannel) else str(channel)

    def subscribe(self, channel: ResolverChannel | str, handler: Handler) -> Handler:
        self._handlers.setdefault(self._key(channel), []).append(handler)
        return handler

    def unsubscribe(self, channel: ResolverChannel | str, handler: Handler) -> bool:
        """Remove one registration of ``handler``; False if it was not subscribed."""
        handlers = self._handlers.get(self._key(channel), [])
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        return True

    def remove_all_listeners(self, channel: ResolverChannel | str | None = None) -> None:
        if channel is None:
            self._handlers.clear()
        else:
            self._handlers.pop(self._key(channel), None)

    def listener_count(self, channel: ResolverChannel | str) -> int:
        return len(self._handlers.get(self._key(channel), []))

    def emit(self, channel: ResolverChannel | str, event: Any) -> int:
        """Deliver ``event`` to every handler of ``channel`` in subscription order.

        Returns:
            Number of handlers that were called
        """
        key = self._key(channel)
        handlers = list(self._handlers.get(key, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.exception(
                    "Lifecycle handler failed",
                    channel=key,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(e),
                )
        return len(handlers)


__all__ = ["ResolvingEvent", "ResolvedEvent", "VastErrorEvent", "Handler", "EventDispatcher"]
