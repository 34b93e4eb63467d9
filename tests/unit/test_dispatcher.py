"""Unit tests for lifecycle notification dispatch."""

from vast_resolver.dispatcher import (
    EventDispatcher,
    ResolvedEvent,
    ResolvingEvent,
    VastErrorEvent,
)
from vast_resolver.events import ResolverChannel
from vast_resolver.exceptions import VastFetchError
from vast_resolver.models import AdExtension, AdSystem


class TestEventDispatcher:
    """Test suite for EventDispatcher class."""

    def test_emit_in_subscription_order(self):
        """Test handlers run in the order they subscribed."""
        dispatcher = EventDispatcher()
        calls = []
        dispatcher.subscribe(ResolverChannel.RESOLVING, lambda e: calls.append(("a", e)))
        dispatcher.subscribe(ResolverChannel.RESOLVING, lambda e: calls.append(("b", e)))

        count = dispatcher.emit(ResolverChannel.RESOLVING, "event")

        assert count == 2
        assert calls == [("a", "event"), ("b", "event")]

    def test_channels_are_separate(self):
        """Test a handler only sees its own channel."""
        dispatcher = EventDispatcher()
        calls = []
        dispatcher.subscribe(ResolverChannel.ERROR, calls.append)

        dispatcher.emit(ResolverChannel.RESOLVED, "resolved")

        assert calls == []

    def test_string_and_enum_channels_match(self):
        """Test string channel names address the same subscribers."""
        dispatcher = EventDispatcher()
        calls = []
        dispatcher.subscribe("VAST-error", calls.append)

        dispatcher.emit(ResolverChannel.ERROR, 1)

        assert calls == [1]
        assert dispatcher.listener_count(ResolverChannel.ERROR) == 1

    def test_unsubscribe(self):
        """Test unsubscribing stops delivery."""
        dispatcher = EventDispatcher()
        calls = []
        dispatcher.subscribe(ResolverChannel.ERROR, calls.append)

        assert dispatcher.unsubscribe(ResolverChannel.ERROR, calls.append) is True
        assert dispatcher.unsubscribe(ResolverChannel.ERROR, calls.append) is False
        dispatcher.emit(ResolverChannel.ERROR, 1)
        assert calls == []

    def test_remove_all_listeners(self):
        """Test clearing one channel or all of them."""
        dispatcher = EventDispatcher()
        for channel in ResolverChannel:
            dispatcher.subscribe(channel, lambda e: None)

        dispatcher.remove_all_listeners(ResolverChannel.ERROR)
        assert dispatcher.listener_count(ResolverChannel.ERROR) == 0
        assert dispatcher.listener_count(ResolverChannel.RESOLVED) == 1

        dispatcher.remove_all_listeners()
        assert dispatcher.listener_count(ResolverChannel.RESOLVED) == 0

    def test_failing_handler_does_not_stop_delivery(self):
        """Test one raising handler does not starve the rest."""
        dispatcher = EventDispatcher()
        calls = []

        def broken(event):
            raise RuntimeError("boom")

        dispatcher.subscribe(ResolverChannel.ERROR, broken)
        dispatcher.subscribe(ResolverChannel.ERROR, calls.append)

        assert dispatcher.emit(ResolverChannel.ERROR, "event") == 2
        assert calls == ["event"]


class TestEventPayloads:
    """Test notification payload shapes."""

    def test_resolving_to_dict(self):
        event = ResolvingEvent(url="http://x", wrapper_depth=1, original_url="http://o")

        assert event.to_dict() == {"url": "http://x", "wrapperDepth": 1, "originalUrl": "http://o"}

    def test_resolved_to_dict(self):
        error = VastFetchError("down", url="http://x")
        event = ResolvedEvent(url="http://x", wrapper_depth=2, error=error)

        assert event.to_dict() == {"url": "http://x", "error": error, "xml": None, "wrapperDepth": 2}

    def test_error_to_dict(self):
        extension = AdExtension(attributes={"type": "Pricing"})
        event = VastErrorEvent(
            error_code=303, extensions=[extension], system=AdSystem(value="AdServer")
        )

        payload = event.to_dict()

        assert payload["ERRORCODE"] == 303
        assert payload["ERRORMESSAGE"] == ""
        assert payload["extensions"] == [extension]
        assert payload["system"].value == "AdServer"
