"""Error-URL tracking dispatch."""

import asyncio
import time
from typing import Any, Mapping, Protocol, runtime_checkable

import httpx

from .config import VastTrackerConfig
from .events import VastEvents
from .exceptions import VastTrackingError
from .http_client_manager import HttpClientManager, get_http_client_manager
from .log_config import get_context_logger
from .macros import build_macro_variables, resolve_url_templates


@runtime_checkable
class TrackingTransport(Protocol):
    """Fire-and-forget sender for already-substituted tracking URLs."""

    def send(self, urls: list[str], variables: Mapping[str, Any]) -> None: ...


class HttpTrackingTransport:
    """Fires one GET per URL as a background task on the running loop.

    Failures are logged and never reach the caller. Call ``aclose`` to
    wait for pixels still in flight.
    """

    def __init__(
        self,
        config: VastTrackerConfig | None = None,
        client: httpx.AsyncClient | None = None,
        manager: HttpClientManager | None = None,
    ):
        self.config = config or VastTrackerConfig()
        self.client = client
        self.manager = manager
        self._pending: set[asyncio.Task] = set()
        self.logger = get_context_logger("vast_tracking_transport")

    def _http_client(self) -> httpx.AsyncClient:
        if self.client is None:
            manager = self.manager or get_http_client_manager()
            self.client = manager.get_tracking_client(
                timeout=self.config.timeout, verify=self.config.verify_ssl
            )
        return self.client

    @property
    def pending(self) -> int:
        return len(self._pending)

    def send(self, urls: list[str], variables: Mapping[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning(
                "No running event loop, tracking URLs dropped", urls_count=len(urls)
            )
            return

        for url in urls:
            task = loop.create_task(self._fire(url, dict(variables)))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _fire(self, url: str, variables: dict[str, Any]) -> bool:
        start_time = time.time()
        try:
            response = await self._http_client().get(url)
            if response.status_code >= 400:
                raise VastTrackingError(
                    "Tracking request rejected", url=url, http_status=response.status_code
                )
        except (httpx.HTTPError, VastTrackingError) as e:
            self.logger.warning(
                VastEvents.TRACKING_FAILED,
                url=url,
                error=str(e),
                error_type=type(e).__name__,
                error_code=variables.get("ERRORCODE"),
            )
            return False

        self.logger.debug(
            VastEvents.TRACKING_EVENT_SENT,
            url=url,
            status_code=response.status_code,
            error_code=variables.get("ERRORCODE"),
            response_time=round(time.time() - start_time, 3),
        )
        return True

    async def aclose(self) -> None:
        """Wait for in-flight tracking requests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class ErrorTracker:
    """Expands error URL templates and hands them to a transport in one batch.

    Examples:
        >>> tracker = ErrorTracker(transport)
        >>> tracker.track(["http://x/error?code=[ERRORCODE]"], {"ERRORCODE": 303})
        ['http://x/error?code=303']
    """

    def __init__(
        self,
        transport: TrackingTransport | None = None,
        config: VastTrackerConfig | None = None,
    ):
        self.config = config or VastTrackerConfig()
        self.transport = transport or HttpTrackingTransport(self.config)
        self.logger = get_context_logger("vast_error_tracker")

    def track(
        self, templates: list[str | None], variables: Mapping[str, Any] | None = None
    ) -> list[str]:
        """Substitute macros in ``templates`` and dispatch them.

        Args:
            templates: Error URL templates, outermost level first
            variables: Macro values such as ``{"ERRORCODE": 303}``

        Returns:
            The URLs handed to the transport
        """
        variables = dict(variables or {})
        macros = build_macro_variables(variables, self.config.static_macros)
        urls = resolve_url_templates(templates, macros, self.config.macro_formats)

        self.logger.debug(
            VastEvents.ERROR_DISPATCHED,
            error_code=macros.get("ERRORCODE"),
            urls_count=len(urls),
        )
        self.transport.send(urls, variables)
        return urls


__all__ = ["TrackingTransport", "HttpTrackingTransport", "ErrorTracker"]
