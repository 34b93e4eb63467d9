"""HTTP client manager for connection pooling and lifecycle management."""

from typing import Any

import httpx


class HttpClientManager:
    """Manages pooled httpx clients for document fetches and tracking pixels.

    Clients are cached per configuration tuple, so a resolver that fetches
    with ``ssl_verify=True`` and tracks with ``verify=False`` holds two pools.
    """

    def __init__(self):
        """Initialize HTTP client manager."""
        self._clients: dict[tuple[Any, ...], httpx.AsyncClient] = {}

    def _get_client(
        self,
        kind: str,
        *,
        timeout: float,
        verify: bool | str,
        max_connections: int,
        max_keepalive_connections: int,
    ) -> httpx.AsyncClient:
        key = (kind, verify, timeout, max_connections, max_keepalive_connections)
        client = self._clients.get(key)
        if client is None or client.is_closed:
            client = httpx.AsyncClient(
                timeout=timeout,
                verify=verify,
                follow_redirects=True,
                limits=httpx.Limits(
                    max_keepalive_connections=max_keepalive_connections,
                    max_connections=max_connections,
                ),
            )
            self._clients[key] = client
        return client

    def get_fetch_client(self, *, timeout: float = 10.0, verify: bool | str = True) -> httpx.AsyncClient:
        """Get or create the client used to fetch VAST documents."""
        return self._get_client(
            "fetch",
            timeout=timeout,
            verify=verify,
            max_connections=20,
            max_keepalive_connections=10,
        )

    def get_tracking_client(self, *, timeout: float = 5.0, verify: bool | str = False) -> httpx.AsyncClient:
        """Get or create the client used to fire tracking pixels."""
        return self._get_client(
            "tracking",
            timeout=timeout,
            verify=verify,
            max_connections=50,
            max_keepalive_connections=20,
        )

    async def close(self):
        """Close all HTTP clients."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            if not client.is_closed:
                await client.aclose()


_manager: HttpClientManager | None = None


def get_http_client_manager() -> HttpClientManager:
    """Get global HTTP client manager instance."""
    global _manager
    if _manager is None:
        _manager = HttpClientManager()
    return _manager


__all__ = ["HttpClientManager", "get_http_client_manager"]
