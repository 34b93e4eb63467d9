"""Pytest configuration and shared fixtures for VAST resolver tests."""

from pathlib import Path
from typing import Any, Mapping

import pytest

from vast_resolver.config import VastResolverConfig, VastTrackerConfig
from vast_resolver.events import ResolverChannel
from vast_resolver.resolver import VastResolver
from vast_resolver.tracker import ErrorTracker


VASTFILES_DIR = Path(__file__).parent / "fixtures" / "vastfiles"


def vastfile_url(name: str) -> str:
    """``file://`` URL of a fixture document."""
    return (VASTFILES_DIR / name).as_uri()


class RecordingTransport:
    """Tracking transport that keeps every batch instead of sending it."""

    def __init__(self):
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def send(self, urls: list[str], variables: Mapping[str, Any]) -> None:
        self.calls.append((list(urls), dict(variables)))


# ==================== Path Fixtures ====================


@pytest.fixture(scope="session")
def vastfiles_dir() -> Path:
    """Get the fixture documents directory."""
    return VASTFILES_DIR


@pytest.fixture(scope="session")
def urlfor():
    """Build ``file://`` URLs for fixture documents."""
    return vastfile_url


# ==================== Component Fixtures ====================


@pytest.fixture
def resolver_config() -> VastResolverConfig:
    """Create default resolver configuration."""
    return VastResolverConfig(
        wrapper_limit=10,
        fetch_timeout=5.0,
        tracker=VastTrackerConfig(static_macros={"ASSETURI": "http://example.com/asset.mp4"}),
    )


@pytest.fixture
def transport() -> RecordingTransport:
    """Create a recording tracking transport."""
    return RecordingTransport()


@pytest.fixture
def error_tracker(transport, resolver_config) -> ErrorTracker:
    """Create an error tracker that records instead of sending."""
    return ErrorTracker(transport, config=resolver_config.tracker)


@pytest.fixture
def resolver(resolver_config, error_tracker) -> VastResolver:
    """Create a resolver reading fixtures from disk."""
    return VastResolver(config=resolver_config, tracker=error_tracker)


@pytest.fixture
def recorded_events(resolver) -> dict[str, list[Any]]:
    """Subscribe to every lifecycle channel of the resolver fixture."""
    events: dict[str, list[Any]] = {channel.value: [] for channel in ResolverChannel}
    for channel in ResolverChannel:
        resolver.on(channel, events[channel.value].append)
    return events
