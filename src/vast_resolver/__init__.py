"""
VAST Resolver Package

Resolves VAST (Video Ad Serving Template) tags into fully merged ads:
wrapper chains are followed depth-first, every wrapper level is folded into
the ads it leads to, and in-chain failures are reported through lifecycle
notifications and error-URL tracking.

This package provides:
- VastResolver: Wrapper-chain resolution and merging
- VastResponse / Ad / Creative*: The resolved ad model
- ErrorTracker / HttpTrackingTransport: Error-URL dispatch
- UrlDocumentFetcher: http(s) and file document retrieval
- Configuration classes and pydantic-based settings

Usage:
    from vast_resolver import ResolverChannel, VastResolver

    resolver = VastResolver()
    resolver.add_filter(lambda url: url.replace("http://", "https://"))
    resolver.on(ResolverChannel.ERROR, lambda event: print(event.to_dict()))

    response = await resolver.resolve("https://ads.example.com/vast")
    for ad in response.ads:
        print(ad.id, [creative.type for creative in ad.creatives])
"""

from .ad_parser import ParsedVast, VastAdParser
from .config import (
    DEFAULT_WRAPPER_LIMIT,
    ResolveOptions,
    VastParserConfig,
    VastResolverConfig,
    VastTrackerConfig,
)
from .dispatcher import EventDispatcher, ResolvedEvent, ResolvingEvent, VastErrorEvent
from .document import VastDocument, parse_document
from .events import ResolverChannel, VastErrorCode, VastEvents
from .exceptions import (
    VastConfigError,
    VastConfigValidationError,
    VastException,
    VastFetchError,
    VastFetchTimeoutError,
    VastParseError,
    VastTrackingError,
    VastXMLError,
)
from .fetcher import DocumentFetcher, FetchOptions, FetchResult, UrlDocumentFetcher
from .http_client_manager import HttpClientManager, get_http_client_manager
from .macros import substitute
from .models import (
    Ad,
    AdExtension,
    AdExtensionChild,
    AdSystem,
    Companion,
    Creative,
    CreativeCompanion,
    CreativeLinear,
    CreativeNonLinear,
    CreativeType,
    Icon,
    MediaFile,
    NonLinear,
    Pricing,
    VastResponse,
)
from .parser_utils import parse_duration
from .resolver import VastResolver
from .settings import ResolverSettings, get_settings, load_settings
from .tracker import ErrorTracker, HttpTrackingTransport, TrackingTransport

__version__ = "1.0.0"

__all__ = [
    # Main classes
    "VastResolver",
    "VastAdParser",
    "ParsedVast",
    "ErrorTracker",
    "HttpTrackingTransport",
    "TrackingTransport",
    "UrlDocumentFetcher",
    "DocumentFetcher",
    "FetchOptions",
    "FetchResult",
    "EventDispatcher",
    # Notifications
    "ResolverChannel",
    "ResolvingEvent",
    "ResolvedEvent",
    "VastErrorEvent",
    "VastErrorCode",
    "VastEvents",
    # Model
    "VastResponse",
    "Ad",
    "AdSystem",
    "Pricing",
    "AdExtension",
    "AdExtensionChild",
    "Creative",
    "CreativeType",
    "CreativeLinear",
    "CreativeNonLinear",
    "CreativeCompanion",
    "MediaFile",
    "Icon",
    "NonLinear",
    "Companion",
    # Documents
    "VastDocument",
    "parse_document",
    # Helpers
    "substitute",
    "parse_duration",
    "HttpClientManager",
    "get_http_client_manager",
    # Configuration
    "DEFAULT_WRAPPER_LIMIT",
    "ResolveOptions",
    "VastParserConfig",
    "VastResolverConfig",
    "VastTrackerConfig",
    "ResolverSettings",
    "get_settings",
    "load_settings",
    # Exceptions
    "VastException",
    "VastParseError",
    "VastXMLError",
    "VastFetchError",
    "VastFetchTimeoutError",
    "VastTrackingError",
    "VastConfigError",
    "VastConfigValidationError",
]
