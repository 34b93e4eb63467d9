"""
VAST Resolver Configuration Module

Provides configuration classes for the resolver components: document
parsing, error tracking, and the per-call resolution options.
"""

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Callable

from .exceptions import VastConfigValidationError
from .settings import ResolverSettings, get_settings


if TYPE_CHECKING:
    from .fetcher import DocumentFetcher


DEFAULT_WRAPPER_LIMIT = 10

URLFilter = Callable[[str], str]


@dataclass
class VastParserConfig:
    """Configuration for turning raw bytes into a document tree."""

    encoding: str = "utf-8"

    # Recovery hides malformed documents, which must surface as error 301
    recover_on_error: bool = False

    strip_whitespace: bool = True


@dataclass
class VastTrackerConfig:
    """Configuration for error-URL tracking dispatch."""

    # Macro formats (order matters - more specific first)
    macro_formats: list[str] = field(
        default_factory=lambda: ["[{macro}]", "%%{macro}%%", "${{{macro}}}"]
    )

    # Static macros merged under every dispatch
    static_macros: dict[str, str] = field(default_factory=dict)

    # Tracking transport options
    timeout: float = 5.0
    # Pixels keep firing even if the endpoint has a bad cert
    verify_ssl: bool = False


@dataclass
class VastResolverConfig:
    """Complete VAST resolver configuration."""

    wrapper_limit: int = DEFAULT_WRAPPER_LIMIT
    fetch_timeout: float = 10.0

    # SSL/TLS verification for document fetches
    ssl_verify: bool | str = True

    # Headers sent with every document fetch
    headers: dict[str, str] = field(default_factory=dict)

    parser: VastParserConfig = field(default_factory=VastParserConfig)
    tracker: VastTrackerConfig = field(default_factory=VastTrackerConfig)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate numeric limits.

        Raises:
            VastConfigValidationError: If a value is out of range
        """
        if not isinstance(self.wrapper_limit, int) or self.wrapper_limit < 1:
            raise VastConfigValidationError(
                "wrapper_limit must be a positive integer",
                config_key="wrapper_limit",
                config_value=self.wrapper_limit,
            )
        if self.fetch_timeout <= 0:
            raise VastConfigValidationError(
                "fetch_timeout must be positive",
                config_key="fetch_timeout",
                config_value=self.fetch_timeout,
            )
        if self.tracker.timeout <= 0:
            raise VastConfigValidationError(
                "tracker.timeout must be positive",
                config_key="tracker.timeout",
                config_value=self.tracker.timeout,
            )

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "VastResolverConfig":
        """Create configuration from a dictionary.

        Nested ``parser`` and ``tracker`` sections may be dicts.

        Args:
            config: Configuration dictionary

        Returns:
            VastResolverConfig instance
        """
        data = dict(config)
        if isinstance(data.get("parser"), dict):
            data["parser"] = VastParserConfig(**data["parser"])
        if isinstance(data.get("tracker"), dict):
            data["tracker"] = VastTrackerConfig(**data["tracker"])

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise VastConfigValidationError(
                "Unknown resolver configuration keys",
                config_key=", ".join(sorted(unknown)),
            )
        return cls(**data)

    @classmethod
    def from_settings(cls, settings: ResolverSettings | None = None) -> "VastResolverConfig":
        """Create configuration from environment/YAML settings.

        Args:
            settings: Settings instance (defaults to the cached global settings)

        Returns:
            VastResolverConfig instance
        """
        settings = settings or get_settings()
        tracker = {
            "timeout": settings.tracking_timeout,
            "verify_ssl": settings.tracking_verify_ssl,
            **settings.tracker,
        }
        return cls(
            wrapper_limit=settings.wrapper_limit,
            fetch_timeout=settings.fetch_timeout,
            ssl_verify=settings.ssl_verify,
            headers=dict(settings.headers),
            parser=VastParserConfig(**settings.parser),
            tracker=VastTrackerConfig(**tracker),
        )


@dataclass
class ResolveOptions:
    """Per-call resolution options.

    Unset values fall back to the resolver's configuration.

    Attributes:
        wrapper_limit: Override of the maximum wrapper chain length
        url_handler: Document fetcher used for this call only
        url_filters: Filter chain used for this call instead of the shared one
        timeout: Fetch timeout in seconds
        headers: Extra headers for every fetch of this call
    """

    wrapper_limit: int | None = None
    url_handler: "DocumentFetcher | None" = None
    url_filters: list[URLFilter] | None = None
    timeout: float | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.wrapper_limit is not None and (
            not isinstance(self.wrapper_limit, int) or self.wrapper_limit < 1
        ):
            raise VastConfigValidationError(
                "wrapper_limit must be a positive integer",
                config_key="wrapper_limit",
                config_value=self.wrapper_limit,
            )

    @classmethod
    def coerce(cls, options: "ResolveOptions | dict[str, Any] | None") -> "ResolveOptions":
        """Accept an options instance, a plain dict, or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, dict):
            return cls(**options)
        raise VastConfigValidationError(
            f"Unsupported options type: {type(options).__name__}", config_key="options"
        )


__all__ = [
    "DEFAULT_WRAPPER_LIMIT",
    "URLFilter",
    "VastParserConfig",
    "VastTrackerConfig",
    "VastResolverConfig",
    "ResolveOptions",
]
