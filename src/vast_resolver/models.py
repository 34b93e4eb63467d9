"""Resolved VAST ad model.

Ads and creatives are plain dataclasses that the resolver mutates while
merging wrapper levels; ``VastResponse`` is frozen and is what callers get.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


TrackingEvents = dict[str, list[str]]


class CreativeType(str, Enum):
    """Discriminant of the creative variants."""

    LINEAR = "linear"
    NONLINEAR = "nonlinear"
    COMPANION = "companion"


@dataclass
class AdSystem:
    value: str | None = None
    version: str | None = None


@dataclass
class Pricing:
    value: str | None = None
    model: str | None = None
    currency: str | None = None


@dataclass
class AdExtensionChild:
    """One element inside an ``<Extension>``; may nest further elements."""

    name: str
    value: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["AdExtensionChild"] = field(default_factory=list)


@dataclass
class AdExtension:
    """Opaque ``<Extension>`` node kept for pass-through."""

    attributes: dict[str, str] = field(default_factory=dict)
    children: list[AdExtensionChild] = field(default_factory=list)


@dataclass
class MediaFile:
    file_url: str | None = None
    id: str | None = None
    delivery_type: str | None = None
    mime_type: str | None = None
    codec: str | None = None
    api_framework: str | None = None
    bitrate: int = 0
    min_bitrate: int = 0
    max_bitrate: int = 0
    width: int = 0
    height: int = 0
    scalable: bool | None = None
    maintain_aspect_ratio: bool | None = None


@dataclass
class Icon:
    program: str | None = None
    height: int = 0
    width: int = 0
    x_position: int | str = 0
    y_position: int | str = 0
    api_framework: str | None = None
    offset: float = -1
    duration: float = -1
    type: str | None = None
    static_resource: str | None = None
    html_resource: str | None = None
    iframe_resource: str | None = None
    icon_click_through_url_template: str | None = None
    icon_click_tracking_url_templates: list[str] = field(default_factory=list)
    icon_view_tracking_url_template: str | None = None


@dataclass
class NonLinear:
    id: str | None = None
    width: int = 0
    height: int = 0
    expanded_width: int = 0
    expanded_height: int = 0
    scalable: bool = True
    maintain_aspect_ratio: bool = True
    min_suggested_duration: float = -1
    api_framework: str | None = None
    type: str | None = None
    static_resource: str | None = None
    html_resource: str | None = None
    iframe_resource: str | None = None
    nonlinear_click_through_url_template: str | None = None
    nonlinear_click_tracking_url_templates: list[str] = field(default_factory=list)
    ad_parameters: str | None = None


@dataclass
class Companion:
    id: str | None = None
    width: int = 0
    height: int = 0
    type: str | None = None
    static_resource: str | None = None
    html_resource: str | None = None
    iframe_resource: str | None = None
    companion_click_through_url_template: str | None = None
    companion_click_tracking_url_templates: list[str] = field(default_factory=list)
    tracking_events: TrackingEvents = field(default_factory=dict)


@dataclass
class Creative:
    """Fields shared by every creative variant."""

    id: str | None = None
    ad_id: str | None = None
    sequence: str | None = None
    api_framework: str | None = None

    type: CreativeType = field(init=False)


@dataclass
class CreativeLinear(Creative):
    duration: float = -1
    skip_delay: float | None = None
    media_files: list[MediaFile] = field(default_factory=list)
    video_click_through_url_template: str | None = None
    video_click_tracking_url_templates: list[str] = field(default_factory=list)
    video_custom_click_url_templates: list[str] = field(default_factory=list)
    tracking_events: TrackingEvents = field(default_factory=dict)
    icons: list[Icon] = field(default_factory=list)
    ad_parameters: str | None = None

    def __post_init__(self) -> None:
        self.type = CreativeType.LINEAR


@dataclass
class CreativeNonLinear(Creative):
    tracking_events: TrackingEvents = field(default_factory=dict)
    variations: list[NonLinear] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.type = CreativeType.NONLINEAR


@dataclass
class CreativeCompanion(Creative):
    variations: list[Companion] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.type = CreativeType.COMPANION


@dataclass
class Ad:
    """One ad, built bottom-up while the wrapper chain is resolved."""

    id: str | None = None
    sequence: str | None = None
    system: AdSystem = field(default_factory=AdSystem)
    title: str | None = None
    description: str | None = None
    advertiser: str | None = None
    pricing: Pricing | None = None
    survey: str | None = None
    error_url_templates: list[str] = field(default_factory=list)
    impression_url_templates: list[str] = field(default_factory=list)
    extensions: list[AdExtension] = field(default_factory=list)
    creatives: list[Creative] = field(default_factory=list)

    # Resolution state, cleared before the ad reaches a caller
    next_wrapper_url: str | None = field(default=None, repr=False)
    error_code: int | None = field(default=None, repr=False)
    error_message: str | None = field(default=None, repr=False)

    @property
    def is_wrapper(self) -> bool:
        return self.next_wrapper_url is not None


@dataclass(frozen=True)
class VastResponse:
    """Top-level resolution result.

    Every returned ad is a private copy; nothing is shared between ads or
    with later resolutions.

    Attributes:
        version: ``version`` attribute of the outermost document
        ads: Fully resolved ads in document order
        error_url_templates: VAST-level ``<Error>`` URLs (root document first)
    """

    version: str | None = None
    ads: tuple[Ad, ...] = ()
    error_url_templates: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = [
    "TrackingEvents",
    "CreativeType",
    "AdSystem",
    "Pricing",
    "AdExtensionChild",
    "AdExtension",
    "MediaFile",
    "Icon",
    "NonLinear",
    "Companion",
    "Creative",
    "CreativeLinear",
    "CreativeNonLinear",
    "CreativeCompanion",
    "Ad",
    "VastResponse",
]
