"""Pure helpers that read typed values out of VAST XML nodes.

Every reader returns a value or a documented sentinel and never raises on
missing or malformed optional data. The merge helpers at the bottom combine
a wrapper level with the ads it resolved to.
"""

import math
import re
from typing import Any, Iterable
from urllib.parse import urljoin

from lxml import etree

from .document import local_name
from .log_config import get_context_logger
from .models import (
    Ad,
    AdExtension,
    AdExtensionChild,
    AdSystem,
    Creative,
    CreativeLinear,
    CreativeNonLinear,
    CreativeType,
    Pricing,
    TrackingEvents,
)


logger = get_context_logger("vast_parser_utils")

UNKNOWN_DURATION = -1

_CLOCK_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})(?:\.(\d+))?$")

# Only these creative types carry wrapper-level overrides
_OVERRIDABLE_TYPES = (CreativeType.LINEAR, CreativeType.NONLINEAR)


# Node navigation

def child_elements(node: etree._Element | None) -> list[etree._Element]:
    """Element children of a node, skipping comments and processing instructions."""
    if node is None:
        return []
    return [child for child in node if local_name(child) is not None]


def children_by_name(node: etree._Element | None, name: str) -> list[etree._Element]:
    return [child for child in child_elements(node) if local_name(child) == name]


def child_by_name(node: etree._Element | None, name: str) -> etree._Element | None:
    for child in child_elements(node):
        if local_name(child) == name:
            return child
    return None


def parse_node_text(node: etree._Element | None) -> str | None:
    """Whitespace-trimmed text content of a node (CDATA included)."""
    if node is None:
        return None
    return "".join(node.itertext()).strip()


def text_of_child(node: etree._Element | None, name: str) -> str | None:
    """Text of the first named child, or None when absent or empty."""
    text = parse_node_text(child_by_name(node, name))
    return text or None


def texts_of_children(node: etree._Element | None, name: str) -> list[str]:
    """Non-empty texts of every named child, in document order."""
    texts = (parse_node_text(child) for child in children_by_name(node, name))
    return [text for text in texts if text]


# Scalar parsing

def parse_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            number = float(str(value).strip())
        except ValueError:
            return default
        return int(number) if math.isfinite(number) else default


def parse_bool(value: Any, default: bool | None = None) -> bool | None:
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    return default


def _whole(seconds: float) -> float:
    return int(seconds) if float(seconds).is_integer() else seconds


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds.

    Accepts plain seconds (number or numeric string) and ``HH:MM:SS[.mmm]``
    clock strings. Anything else, including negatives, maps to ``-1``
    (unknown duration). Never returns NaN.

    Examples:
        >>> parse_duration("00:01:30.123")
        90.123
        >>> parse_duration("00:test:01")
        -1
    """
    if value is None or isinstance(value, bool):
        return UNKNOWN_DURATION

    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 0:
            return UNKNOWN_DURATION
        return _whole(value)

    if not isinstance(value, str):
        return UNKNOWN_DURATION

    text = value.strip()
    if not text:
        return UNKNOWN_DURATION

    if ":" not in text:
        try:
            seconds = float(text)
        except ValueError:
            return UNKNOWN_DURATION
        if not math.isfinite(seconds) or seconds < 0:
            return UNKNOWN_DURATION
        return _whole(seconds)

    match = _CLOCK_RE.match(text)
    if match is None:
        return UNKNOWN_DURATION

    hours, minutes, seconds, fraction = match.groups()
    if int(minutes) > 60 or int(seconds) > 60:
        return UNKNOWN_DURATION

    total: float = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
    if fraction:
        total += float(f"0.{fraction}")
    return _whole(total)


def parse_position(value: str | None) -> int | str:
    """Icon position: pixel offset, or a keyword such as ``left``/``top``."""
    if value is None:
        return 0
    text = value.strip()
    if text in ("left", "right", "top", "bottom"):
        return text
    return parse_int(text, 0)


# Ad-level fields

def parse_ad_system(node: etree._Element | None) -> AdSystem:
    element = child_by_name(node, "AdSystem")
    if element is None:
        return AdSystem()
    return AdSystem(value=parse_node_text(element) or None, version=element.get("version"))


def parse_pricing(node: etree._Element | None) -> Pricing | None:
    element = child_by_name(node, "Pricing")
    if element is None:
        return None
    return Pricing(
        value=parse_node_text(element) or None,
        model=element.get("model"),
        currency=element.get("currency"),
    )


def _parse_extension_child(element: etree._Element) -> AdExtensionChild:
    return AdExtensionChild(
        name=local_name(element),
        value=parse_node_text(element) or None,
        attributes=dict(element.attrib),
        children=[_parse_extension_child(child) for child in child_elements(element)],
    )


def parse_extension(element: etree._Element) -> AdExtension:
    return AdExtension(
        attributes=dict(element.attrib),
        children=[_parse_extension_child(child) for child in child_elements(element)],
    )


def parse_extensions(node: etree._Element | None) -> list[AdExtension]:
    """All ``<Extensions>/<Extension>`` nodes under an ``InLine``/``Wrapper``."""
    extensions = []
    for container in children_by_name(node, "Extensions"):
        for element in children_by_name(container, "Extension"):
            extensions.append(parse_extension(element))
    return extensions


def parse_tracking_events(node: etree._Element | None) -> TrackingEvents:
    """Map event name to URLs from every ``<TrackingEvents>`` under a node.

    ``progress`` events are keyed ``progress-<seconds>`` or ``progress-<N>%``
    from their ``offset`` attribute.
    """
    events: TrackingEvents = {}
    for container in children_by_name(node, "TrackingEvents"):
        for tracking in children_by_name(container, "Tracking"):
            name = tracking.get("event")
            url = parse_node_text(tracking)
            if not name or not url:
                continue

            if name == "progress":
                offset = (tracking.get("offset") or "").strip()
                if not offset:
                    continue
                if offset.endswith("%"):
                    name = f"progress-{offset}"
                else:
                    seconds = parse_duration(offset)
                    if seconds < 0:
                        continue
                    name = f"progress-{round(seconds)}"

            events.setdefault(name, []).append(url)
    return events


def resolve_vast_ad_tag_uri(uri: str, original_url: str | None) -> str:
    """Make a wrapper's redirect absolute against the URL that declared it."""
    uri = uri.strip()
    if original_url:
        return urljoin(original_url, uri)
    if uri.startswith("//"):
        return f"http:{uri}"
    return uri


# Merging

def concat_ad_level(own: Iterable[Any], nested: Iterable[Any]) -> list[Any]:
    """Ad-level merge: the wrapper's own values first, then the nested ones."""
    return [*own, *nested]


def concat_creative_level(nested: Iterable[Any], own: Iterable[Any]) -> list[Any]:
    """Creative-level merge: nested (already merged) values first, then the wrapper's."""
    return [*nested, *own]


def merge_tracking_events(nested: TrackingEvents, own: TrackingEvents) -> TrackingEvents:
    """Union of event names; per event, nested URLs then the wrapper's."""
    merged = {name: list(urls) for name, urls in nested.items()}
    for name, urls in own.items():
        merged[name] = concat_creative_level(merged.get(name, []), urls)
    return merged


def _same_identity(override: Creative, creative: Creative) -> bool:
    if override.id and override.id == creative.id:
        return True
    return bool(override.ad_id and override.ad_id == creative.ad_id)


def find_creative_overrides(creative: Creative, candidates: Iterable[Creative]) -> list[Creative]:
    """Wrapper creatives that apply to a nested creative.

    Same type first; the first candidate with a matching ``id``/``adId``
    wins. Without an identity match every same-type candidate applies.
    """
    if creative.type not in _OVERRIDABLE_TYPES:
        return []

    same_type = [candidate for candidate in candidates if candidate.type == creative.type]
    for candidate in same_type:
        if _same_identity(candidate, creative):
            return [candidate]

    if len(same_type) > 1:
        logger.warning(
            "Ambiguous wrapper creative override, applying all of the same type",
            creative_id=creative.id,
            creative_type=creative.type.value,
            overrides_count=len(same_type),
        )
    return same_type


def merge_creative_override(creative: Creative, override: Creative) -> None:
    """Apply one wrapper-level creative override onto a nested creative."""
    if isinstance(creative, (CreativeLinear, CreativeNonLinear)) and isinstance(
        override, (CreativeLinear, CreativeNonLinear)
    ):
        creative.tracking_events = merge_tracking_events(
            creative.tracking_events, override.tracking_events
        )

    if isinstance(creative, CreativeLinear) and isinstance(override, CreativeLinear):
        creative.video_click_tracking_url_templates = concat_creative_level(
            creative.video_click_tracking_url_templates,
            override.video_click_tracking_url_templates,
        )
        creative.video_custom_click_url_templates = concat_creative_level(
            creative.video_custom_click_url_templates,
            override.video_custom_click_url_templates,
        )
        creative.icons = concat_creative_level(creative.icons, override.icons)
        # VAST 2.0: a wrapper click-through fills a missing inline one
        if creative.video_click_through_url_template is None:
            creative.video_click_through_url_template = override.video_click_through_url_template


def merge_wrapper_ad_data(unwrapped: Ad, wrapper: Ad) -> Ad:
    """Fold one wrapper level into an ad it resolved to.

    Ad-level lists read outer-to-inner, creative-level lists
    inner-to-outer.
    """
    unwrapped.error_url_templates = concat_ad_level(
        wrapper.error_url_templates, unwrapped.error_url_templates
    )
    unwrapped.impression_url_templates = concat_ad_level(
        wrapper.impression_url_templates, unwrapped.impression_url_templates
    )
    unwrapped.extensions = concat_ad_level(wrapper.extensions, unwrapped.extensions)

    for creative in unwrapped.creatives:
        for override in find_creative_overrides(creative, wrapper.creatives):
            merge_creative_override(creative, override)
    return unwrapped


__all__ = [
    "UNKNOWN_DURATION",
    "child_elements",
    "children_by_name",
    "child_by_name",
    "parse_node_text",
    "text_of_child",
    "texts_of_children",
    "parse_int",
    "parse_bool",
    "parse_duration",
    "parse_position",
    "parse_ad_system",
    "parse_pricing",
    "parse_extension",
    "parse_extensions",
    "parse_tracking_events",
    "resolve_vast_ad_tag_uri",
    "concat_ad_level",
    "concat_creative_level",
    "merge_tracking_events",
    "find_creative_overrides",
    "merge_creative_override",
    "merge_wrapper_ad_data",
]
