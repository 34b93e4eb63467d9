"""Creative extraction: Linear, NonLinearAds and CompanionAds variants."""

from typing import Callable

from lxml import etree

from .document import local_name
from .models import (
    Companion,
    Creative,
    CreativeCompanion,
    CreativeLinear,
    CreativeNonLinear,
    Icon,
    MediaFile,
    NonLinear,
)
from .parser_utils import (
    child_by_name,
    child_elements,
    children_by_name,
    parse_bool,
    parse_duration,
    parse_int,
    parse_node_text,
    parse_position,
    parse_tracking_events,
    text_of_child,
    texts_of_children,
)


def _creative_attributes(element: etree._Element) -> dict[str, str | None]:
    return {
        "id": element.get("id"),
        "ad_id": element.get("adId") or element.get("AdID"),
        "sequence": element.get("sequence"),
        "api_framework": element.get("apiFramework"),
    }


def _resource_fields(node: etree._Element) -> dict[str, str | None]:
    static = child_by_name(node, "StaticResource")
    return {
        "type": static.get("creativeType") if static is not None else None,
        "static_resource": parse_node_text(static) or None,
        "html_resource": text_of_child(node, "HTMLResource"),
        "iframe_resource": text_of_child(node, "IFrameResource"),
    }


def parse_skip_delay(value: str | None, duration: float) -> float | None:
    """``skipoffset`` as seconds; percentages are taken of a known duration."""
    if value is None:
        return None
    value = value.strip()
    if value.endswith("%"):
        if duration < 0:
            return None
        try:
            percent = float(value[:-1])
        except ValueError:
            return None
        return duration * percent / 100
    seconds = parse_duration(value)
    return seconds if seconds >= 0 else None


def parse_media_file(element: etree._Element) -> MediaFile:
    return MediaFile(
        file_url=parse_node_text(element) or None,
        id=element.get("id"),
        delivery_type=element.get("delivery"),
        mime_type=element.get("type"),
        codec=element.get("codec"),
        api_framework=element.get("apiFramework"),
        bitrate=parse_int(element.get("bitrate")),
        min_bitrate=parse_int(element.get("minBitrate")),
        max_bitrate=parse_int(element.get("maxBitrate")),
        width=parse_int(element.get("width")),
        height=parse_int(element.get("height")),
        scalable=parse_bool(element.get("scalable")),
        maintain_aspect_ratio=parse_bool(element.get("maintainAspectRatio")),
    )


def parse_icon(element: etree._Element) -> Icon:
    icon_clicks = child_by_name(element, "IconClicks")
    return Icon(
        program=element.get("program"),
        height=parse_int(element.get("height")),
        width=parse_int(element.get("width")),
        x_position=parse_position(element.get("xPosition")),
        y_position=parse_position(element.get("yPosition")),
        api_framework=element.get("apiFramework"),
        offset=parse_duration(element.get("offset")),
        duration=parse_duration(element.get("duration")),
        icon_click_through_url_template=text_of_child(icon_clicks, "IconClickThrough"),
        icon_click_tracking_url_templates=texts_of_children(icon_clicks, "IconClickTracking"),
        icon_view_tracking_url_template=text_of_child(element, "IconViewTracking"),
        **_resource_fields(element),
    )


def parse_creative_linear(creative_element: etree._Element, linear: etree._Element) -> CreativeLinear:
    """Build a Linear creative from ``<Creative>`` and its ``<Linear>`` child."""
    duration = parse_duration(text_of_child(linear, "Duration"))
    video_clicks = child_by_name(linear, "VideoClicks")

    media_files = [
        parse_media_file(element)
        for container in children_by_name(linear, "MediaFiles")
        for element in children_by_name(container, "MediaFile")
    ]
    icons = [
        parse_icon(element)
        for container in children_by_name(linear, "Icons")
        for element in children_by_name(container, "Icon")
    ]

    return CreativeLinear(
        duration=duration,
        skip_delay=parse_skip_delay(linear.get("skipoffset"), duration),
        media_files=media_files,
        video_click_through_url_template=text_of_child(video_clicks, "ClickThrough"),
        video_click_tracking_url_templates=texts_of_children(video_clicks, "ClickTracking"),
        video_custom_click_url_templates=texts_of_children(video_clicks, "CustomClick"),
        tracking_events=parse_tracking_events(linear),
        icons=icons,
        ad_parameters=text_of_child(linear, "AdParameters"),
        **_creative_attributes(creative_element),
    )


def parse_nonlinear(element: etree._Element) -> NonLinear:
    return NonLinear(
        id=element.get("id"),
        width=parse_int(element.get("width")),
        height=parse_int(element.get("height")),
        expanded_width=parse_int(element.get("expandedWidth")),
        expanded_height=parse_int(element.get("expandedHeight")),
        scalable=parse_bool(element.get("scalable"), True),
        maintain_aspect_ratio=parse_bool(element.get("maintainAspectRatio"), True),
        min_suggested_duration=parse_duration(element.get("minSuggestedDuration")),
        api_framework=element.get("apiFramework"),
        nonlinear_click_through_url_template=text_of_child(element, "NonLinearClickThrough"),
        nonlinear_click_tracking_url_templates=texts_of_children(element, "NonLinearClickTracking"),
        ad_parameters=text_of_child(element, "AdParameters"),
        **_resource_fields(element),
    )


def parse_creative_nonlinear(
    creative_element: etree._Element, nonlinear_ads: etree._Element
) -> CreativeNonLinear:
    return CreativeNonLinear(
        tracking_events=parse_tracking_events(nonlinear_ads),
        variations=[
            parse_nonlinear(element) for element in children_by_name(nonlinear_ads, "NonLinear")
        ],
        **_creative_attributes(creative_element),
    )


def parse_companion(element: etree._Element) -> Companion:
    return Companion(
        id=element.get("id"),
        width=parse_int(element.get("width")),
        height=parse_int(element.get("height")),
        companion_click_through_url_template=text_of_child(element, "CompanionClickThrough"),
        companion_click_tracking_url_templates=texts_of_children(element, "CompanionClickTracking"),
        tracking_events=parse_tracking_events(element),
        **_resource_fields(element),
    )


def parse_creative_companion(
    creative_element: etree._Element, companion_ads: etree._Element
) -> CreativeCompanion:
    return CreativeCompanion(
        variations=[
            parse_companion(element) for element in children_by_name(companion_ads, "Companion")
        ],
        **_creative_attributes(creative_element),
    )


CREATIVE_PARSERS: dict[str, Callable[[etree._Element, etree._Element], Creative]] = {
    "Linear": parse_creative_linear,
    "NonLinearAds": parse_creative_nonlinear,
    "CompanionAds": parse_creative_companion,
}


def parse_creatives(node: etree._Element | None) -> list[Creative]:
    """Every creative under ``<Creatives>/<Creative>``, in document order.

    Unknown creative payloads (e.g. ``CreativeExtensions``) are skipped.
    """
    creatives: list[Creative] = []
    for container in children_by_name(node, "Creatives"):
        for creative_element in children_by_name(container, "Creative"):
            for payload in child_elements(creative_element):
                parse = CREATIVE_PARSERS.get(local_name(payload))
                if parse is not None:
                    creatives.append(parse(creative_element, payload))
    return creatives


__all__ = [
    "CREATIVE_PARSERS",
    "parse_skip_delay",
    "parse_media_file",
    "parse_icon",
    "parse_creative_linear",
    "parse_nonlinear",
    "parse_creative_nonlinear",
    "parse_companion",
    "parse_creative_companion",
    "parse_creatives",
]
