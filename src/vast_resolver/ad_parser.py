"""Ad-model builder: turns a VAST document into Ad objects."""

from dataclasses import dataclass, field

from lxml import etree

from .creative_parser import parse_creatives
from .document import VastDocument, local_name
from .events import VastEvents
from .exceptions import VastXMLError
from .log_config import get_context_logger
from .models import Ad
from .parser_utils import (
    child_by_name,
    child_elements,
    parse_ad_system,
    parse_extensions,
    parse_node_text,
    parse_pricing,
    text_of_child,
    texts_of_children,
)


@dataclass
class ParsedVast:
    """Everything one document contributes before wrappers are followed.

    Attributes:
        version: ``version`` attribute of the document root
        ads: Inline and wrapper ads in document order
        error_url_templates: VAST-level ``<Error>`` URLs (outside any ``<Ad>``)
        invalid_ads: Number of ``<Ad>`` elements that had no usable payload
    """

    version: str | None = None
    ads: list[Ad] = field(default_factory=list)
    error_url_templates: list[str] = field(default_factory=list)
    invalid_ads: int = 0


def _parse_ad_fields(ad_element: etree._Element, payload: etree._Element) -> Ad:
    """Fields shared by ``<InLine>`` and ``<Wrapper>``."""
    return Ad(
        id=ad_element.get("id"),
        sequence=ad_element.get("sequence"),
        system=parse_ad_system(payload),
        title=text_of_child(payload, "AdTitle"),
        description=text_of_child(payload, "Description"),
        advertiser=text_of_child(payload, "Advertiser"),
        pricing=parse_pricing(payload),
        survey=text_of_child(payload, "Survey"),
        error_url_templates=texts_of_children(payload, "Error"),
        impression_url_templates=texts_of_children(payload, "Impression"),
        extensions=parse_extensions(payload),
        creatives=parse_creatives(payload),
    )


def parse_inline(ad_element: etree._Element, inline: etree._Element) -> Ad:
    return _parse_ad_fields(ad_element, inline)


def wrapper_ad_tag_uri(wrapper: etree._Element) -> str | None:
    """Redirect target of a wrapper, accepting the VAST 2 ``VASTAdTagURL/URL`` form."""
    uri = text_of_child(wrapper, "VASTAdTagURI")
    if uri:
        return uri
    return text_of_child(child_by_name(wrapper, "VASTAdTagURL"), "URL")


def parse_wrapper(ad_element: etree._Element, wrapper: etree._Element) -> Ad | None:
    """Build a wrapper ad; its creatives act as overrides for the ads it resolves to.

    Returns None when the wrapper has no redirect target.
    """
    uri = wrapper_ad_tag_uri(wrapper)
    if not uri:
        return None
    ad = _parse_ad_fields(ad_element, wrapper)
    ad.next_wrapper_url = uri
    return ad


def parse_ad(ad_element: etree._Element) -> Ad | None:
    """Build an Ad from an ``<Ad>`` element.

    The first ``InLine`` or ``Wrapper`` child wins. Returns None when neither
    yields a usable ad.
    """
    for payload in child_elements(ad_element):
        name = local_name(payload)
        if name == "InLine":
            return parse_inline(ad_element, payload)
        if name == "Wrapper":
            return parse_wrapper(ad_element, payload)
    return None


class VastAdParser:
    """Classifies a document and builds its ads."""

    def __init__(self):
        self.logger = get_context_logger("vast_ad_parser")

    def parse(self, document: VastDocument) -> ParsedVast:
        """Build the ads of one document.

        Args:
            document: A well-formed document

        Returns:
            ParsedVast with the document's ads and VAST-level error URLs

        Raises:
            VastXMLError: If the document is not well-formed or its root is not ``<VAST>``
        """
        if not document.is_valid:
            raise document.error or VastXMLError("Invalid VAST XMLDocument")
        if not document.is_vast:
            raise VastXMLError(
                "Invalid VAST XMLDocument", xml_preview=document.raw[:200]
            )

        parsed = ParsedVast(version=document.version)
        for element in child_elements(document.root):
            name = local_name(element)
            if name == "Error":
                text = parse_node_text(element)
                if text:
                    parsed.error_url_templates.append(text)
            elif name == "Ad":
                ad = parse_ad(element)
                if ad is None:
                    parsed.invalid_ads += 1
                    self.logger.warning(
                        "Skipping Ad without usable InLine or Wrapper",
                        ad_id=element.get("id"),
                    )
                else:
                    parsed.ads.append(ad)

        self.logger.debug(
            VastEvents.PARSE_SUCCESS,
            version=parsed.version,
            ads_count=len(parsed.ads),
            wrappers_count=sum(1 for ad in parsed.ads if ad.is_wrapper),
            error_urls_count=len(parsed.error_url_templates),
            invalid_ads=parsed.invalid_ads,
        )
        return parsed


__all__ = [
    "ParsedVast",
    "parse_inline",
    "wrapper_ad_tag_uri",
    "parse_wrapper",
    "parse_ad",
    "VastAdParser",
]
