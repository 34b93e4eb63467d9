"""VAST document tree provider built on lxml."""

from dataclasses import dataclass
from typing import Any

from lxml import etree

from .config import VastParserConfig
from .events import VastEvents
from .exceptions import VastXMLError
from .log_config import get_context_logger


logger = get_context_logger("vast_document")

VAST_ROOT = "VAST"


def local_name(element: Any) -> str | None:
    """Return an element's tag without namespace, or None for comments/PIs."""
    tag = getattr(element, "tag", None)
    if not isinstance(tag, str):
        return None
    return etree.QName(tag).localname


@dataclass(frozen=True)
class VastDocument:
    """A parsed document: lxml root plus the text it came from.

    ``is_valid`` is the well-formedness flag. A valid document may still be
    semantically empty or have a root that is not ``<VAST>``.
    """

    root: etree._Element | None
    raw: str
    error: VastXMLError | None = None

    @property
    def is_valid(self) -> bool:
        return self.root is not None and self.error is None

    @property
    def is_vast(self) -> bool:
        return self.is_valid and local_name(self.root) == VAST_ROOT

    @property
    def version(self) -> str | None:
        if not self.is_vast:
            return None
        return self.root.get("version")

    def to_string(self) -> str:
        """Return the document text reported in ``resolved`` notifications."""
        if self.raw:
            return self.raw
        if self.root is None:
            return ""
        return etree.tostring(self.root, encoding="unicode")


def parse_document(raw: str | bytes, config: VastParserConfig | None = None) -> VastDocument:
    """Parse raw bytes or text into a VastDocument.

    Never raises for malformed input: the returned document is invalid and
    carries the parser error instead.

    Args:
        raw: Document bytes or text
        config: Parser configuration

    Returns:
        VastDocument instance
    """
    config = config or VastParserConfig()

    if isinstance(raw, bytes):
        text = raw.decode(config.encoding, errors="replace")
        data = raw
    else:
        text = raw
        data = raw.encode(config.encoding)

    if config.strip_whitespace:
        text = text.strip()
        data = data.strip()

    logger.debug(VastEvents.PARSE_STARTED, xml_length=len(text))

    if not data:
        error = VastXMLError("Empty VAST document")
        logger.warning(VastEvents.PARSE_FAILED, error=error.message)
        return VastDocument(root=None, raw=text, error=error)

    parser = etree.XMLParser(
        recover=config.recover_on_error,
        resolve_entities=False,
        no_network=True,
        remove_comments=False,
    )
    try:
        root = etree.fromstring(data, parser=parser)  # noqa: S320
    except etree.XMLSyntaxError as e:
        logger.warning(VastEvents.PARSE_FAILED, error=str(e), xml_preview=text[:200])
        return VastDocument(
            root=None,
            raw=text,
            error=VastXMLError(
                f"Failed to parse VAST XML: {e}", xml_preview=text, parser_error=e
            ),
        )
    except (UnicodeDecodeError, ValueError) as e:
        logger.warning(VastEvents.PARSE_FAILED, error=str(e), xml_preview=text[:200])
        return VastDocument(
            root=None,
            raw=text,
            error=VastXMLError(
                f"Failed to decode or parse VAST XML: {e}", xml_preview=text, parser_error=e
            ),
        )

    if root is None:
        error = VastXMLError("Failed to parse VAST XML: no root element", xml_preview=text)
        return VastDocument(root=None, raw=text, error=error)

    logger.debug(VastEvents.PARSE_SUCCESS, root_tag=local_name(root))
    return VastDocument(root=root, raw=text)


def document_from_element(root: etree._Element) -> VastDocument:
    """Wrap an already-built lxml element as a VastDocument."""
    return VastDocument(root=root, raw=etree.tostring(root, encoding="unicode"))


__all__ = ["VAST_ROOT", "local_name", "VastDocument", "parse_document", "document_from_element"]
