"""OPML import/export.

Feeds are exported as one <outline type="rss"> per feed. Import accepts
flat documents as well as the common layout where feeds are nested under
folder outlines, in which case the folder name becomes the category.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from lxml import etree

from feed_aggregator.models.schemas import Feed


EXPORT_TITLE = "My RSS Feeds Export"


class OpmlError(ValueError):
    """Raised when an OPML document cannot be parsed."""


@dataclass
class OpmlEntry:
    """A feed subscription read from an OPML outline."""

    url: str
    title: str
    category: Optional[str]


def build_opml(feeds: Iterable[Feed]) -> bytes:
    """Serialize feeds as an OPML 2.0 document.

    Args:
        feeds: Feeds to export

    Returns:
        UTF-8 encoded OPML document
    """
    root = etree.Element("opml", version="2.0")
    head = etree.SubElement(root, "head")
    etree.SubElement(head, "title").text = EXPORT_TITLE
    body = etree.SubElement(root, "body")

    for feed in feeds:
        etree.SubElement(
            body,
            "outline",
            type="rss",
            text=feed.title or feed.url,
            xmlUrl=feed.url,
            category=feed.category or "",
        )

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def _walk(outline, folder: Optional[str], entries: List[OpmlEntry]) -> None:
    url = (outline.get("xmlUrl") or "").strip()
    label = outline.get("text") or outline.get("title")

    if url:
        category = outline.get("category") or folder or None
        entries.append(OpmlEntry(url=url, title=label or url, category=category))

    for child in outline.findall("outline"):
        # Only outlines without a feed URL act as folders
        _walk(child, folder if url else (label or folder), entries)


def parse_opml(xml: Union[str, bytes]) -> List[OpmlEntry]:
    """Parse an OPML document into feed entries.

    Outlines without an xmlUrl are skipped.

    Args:
        xml: OPML document

    Returns:
        List of OpmlEntry, in document order

    Raises:
        OpmlError: If the document is not well-formed OPML
    """
    if isinstance(xml, str):
        xml = xml.encode("utf-8")

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml, parser)
    except etree.XMLSyntaxError as e:
        raise OpmlError(f"Malformed OPML: {e}") from e

    if root.tag != "opml":
        raise OpmlError(f"Expected <opml> root element, got <{root.tag}>")

    body = root.find("body")
    if body is None:
        return []

    entries: List[OpmlEntry] = []
    for outline in body.findall("outline"):
        _walk(outline, None, entries)

    return entries
