from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Optional
from xml.etree import ElementTree as ET

from a2block.core.errors import FeedParseError

logger = logging.getLogger(__name__)

XML_MIME_TYPES = ("application/xml", "text/xml")

_BARE_AMP = re.compile(r"&(?![a-zA-Z0-9#]{1,7};)")


@dataclass
class RawItem:
    """One <item>/<entry> with the fields every extractor reads."""
    title: str
    link: str
    published: str
    content: str
    guid: str
    is_atom: bool
    markup: str
    node: ET.Element = field(repr=False)


@dataclass
class ItemSet:
    nodes: list[ET.Element]
    tag: str
    is_atom: bool
    via_fallback: bool = False


def strip_ns(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def node_text(el: Optional[ET.Element]) -> str:
    """textContent of an element: all nested text, stripped."""
    if el is None:
        return ""
    return "".join(el.itertext()).strip()


def find_all(el: ET.Element, localname: str) -> list[ET.Element]:
    """Descendants of el (not el itself) whose local name matches."""
    ln = localname.lower()
    return [
        c for c in el.iter()
        if c is not el and isinstance(c.tag, str) and strip_ns(c.tag).lower() == ln
    ]


def find_first(el: ET.Element, localname: str) -> Optional[ET.Element]:
    found = find_all(el, localname)
    return found[0] if found else None


def child_text(el: ET.Element, localname: str) -> str:
    return node_text(find_first(el, localname))


def parse_time(s: str) -> str | None:
    s = (s or "").strip()
    if not s:
        return None
    try:
        dt = parsedate_to_datetime(s)
        return dt.isoformat(timespec="seconds")
    except (TypeError, ValueError, IndexError):
        pass
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        return dt.isoformat(timespec="seconds")
    except ValueError:
        return None


def sanitize_xml(text: str) -> str:
    """
    Repair entity errors feed generators commonly emit:
    - a bare "&" (e.g. "R&D") becomes "&amp;"
    - double-escaped "&amp;amp;" collapses back to "&amp;"
    """
    cleaned = _BARE_AMP.sub("&amp;", text or "")
    return cleaned.replace("&amp;amp;", "&amp;")


def parse_document(text: str, mime: str = "application/xml", domain: str = "") -> ET.Element:
    if mime not in XML_MIME_TYPES:
        raise ValueError(f"Unsupported mime type: {mime}")
    cleaned = sanitize_xml(text)
    try:
        return ET.fromstring(cleaned)
    except ET.ParseError as e:
        logger.error("%s XML parsing error: %s", domain or "feed", e)
        raise FeedParseError(f"Failed to parse {domain or 'feed'} XML response", domain) from e


def query_tag(root: ET.Element, tag: str) -> list[ET.Element]:
    return list(root.iter(tag))


def query_local_name(root: ET.Element, tag: str) -> list[ET.Element]:
    ln = tag.lower()
    return [el for el in root.iter() if isinstance(el.tag, str) and strip_ns(el.tag).lower() == ln]


def find_items(root: ET.Element, tags: tuple[str, ...] = ("item", "entry")) -> ItemSet:
    """
    RSS <item> or Atom <entry> nodes.
    Exact tag traversal first; namespaced documents (Atom) only match the
    local-name query. The first non-empty set wins, sets are never merged.
    """
    for tag in tags:
        nodes = query_tag(root, tag)
        via_fallback = False
        if not nodes:
            nodes = query_local_name(root, tag)
            via_fallback = True
        if nodes:
            logger.debug("found %d <%s> nodes (fallback=%s)", len(nodes), tag, via_fallback)
            return ItemSet(nodes=nodes, tag=tag, is_atom=tag == "entry", via_fallback=via_fallback)
    return ItemSet(nodes=[], tag=tags[0], is_atom=tags[0] == "entry", via_fallback=True)


def _atom_link(node: ET.Element) -> str:
    for lk in find_all(node, "link"):
        rel = (lk.attrib.get("rel") or "alternate").strip()
        href = (lk.attrib.get("href") or "").strip()
        if rel == "alternate" and href:
            return href
    lk0 = find_first(node, "link")
    if lk0 is None:
        return ""
    return (lk0.attrib.get("href") or node_text(lk0)).strip()


def read_item(node: ET.Element, is_atom: bool) -> RawItem:
    if is_atom:
        link = _atom_link(node)
        published = child_text(node, "updated") or child_text(node, "published")
        content_el = find_first(node, "content")
        guid = child_text(node, "id")
    else:
        link = child_text(node, "link")
        published = child_text(node, "pubDate")
        content_el = find_first(node, "description")
        guid = child_text(node, "guid")

    # content keeps its inner whitespace; it is parsed as HTML later
    content = "".join(content_el.itertext()) if content_el is not None else ""

    return RawItem(
        title=child_text(node, "title"),
        link=link,
        published=published,
        content=content,
        guid=guid,
        is_atom=is_atom,
        markup=ET.tostring(node, encoding="unicode"),
        node=node,
    )
