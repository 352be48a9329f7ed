from __future__ import annotations

import re
from typing import Iterable

from bs4 import BeautifulSoup, Tag

ELLIPSIS = "..."

LEADING_EMOJI = re.compile(
    r"^([\U0001F000-\U0001FAFF\u2300-\u23FF\u2600-\u27BF\u2B00-\u2BFF\uFE0F\u200D]+)"
)

_WS = re.compile(r"\s+")


def parse_fragment(html: str) -> BeautifulSoup:
    """Feeds carry rich HTML inside CDATA; parse it leniently."""
    return BeautifulSoup(html or "", "html.parser")


def collapse_ws(text: str) -> str:
    return _WS.sub(" ", (text or "").replace("&nbsp;", " ").replace("\xa0", " ")).strip()


def fragment_text(soup: BeautifulSoup | Tag) -> str:
    return collapse_ws(soup.get_text(" "))


def tag_text(el: Tag | None) -> str:
    if el is None:
        return ""
    return el.get_text().strip()


def truncate(text: str, limit: int) -> str:
    if limit and len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def leading_emoji(text: str, default: str) -> str:
    m = LEADING_EMOJI.match((text or "").strip())
    return m.group(1) if m else default


def decode_entities(text: str) -> str:
    return (text or "").replace("&amp;", "&").replace("&lt;", "<").replace("&gt;", ">")


def section_paragraphs(soup: BeautifulSoup, marker: str) -> list[Tag]:
    """<p> elements next to the <h3> whose text carries the marker emoji."""
    for h3 in soup.find_all("h3"):
        if marker in h3.get_text() and isinstance(h3.parent, Tag):
            return h3.parent.find_all("p")
    return []


def labeled_values(paragraphs: Iterable[Tag], labels: dict[str, str]) -> dict[str, str]:
    """
    "Label: value" paragraphs -> {field: value}.
    Each paragraph feeds at most one label (first listed wins); unknown
    paragraphs are ignored and missing fields stay "".
    """
    out = {name: "" for name in labels.values()}
    for p in paragraphs:
        text = p.get_text()
        for label, name in labels.items():
            if label in text:
                out[name] = text.split(label, 1)[1].strip()
                break
    return out


def first_img_src(soup: BeautifulSoup) -> str:
    img = soup.find("img")
    if isinstance(img, Tag):
        return (img.get("src") or "").strip()
    return ""
