"""Plain-text article feeds: local news, the political blog, the university paper.

The three feeds only differ in where author and image live, which boilerplate
the source appends, and how short a body may get before it is replaced with a
"click through" message, so one extractor serves all of them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from bs4 import BeautifulSoup

from a2block.core.extract import DomainSpec, ExtractContext
from a2block.core.feed_parsers import RawItem, child_text, find_all, node_text
from a2block.core.html_fragment import (
    collapse_ws,
    decode_entities,
    first_img_src,
    fragment_text,
    parse_fragment,
    truncate,
)

BODY_CAP = 400
MAX_CATEGORIES = 5


@dataclass(frozen=True)
class ArticleRecord:
    id: str
    title: str
    url: str
    content: str
    published: str
    updated: str
    author: str
    image_url: str
    categories: list[str]
    source: str


@dataclass(frozen=True)
class ArticleProfile:
    domain: str
    source: str
    default_author: str
    fallback_message: str
    min_length: int
    author: Callable[[RawItem], Optional[str]]
    image: Callable[[RawItem, BeautifulSoup], str]
    link: Callable[[RawItem], str] = lambda raw: raw.link
    footer_patterns: tuple[str, ...] = ()
    item_tags: tuple[str, ...] = ("item",)
    body_cap: int = BODY_CAP
    max_categories: int = MAX_CATEGORIES

    def clean_body(self, text: str) -> str:
        for pattern in self.footer_patterns:
            text = re.sub(pattern, "", text)
        text = collapse_ws(text)
        if len(text) < self.min_length:
            return self.fallback_message
        return truncate(text, self.body_cap)


def _categories(raw: RawItem, limit: int) -> list[str]:
    out: list[str] = []
    for c in find_all(raw.node, "category"):
        label = node_text(c) or (c.attrib.get("term") or "").strip()
        if label:
            out.append(label)
    return out[:limit]


def build_article(profile: ArticleProfile) -> Callable[[RawItem, int, ExtractContext], ArticleRecord]:
    def _build(raw: RawItem, index: int, ctx: ExtractContext) -> ArticleRecord:
        soup = parse_fragment(raw.content)
        published = child_text(raw.node, "published") if raw.is_atom else raw.published
        return ArticleRecord(
            id=raw.guid or ctx.synth_id(index),
            title=decode_entities(raw.title),
            url=profile.link(raw),
            content=profile.clean_body(fragment_text(soup)),
            published=published,
            updated=child_text(raw.node, "updated"),
            author=profile.author(raw) or profile.default_author,
            image_url=profile.image(raw, soup),
            categories=_categories(raw, profile.max_categories),
            source=profile.source,
        )

    return _build


def spec_for(profile: ArticleProfile) -> DomainSpec:
    return DomainSpec(
        domain=profile.domain,
        build=build_article(profile),
        item_tags=profile.item_tags,
    )


# --- MLive (Atom) ---

def _atom_link(raw: RawItem, rel: str) -> str:
    for lk in find_all(raw.node, "link"):
        if (lk.attrib.get("rel") or "") == rel:
            return (lk.attrib.get("href") or "").strip()
    return ""


def _mlive_author(raw: RawItem) -> Optional[str]:
    author_el = next(iter(find_all(raw.node, "author")), None)
    if author_el is None:
        return None
    name = child_text(author_el, "name")
    name = name.replace("https://www.facebook.com/", "")
    return re.sub(r"[^a-zA-Z0-9.]", "", name) or None


NEWS = ArticleProfile(
    domain="news",
    source="MLive",
    default_author="MLive",
    fallback_message="Click to read the full article on MLive.com",
    min_length=20,
    author=_mlive_author,
    image=lambda raw, soup: _atom_link(raw, "enclosure"),
    link=lambda raw: _atom_link(raw, "alternate") or raw.guid,
    footer_patterns=(r"Could not extract full content, selector may need to be updated\.",),
    item_tags=("entry",),
)


# --- Damn Arbor (Blogger RSS) ---

def _blogger_author(raw: RawItem) -> Optional[str]:
    text = child_text(raw.node, "author")
    return text.replace("noreply@blogger.com (", "").replace(")", "").strip() or None


def _media_thumbnail(raw: RawItem, soup: BeautifulSoup) -> str:
    for el in find_all(raw.node, "thumbnail"):
        url = (el.attrib.get("url") or "").strip()
        if url:
            return url
    return ""


POLITICS = ArticleProfile(
    domain="politics",
    source="Damn Arbor",
    default_author="Damn Arbor",
    fallback_message="Click to read the full post on Damn Arbor.",
    min_length=50,
    author=_blogger_author,
    image=_media_thumbnail,
)


# --- The Michigan Daily (WordPress RSS) ---

EDUCATION = ArticleProfile(
    domain="education",
    source="The Michigan Daily",
    default_author="The Michigan Daily",
    fallback_message="Click to read the full article on The Michigan Daily.",
    min_length=50,
    author=lambda raw: child_text(raw.node, "creator") or None,
    image=lambda raw, soup: first_img_src(soup),
    footer_patterns=(r"The post .* appeared first on\s+The Michigan Daily\s*\.",),
)


NEWS_SPEC = spec_for(NEWS)
POLITICS_SPEC = spec_for(POLITICS)
EDUCATION_SPEC = spec_for(EDUCATION)
