from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from a2block.core.extract import DomainSpec, ExtractContext
from a2block.core.feed_parsers import RawItem, find_first, node_text
from a2block.core.html_fragment import collapse_ws, first_img_src, parse_fragment, truncate
from a2block.core.strategies import first_success, regex_strategy

UNKNOWN_AUTHOR = "Unknown"
DEFAULT_SUBREDDIT = "annarbor"
MAX_POSTS = 50
SELF_TEXT_CAP = 400

# most specific first; the loosest "/u/name" pattern is the last resort
AUTHOR_PATTERNS = (
    r"<(?:\w+:)?name>/u/([^<]+)</(?:\w+:)?name>",
    r"- \(/u/([^)]+)\)",
    r"\(/u/([^)]+)\)",
    r"/u/([a-zA-Z0-9_-]+)",
)
SPAN_AUTHOR_RX = re.compile(r"- \(/u/([^)]+)\)")
SCORE_RX = re.compile(r"(\d+)\s+points?\b")
COMMENTS_RX = re.compile(r"(\d+)\s+comments?\b")
IMAGE_HOSTS = ("preview.redd.it", "i.redd.it", "i.imgur.com")


@dataclass(frozen=True)
class RedditPost:
    id: str
    title: str
    author: str
    score: int
    comments: int
    subreddit: str
    url: str
    self_text: str
    thumbnail: str
    image_url: str
    created: str
    flair: str
    post_type: str
    domain: str
    permalink: str


def structured_author(raw: RawItem) -> Optional[str]:
    author_el = find_first(raw.node, "author")
    if author_el is None:
        return None
    name = node_text(find_first(author_el, "name"))
    return name.replace("/u/", "").replace("u/", "") or None


def _markup_strategy(pattern: str):
    match = regex_strategy(pattern)

    def _from_markup(raw: RawItem) -> Optional[str]:
        return match(raw.markup)

    return _from_markup


def span_author(raw: RawItem) -> Optional[str]:
    # reached only when the markup lacks the byline, e.g. items built without it
    if not raw.content:
        return None
    for span in parse_fragment(raw.content).find_all("span"):
        m = SPAN_AUTHOR_RX.search(span.get_text())
        if m and m.group(1):
            return m.group(1)
    return None


AUTHOR_STRATEGIES = (
    structured_author,
    *(_markup_strategy(p) for p in AUTHOR_PATTERNS),
    span_author,
)


def resolve_author(raw: RawItem) -> str:
    author = first_success(AUTHOR_STRATEGIES, raw).strip().strip("/").strip()
    return author or UNKNOWN_AUTHOR


def _is_body_text(text: str, min_len: int) -> bool:
    return bool(text) and "(/u/" not in text and "- (" not in text and len(text) > min_len


def extract_self_text(soup: BeautifulSoup) -> str:
    for div in soup.find_all("div"):
        parts = [t for t in (p.get_text().strip() for p in div.find_all("p")) if _is_body_text(t, 10)]
        div_text = " ".join(parts).strip()
        if len(div_text) > 20:
            return collapse_ws(div_text)

    for p in soup.find_all("p"):
        text = p.get_text().strip()
        if _is_body_text(text, 20):
            return collapse_ws(text)
    return ""


def link_domain(link: str) -> str:
    try:
        return urlparse(link).hostname or ""
    except ValueError:
        return ""


def classify(raw: RawItem, image_url: str) -> tuple[str, str]:
    """(post_type, domain) for a post."""
    content = raw.content
    if image_url or "<img" in content or any(h in content for h in IMAGE_HOSTS):
        return "image", ""
    if "/poll/" in raw.link:
        return "poll", ""
    if raw.link and "reddit.com/r/" not in raw.link:
        return "link", link_domain(raw.link)
    return "text", ""


def _count(rx: re.Pattern, text: str) -> int:
    m = rx.search(text)
    return int(m.group(1)) if m else 0


def build_post(raw: RawItem, index: int, ctx: ExtractContext) -> RedditPost:
    subreddit = ctx.options.get("subreddit", DEFAULT_SUBREDDIT)
    soup = parse_fragment(raw.content)
    image_url = first_img_src(soup)
    post_type, domain = classify(raw, image_url)
    text = soup.get_text(" ")

    thumb_el = find_first(raw.node, "thumbnail")
    thumbnail = (thumb_el.attrib.get("url") or "") if thumb_el is not None else ""

    return RedditPost(
        id=raw.guid if raw.is_atom and raw.guid else f"{'entry' if raw.is_atom else 'item'}-{index}",
        title=raw.title or f"Post {index + 1}",
        author=resolve_author(raw),
        score=_count(SCORE_RX, text),
        comments=_count(COMMENTS_RX, text),
        subreddit=subreddit,
        url=raw.link,
        self_text=truncate(extract_self_text(soup), SELF_TEXT_CAP),
        thumbnail=thumbnail,
        image_url=image_url,
        created=raw.published,
        flair="",
        post_type=post_type,
        domain=domain,
        permalink=raw.link if "reddit.com" in raw.link else f"https://reddit.com/r/{subreddit}",
    )


def has_title(post: RedditPost) -> bool:
    return bool(post.title.strip())


SPEC = DomainSpec(
    domain="social",
    build=build_post,
    item_tags=("item", "entry"),
    admit=has_title,
    max_items=MAX_POSTS,
    empty_is_error=True,
    empty_message="No posts found in Reddit feed",
    min_length=100,
)
