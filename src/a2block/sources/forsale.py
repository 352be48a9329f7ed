from __future__ import annotations

import re
from dataclasses import dataclass

from a2block.core.extract import DomainSpec, ExtractContext
from a2block.core.feed_parsers import RawItem, find_all, node_text
from a2block.core.html_fragment import LEADING_EMOJI, leading_emoji, parse_fragment, tag_text, truncate

DEFAULT_EMOJI = "🛍️"
DEFAULT_CATEGORY = "general"
PRICE_NOT_LISTED = "Price not listed"
DESCRIPTION_CAP = 150

# feed-level tags that are not item categories
NON_CATEGORIES = ("Craigslist",)
REGION_NAMES = ("Ann Arbor", "Livonia", "Detroit")

PRICE_RX = re.compile(r"\$([0-9,]+)")
LOCATION_RX = re.compile(r"📍\s*([^)]+)\)")
EMOJI_PREFIX_RX = re.compile(LEADING_EMOJI.pattern + r"\s*")
PRICE_SUFFIX_RX = re.compile(r"\s*-\s*\$[0-9,]+")
LOCATION_SUFFIX_RX = re.compile(r"\s*\(📍[^)]+\)")


@dataclass(frozen=True)
class ForSaleItem:
    id: str
    title: str
    price: str
    location: str
    category: str
    description: str
    link: str
    pub_date: str
    emoji: str
    is_free: bool


def display_title(title: str) -> str:
    name = EMOJI_PREFIX_RX.sub("", title)
    name = PRICE_SUFFIX_RX.sub("", name)
    name = LOCATION_SUFFIX_RX.sub("", name)
    return name.strip()


def pick_category(categories: list[str]) -> str:
    for cat in categories:
        if cat in NON_CATEGORIES or any(region in cat for region in REGION_NAMES):
            continue
        if cat:
            return cat
    return DEFAULT_CATEGORY


def build_listing(raw: RawItem, index: int, ctx: ExtractContext) -> ForSaleItem:
    title = raw.title
    if "free" in title.lower():
        price, is_free = "Free", True
    else:
        m = PRICE_RX.search(title)
        price, is_free = (f"${m.group(1)}" if m else PRICE_NOT_LISTED), False

    loc_m = LOCATION_RX.search(title)
    soup = parse_fragment(raw.content)
    desc_p = soup.select_one('div[style*="line-height"] p')

    return ForSaleItem(
        id=ctx.synth_id(index, prefix="forsale-"),
        title=display_title(title),
        price=price,
        location=loc_m.group(1).strip() if loc_m else "",
        category=pick_category([node_text(c) for c in find_all(raw.node, "category")]),
        description=truncate(tag_text(desc_p), DESCRIPTION_CAP),
        link=raw.link,
        pub_date=raw.published,
        emoji=leading_emoji(title, DEFAULT_EMOJI),
        is_free=is_free,
    )


SPEC = DomainSpec(
    domain="forsale",
    build=build_listing,
    require_xml_prolog=True,
)
