from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from a2block.core.extract import DomainSpec, ExtractContext
from a2block.core.feed_parsers import RawItem
from a2block.core.html_fragment import (
    labeled_values,
    leading_emoji,
    parse_fragment,
    section_paragraphs,
    tag_text,
    truncate,
)
from a2block.pipelines.geocode import Coordinates

DEFAULT_EMOJI = "🏠"
DEFAULT_STATUS = "ACTIVE"
DESCRIPTION_CAP = 400

# "🏠 NEW: 3065 Hilltop Dr, Ann Arbor, MI 48103 - $299,900 | 4BR/2BA"
ADDRESS_RX = re.compile(r"(\d+[^,]+,\s*[^,]+,\s*[^-]+)")
PRICE_RX = re.compile(r"\$([0-9,]+)")
BEDROOMS_RX = re.compile(r"(\d+)BR")
BATHROOMS_RX = re.compile(r"(\d+)BA")
STATUS_RX = re.compile(r"(NEW|PRICE_REDUCED|SOLD|PENDING)")
SQFT_UNIT_RX = re.compile(r"\s*sq ft.*$", re.IGNORECASE)

DETAIL_LABELS = {
    "Square Footage:": "square_footage",
    "Price per Sq Ft:": "price_per_sqft",
    "Property Type:": "property_type",
    "Year Built:": "year_built",
    "Neighborhood:": "neighborhood",
}


@dataclass(frozen=True)
class Property:
    id: str
    title: str
    address: str
    price: str
    bedrooms: str
    bathrooms: str
    square_footage: str
    price_per_sqft: str
    property_type: str
    year_built: str
    neighborhood: str
    description: str
    status: str
    emoji: str
    link: str
    coordinates: Optional[Coordinates] = None


def _group(rx: re.Pattern, text: str) -> str:
    m = rx.search(text)
    return m.group(1).strip() if m else ""


def build_property(raw: RawItem, index: int, ctx: ExtractContext) -> Property:
    title = raw.title
    soup = parse_fragment(raw.content)
    details = labeled_values(soup.find_all("p"), DETAIL_LABELS)

    sqft = details["square_footage"]
    if sqft:
        sqft = SQFT_UNIT_RX.sub("", sqft) + " sq ft"
    year_built = details["year_built"]
    if year_built == "undefined":
        year_built = ""

    desc_ps = section_paragraphs(soup, "📋")
    description = tag_text(desc_ps[0]) if desc_ps else ""

    price = _group(PRICE_RX, title)

    return Property(
        id=raw.guid or ctx.synth_id(index),
        title=title,
        address=_group(ADDRESS_RX, title),
        price=f"${price}" if price else "",
        bedrooms=_group(BEDROOMS_RX, title),
        bathrooms=_group(BATHROOMS_RX, title),
        square_footage=sqft,
        price_per_sqft=details["price_per_sqft"],
        property_type=details["property_type"],
        year_built=year_built,
        neighborhood=details["neighborhood"],
        description=truncate(description, DESCRIPTION_CAP),
        status=_group(STATUS_RX, title) or DEFAULT_STATUS,
        emoji=leading_emoji(title, DEFAULT_EMOJI),
        link=raw.link,
    )


def is_listing(prop: Property) -> bool:
    # the feed mixes in daily "Summary" posts
    return "summary" not in prop.title.lower()


SPEC = DomainSpec(
    domain="housing",
    build=build_property,
    admit=is_listing,
)
