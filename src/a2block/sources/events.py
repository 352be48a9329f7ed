from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from a2block.core.extract import DomainSpec, ExtractContext
from a2block.core.feed_parsers import RawItem, find_first
from a2block.core.html_fragment import (
    fragment_text,
    labeled_values,
    leading_emoji,
    parse_fragment,
    section_paragraphs,
    tag_text,
    truncate,
)
from a2block.pipelines.pagination import sort_events

DEFAULT_EMOJI = "🎪"
TIME_TBA = "Time TBA"
DESCRIPTION_CAP = 300

VENUE_LABELS = {
    "🏟️ Venue:": "venue",
    "🏙️ Location:": "location",
    "📮 Address:": "address",
}
DETAIL_LABELS = {
    "🎭 Category:": "category",
    "🎪 Genre:": "genre",
    "💰 Price Range:": "price_range",
}

DATE_RX = re.compile(r"(\w+day,\s+\w+\s+\d+,\s+\d+)")
TIME_RX = re.compile(r"(\d+:\d+\s+[AP]M)")
DATE_FORMATS = ("%A, %B %d, %Y", "%A, %b %d, %Y")


@dataclass(frozen=True)
class Event:
    id: str
    title: str
    date: str
    time: str
    venue: str
    location: str
    address: str
    category: str
    genre: str
    price_range: str
    image_url: str
    description: str
    emoji: str
    event_name: str
    link: str
    sort_date: Optional[date]


def parse_event_date(s: str) -> Optional[date]:
    s = " ".join((s or "").split())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def build_event(raw: RawItem, index: int, ctx: ExtractContext) -> Event:
    enclosure = find_first(raw.node, "enclosure")
    image_url = (enclosure.attrib.get("url") or "").strip() if enclosure is not None else ""

    soup = parse_fragment(raw.content)
    strong = soup.select_one("p strong")
    date_time_text = tag_text(strong.parent) if strong is not None else ""

    venue = labeled_values(section_paragraphs(soup, "📍"), VENUE_LABELS)
    details = labeled_values(section_paragraphs(soup, "🎫"), DETAIL_LABELS)

    emoji = leading_emoji(raw.title, DEFAULT_EMOJI)
    date_m = DATE_RX.search(date_time_text)
    time_m = TIME_RX.search(date_time_text)
    event_date = date_m.group(1) if date_m else ""

    return Event(
        id=raw.guid or ctx.synth_id(index),
        title=raw.title,
        date=event_date,
        time=time_m.group(1) if time_m else TIME_TBA,
        venue=venue["venue"],
        location=venue["location"],
        address=venue["address"],
        category=details["category"],
        genre=details["genre"],
        price_range=details["price_range"],
        image_url=image_url,
        description=truncate(fragment_text(soup), DESCRIPTION_CAP),
        emoji=emoji,
        event_name=tag_text(soup.find("h2")).replace(emoji, "").strip(),
        link=raw.link,
        sort_date=parse_event_date(event_date),
    )


def has_image(event: Event) -> bool:
    url = event.image_url.strip()
    return bool(url) and url != "undefined"


SPEC = DomainSpec(
    domain="events",
    build=build_event,
    admit=has_image,
    sort=sort_events,
)
