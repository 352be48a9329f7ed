from __future__ import annotations

import re
from dataclasses import dataclass

from a2block.core.extract import DomainSpec, ExtractContext
from a2block.core.feed_parsers import RawItem
from a2block.core.html_fragment import LEADING_EMOJI, parse_fragment, tag_text

MAX_DAYS = 7

DAY_BLOCK = 'div[style*="border: 1px solid #ddd"]'
DATE_RX = re.compile(r"(\d{1,2}/\d{1,2}/\d{4})")
TEMP_RX = re.compile(r"(\d+)°/(\d+)°F")


@dataclass(frozen=True)
class WeatherDay:
    date: str
    emoji: str
    high: str
    low: str
    condition: str


def build_forecast(raw: RawItem, index: int, ctx: ExtractContext) -> list[WeatherDay]:
    soup = parse_fragment(raw.content)
    days: list[WeatherDay] = []
    for div in soup.select(DAY_BLOCK):
        h4 = div.find("h4")
        temp_p = div.find("p")
        if h4 is None or temp_p is None:
            continue

        heading = tag_text(h4)
        emoji_m = LEADING_EMOJI.match(heading)
        date_m = DATE_RX.search(heading)
        temp_m = TEMP_RX.search(tag_text(temp_p))
        # partial blocks are dropped, not defaulted
        if not (emoji_m and date_m and temp_m):
            continue

        days.append(WeatherDay(
            date=date_m.group(1),
            emoji=emoji_m.group(1),
            high=temp_m.group(1),
            low=temp_m.group(2),
            condition=heading.split(date_m.group(1), 1)[1].strip(),
        ))
    return days[:MAX_DAYS]


SPEC = DomainSpec(
    domain="weather",
    build=build_forecast,
    max_items=1,
    many=True,
)
