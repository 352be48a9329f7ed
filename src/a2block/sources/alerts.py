from __future__ import annotations

from dataclasses import dataclass

from a2block.core.extract import DomainSpec, ExtractContext
from a2block.core.feed_parsers import RawItem

NO_ALERTS_MARKER = "No Active Emergency Alerts"
NO_ALERTS_TITLE = "✅ No Active Emergency Alerts"


@dataclass(frozen=True)
class EmergencyAlert:
    title: str
    has_alert: bool
    link: str = ""
    published: str = ""


def build_alert(raw: RawItem, index: int, ctx: ExtractContext) -> EmergencyAlert:
    return EmergencyAlert(
        title=raw.title,
        has_alert=NO_ALERTS_MARKER not in raw.title,
        link=raw.link,
        published=raw.published,
    )


def no_alerts(ctx: ExtractContext) -> list[EmergencyAlert]:
    return [EmergencyAlert(title=NO_ALERTS_TITLE, has_alert=False)]


SPEC = DomainSpec(
    domain="alerts",
    build=build_alert,
    max_items=1,
    on_empty=no_alerts,
)
