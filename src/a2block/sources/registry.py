from __future__ import annotations

from a2block.core.extract import DomainSpec
from a2block.sources import alerts, events, forsale, housing, social, weather
from a2block.sources.articles import EDUCATION_SPEC, NEWS_SPEC, POLITICS_SPEC

SPECS: dict[str, DomainSpec] = {
    "weather": weather.SPEC,
    "alerts": alerts.SPEC,
    "events": events.SPEC,
    "housing": housing.SPEC,
    "social": social.SPEC,
    "forsale": forsale.SPEC,
    "news": NEWS_SPEC,
    "politics": POLITICS_SPEC,
    "education": EDUCATION_SPEC,
}


def spec_for_domain(domain: str) -> DomainSpec:
    try:
        return SPECS[domain]
    except KeyError:
        raise KeyError(f"Unknown feed domain: {domain}") from None
