from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path


FEEDS_BASE = "https://rss-feeds.jpc.io/api"

DOMAINS = (
    "weather",
    "alerts",
    "events",
    "housing",
    "social",
    "forsale",
    "news",
    "politics",
    "education",
)

# Large enough that the whole feed fits on page 0.
SINGLE_PAGE = 1000


@dataclass
class FeedSource:
    domain: str
    name: str
    url: str
    refresh_minutes: int = 30
    page_size: int = SINGLE_PAGE
    mime: str = "application/xml"
    tags: list[str] = field(default_factory=list)


DEFAULT_SOURCES: list[FeedSource] = [
    FeedSource("weather", "Ann Arbor Weather", f"{FEEDS_BASE}/weather", mime="text/xml"),
    FeedSource(
        "alerts",
        "Emergency Alerts",
        f"{FEEDS_BASE}/emergency-alerts?location=48103",
        refresh_minutes=5,
        mime="text/xml",
    ),
    FeedSource("events", "Ticketmaster Events", f"{FEEDS_BASE}/ticketmaster-events"),
    FeedSource("housing", "Real Estate", f"{FEEDS_BASE}/realestate"),
    FeedSource(
        "social",
        "r/annarbor",
        f"{FEEDS_BASE}/reddit?subreddit=annarbor&sort=new&limit=100",
        page_size=20,
        tags=["annarbor"],
    ),
    FeedSource("forsale", "Craigslist For Sale", f"{FEEDS_BASE}/craigslist"),
    FeedSource("news", "MLive", f"{FEEDS_BASE}/mlive"),
    FeedSource("politics", "Damn Arbor", f"{FEEDS_BASE}/damnarbor"),
    FeedSource("education", "The Michigan Daily", f"{FEEDS_BASE}/michigandaily"),
]


def _to_source(payload: dict, base: FeedSource | None) -> FeedSource | None:
    domain = (payload.get("domain") or "").strip()
    url = (payload.get("url") or "").strip()
    if not domain or not url:
        return None
    if base is None:
        base = FeedSource(domain=domain, name=domain, url=url)
    return replace(
        base,
        name=payload.get("name") or base.name,
        url=url,
        refresh_minutes=int(payload.get("refresh_minutes", base.refresh_minutes)),
        page_size=int(payload.get("page_size", base.page_size)),
        mime=payload.get("mime") or base.mime,
        tags=list(payload.get("tags", base.tags)),
    )


def load_sources(path: str | None = None) -> list[FeedSource]:
    """
    Feed endpoints per domain.
    - path (or A2BLOCK_SOURCES) points to {"sources": [{"domain": ..., "url": ...}, ...]}
    - file entries override the built-in source of the same domain
    """
    path = path or os.getenv("A2BLOCK_SOURCES", "").strip() or None
    defaults = {s.domain: s for s in DEFAULT_SOURCES}
    if path is None:
        return [replace(s, tags=list(s.tags)) for s in DEFAULT_SOURCES]

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing sources file: {path}")

    data = json.loads(p.read_text(encoding="utf-8"))
    merged = dict(defaults)
    for payload in data.get("sources", []):
        src = _to_source(payload, defaults.get(payload.get("domain", "")))
        if src is not None:
            merged[src.domain] = src
    return list(merged.values())


@dataclass(frozen=True)
class Settings:
    cache_dir: str | None
    user_agent: str
    timeout_seconds: float
    geocoder_url: str
    geocode_batch: int
    geocode_delay: float
    log_level: str
    auto_refresh: bool


def load_settings() -> Settings:
    cache_dir = os.getenv("A2BLOCK_CACHE_DIR", "data/cache/http").strip()
    return Settings(
        cache_dir=cache_dir or None,
        user_agent=os.getenv("A2BLOCK_USER_AGENT", "A2Block-Housing-App/1.0").strip(),
        timeout_seconds=float(os.getenv("A2BLOCK_TIMEOUT", "25")),
        geocoder_url=os.getenv(
            "A2BLOCK_GEOCODER_URL", "https://nominatim.openstreetmap.org/search"
        ).strip(),
        geocode_batch=int(os.getenv("A2BLOCK_GEOCODE_BATCH", "5")),
        geocode_delay=float(os.getenv("A2BLOCK_GEOCODE_DELAY", "1.0")),
        log_level=os.getenv("A2BLOCK_LOG_LEVEL", "INFO").strip().upper(),
        auto_refresh=os.getenv("A2BLOCK_AUTO_REFRESH", "1").strip() != "0",
    )
