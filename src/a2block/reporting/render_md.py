from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from a2block.core.errors import FeedError
from a2block.core.feed_parsers import parse_time

DIGEST_TOP = 10


def bullets(items: Iterable[str]) -> str:
    items = list(items)
    if not items:
        return "_No data_\n"
    return "\n".join([f"- {x}" for x in items]) + "\n"


def _md_escape(s: str) -> str:
    # minimal escape for markdown links
    return (s or "").replace("]", "\\]")


def _to_datetime(date_str: str) -> Optional[datetime]:
    iso = parse_time(date_str)
    if iso is None:
        return None
    dt = datetime.fromisoformat(iso)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_time_ago(date_str: str, now: Optional[datetime] = None) -> str:
    dt = _to_datetime(date_str)
    if dt is None:
        return "Unknown time"
    now = now or datetime.now(timezone.utc)
    diff = now - dt
    hours = int(diff.total_seconds() // 3600)
    days = hours // 24
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    return f"{max(0, int(diff.total_seconds() // 60))}m ago"


def _link(title: str, url: str) -> str:
    title = _md_escape(title)
    return f"[{title}]({url})" if url else title


_LINES: dict[str, Callable[[Any], str]] = {
    "weather": lambda r: f"{r.emoji} {r.date} {r.condition}: {r.high}°/{r.low}°F",
    "alerts": lambda r: r.title,
    "events": lambda r: (
        f"{r.emoji} {_link(r.event_name or r.title, r.link)} ({r.date or 'Date TBA'}, {r.time})"
        + (f" @ {r.venue}" if r.venue else "")
    ),
    "housing": lambda r: (
        f"{r.emoji} {_link(r.address or r.title, r.link)} {r.price} "
        f"{r.bedrooms or '?'}BR/{r.bathrooms or '?'}BA [{r.status}]"
    ),
    "social": lambda r: (
        f"{_link(r.title, r.permalink)} by u/{r.author} ({r.post_type}, {format_time_ago(r.created)})"
    ),
    "forsale": lambda r: (
        f"{r.emoji} {_link(r.title, r.link)} {r.price}" + (f" ({r.location})" if r.location else "")
    ),
}


def _article_line(r: Any) -> str:
    return f"{_link(r.title, r.url)} by {r.author}"


def render_domain_section(domain: str, result: Union[list, FeedError], top: int = DIGEST_TOP) -> str:
    if isinstance(result, FeedError):
        return f"**Error:** {result}\n"
    line = _LINES.get(domain, _article_line)
    return bullets(line(r) for r in result[:top])


def write_markdown_report(out_dir: Path, filename: str, title: str, sections: list[dict]) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    out = out_dir / filename

    lines: list[str] = []
    lines.append(f"# {title}")
    lines.append("")

    for sec in sections:
        h2 = (sec.get("h2") or "").strip()
        body = sec.get("body") or ""
        if h2:
            lines.append(f"## {h2}")
            lines.append("")
        if body:
            lines.append(body.rstrip())
            lines.append("")

    out.write_text("\n".join(lines).rstrip() + "\n", encoding="utf-8")
    return out
