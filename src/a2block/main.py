import argparse
import asyncio
import dataclasses
import json
import logging
from datetime import datetime
from pathlib import Path

from a2block.config import DOMAINS, load_settings, load_sources
from a2block.core.errors import FeedError
from a2block.core.http_client import PoliteHttpClient
from a2block.pipelines.feed_pipeline import fetch_all, run_pipeline
from a2block.pipelines.pagination import paginate
from a2block.reporting.render_md import render_domain_section, write_markdown_report


def _today_ymd() -> str:
    return datetime.now().strftime("%Y-%m-%d")


def _client() -> PoliteHttpClient:
    settings = load_settings()
    return PoliteHttpClient(
        cache_dir=settings.cache_dir,
        timeout_seconds=settings.timeout_seconds,
        user_agent=settings.user_agent,
    )


def cmd_fetch(args: argparse.Namespace) -> int:
    sources = {s.domain: s for s in load_sources(args.sources)}
    src = sources[args.domain]
    try:
        records = asyncio.run(run_pipeline(src, _client()))
    except FeedError as e:
        print(f"[ERROR] {args.domain}: {e}")
        return 1

    window = paginate(records, args.page, src.page_size)
    for rec in window.items:
        print(json.dumps(dataclasses.asdict(rec), ensure_ascii=False, default=str))
    print(f"[OK] {args.domain} page={args.page} items={len(window.items)} total={window.total} has_more={window.has_more}")
    return 0


def cmd_digest(args: argparse.Namespace) -> int:
    sources = load_sources(args.sources)
    results = asyncio.run(fetch_all(sources, _client()))

    sections = [{"h2": "Run Date", "body": args.date}]
    for src in sources:
        sections.append({
            "h2": src.name,
            "body": render_domain_section(src.domain, results[src.domain]),
        })
    out = write_markdown_report(
        Path(args.out),
        f"digest_{args.date}.md",
        f"A2Block Digest - {args.date}",
        sections,
    )
    failed = [d for d, r in results.items() if isinstance(r, FeedError)]
    print(f"[DIGEST] feeds={len(results)} failed={len(failed)}", flush=True)
    print(f"[OK] {out}")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="a2block")
    p.add_argument("--sources", default=None, help="JSON file overriding the built-in feed endpoints")
    sub = p.add_subparsers(dest="cmd", required=True)

    f = sub.add_parser("fetch", help="Fetch one feed and print its records as JSON lines")
    f.add_argument("domain", choices=DOMAINS)
    f.add_argument("--page", type=int, default=0)

    d = sub.add_parser("digest", help="Fetch every feed and write a markdown digest")
    d.add_argument("--date", default=_today_ymd())
    d.add_argument("--out", default="reports")

    args = p.parse_args(argv)
    logging.basicConfig(
        level=load_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "fetch":
        return cmd_fetch(args)
    if args.cmd == "digest":
        return cmd_digest(args)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
