from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from a2block.config import FeedSource
from a2block.core.errors import FeedError, FeedFetchError
from a2block.core.extract import DomainSpec, ExtractContext, check_body, extract_records
from a2block.core.feed_parsers import parse_document
from a2block.core.http_client import PoliteHttpClient
from a2block.sources.registry import spec_for_domain

logger = logging.getLogger(__name__)


def parse_feed_text(text: str, source: FeedSource, spec: Optional[DomainSpec] = None) -> list:
    """Sanitize -> parse -> extract for one already-fetched body."""
    spec = spec or spec_for_domain(source.domain)
    check_body(text, spec)
    root = parse_document(text, mime=source.mime, domain=source.domain)
    options = {"subreddit": source.tags[0]} if source.tags else {}
    return extract_records(root, spec, ExtractContext(domain=source.domain, options=options))


async def run_pipeline(
    source: FeedSource,
    client: PoliteHttpClient,
    spec: Optional[DomainSpec] = None,
) -> list:
    """
    One fetch-parse-extract pass for a domain.
    Raises FeedFetchError / FeedParseError / EmptyFeedError; callers turn
    them into a user-facing error state.
    """
    logger.info("fetching %s feed: %s", source.domain, source.url)
    try:
        resp = await asyncio.to_thread(client.get, source.url, cache_bust=True)
    except FeedFetchError as e:
        e.domain = e.domain or source.domain
        raise
    logger.debug("%s response: status=%s bytes=%d cached=%s", source.domain, resp.status, len(resp.body), resp.from_cache)
    return parse_feed_text(resp.text, source, spec)


async def fetch_all(
    sources: list[FeedSource],
    client: PoliteHttpClient,
) -> dict[str, Union[list, FeedError]]:
    """Run every domain's pipeline concurrently; failures are returned, not raised."""
    results = await asyncio.gather(
        *(run_pipeline(src, client) for src in sources),
        return_exceptions=True,
    )
    out: dict[str, Union[list, FeedError]] = {}
    for src, res in zip(sources, results):
        if isinstance(res, FeedError):
            logger.warning("%s feed failed: %s", src.domain, res)
        elif isinstance(res, BaseException):
            raise res
        out[src.domain] = res
    return out
