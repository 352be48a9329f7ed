from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from xml.etree import ElementTree as ET

from a2block.core.errors import EmptyFeedError, FeedParseError
from a2block.core.feed_parsers import RawItem, find_items, read_item

logger = logging.getLogger(__name__)


@dataclass
class ExtractContext:
    """Per-fetch values shared by every item of one document."""
    domain: str
    fetched_ms: int = field(default_factory=lambda: int(time.time() * 1000))
    options: dict[str, Any] = field(default_factory=dict)

    def synth_id(self, index: int, prefix: str = "") -> str:
        return f"{prefix}{index}-{self.fetched_ms}"


BuildFn = Callable[[RawItem, int, ExtractContext], Any]


def _admit_all(record: Any) -> bool:
    return True


@dataclass
class DomainSpec:
    """
    Per-domain knobs for the shared item pipeline.
    build returns one record (or a list when many=True), or None to skip.
    """
    domain: str
    build: BuildFn
    item_tags: tuple[str, ...] = ("item",)
    admit: Callable[[Any], bool] = _admit_all
    max_items: Optional[int] = None
    many: bool = False
    on_empty: Optional[Callable[[ExtractContext], list]] = None
    sort: Optional[Callable[[list], list]] = None
    empty_is_error: bool = False
    empty_message: str = "No items found in feed"
    require_xml_prolog: bool = False
    min_length: int = 0


def check_body(text: str, spec: DomainSpec) -> None:
    """Reject responses that are clearly not the expected feed."""
    if spec.min_length and len(text or "") < spec.min_length:
        raise FeedParseError(f"Received empty or invalid response from {spec.domain} feed", spec.domain)
    if spec.require_xml_prolog and ("<?xml" not in text or "<!DOCTYPE html>" in text):
        raise FeedParseError(f"{spec.domain} endpoint did not return XML", spec.domain)


def extract_records(root: ET.Element, spec: DomainSpec, ctx: ExtractContext | None = None) -> list:
    ctx = ctx or ExtractContext(domain=spec.domain)
    found = find_items(root, spec.item_tags)
    nodes = found.nodes
    if spec.max_items is not None:
        nodes = nodes[: spec.max_items]

    records: list = []
    for i, node in enumerate(nodes):
        try:
            raw = read_item(node, found.is_atom)
            built = spec.build(raw, i, ctx)
        except Exception as e:
            # one bad item never sinks the batch
            logger.warning("%s: error parsing item %d: %s", spec.domain, i, e)
            continue

        candidates = built if spec.many else [built]
        for rec in candidates or []:
            if rec is not None and spec.admit(rec):
                records.append(rec)
            elif rec is not None:
                logger.debug("%s: item %d not admitted", spec.domain, i)

    logger.info("%s: parsed %d records from %d <%s> nodes", spec.domain, len(records), len(found.nodes), found.tag)

    if not found.nodes and spec.on_empty is not None:
        records = spec.on_empty(ctx)
    if not records and spec.empty_is_error:
        raise EmptyFeedError(spec.empty_message, spec.domain)
    if spec.sort is not None:
        records = spec.sort(records)
    return records
