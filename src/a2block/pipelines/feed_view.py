from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from a2block.config import FeedSource
from a2block.core.errors import FeedError
from a2block.core.extract import DomainSpec
from a2block.pipelines.feed_pipeline import run_pipeline
from a2block.pipelines.geocode import Geocoder, apply_coordinates
from a2block.pipelines.pagination import merge_page, paginate
from a2block.pipelines.scheduler import RefreshTask
from a2block.sources.registry import spec_for_domain

logger = logging.getLogger(__name__)


class FeedView:
    """
    State one tab renders: the record list plus loading / error / has_more.

    Loads are serialized: a page request that arrives while another load is
    in flight is dropped, not queued. The view owns its records exclusively;
    geocoding results are applied as a new list, never by mutating records.
    """
    def __init__(
        self,
        source: FeedSource,
        client,
        spec: Optional[DomainSpec] = None,
        geocoder: Optional[Geocoder] = None,
    ) -> None:
        self.source = source
        self.client = client
        self.spec = spec or spec_for_domain(source.domain)
        self.geocoder = geocoder

        self.records: list[Any] = []
        self.loading = False
        self.loading_more = False
        self.error: Optional[str] = None
        self.has_more = False
        self.page = 0
        self.last_updated: Optional[float] = None

        self._inflight: Optional[asyncio.Task] = None
        self._refresh: Optional[RefreshTask] = None
        self._enrichment: set[asyncio.Task] = set()

    @property
    def domain(self) -> str:
        return self.source.domain

    @property
    def busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def is_empty(self) -> bool:
        """Pipeline succeeded but nothing was admissible (not an error)."""
        return (
            self.last_updated is not None
            and not self.busy
            and self.error is None
            and not self.records
        )

    async def load_page(self, page: int) -> bool:
        if self.busy:
            logger.debug("%s: page %d dropped, load already in flight", self.domain, page)
            return False
        task = asyncio.get_running_loop().create_task(self._load(page))
        self._inflight = task
        # wait() leaves the load alone if only this caller is cancelled
        await asyncio.wait({task})
        if task.cancelled():
            return False
        task.result()
        return True

    async def refresh(self) -> bool:
        return await self.load_page(0)

    async def request_next_page(self) -> bool:
        if not self.has_more:
            return False
        return await self.load_page(self.page + 1)

    async def _load(self, page: int) -> None:
        if page == 0:
            self.loading = True
            self.error = None
        else:
            self.loading_more = True

        try:
            records = await run_pipeline(self.source, self.client, self.spec)
        except FeedError as e:
            logger.error("%s fetch error: %s", self.domain, e)
            self.error = f"Failed to fetch {self.source.name}: {e}"
            return
        else:
            window = paginate(records, page, self.source.page_size)
            self.records = merge_page(self.records, window)
            self.page = page
            self.has_more = window.has_more
            self.error = None
            self.last_updated = time.time()
            logger.info("%s: loaded %d records for page %d", self.domain, len(window.items), page)
        finally:
            self.loading = False
            self.loading_more = False

        if page == 0 and self.geocoder is not None and self.records:
            self._start_enrichment(self.records)

    def _start_enrichment(self, published: list[Any]) -> None:
        async def _enrich() -> None:
            patch = await self.geocoder.enrich(published)
            if not patch:
                return
            current = self.records
            # a refresh replaced the list meanwhile: the patch is stale
            if len(current) < len(published) or any(a is not b for a, b in zip(current, published)):
                logger.debug("%s: dropping stale geocoding patch", self.domain)
                return
            self.records = apply_coordinates(published, patch) + current[len(published):]

        task = asyncio.get_running_loop().create_task(_enrich())
        self._enrichment.add(task)
        task.add_done_callback(self._enrichment.discard)

    def attach(self) -> RefreshTask:
        """Start the first load and the periodic refresh."""
        if self._refresh is None or not self._refresh.running:
            self._refresh = RefreshTask(
                self.refresh,
                self.source.refresh_minutes * 60,
                name=f"refresh-{self.domain}",
            )
            self._refresh.start()
        return self._refresh

    async def detach(self) -> None:
        """Stop the timer and abandon any in-flight load; geocoding may finish."""
        if self._refresh is not None:
            await self._refresh.wait_stopped()
            self._refresh = None
        if self.busy:
            self._inflight.cancel()
        self._inflight = None

    def status(self) -> dict:
        return {
            "domain": self.domain,
            "name": self.source.name,
            "loading": self.loading,
            "loading_more": self.loading_more,
            "error": self.error,
            "has_more": self.has_more,
            "empty": self.is_empty,
            "page": self.page,
            "count": len(self.records),
            "last_updated": self.last_updated,
            "refresh_minutes": self.source.refresh_minutes,
        }
