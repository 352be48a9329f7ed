from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

from a2block.core.errors import FeedFetchError

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


class Geocoder:
    """
    Free-text address -> approximate lat/lon via a text-search endpoint.
    Lookups go out in small concurrent batches with a pause in between to
    stay inside the provider's rate limits. Failures are never surfaced.
    """
    def __init__(self, client, url: str = NOMINATIM_URL, batch_size: int = 5, delay_seconds: float = 1.0) -> None:
        self.client = client
        self.url = url
        self.batch_size = max(1, batch_size)
        self.delay_seconds = delay_seconds

    def _search(self, address: str) -> Optional[Coordinates]:
        data = self.client.get_json(self.url, params={"format": "json", "q": address, "limit": 1})
        if not data:
            return None
        return Coordinates(latitude=float(data[0]["lat"]), longitude=float(data[0]["lon"]))

    async def lookup(self, address: str) -> Optional[Coordinates]:
        try:
            return await asyncio.to_thread(self._search, address)
        except (FeedFetchError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Geocoding error for address %r: %s", address, e)
            return None

    async def enrich(self, records: Sequence[Any]) -> dict[int, Coordinates]:
        """Sparse patch {record index: coordinates}; misses are simply absent."""
        targets = [(i, r.address) for i, r in enumerate(records) if getattr(r, "address", "")]
        logger.info("geocoding %d of %d records", len(targets), len(records))

        patch: dict[int, Coordinates] = {}
        for start in range(0, len(targets), self.batch_size):
            if start:
                await asyncio.sleep(self.delay_seconds)
            batch = targets[start:start + self.batch_size]
            results = await asyncio.gather(*(self.lookup(addr) for _, addr in batch))
            for (idx, _), coords in zip(batch, results):
                if coords is not None:
                    patch[idx] = coords
        return patch


def apply_coordinates(records: Sequence[Any], patch: dict[int, Coordinates]) -> list[Any]:
    """New list with patched copies; the published records are left untouched."""
    return [
        replace(rec, coordinates=patch[i]) if i in patch else rec
        for i, rec in enumerate(records)
    ]
