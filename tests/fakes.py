from __future__ import annotations

import threading
from typing import Any, Optional

from a2block.config import FeedSource
from a2block.core.http_client import HttpResponse


class FakeClient:
    """
    Stands in for PoliteHttpClient.
    responses maps url -> body text or an exception to raise.
    With gated=True, get() blocks until gate is set.
    """
    def __init__(self, responses: Optional[dict[str, Any]] = None, gated: bool = False) -> None:
        self.responses = dict(responses or {})
        self.calls: list[str] = []
        self.gate = threading.Event()
        if not gated:
            self.gate.set()

    def get(self, url, params=None, cache_bust=False, accept="*/*") -> HttpResponse:
        self.calls.append(url)
        self.gate.wait(timeout=5)
        body = self.responses[url]
        if isinstance(body, Exception):
            raise body
        return HttpResponse(
            url=url,
            status=200,
            headers={"content-type": "application/xml; charset=utf-8"},
            body=body.encode("utf-8"),
        )


class FakeGeoClient:
    """get_json() backed by {address: [{"lat": .., "lon": ..}]} or an exception."""
    def __init__(self, results: dict[str, Any]) -> None:
        self.results = results
        self.queries: list[str] = []

    def get_json(self, url, params=None):
        q = params["q"]
        self.queries.append(q)
        res = self.results.get(q, [])
        if isinstance(res, Exception):
            raise res
        return res


def source(domain: str, page_size: int = 1000, **kw) -> FeedSource:
    return FeedSource(
        domain=domain,
        name=domain.title(),
        url=f"https://feeds.test/{domain}",
        page_size=page_size,
        **kw,
    )
