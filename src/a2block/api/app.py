from __future__ import annotations

import dataclasses
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from a2block.config import FeedSource, load_settings, load_sources
from a2block.core.http_client import PoliteHttpClient
from a2block.pipelines.feed_view import FeedView
from a2block.pipelines.geocode import Geocoder

logger = logging.getLogger(__name__)

APP_TITLE = "a2block feeds API"


def build_views(sources: list[FeedSource], client, geocoder: Optional[Geocoder] = None) -> dict[str, FeedView]:
    views: dict[str, FeedView] = {}
    for src in sources:
        views[src.domain] = FeedView(
            src,
            client,
            geocoder=geocoder if src.domain == "housing" else None,
        )
    return views


def create_app(
    sources: Optional[list[FeedSource]] = None,
    client=None,
    geocoder: Optional[Geocoder] = None,
    auto_refresh: Optional[bool] = None,
) -> FastAPI:
    settings = load_settings()
    if auto_refresh is None:
        auto_refresh = settings.auto_refresh

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http = client or PoliteHttpClient(
            cache_dir=settings.cache_dir,
            timeout_seconds=settings.timeout_seconds,
            user_agent=settings.user_agent,
        )
        geo = geocoder
        if geo is None and client is None:
            geo = Geocoder(
                PoliteHttpClient(rps=1.0, timeout_seconds=settings.timeout_seconds, user_agent=settings.user_agent),
                url=settings.geocoder_url,
                batch_size=settings.geocode_batch,
                delay_seconds=settings.geocode_delay,
            )
        views = build_views(sources if sources is not None else load_sources(), http, geo)
        app.state.views = views
        if auto_refresh:
            for view in views.values():
                view.attach()
        logger.info("attached %d feed views (auto_refresh=%s)", len(views), auto_refresh)
        try:
            yield
        finally:
            for view in views.values():
                await view.detach()

    app = FastAPI(title=APP_TITLE, lifespan=lifespan)

    def _view(domain: str) -> FeedView:
        views: dict[str, FeedView] = app.state.views
        if domain not in views:
            raise HTTPException(status_code=404, detail=f"Unknown feed: {domain}")
        return views[domain]

    @app.get("/health")
    def health() -> dict:
        views: dict[str, FeedView] = app.state.views
        failing = [d for d, v in views.items() if v.error]
        return {
            "ok": not failing,
            "feeds": len(views),
            "failing": failing,
            "ts": datetime.now().isoformat(timespec="seconds"),
        }

    @app.get("/feeds")
    def feeds() -> dict:
        views: dict[str, FeedView] = app.state.views
        return {"count": len(views), "feeds": [v.status() for v in views.values()]}

    @app.get("/feeds/{domain}")
    def feed(domain: str, limit: Optional[int] = Query(None, ge=1, le=1000)) -> dict:
        view = _view(domain)
        records = view.records if limit is None else view.records[:limit]
        return {
            **view.status(),
            "records": jsonable_encoder([dataclasses.asdict(r) for r in records]),
        }

    @app.post("/feeds/{domain}/next")
    async def next_page(domain: str) -> dict:
        view = _view(domain)
        accepted = await view.request_next_page()
        return {"accepted": accepted, **view.status()}

    @app.post("/feeds/{domain}/refresh")
    async def refresh(domain: str) -> dict:
        view = _view(domain)
        accepted = await view.refresh()
        return {"accepted": accepted, **view.status()}

    return app


app = create_app()
