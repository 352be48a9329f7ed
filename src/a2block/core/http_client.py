from __future__ import annotations

import hashlib
import http.client
import json
import logging
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from a2block.core.errors import FeedFetchError

logger = logging.getLogger(__name__)

CACHE_BUST_PARAM = "_t"


@dataclass
class HttpResponse:
    url: str
    status: int
    headers: dict[str, str]
    body: bytes
    from_cache: bool = False

    @property
    def text(self) -> str:
        ctype = self.headers.get("content-type", "")
        charset = "utf-8"
        if "charset=" in ctype:
            charset = ctype.split("charset=", 1)[1].split(";", 1)[0].strip() or "utf-8"
        try:
            return self.body.decode(charset, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")


def with_params(url: str, params: dict[str, Any] | None) -> str:
    if not params:
        return url
    sep = "&" if urllib.parse.urlsplit(url).query else "?"
    return f"{url}{sep}{urllib.parse.urlencode(params)}"


class PoliteHttpClient:
    """
    Stdlib-only HTTP client with:
    - global rate limiting (shared by worker threads)
    - exponential backoff between attempts
    - optional ETag / Last-Modified conditional GET cache on disk
    - correct handling for HTTP 304 (urllib raises it as HTTPError)

    The blocking calls are meant to run through asyncio.to_thread.
    """
    def __init__(
        self,
        cache_dir: str | None = None,
        rps: float = 10.0,
        timeout_seconds: float = 25,
        max_attempts: int = 1,
        user_agent: str = "A2Block-Housing-App/1.0",
    ) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir else None
        if self.cache_dir is not None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.min_interval = 1.0 / max(rps, 1e-9)
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(1, max_attempts)
        self.user_agent = user_agent
        self._last_ts = 0.0
        self._gate = threading.Lock()

    def _sleep_gate(self) -> None:
        with self._gate:
            now = time.time()
            wait = self.min_interval - (now - self._last_ts)
            if wait > 0:
                time.sleep(wait)
            self._last_ts = time.time()

    def _key(self, url: str) -> str:
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    def _meta_path(self, url: str) -> Path:
        return self.cache_dir / f"{self._key(url)}.meta.json"

    def _body_path(self, url: str) -> Path:
        return self.cache_dir / f"{self._key(url)}.body.bin"

    def _load_meta(self, url: str) -> dict:
        if self.cache_dir is None:
            return {}
        p = self._meta_path(url)
        if not p.exists():
            return {}
        try:
            return json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}

    def _save(self, url: str, headers: dict[str, str], body: bytes) -> None:
        if self.cache_dir is None:
            return
        meta = {
            "etag": headers.get("etag"),
            "last_modified": headers.get("last-modified"),
            "fetched_at": time.time(),
        }
        self._meta_path(url).write_text(json.dumps(meta, ensure_ascii=False), encoding="utf-8")
        self._body_path(url).write_bytes(body)

    def _load_cached_body(self, url: str) -> bytes:
        if self.cache_dir is None:
            return b""
        p = self._body_path(url)
        return p.read_bytes() if p.exists() else b""

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        cache_bust: bool = False,
        accept: str = "*/*",
    ) -> HttpResponse:
        # cache entries are keyed without the cache-buster
        cache_key = with_params(url, params)
        request_url = cache_key
        if cache_bust:
            request_url = with_params(cache_key, {CACHE_BUST_PARAM: int(time.time() * 1000)})

        meta = self._load_meta(cache_key)
        headers = {"User-Agent": self.user_agent, "Accept": accept}
        if meta.get("etag"):
            headers["If-None-Match"] = meta["etag"]
        if meta.get("last_modified"):
            headers["If-Modified-Since"] = meta["last_modified"]

        last_error: Optional[Exception] = None
        status: int | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                self._sleep_gate()
                req = urllib.request.Request(request_url, headers=headers, method="GET")
                with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                    status = getattr(resp, "status", 200)
                    resp_headers = {k.lower(): v for k, v in resp.headers.items()}
                    body = resp.read()

                self._save(cache_key, resp_headers, body)
                return HttpResponse(url=request_url, status=status, headers=resp_headers, body=body)

            except urllib.error.HTTPError as e:
                # IMPORTANT: urllib raises 304 as HTTPError
                if e.code == 304:
                    cached = self._load_cached_body(cache_key)
                    hdrs = {k.lower(): v for k, v in (e.headers.items() if e.headers else [])}
                    return HttpResponse(url=request_url, status=304, headers=hdrs, body=cached, from_cache=True)
                status = e.code
                last_error = e

            except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
                status = None
                last_error = e

            logger.warning("GET %s failed (attempt %d/%d): %s", cache_key, attempt, self.max_attempts, last_error)
            if attempt < self.max_attempts:
                time.sleep(min(8, 2 ** (attempt - 1)))

        if status is not None:
            raise FeedFetchError(f"HTTP {status}: {cache_key}", status=status) from last_error
        raise FeedFetchError(f"HTTP GET failed: {cache_key}") from last_error

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        resp = self.get(url, params=params, accept="application/json")
        try:
            return json.loads(resp.text)
        except ValueError as e:
            raise FeedFetchError(f"Invalid JSON from {url}") from e
