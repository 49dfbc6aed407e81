# tests/utils.py
"""
Single source of truth for test data, factories, and fakes.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

import io
import json
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from brochure.core.cache.errors import NetworkError
from brochure.schemas.models import CACHED_AT_HEADER, CachedResponse, CacheRequest

# -----------------------------
# Global defaults (edit once)
# -----------------------------

ORIGIN = "http://localhost"
SUBPATH_SCOPE = "http://localhost/logia/"

DEFAULT_PAGE_HTML = """<!DOCTYPE html>
<html>
  <head>
    <link rel="canonical" href="https://logia.co.za/index.html">
    <!-- Google Search Console Verification -->
    <!-- Example: <meta name="google-site-verification" content="..." /> -->
    <meta property="og:image" content="https://www.logia.co.za/assets/images/og.png">
    <link rel="stylesheet" href="css/main.css">
    <title>Logia Genesis</title>
  </head>
  <body>
    <a href="about.html">About</a>
    <img src="/assets/images/hero.png" alt="hero">
    <i class="fas fa-phone"></i>
    <script src="js/main.js"></script>
  </body>
</html>
"""

# -----------------------------
# Cache requests / responses
# -----------------------------


def make_request(
    path: str = "/",
    *,
    origin: str = ORIGIN,
    method: str = "GET",
    mode: str = "cors",
    headers: dict[str, str] | None = None,
) -> CacheRequest:
    url = path if path.startswith("http") else f"{origin}{path}"
    return CacheRequest(url=url, method=method, mode=mode, headers=headers or {})


def make_response(
    url: str = f"{ORIGIN}/",
    body: bytes | str = b"ok",
    *,
    status: int = 200,
    headers: dict[str, str] | None = None,
    stored_at: float | None = None,
) -> CachedResponse:
    hdrs = dict(headers or {})
    if stored_at is not None:
        hdrs[CACHED_AT_HEADER] = repr(stored_at)
    data = body.encode("utf-8") if isinstance(body, str) else body
    return CachedResponse(url=url, status=status, headers=hdrs, body=data)


class FakeClock:
    """Manually advanced clock for TTL / staleness tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeNetwork:
    """
    FetchFn stand-in. Routes are keyed by absolute URL; a route may be a
    response or an exception instance to raise. Unknown URLs and offline mode
    raise NetworkError.
    """

    def __init__(self, routes: dict[str, CachedResponse | Exception] | None = None) -> None:
        self.routes: dict[str, CachedResponse | Exception] = dict(routes or {})
        self.online = True
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def route(self, url: str, body: bytes | str = b"ok", *, status: int = 200, headers: dict[str, str] | None = None) -> None:
        self.routes[url] = make_response(url, body, status=status, headers=headers)

    def fail(self, url: str, exc: Exception | None = None) -> None:
        self.routes[url] = exc or NetworkError(f"boom: {url}")

    def __call__(self, request: CacheRequest) -> CachedResponse:
        with self._lock:
            self.calls.append(request.url)
        if not self.online:
            raise NetworkError(f"offline: {request.url}")
        found = self.routes.get(request.url)
        if found is None:
            raise NetworkError(f"no route: {request.url}")
        if isinstance(found, Exception):
            raise found
        return found


# -----------------------------
# HTTP fakes for `requests.get`
# -----------------------------


class FakeHttpResponse:
    """Just enough of requests.Response for the feed scripts."""

    def __init__(self, *, status: int = 200, payload: Any = None, body: bytes | None = None, chunk: int = 1024) -> None:
        self.status_code = status
        self._payload = payload
        self.content = body if body is not None else json.dumps(payload).encode("utf-8") if payload is not None else b""
        self._chunk = chunk
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self.content.decode("utf-8"))
        return self._payload

    def iter_content(self, chunk_size: int = 1024) -> Iterable[bytes]:
        sz = max(1, min(chunk_size, self._chunk))
        for i in range(0, len(self.content), sz):
            yield self.content[i : i + sz]

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeHttpResponse:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# -----------------------------
# Images
# -----------------------------


def image_bytes(width: int = 64, height: int = 32, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """Gradient image bytes (Pillow)."""
    from PIL import Image

    im = Image.new(mode, (width, height))
    px = im.load()
    for x in range(width):
        for y in range(height):
            v = (x * 255 // max(1, width - 1), y * 255 // max(1, height - 1), 128)
            px[x, y] = v + (200,) if mode == "RGBA" else v
    buf = io.BytesIO()
    im.save(buf, format=fmt)
    return buf.getvalue()


def write_image(path: Path, width: int = 64, height: int = 32, fmt: str = "PNG", mode: str = "RGB") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(image_bytes(width, height, fmt, mode))
    return path


# -----------------------------
# Feed payloads
# -----------------------------


def places_payload(reviews: list[dict[str, Any]] | None = None, status: str = "OK") -> dict[str, Any]:
    return {
        "status": status,
        "result": {
            "name": "Logia Genesis",
            "reviews": reviews
            if reviews is not None
            else [
                {
                    "author_name": "Thandi Mokoena",
                    "author_url": "https://www.google.com/maps/contrib/1234567890/reviews",
                    "profile_photo_url": "https://lh3.googleusercontent.com/a/photo.png",
                    "rating": 5,
                    "relative_time_description": "2 weeks ago",
                    "text": "Great website, fast turnaround.",
                    "time": 1700000000,
                },
                {
                    "author_name": "Pieter van der Merwe",
                    "rating": 4,
                    "text": "Solid work.",
                    "time": 1690000000,
                },
            ],
        },
    }


def media_payload(n: int = 2) -> dict[str, Any]:
    return {
        "data": [
            {
                "id": f"1790{i}",
                "caption": f"Post number {i}",
                "media_type": "IMAGE",
                "media_url": f"https://scontent.cdninstagram.com/v/p{i}.jpg?stp=dst",
                "permalink": f"https://www.instagram.com/p/ABC{i}/",
                "timestamp": "2026-01-0{}T10:00:00+0000".format(i + 1),
            }
            for i in range(n)
        ]
    }


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
