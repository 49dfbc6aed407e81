# brochure/core/cache/network.py
"""
Network seam for the cache worker.

The worker only needs `FetchFn`: request in, response out, `NetworkError` when
no response could be obtained. HTTP error statuses are responses, not errors.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import requests

from brochure.schemas.models import CachedResponse, CacheRequest

from .errors import NetworkError

FetchFn = Callable[[CacheRequest], CachedResponse]

DEFAULT_USER_AGENT = "brochure-cache/1.0"

# Hop-by-hop / transfer headers that make no sense on a stored copy
_DROP_HEADERS = {"connection", "keep-alive", "transfer-encoding", "content-encoding", "content-length"}


def requests_fetch(
    *,
    timeout_s: float = 15.0,
    user_agent: str = DEFAULT_USER_AGENT,
    session_factory: Callable[[], requests.Session] = requests.Session,
) -> FetchFn:
    """
    Build a FetchFn backed by `requests`.

    Background revalidation calls the FetchFn from pool threads, so each
    thread gets its own session from `session_factory`.
    """
    local = threading.local()

    def _session() -> requests.Session:
        http = getattr(local, "session", None)
        if http is None:
            http = local.session = session_factory()
        return http

    def _fetch(request: CacheRequest) -> CachedResponse:
        headers = {"User-Agent": user_agent, **request.headers}
        try:
            resp = _session().request(request.method, request.url, headers=headers, timeout=timeout_s)
        except requests.RequestException as e:
            raise NetworkError(f"{request.method} {request.url}: {e}") from e
        return CachedResponse(
            url=request.url,
            status=resp.status_code,
            headers={k: v for k, v in resp.headers.items() if k.lower() not in _DROP_HEADERS},
            body=resp.content,
        )

    return _fetch


def offline_fetch(request: CacheRequest) -> CachedResponse:
    """FetchFn that always fails; useful for offline runs."""
    raise NetworkError(f"offline: {request.url}")


__all__ = ["FetchFn", "requests_fetch", "offline_fetch", "DEFAULT_USER_AGENT"]
