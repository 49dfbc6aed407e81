# brochure/core/cache/worker.py
"""
Multi-bucket cache worker (the site's service-worker caching, in Python).

Requests are classified into three buckets and served with a per-bucket policy:

  static  cache-first, background revalidation on hit
  data    cache-first within the staleness window, synchronous refetch past it
  html    network-first, falling back to the cached page, then the index page,
          then a synthetic 503

Every successful write is followed by budget enforcement on the bucket.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from brochure.schemas.models import (
    ActivationReport,
    BucketName,
    CachedResponse,
    CacheRequest,
    PrecacheReport,
    RequestClass,
    WorkerConfig,
)

from .budget import enforce_budget
from .classifier import classify_request
from .errors import CACHE_ERRORS, CacheWorkerError, NetworkError, cache_error_guard
from .lifecycle import activate, install
from .network import FetchFn, requests_fetch
from .storage import CacheBucket, CacheStorage

logger = logging.getLogger(__name__)

OFFLINE_BODY = b"Offline"


def offline_response(url: str) -> CachedResponse:
    """Synthetic response when neither network nor cache can serve a page."""
    return CachedResponse(
        url=url,
        status=503,
        headers={"Content-Type": "text/plain; charset=utf-8"},
        body=OFFLINE_BODY,
    )


@dataclass
class WorkerState:
    """Mutable worker state, owned by one CacheWorker instance."""

    installed: bool = False
    activated: bool = False
    clients_claimed: bool = False
    counters: Counter[str] = field(default_factory=Counter)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def bump(self, name: str, n: int = 1) -> None:
        with self._lock:
            self.counters[name] += n


class CacheWorker:
    """
    Cache policy engine bound to one storage root and one network seam.

    `handle_fetch` returns None for unhandled requests (the caller goes to the
    network itself); `respond` does that passthrough for you.
    """

    def __init__(
        self,
        config: WorkerConfig,
        storage: CacheStorage,
        fetch: FetchFn | None = None,
        *,
        state: WorkerState | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.storage = storage
        self.fetch: FetchFn = fetch or requests_fetch()
        self.state = state or WorkerState()
        self.clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_background_workers,
            thread_name_prefix="revalidate",
        )
        self._pending: set[Future[None]] = set()
        self._pending_lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def install(self) -> PrecacheReport:
        return install(self)

    def activate(self) -> ActivationReport:
        return activate(self)

    def drain(self, timeout: float | None = None) -> None:
        """Block until scheduled background revalidations have finished."""
        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        self._closed = True
        self._executor.shutdown(wait=True)

    def __enter__(self) -> CacheWorker:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    def bucket(self, name: BucketName) -> CacheBucket:
        return self.storage.open(self.config.cache_name(name))

    def store(self, name: BucketName, request: CacheRequest, response: CachedResponse) -> list[str]:
        """Write a stamped copy of `response`, then trim the bucket to budget."""
        bucket = self.bucket(name)
        bucket.put(request, response.stamped(self.clock()))
        evicted = enforce_budget(bucket, self.config.budgets.for_bucket(name))
        if evicted:
            self.state.bump("evicted", len(evicted))
        return evicted

    # ------------------------------------------------------------------
    # Fetch handling
    # ------------------------------------------------------------------

    def classify(self, request: CacheRequest) -> RequestClass:
        return classify_request(request, self.config.origin)

    def handle_fetch(self, request: CacheRequest) -> CachedResponse | None:
        kind = self.classify(request)
        logger.debug("%s %s -> %s", request.method, request.url, kind)
        if kind == "static":
            return self._cache_first("static", request)
        if kind == "data":
            return self._cache_first("data", request, max_age_s=self.config.data_max_age_s)
        if kind == "html":
            return self._network_first(request)
        return None

    def respond(self, request: CacheRequest) -> CachedResponse:
        handled = self.handle_fetch(request)
        if handled is not None:
            return handled
        return self.fetch(request)

    def _cache_first(self, name: BucketName, request: CacheRequest, *, max_age_s: float | None = None) -> CachedResponse:
        with cache_error_guard():
            cached = self.bucket(name).match(request)

        if cached is not None:
            age = self.clock() - cached.stored_at
            if max_age_s is None or age <= max_age_s:
                self.state.bump(f"{name}.hit")
                self._schedule_revalidation(name, request)
                return cached
            self.state.bump(f"{name}.stale")

        self.state.bump(f"{name}.miss")
        try:
            response = self.fetch(request)
        except NetworkError:
            self.state.bump("network.fail")
            if cached is not None:
                # stale data beats no data
                logger.info("Network failed for %s; serving stale copy", request.url)
                return cached
            raise

        if response.ok:
            try:
                self.store(name, request, response)
            except CACHE_ERRORS as e:
                logger.warning("Could not cache %s: %s", request.url, e)
        elif cached is not None:
            logger.info("HTTP %s for %s; serving stale copy", response.status, request.url)
            return cached
        return response

    def _network_first(self, request: CacheRequest) -> CachedResponse:
        try:
            response = self.fetch(request)
        except NetworkError as e:
            self.state.bump("network.fail")
            logger.info("Navigation offline (%s); trying cache", e)
            return self._html_fallback(request)

        if response.ok:
            try:
                self.store("html", request, response)
            except CACHE_ERRORS as e:
                logger.warning("Could not cache %s: %s", request.url, e)
        return response

    def _html_fallback(self, request: CacheRequest) -> CachedResponse:
        bucket = self.bucket("html")
        cached = bucket.match(request)
        if cached is not None:
            self.state.bump("html.fallback.exact")
            return cached
        for url in self.config.index_fallbacks:
            index = bucket.match(CacheRequest(url=url))
            if index is not None:
                self.state.bump("html.fallback.index")
                return index
        self.state.bump("html.fallback.offline")
        return offline_response(request.url)

    # ------------------------------------------------------------------
    # Background revalidation
    # ------------------------------------------------------------------

    def _schedule_revalidation(self, name: BucketName, request: CacheRequest) -> None:
        if self._closed:
            return
        try:
            fut = self._executor.submit(self._revalidate, name, request)
        except RuntimeError:
            # executor already shut down
            return
        with self._pending_lock:
            self._pending.add(fut)
        fut.add_done_callback(self._forget)

    def _forget(self, fut: Future[None]) -> None:
        with self._pending_lock:
            self._pending.discard(fut)

    def _revalidate(self, name: BucketName, request: CacheRequest) -> None:
        try:
            with cache_error_guard():
                response = self.fetch(request)
                if response.ok:
                    self.store(name, request, response)
                    self.state.bump(f"{name}.revalidated")
        except CacheWorkerError as e:
            logger.debug("Background revalidation failed for %s: %s", request.url, e)


__all__ = ["CacheWorker", "WorkerState", "offline_response", "OFFLINE_BODY"]
