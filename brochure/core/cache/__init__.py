# brochure/core/cache/__init__.py
from .budget import enforce_budget
from .classifier import classify_request
from .errors import (
    CACHE_ERRORS,
    CacheWorkerError,
    NetworkError,
    StorageError,
    cache_error_guard,
    classify_cache_error,
)
from .memory import MemoryCache
from .network import FetchFn, offline_fetch, requests_fetch
from .storage import CacheBucket, CacheStorage
from .warming import should_warm, warm_data, warm_pages
from .worker import CacheWorker, WorkerState, offline_response

__all__ = [
    "CacheWorker",
    "WorkerState",
    "CacheStorage",
    "CacheBucket",
    "MemoryCache",
    "FetchFn",
    "requests_fetch",
    "offline_fetch",
    "offline_response",
    "classify_request",
    "enforce_budget",
    "CacheWorkerError",
    "NetworkError",
    "StorageError",
    "CACHE_ERRORS",
    "classify_cache_error",
    "cache_error_guard",
    "should_warm",
    "warm_pages",
    "warm_data",
]
