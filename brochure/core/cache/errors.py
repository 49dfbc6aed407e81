# brochure/core/cache/errors.py
"""
Typed errors + utilities for the cache worker.

Exports
-------
- CacheWorkerError, NetworkError, StorageError
- CACHE_ERRORS
- classify_cache_error(exc)
- cache_error_guard()
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import requests

# =========================
# Exception types
# =========================


class CacheWorkerError(RuntimeError):
    """Base class for cache worker failures."""


class NetworkError(CacheWorkerError):
    """Transport failure while fetching a resource (no response at all)."""


class StorageError(CacheWorkerError):
    """A cache bucket could not be read or written."""


CACHE_ERRORS = (NetworkError, StorageError)

# =========================
# Classification helpers
# =========================


def classify_cache_error(exc: Exception) -> CacheWorkerError:
    """
    Map arbitrary exceptions raised inside the worker to a typed CacheWorkerError.

      - CacheWorkerError subclasses → passed through
      - requests.* errors → NetworkError
      - OSError (disk full, permissions, vanished files) → StorageError
      - Fallback → CacheWorkerError
    """
    if isinstance(exc, CacheWorkerError):
        return exc
    if isinstance(exc, requests.RequestException):
        return NetworkError(str(exc))
    if isinstance(exc, OSError):
        return StorageError(f"{type(exc).__name__}: {exc}")
    return CacheWorkerError(f"{type(exc).__name__}: {exc}")


@contextmanager
def cache_error_guard() -> Iterator[None]:
    """Context manager to normalize unexpected exceptions from worker internals."""
    try:
        yield
    except CACHE_ERRORS:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_cache_error(exc) from exc


__all__ = [
    "CacheWorkerError",
    "NetworkError",
    "StorageError",
    "CACHE_ERRORS",
    "classify_cache_error",
    "cache_error_guard",
]
