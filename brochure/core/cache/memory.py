# brochure/core/cache/memory.py
"""
Small in-process TTL cache for rendered pages and parsed data files.

Separate from the persistent buckets: this is what widgets read through when
loading review/post JSON, so repeated renders within a few minutes do not
refetch. When a section is full the oldest *inserted* entry is dropped.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse, urlunparse


class _TtlSection:
    def __init__(self, max_size: int, ttl_s: float, clock: Callable[[], float]) -> None:
        self.max_size = max_size
        self.ttl_s = ttl_s
        self._clock = clock
        self._items: OrderedDict[str, tuple[Any, float]] = OrderedDict()

    def get(self, key: str) -> Any | None:
        found = self._items.get(key)
        if found is None:
            return None
        value, ts = found
        if self._clock() - ts > self.ttl_s:
            del self._items[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        if key not in self._items and len(self._items) >= self.max_size:
            self._items.popitem(last=False)
        self._items[key] = (value, self._clock())

    def clear_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, ts) in self._items.items() if now - ts > self.ttl_s]
        for k in expired:
            del self._items[k]
        return len(expired)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


def normalize_url(url: str) -> str:
    """Origin + path only; query, fragment and a trailing slash are dropped."""
    try:
        p = urlparse(url)
    except ValueError:
        return url
    path = p.path
    if path.endswith("/") and path != "/":
        path = path[:-1]
    return urlunparse((p.scheme, p.netloc, path, "", "", ""))


class MemoryCache:
    """Pages (10 entries, 30 min) and data (50 entries, 5 min) with independent TTLs."""

    def __init__(
        self,
        *,
        max_pages: int = 10,
        max_data: int = 50,
        page_ttl_s: float = 30 * 60,
        data_ttl_s: float = 5 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.pages = _TtlSection(max_pages, page_ttl_s, clock)
        self.data = _TtlSection(max_data, data_ttl_s, clock)

    def get_page(self, url: str) -> str | None:
        return self.pages.get(normalize_url(url))

    def set_page(self, url: str, html: str) -> None:
        self.pages.set(normalize_url(url), html)

    def get_data(self, key: str) -> Any | None:
        return self.data.get(key)

    def set_data(self, key: str, value: Any) -> None:
        self.data.set(key, value)

    def clear(self) -> None:
        self.pages.clear()
        self.data.clear()

    def clear_expired(self) -> int:
        return self.pages.clear_expired() + self.data.clear_expired()

    def stats(self) -> dict[str, dict[str, float]]:
        return {
            "pages": {"size": len(self.pages), "max_size": self.pages.max_size, "ttl_s": self.pages.ttl_s},
            "data": {"size": len(self.data), "max_size": self.data.max_size, "ttl_s": self.data.ttl_s},
        }


__all__ = ["MemoryCache", "normalize_url"]
