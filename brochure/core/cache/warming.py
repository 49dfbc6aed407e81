# brochure/core/cache/warming.py
"""
Background warming of the in-memory cache: critical pages and data files are
fetched ahead of navigation. Purely optional, so every failure is swallowed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from brochure.paths import resource_path

from .memory import MemoryCache

logger = logging.getLogger(__name__)

CRITICAL_PAGES: tuple[str, ...] = ("about.html", "services.html", "contact.html", "portfolio.html")
CRITICAL_DATA: dict[str, str] = {
    "google-reviews": "/data/google-reviews.json",
    "instagram-posts": "/data/instagram-posts.json",
}

_SLOW_RE = re.compile(r"^(?:slow-2g|2g)$")


def should_warm(save_data: bool = False, effective_type: str | None = None) -> bool:
    """Skip warming when the client asked to save data or is on a slow link."""
    if save_data:
        return False
    return not (effective_type and _SLOW_RE.match(effective_type))


def warm_pages(
    memory: MemoryCache,
    fetch_text: Callable[[str], str | None],
    *,
    base_path: str = "",
    pages: Sequence[str] = CRITICAL_PAGES,
) -> list[str]:
    """Fetch pages not already cached. Returns the URLs that were warmed."""
    warmed: list[str] = []
    for page in pages:
        url = resource_path(page, base_path)
        if memory.get_page(url) is not None:
            continue
        try:
            html = fetch_text(url)
        except Exception as e:  # noqa: BLE001
            logger.debug("Cache warming failed for %s: %s", page, e)
            continue
        if html:
            memory.set_page(url, html)
            warmed.append(url)
    return warmed


def warm_data(
    memory: MemoryCache,
    fetch_json: Callable[[str], Any],
    *,
    base_path: str = "",
    datasets: Mapping[str, str] = CRITICAL_DATA,
) -> list[str]:
    """Fetch data files not already cached, keyed by dataset name. Returns the warmed keys."""
    warmed: list[str] = []
    for key, path in datasets.items():
        if memory.get_data(key) is not None:
            continue
        try:
            data = fetch_json(resource_path(path, base_path))
        except Exception as e:  # noqa: BLE001
            logger.debug("Data warming failed for %s: %s", key, e)
            continue
        if data:
            memory.set_data(key, data)
            warmed.append(key)
    return warmed


__all__ = ["CRITICAL_PAGES", "CRITICAL_DATA", "should_warm", "warm_pages", "warm_data"]
