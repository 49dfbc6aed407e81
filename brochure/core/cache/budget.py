# brochure/core/cache/budget.py
"""
Post-write budget enforcement for cache buckets.

Every call re-reads the whole bucket to compute its size, which is O(n) in the
number of entries. Buckets hold dozens of entries, not millions.
"""

from __future__ import annotations

import logging

from .storage import CacheBucket

logger = logging.getLogger(__name__)


def enforce_budget(bucket: CacheBucket, max_bytes: int) -> list[str]:
    """
    Delete entries oldest-first (by stored-at) until the bucket is at or under `max_bytes`.

    Eviction order is write time, not last access: a frequently read entry that
    was stored early goes first. Returns the evicted keys, oldest first.
    """
    entries = bucket.entries()
    total = sum(resp.size for _, resp in entries)
    if total <= max_bytes:
        return []

    evicted: list[str] = []
    for key, resp in sorted(entries, key=lambda e: (e[1].stored_at, e[0])):
        if total <= max_bytes:
            break
        bucket.delete(key)
        total -= resp.size
        evicted.append(key)

    logger.debug("Evicted %d entries from %s (now %d/%d bytes)", len(evicted), bucket.name, total, max_bytes)
    return evicted


__all__ = ["enforce_budget"]
