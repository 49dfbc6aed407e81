# brochure/widgets/sources.py
"""Carousel data sources backed by the site's JSON data files."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel

from brochure.core.cache.memory import MemoryCache
from brochure.feeds.sync import read_records, validate_records

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class JsonDataSource(Generic[M]):
    """
    Items of one array in a JSON data file, validated into `model`.

    Reads go through `memory` (data section, 5 min TTL by default) so repeated
    renders do not reparse the file. A missing or malformed file yields no items.
    """

    def __init__(
        self,
        path: Path,
        key: str,
        model: type[M],
        *,
        memory: MemoryCache | None = None,
        keep: Callable[[M], bool] | None = None,
    ) -> None:
        self.path = path
        self.key = key
        self.model = model
        self.memory = memory
        self.keep = keep

    @property
    def cache_key(self) -> str:
        return f"{self.path}#{self.key}"

    def _load(self) -> list[M]:
        records = read_records(self.path, self.key)
        if records is None:
            return []
        items = validate_records(records, self.model, self.path.name)
        if self.keep is not None:
            dropped = len(items)
            items = [i for i in items if self.keep(i)]
            dropped -= len(items)
            if dropped:
                logger.warning("%d %s entries in %s filtered out", dropped, self.key, self.path.name)
        return items

    def items(self) -> list[M]:
        if self.memory is not None:
            cached = self.memory.get_data(self.cache_key)
            if cached is not None:
                return list(cached)
        items = self._load()
        if self.memory is not None:
            self.memory.set_data(self.cache_key, items)
        return items


__all__ = ["JsonDataSource"]
