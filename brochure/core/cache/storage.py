# brochure/core/cache/storage.py
"""
Persistent, named cache buckets on disk.

Layout (under <root>/<cache-name>/):
  - <hash16>.json   metadata: key, url, status, headers
  - <hash16>.body   raw response body

The metadata file is written last, so an entry exists only once both files are
in place. Each file goes through a temp file + rename, which keeps single-entry
reads and writes atomic. Nothing is transactional across entries.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import tempfile
from hashlib import sha256 as _sha256lib
from pathlib import Path

from brochure.schemas.models import CachedResponse, CacheRequest

from .errors import StorageError

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def _sha256(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8", errors="ignore")
    return _sha256lib(data).hexdigest()


def _key_of(request: CacheRequest | str) -> str:
    return request if isinstance(request, str) else request.cache_key


def _atomic_write(path: Path, data: bytes) -> None:
    with tempfile.NamedTemporaryFile(prefix="w_", suffix=".part", delete=False, dir=str(path.parent)) as tf:
        tmp_path = Path(tf.name)
        tf.write(data)
    tmp_path.replace(path)


class CacheBucket:
    """One named cache partition, mapping request identity to a stored response."""

    def __init__(self, name: str, root: Path) -> None:
        self.name = name
        self.root = root

    def __repr__(self) -> str:
        return f"CacheBucket({self.name!r})"

    def entry_paths(self, key: str) -> dict[str, Path]:
        h = _sha256(key)[:16]
        return {"meta": self.root / f"{h}.json", "body": self.root / f"{h}.body"}

    def _read(self, meta_path: Path) -> tuple[str, CachedResponse] | None:
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
            body = meta_path.with_suffix(".body").read_bytes()
        except FileNotFoundError:
            # evicted or deleted between listing and reading
            return None
        except (OSError, ValueError) as e:
            logger.warning("Unreadable cache entry %s: %s", meta_path, e)
            return None
        resp = CachedResponse(
            url=meta.get("url", ""),
            status=int(meta.get("status", 200)),
            headers=dict(meta.get("headers") or {}),
            body=body,
        )
        return str(meta.get("key", "")), resp

    def match(self, request: CacheRequest | str) -> CachedResponse | None:
        key = _key_of(request)
        found = self._read(self.entry_paths(key)["meta"])
        if found is None or found[0] != key:
            return None
        return found[1]

    def put(self, request: CacheRequest | str, response: CachedResponse) -> None:
        key = _key_of(request)
        paths = self.entry_paths(key)
        meta = {"key": key, "url": response.url, "status": response.status, "headers": response.headers}
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            _atomic_write(paths["body"], response.body)
            _atomic_write(paths["meta"], json.dumps(meta).encode("utf-8"))
        except OSError as e:
            raise StorageError(f"Could not write {key!r} to {self.name}: {e}") from e

    def delete(self, request: CacheRequest | str) -> bool:
        paths = self.entry_paths(_key_of(request))
        existed = paths["meta"].exists()
        paths["meta"].unlink(missing_ok=True)
        paths["body"].unlink(missing_ok=True)
        return existed

    def entries(self) -> list[tuple[str, CachedResponse]]:
        if not self.root.exists():
            return []
        out: list[tuple[str, CachedResponse]] = []
        for meta_path in sorted(self.root.glob("*.json")):
            found = self._read(meta_path)
            if found is not None:
                out.append(found)
        return out

    def keys(self) -> list[str]:
        return [k for k, _ in self.entries()]

    def total_size(self) -> int:
        """Sum of stored body sizes, read back from disk."""
        return sum(resp.size for _, resp in self.entries())


class CacheStorage:
    """Collection of named buckets under one root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _dir(self, name: str) -> Path:
        if not _NAME_RE.match(name):
            raise ValueError(f"invalid cache name: {name!r}")
        return self.root / name

    def open(self, name: str) -> CacheBucket:
        d = self._dir(name)
        d.mkdir(parents=True, exist_ok=True)
        return CacheBucket(name, d)

    def has(self, name: str) -> bool:
        return self._dir(name).is_dir()

    def keys(self) -> list[str]:
        return sorted(p.name for p in self.root.iterdir() if p.is_dir())

    def delete(self, name: str) -> bool:
        d = self._dir(name)
        if not d.is_dir():
            return False
        shutil.rmtree(d, ignore_errors=True)
        return True


__all__ = ["CacheBucket", "CacheStorage"]
