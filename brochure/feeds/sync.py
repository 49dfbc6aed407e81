# brochure/feeds/sync.py
"""Data-file I/O shared by the feeds: envelope writing and syncing into public/data."""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def write_data_file(path: Path, envelope: BaseModel) -> Path:
    """Write `envelope` as camelCase JSON (atomic replace)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = envelope.model_dump_json(by_alias=True, indent=2)
    with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=str(path.parent), suffix=".part", delete=False) as tf:
        tf.write(payload)
        tmp = Path(tf.name)
    tmp.replace(path)
    return path


def read_records(path: Path, key: str) -> list[dict[str, Any]] | None:
    """
    The `key` array of a JSON data file.

    None when the file is missing, unreadable or has no such array.
    """
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Error reading %s: %s", path.name, e)
        return None
    records = data.get(key) if isinstance(data, dict) else None
    if not isinstance(records, list):
        logger.error("Error reading %s: no %r array", path.name, key)
        return None
    return [r for r in records if isinstance(r, dict)]


def validate_records(records: list[dict[str, Any]], model: type[M], label: str = "") -> list[M]:
    """Validate each record into `model`; invalid ones are logged and skipped."""
    out: list[M] = []
    for i, rec in enumerate(records):
        try:
            out.append(model.model_validate(rec))
        except ValidationError as e:
            logger.warning("Skipping invalid record #%d in %s: %s", i, label or model.__name__, e.errors()[:1])
    return out


def sync_to_public(source: Path, public_data_dir: Path) -> Path | None:
    """Copy a data file into the public data dir (dev server). Missing source -> None."""
    if not source.exists():
        logger.warning("Source file not found: %s", source)
        return None
    public_data_dir.mkdir(parents=True, exist_ok=True)
    dest = public_data_dir / source.name
    shutil.copy2(source, dest)
    logger.info("Synced %s to %s", source.name, public_data_dir)
    return dest


__all__ = ["write_data_file", "read_records", "validate_records", "sync_to_public"]
