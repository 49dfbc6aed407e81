# tests/unit/test_feeds_sync.py
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from brochure.feeds.sync import read_records, sync_to_public, validate_records, write_data_file
from brochure.schemas.models import Review, ReviewsFile
from tests.utils import write_json


def test_write_data_file_uses_camel_case(tmp_path: Path):
    envelope = ReviewsFile(
        last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
        reviews=[Review(id="1", time="2026-01-01T00:00:00Z", author_photo="p.png", relative_time="Today")],
    )
    out = write_data_file(tmp_path / "data" / "google-reviews.json", envelope)

    data = json.loads(out.read_text(encoding="utf-8"))
    assert set(data) == {"lastUpdated", "source", "reviews"}
    assert data["reviews"][0]["authorPhoto"] == "p.png"
    assert data["reviews"][0]["relativeTime"] == "Today"
    assert list(out.parent.glob("*.part")) == []


def test_read_records(tmp_path: Path):
    path = write_json(tmp_path / "a.json", {"reviews": [{"id": "1"}, "junk", {"id": "2"}]})
    assert read_records(path, "reviews") == [{"id": "1"}, {"id": "2"}]
    assert read_records(path, "posts") is None
    assert read_records(tmp_path / "missing.json", "reviews") is None

    bad = tmp_path / "bad.json"
    bad.write_text("{nope", encoding="utf-8")
    assert read_records(bad, "reviews") is None

    listy = write_json(tmp_path / "list.json", [1, 2])
    assert read_records(listy, "reviews") is None


def test_validate_records_skips_invalid():
    records = [{"id": "1", "time": "t"}, {"id": "2"}, {"id": "3", "time": "t", "rating": 3}]
    assert [r.id for r in validate_records(records, Review)] == ["1", "3"]


def test_sync_to_public(tmp_path: Path):
    src = write_json(tmp_path / "data" / "google-reviews.json", {"reviews": []})
    public = tmp_path / "public" / "data"

    dest = sync_to_public(src, public)

    assert dest == public / "google-reviews.json"
    assert dest.read_text(encoding="utf-8") == src.read_text(encoding="utf-8")
    assert sync_to_public(tmp_path / "missing.json", public) is None
