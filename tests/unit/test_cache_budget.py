# tests/unit/test_cache_budget.py
from __future__ import annotations

from brochure.core.cache.budget import enforce_budget
from brochure.core.cache.storage import CacheStorage
from brochure.schemas.models import CacheBudgets
from tests.utils import make_request, make_response


def _fill(bucket, n: int, size: int = 100) -> list[str]:
    keys = []
    for i in range(n):
        req = make_request(f"/assets/{i}.js")
        bucket.put(req, make_response(req.url, b"x" * size, stored_at=float(i + 1)))
        keys.append(req.cache_key)
    return keys


def test_under_budget_evicts_nothing(storage: CacheStorage):
    bucket = storage.open("site-static-v1")
    _fill(bucket, 3)
    assert enforce_budget(bucket, 300) == []
    assert bucket.total_size() == 300


def test_over_budget_evicts_oldest_first(storage: CacheStorage):
    bucket = storage.open("site-static-v1")
    keys = _fill(bucket, 4)

    evicted = enforce_budget(bucket, 250)

    assert evicted == keys[:2]
    assert sorted(bucket.keys()) == sorted(keys[2:])
    assert bucket.total_size() <= 250


def test_entries_without_stamp_count_as_oldest(storage: CacheStorage):
    bucket = storage.open("site-static-v1")
    keys = _fill(bucket, 2)
    legacy = make_request("/assets/legacy.js")
    bucket.put(legacy, make_response(legacy.url, b"x" * 100))

    evicted = enforce_budget(bucket, 200)

    assert evicted == [legacy.cache_key]
    assert sorted(bucket.keys()) == sorted(keys)


def test_single_entry_larger_than_budget_is_evicted(storage: CacheStorage):
    bucket = storage.open("site-static-v1")
    req = make_request("/big.js")
    bucket.put(req, make_response(req.url, b"x" * 500, stored_at=1.0))

    assert enforce_budget(bucket, 100) == [req.cache_key]
    assert bucket.total_size() == 0


def test_bucket_never_exceeds_budget_after_any_write(worker_factory, clock):
    worker = worker_factory(budgets=CacheBudgets(static=300, html=300, data=300))
    requests = [make_request(f"/assets/{i}.png") for i in range(10)]

    for req in requests:
        clock.advance(1)
        worker.store("static", req, make_response(req.url, b"x" * 100))
        assert worker.bucket("static").total_size() <= 300

    assert sorted(worker.bucket("static").keys()) == sorted(r.cache_key for r in requests[-3:])
    assert worker.state.counters["evicted"] == 7
