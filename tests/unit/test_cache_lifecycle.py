# tests/unit/test_cache_lifecycle.py
from __future__ import annotations

from brochure.schemas.models import CacheBudgets
from tests.utils import SUBPATH_SCOPE, make_request, make_response

PAGES = ("/", "/index.html", "/about.html")
ASSETS = ("/css/main.css", "/js/main.js")


def _route_all(network, base: str) -> None:
    for p in PAGES + ASSETS:
        network.route(f"{base}{p}", f"content of {p}")


def test_install_precaches_pages_and_assets(worker_factory, network):
    worker = worker_factory(critical_pages=PAGES, critical_assets=ASSETS)
    _route_all(network, "http://localhost")

    report = worker.install()

    assert report.failed == []
    assert len(report.cached) == 5
    assert worker.state.installed
    assert worker.bucket("html").match(make_request("/about.html")) is not None
    assert worker.bucket("static").match(make_request("/js/main.js")) is not None


def test_install_prefixes_base_path(worker_factory, network):
    worker = worker_factory(scope_url=SUBPATH_SCOPE, critical_pages=PAGES, critical_assets=ASSETS)
    _route_all(network, "http://localhost/logia")

    report = worker.install()

    assert "http://localhost/logia/index.html" in report.cached
    assert "http://localhost/logia/css/main.css" in report.cached
    assert all(url.startswith("http://localhost/logia/") for url in network.calls)


def test_install_survives_individual_failures(worker_factory, network):
    worker = worker_factory(critical_pages=PAGES, critical_assets=ASSETS)
    _route_all(network, "http://localhost")
    network.fail("http://localhost/about.html")
    network.route("http://localhost/js/main.js", "gone", status=404)

    report = worker.install()

    assert sorted(report.failed) == ["http://localhost/about.html", "http://localhost/js/main.js"]
    assert len(report.cached) == 3
    assert worker.state.installed
    assert worker.bucket("static").match(make_request("/js/main.js")) is None


def test_activate_deletes_every_non_current_cache(worker_factory, storage):
    old = storage.open("site-static-v0")
    old.put(make_request("/js/main.js"), make_response(body=b"old"))
    storage.open("unrelated-cache")
    worker = worker_factory(version="v1")
    worker.bucket("html")

    report = worker.activate()

    assert sorted(report.deleted_caches) == ["site-static-v0", "unrelated-cache"]
    assert storage.keys() == ["site-data-v1", "site-html-v1", "site-static-v1"]
    assert worker.state.activated
    assert worker.state.clients_claimed


def test_version_bump_invalidates_previous_install(worker_factory, network):
    _route_all(network, "http://localhost")
    v1 = worker_factory(version="v1", critical_pages=PAGES, critical_assets=ASSETS)
    v1.install()
    v1.activate()

    v2 = worker_factory(version="v2", critical_pages=PAGES, critical_assets=ASSETS)
    v2.install()
    report = v2.activate()

    assert set(report.deleted_caches) == {"site-data-v1", "site-html-v1", "site-static-v1"}
    assert v2.bucket("html").match(make_request("/")) is not None


def test_activate_enforces_budgets(worker_factory, clock):
    worker = worker_factory(budgets=CacheBudgets(static=150, html=1000, data=1000))
    bucket = worker.bucket("static")
    for i in range(3):
        req = make_request(f"/assets/{i}.png")
        bucket.put(req, make_response(req.url, b"x" * 100, stored_at=float(i)))

    report = worker.activate()

    assert report.evicted["site-static-v1"] == [
        "GET http://localhost/assets/0.png",
        "GET http://localhost/assets/1.png",
    ]
    assert bucket.total_size() <= 150
