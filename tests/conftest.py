# tests/conftest.py
from __future__ import annotations

import os
import random
from collections.abc import Iterator
from pathlib import Path

import pytest

from brochure.core.cache import CacheStorage, CacheWorker
from brochure.schemas.models import WorkerConfig
from tests.utils import (
    DEFAULT_PAGE_HTML,
    FakeClock,
    FakeNetwork,
    image_bytes as _image_bytes,
    write_image as _write_image,
)


# -------- Global deterministic seed --------
@pytest.fixture(autouse=True, scope="session")
def _seed_session():
    random.seed(1337)
    os.environ.setdefault("PYTHONHASHSEED", "0")
    yield


@pytest.fixture(autouse=True)
def _no_secret_env(monkeypatch: pytest.MonkeyPatch):
    """Feed credentials from the developer's shell must not leak into tests."""
    for var in (
        "GOOGLE_PLACES_API_KEY",
        "GOOGLE_PLACE_ID",
        "INSTAGRAM_ACCESS_TOKEN",
        "INSTAGRAM_USER_ID",
        "GSC_VERIFICATION",
        "BROCHURE_DEBUG",
    ):
        monkeypatch.delenv(var, raising=False)


# -------- Cache worker fixtures --------
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def storage(tmp_path: Path) -> CacheStorage:
    return CacheStorage(tmp_path / "caches")


@pytest.fixture
def worker_factory(storage: CacheStorage, network: FakeNetwork, clock: FakeClock) -> Iterator:
    """
    Callable factory for CacheWorker instances sharing the test's storage,
    network and clock. Workers are closed at teardown.

    Usage:
        worker = worker_factory()
        worker = worker_factory(scope_url="http://localhost/logia/", version="v2")
    """
    created: list[CacheWorker] = []

    def _factory(**config_overrides) -> CacheWorker:
        worker = CacheWorker(WorkerConfig(**config_overrides), storage, network, clock=clock)
        created.append(worker)
        return worker

    yield _factory
    for w in created:
        w.close()


@pytest.fixture
def worker(worker_factory) -> CacheWorker:
    """Worker at the domain root with default budgets."""
    return worker_factory()


# -------- Build fixtures --------
@pytest.fixture
def site_project(tmp_path: Path) -> Path:
    """
    Minimal project directory with a site/ source tree:

      site/index.html, site/about.html   (canonical, GSC placeholder, relative URLs)
      site/css/main.css                   (relative font url)
      site/css/fontawesome-local.css      (used + unused icon rules)
      site/assets/images/hero.png         (400x200)
      site/sitemap.xml, site/robots.txt
    """
    project = tmp_path / "project"
    site = project / "site"
    (site / "css").mkdir(parents=True)
    (site / "index.html").write_text(DEFAULT_PAGE_HTML, encoding="utf-8")
    (site / "about.html").write_text(
        DEFAULT_PAGE_HTML.replace("index.html", "about.html"),
        encoding="utf-8",
    )
    (site / "css" / "main.css").write_text(
        "@font-face { src: url(../assets/fonts/inter.woff2); }\nbody { color: #0F172A; }\n",
        encoding="utf-8",
    )
    (site / "css" / "fontawesome-local.css").write_text(
        ".fa { display: inline-block; }\n"
        '.fa-phone::before { content: "\\f095"; }\n'
        '.fa-trash::before { content: "\\f1f8"; }\n',
        encoding="utf-8",
    )
    _write_image(site / "assets" / "images" / "hero.png", 400, 200)
    (site / "sitemap.xml").write_text(
        '<?xml version="1.0"?>\n<urlset>\n  <url><loc>https://www.logia.co.za/about</loc></url>\n</urlset>\n',
        encoding="utf-8",
    )
    (site / "robots.txt").write_text(
        "User-agent: *\nAllow: /\nSitemap: https://logia.co.za/sitemap.xml\n",
        encoding="utf-8",
    )
    return project


@pytest.fixture
def image_bytes():
    """
    Fixture that returns a callable to generate encoded image bytes.
    Usage:
        data = image_bytes(64, 32, "PNG")
    """
    return _image_bytes


@pytest.fixture
def make_image():
    """
    Fixture that returns a callable to write an image file.
    Usage:
        make_image(path, 800, 400, mode="RGBA")
    """
    return _write_image


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks integration tests")
