# tests/unit/test_build_pipeline.py
from __future__ import annotations

from pathlib import Path

import pytest

from brochure.build.pipeline import copy_sources, inject_verification_dir, run_build
from tests.utils import write_json


def test_gh_pages_build_end_to_end(site_project: Path):
    report = run_build("gh-pages", site_project, gsc_code="abc123")

    out = site_project / "dist-gh-pages"
    assert report.out_dir == out
    assert report.steps_ok == ["copy", "images", "widgets", "urls", "static-files", "gsc", "fontawesome"]
    assert report.steps_failed == []

    index = (out / "index.html").read_text(encoding="utf-8")
    assert '<link rel="canonical" href="https://courage-1984.github.io/logia/">' in index
    assert 'src="/logia/assets/images/hero.png"' in index
    assert 'href="/logia/about"' in index
    assert 'href="/logia/css/main.css"' in index
    assert 'content="https://courage-1984.github.io/logia/assets/images/og.png"' in index
    assert '<meta name="google-site-verification" content="abc123" />' in index

    about = (out / "about.html").read_text(encoding="utf-8")
    assert 'href="https://courage-1984.github.io/logia/about"' in about

    assert "url(/logia/assets/fonts/inter.woff2)" in (out / "css" / "main.css").read_text(encoding="utf-8")
    assert "https://courage-1984.github.io/logia/about" in (out / "sitemap.xml").read_text(encoding="utf-8")
    assert "Sitemap: https://courage-1984.github.io/logia/sitemap.xml" in (out / "robots.txt").read_text(
        encoding="utf-8"
    )

    fa = (out / "css" / "fontawesome-local.css").read_text(encoding="utf-8")
    assert ".fa-phone::before" in fa
    assert ".fa-trash" not in fa

    assert (out / "assets" / "images" / "hero-320w.webp").exists()
    assert (out / "assets" / "images" / "placeholders" / "placeholders.json").exists()
    assert report.images is not None and "hero" in report.images.placeholders

    # sources are never modified
    src_index = (site_project / "site" / "index.html").read_text(encoding="utf-8")
    assert "https://logia.co.za/index.html" in src_index


def test_production_build_without_images_or_code(site_project: Path):
    report = run_build("production", site_project, optimize_images=False)

    out = site_project / "dist"
    assert "images" not in report.steps_ok
    assert report.images is None
    index = (out / "index.html").read_text(encoding="utf-8")
    assert '<link rel="canonical" href="https://logia.co.za">' in index
    assert 'src="/assets/images/hero.png"' in index
    assert "google-site-verification" not in index
    assert "Google Search Console" not in index
    assert not (out / "assets" / "images" / "hero-320w.webp").exists()


def test_failing_step_is_skipped_not_fatal(site_project: Path, monkeypatch: pytest.MonkeyPatch):
    def _boom(*args, **kwargs):
        raise OSError("read-only filesystem")

    monkeypatch.setattr("brochure.build.pipeline.transform_static_files", _boom)

    report = run_build("gh-pages", site_project, optimize_images=False)

    assert report.steps_failed == ["static-files"]
    assert "gsc" in report.steps_ok and "fontawesome" in report.steps_ok


def test_missing_site_dir_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        run_build("production", tmp_path)


def test_rebuild_replaces_previous_output(site_project: Path):
    run_build("production", site_project, optimize_images=False)
    stale = site_project / "dist" / "stale.txt"
    stale.write_text("old", encoding="utf-8")

    run_build("production", site_project, optimize_images=False)

    assert not stale.exists()


def test_fontawesome_step_skipped_without_stylesheet(site_project: Path):
    (site_project / "site" / "css" / "fontawesome-local.css").unlink()
    report = run_build("production", site_project, optimize_images=False)
    assert "fontawesome" not in report.steps_ok + report.steps_failed


def test_copy_sources_ignores_vcs_dirs(tmp_path: Path):
    src = tmp_path / "site"
    (src / ".git").mkdir(parents=True)
    (src / ".git" / "HEAD").write_text("ref", encoding="utf-8")
    (src / "index.html").write_text("<p>x</p>", encoding="utf-8")

    copy_sources(src, tmp_path / "out")

    assert (tmp_path / "out" / "index.html").exists()
    assert not (tmp_path / "out" / ".git").exists()


def test_inject_verification_dir_reports_changed_pages(tmp_path: Path):
    (tmp_path / "a.html").write_text("<!-- Google Search Console Verification -->\n<!-- Example: x -->\n", encoding="utf-8")
    (tmp_path / "b.html").write_text("<p>nothing</p>", encoding="utf-8")
    assert [p.name for p in inject_verification_dir(tmp_path, None)] == ["a.html"]


WIDGET_PAGE = (
    "<section><!-- widget:testimonials --><p>fallback reviews</p><!-- /widget:testimonials --></section>\n"
    "<section><!-- widget:instagram --><p>fallback posts</p><!-- /widget:instagram --></section>\n"
    "<!-- picture:assets/images/hero.png | Our team -->\n"
)


def test_widgets_rendered_into_built_pages(site_project: Path):
    site = site_project / "site"
    write_json(
        site / "data" / "google-reviews.json",
        {"reviews": [{"id": "1", "author": "Mary Anne Smith", "rating": 5, "text": "Great", "time": "2025-12-01T00:00:00Z"}]},
    )
    (site / "home.html").write_text(WIDGET_PAGE, encoding="utf-8")

    report = run_build("gh-pages", site_project)

    assert "widgets" in report.steps_ok
    home = (site_project / "dist-gh-pages" / "home.html").read_text(encoding="utf-8")
    assert "fallback reviews" not in home
    assert '<div class="testimonials-carousel"' in home
    assert "<h4>Mary Smith</h4>" in home
    # no instagram data file: the static fallback stays
    assert "<p>fallback posts</p>" in home
    assert "<picture>" in home
    assert 'src="/logia/assets/images/hero.png"' in home
    assert "/logia/assets/images/hero-320w.webp 320w" in home
    assert "background-image: url(data:image/webp;base64," in home


def test_pictures_without_variants_fall_back_to_img(site_project: Path):
    (site_project / "site" / "home.html").write_text(WIDGET_PAGE, encoding="utf-8")

    run_build("production", site_project, optimize_images=False)

    home = (site_project / "dist" / "home.html").read_text(encoding="utf-8")
    assert "<picture>" not in home
    assert '<img src="assets/images/hero.png" alt="Our team" loading="lazy" decoding="async">' in home
    assert "<p>fallback reviews</p>" in home
