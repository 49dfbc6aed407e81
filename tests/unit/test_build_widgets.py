# tests/unit/test_build_widgets.py
from __future__ import annotations

from pathlib import Path

from brochure.build.widgets import default_renderers, render_pictures, render_widgets, render_widgets_dir
from tests.utils import write_json

PAGE = "<div><!-- widget:testimonials --><p>static</p><!-- /widget:testimonials --></div>"


def test_render_widgets_replaces_fallback_and_keeps_markers():
    html = render_widgets(PAGE, {"testimonials": lambda: "<b>live</b>"})
    assert html == "<div><!-- widget:testimonials --><b>live</b><!-- /widget:testimonials --></div>"


def test_render_widgets_keeps_fallback_when_renderer_has_nothing():
    assert render_widgets(PAGE, {"testimonials": lambda: None}) == PAGE
    assert render_widgets(PAGE, {"instagram": lambda: "<b>x</b>"}) == PAGE


def test_render_widgets_calls_each_renderer_once():
    calls: list[str] = []

    def _render() -> str:
        calls.append("x")
        return "<b>live</b>"

    html = render_widgets(PAGE + PAGE, {"testimonials": _render})
    assert html.count("<b>live</b>") == 2
    assert calls == ["x"]


def test_render_pictures_uses_existing_variants(tmp_path: Path):
    images = tmp_path / "assets" / "images"
    images.mkdir(parents=True)
    for name in ("hero-320w.webp", "hero-320w.jpg", "hero-640w.webp", "hero-640w.jpg"):
        (images / name).write_bytes(b"x")

    html = render_pictures("<!-- picture:assets/images/hero.png | Team -->", tmp_path, {"hero": "data:blur"})

    assert 'type="image/avif"' not in html
    assert 'srcset="assets/images/hero-320w.webp 320w, assets/images/hero-640w.webp 640w"' in html
    assert 'src="assets/images/hero.png"' in html
    assert "assets/images/hero-640w.jpg 640w" in html
    assert 'alt="Team"' in html
    assert "url(data:blur)" in html


def test_render_pictures_includes_avif_when_present(tmp_path: Path):
    images = tmp_path / "assets" / "images"
    images.mkdir(parents=True)
    for name in ("photo-320w.webp", "photo-320w.avif", "photo-320w.jpeg"):
        (images / name).write_bytes(b"x")

    html = render_pictures("<!-- picture:/assets/images/photo.jpeg -->", tmp_path, {})

    assert 'srcset="assets/images/photo-320w.avif 320w"' in html
    assert 'src="assets/images/photo.jpeg"' in html
    assert 'style=""' in html


def test_render_pictures_leaves_unknown_formats(tmp_path: Path):
    marker = "<!-- picture:assets/images/logo.svg | Logo -->"
    assert render_pictures(marker, tmp_path, {}) == marker


def test_default_renderers_read_data_dir(tmp_path: Path):
    write_json(
        tmp_path / "data" / "instagram-posts.json",
        {"posts": [{"id": "1", "postUrl": "https://www.instagram.com/p/A/", "imageUrl": "assets/a.jpg", "timestamp": "t"}]},
    )
    renderers = default_renderers(tmp_path)

    assert renderers["testimonials"]() is None
    assert '<div class="instagram-carousel"' in renderers["instagram"]()


def test_render_widgets_dir_reports_changed_pages(tmp_path: Path):
    (tmp_path / "a.html").write_text(PAGE, encoding="utf-8")
    (tmp_path / "b.html").write_text("<p>plain</p>", encoding="utf-8")

    changed = render_widgets_dir(tmp_path, {"testimonials": lambda: "<b>live</b>"})

    assert [p.name for p in changed] == ["a.html"]
    assert "<b>live</b>" in (tmp_path / "a.html").read_text(encoding="utf-8")
