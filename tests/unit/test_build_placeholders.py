# tests/unit/test_build_placeholders.py
from __future__ import annotations

from pathlib import Path

from brochure.build.placeholders import get_blur_placeholder, load_placeholders, picture_markup


def test_load_placeholders(tmp_path: Path):
    p = tmp_path / "placeholders.json"
    p.write_text('{"hero": "data:image/webp;base64,AAA", "bad": 3}', encoding="utf-8")
    assert load_placeholders(p) == {"hero": "data:image/webp;base64,AAA"}


def test_load_placeholders_missing_or_malformed(tmp_path: Path):
    assert load_placeholders(tmp_path / "missing.json") == {}
    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    assert load_placeholders(bad) == {}
    listy = tmp_path / "list.json"
    listy.write_text("[1, 2]", encoding="utf-8")
    assert load_placeholders(listy) == {}


def test_get_blur_placeholder():
    ph = {"hero": "data:x", "empty": ""}
    assert get_blur_placeholder("hero", ph) == "data:x"
    assert get_blur_placeholder("empty", ph) is None
    assert get_blur_placeholder("nope", ph) is None


def test_picture_markup_sources_and_blur():
    html = picture_markup("assets/images/hero", 'Team "photo"', "data:image/webp;base64,AAA", widths=(320, 640))

    assert 'srcset="assets/images/hero-320w.avif 320w, assets/images/hero-640w.avif 640w"' in html
    assert 'type="image/webp"' in html
    assert 'src="assets/images/hero.jpg"' in html
    assert 'alt="Team &quot;photo&quot;"' in html
    assert "background-image: url(data:image/webp;base64,AAA)" in html
    assert 'loading="lazy"' in html


def test_picture_markup_without_placeholder():
    html = picture_markup("hero", "x", loading="eager", class_name="hero-img")
    assert 'style=""' in html
    assert 'loading="eager"' in html
    assert 'class="hero-img"' in html
    assert "hero-1920w.webp 1920w" in html


def test_picture_markup_png_source_without_avif():
    html = picture_markup("assets/images/logo", "Logo", ext="png", widths=(320,), with_avif=False)
    assert "image/avif" not in html
    assert 'src="assets/images/logo.png"' in html
    assert 'srcset="assets/images/logo-320w.jpg 320w"' in html
