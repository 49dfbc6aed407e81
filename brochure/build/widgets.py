# brochure/build/widgets.py
"""
Server-side rendering of page widgets into the built HTML.

Pages mark replaceable regions with comments:

    <!-- widget:testimonials -->...static fallback...<!-- /widget:testimonials -->
    <!-- widget:instagram -->...static fallback...<!-- /widget:instagram -->
    <!-- picture:assets/images/hero.png | Alt text -->

A widget region is filled from the data files under <out>/data; the fallback
stays when there is nothing to show. A picture marker becomes a responsive
<picture> over the variants the image step produced, with its blur-up
placeholder when one exists. Paths stay site-relative; the URL step runs after
this one and adds the base path.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from html import escape
from pathlib import Path, PurePosixPath

from brochure.core.cache.memory import MemoryCache
from brochure.widgets.instagram_feed import load_instagram_feed
from brochure.widgets.testimonials import load_testimonials

from .images import PLACEHOLDERS_FILE, RESPONSIVE_WIDTHS
from .placeholders import get_blur_placeholder, load_placeholders, picture_markup

logger = logging.getLogger(__name__)

DATA_DIR = Path("data")
IMAGES_DIR = Path("assets") / "images"

_WIDGET_RE = re.compile(
    r"(?P<open><!--\s*widget:(?P<name>[\w-]+)\s*-->)(?P<fallback>.*?)(?P<close><!--\s*/widget:(?P=name)\s*-->)",
    re.DOTALL,
)
_PICTURE_RE = re.compile(r"<!--\s*picture:(?P<src>[^\s|]+)\s*(?:\|\s*(?P<alt>.*?))?\s*-->")
_EXT_RE = re.compile(r"\.(jpe?g|png)$", re.IGNORECASE)

Renderer = Callable[[], str | None]


def render_widgets(html: str, renderers: Mapping[str, Renderer]) -> str:
    """Fill each known widget region; unknown widgets and None renders keep the fallback."""
    cache: dict[str, str | None] = {}

    def _fill(m: re.Match[str]) -> str:
        name = m.group("name")
        if name not in renderers:
            return m.group(0)
        if name not in cache:
            cache[name] = renderers[name]()
        rendered = cache[name]
        if rendered is None:
            logger.debug("Widget %s has no data; keeping fallback", name)
            return m.group(0)
        return f"{m.group('open')}{rendered}{m.group('close')}"

    return _WIDGET_RE.sub(_fill, html)


def _plain_img(src: str, alt: str) -> str:
    return f'<img src="{escape(src, quote=True)}" alt="{escape(alt, quote=True)}" loading="lazy" decoding="async">'


def _variant_widths(out_dir: Path, name: str) -> tuple[int, ...]:
    return tuple(w for w in RESPONSIVE_WIDTHS if (out_dir / f"{name}-{w}w.webp").exists())


def render_pictures(html: str, out_dir: Path, placeholders: Mapping[str, str]) -> str:
    """Replace picture markers; images without sized variants get a plain lazy <img>."""

    def _picture(m: re.Match[str]) -> str:
        src = m.group("src").lstrip("/")
        alt = (m.group("alt") or "").strip()
        ext_m = _EXT_RE.search(src)
        if not ext_m:
            logger.warning("Picture marker %s is not a JPEG/PNG image", src)
            return m.group(0)
        name = src[: ext_m.start()]
        ext = ext_m.group(1).lower()
        widths = _variant_widths(out_dir, name)
        placeholder = get_blur_placeholder(PurePosixPath(name).name, dict(placeholders))
        if not widths:
            return _plain_img(f"{name}.{ext}", alt)
        return picture_markup(
            name,
            alt,
            placeholder,
            ext=ext,
            widths=widths,
            with_avif=(out_dir / f"{name}-{widths[0]}w.avif").exists(),
        )

    return _PICTURE_RE.sub(_picture, html)


def default_renderers(out_dir: Path, memory: MemoryCache | None = None) -> dict[str, Renderer]:
    data = out_dir / DATA_DIR
    memory = memory or MemoryCache()
    return {
        "testimonials": lambda: load_testimonials(data / "google-reviews.json", memory=memory),
        "instagram": lambda: load_instagram_feed(data / "instagram-posts.json", memory=memory),
    }


def render_widgets_dir(out_dir: Path, renderers: Mapping[str, Renderer] | None = None) -> list[Path]:
    """Render widget and picture markers in every page under `out_dir`. Returns changed pages."""
    renderers = renderers if renderers is not None else default_renderers(out_dir)
    placeholders = load_placeholders(out_dir / IMAGES_DIR / PLACEHOLDERS_FILE)
    changed: list[Path] = []
    for page in sorted(out_dir.rglob("*.html")):
        text = page.read_text(encoding="utf-8")
        new = render_pictures(render_widgets(text, renderers), out_dir, placeholders)
        if new != text:
            page.write_text(new, encoding="utf-8")
            changed.append(page)
    return changed


__all__ = ["render_widgets", "render_pictures", "default_renderers", "render_widgets_dir"]
