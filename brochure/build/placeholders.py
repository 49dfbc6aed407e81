# brochure/build/placeholders.py
"""
Consumers of the blur-up placeholders written by the image optimizer.

`picture_markup` emits a <picture> with AVIF/WebP/JPEG srcsets for the
responsive widths and, when a placeholder exists, an inline blurred
background that the image clears once it has loaded.
"""

from __future__ import annotations

import json
import logging
from html import escape
from pathlib import Path

from .images import RESPONSIVE_WIDTHS

logger = logging.getLogger(__name__)

DEFAULT_SIZES = "(max-width: 640px) 100vw, (max-width: 1024px) 80vw, 1200px"

_BLUR_STYLE = (
    "background-image: url({url}); background-size: cover; background-position: center; "
    "filter: blur(20px); transition: filter 0.3s;"
)


def load_placeholders(path: Path) -> dict[str, str]:
    """Read placeholders.json; a missing or malformed file yields {}."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load placeholders from %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Placeholders file %s is not an object", path)
        return {}
    return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}


def get_blur_placeholder(name: str, placeholders: dict[str, str]) -> str | None:
    return placeholders.get(name) or None


def _srcset(name: str, ext: str, widths: tuple[int, ...]) -> str:
    return ", ".join(f"{name}-{w}w.{ext} {w}w" for w in widths)


def picture_markup(
    name: str,
    alt: str,
    placeholder: str | None = None,
    *,
    ext: str = "jpg",
    class_name: str = "",
    loading: str = "lazy",
    sizes: str = DEFAULT_SIZES,
    widths: tuple[int, ...] = RESPONSIVE_WIDTHS,
    with_avif: bool = True,
) -> str:
    """
    Responsive <picture> for an optimized image.

    `name` is the image path without extension (e.g. 'assets/images/hero') and
    `ext` the source extension. PNG sources have JPEG sized variants.
    """
    style = _BLUR_STYLE.format(url=placeholder) if placeholder else ""
    sizes_attr = escape(sizes, quote=True)
    sized_ext = "jpg" if ext == "png" else ext
    sources = [("webp", "image/webp")]
    if with_avif:
        sources.insert(0, ("avif", "image/avif"))
    lines = ["<picture>"]
    for suffix, mime in sources:
        lines.append(f'  <source srcset="{_srcset(name, suffix, widths)}" sizes="{sizes_attr}" type="{mime}">')
    lines.append(
        f'  <img src="{name}.{ext}" srcset="{_srcset(name, sized_ext, widths)}" sizes="{sizes_attr}"'
        f' alt="{escape(alt, quote=True)}" class="{escape(class_name, quote=True)}"'
        f' loading="{loading}" decoding="async" style="{style}"'
        " onload=\"this.style.filter='none'\">"
    )
    lines.append("</picture>")
    return "\n".join(lines)


__all__ = ["DEFAULT_SIZES", "load_placeholders", "get_blur_placeholder", "picture_markup"]
