# brochure/build/url_transform.py
"""
Rewrite absolute and root-relative URLs in built HTML/CSS for a build target.

Always:
  - <link rel="canonical"> and og:url become the clean page URL (no .html,
    index -> site root)
  - og:image / twitter:image and JSON-LD url/@id/item/target/logo/image fields
    are re-rooted from the production domain onto the target's public root

Only when the target is served from a sub-path (e.g. /logia/):
  - msapplication tiles, <img src>, <link href>/<script src> under css/ or js/,
    internal <a href> links and srcset entries under assets/ get the prefix
  - url(../assets/...) references in CSS are made absolute under the prefix

Formatting outside the rewritten attributes is preserved byte for byte.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath

from brochure.schemas.models import BuildConfig, SiteConfig

from .config import SITE

logger = logging.getLogger(__name__)

_JSONLD_KEYS = ("url", "@id", "item", "target", "logo", "image")
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_SRCSET_ENTRY_RE = re.compile(r"^(\S+)(\s+.+)?$")


# -------------------------
# URL helpers
# -------------------------


def page_slug(file_name: str) -> str:
    """'about.html' -> 'about'; 'index.html' -> ''."""
    name = PurePosixPath(file_name).name or "index.html"
    if name == "index.html":
        return ""
    return name[: -len(".html")] if name.endswith(".html") else name


def canonical_url(config: BuildConfig, file_name: str) -> str:
    slug = page_slug(file_name)
    root = config.public_root
    if slug:
        return f"{root}/{slug}"
    # project sites keep the trailing slash on their root
    return f"{root}/" if config.has_sub_path else root


def _prefixed(base_path_slash: str, path: str) -> str:
    return f"{base_path_slash}{path.lstrip('/')}"


def _transform_srcset(value: str, config: BuildConfig) -> str:
    bp = config.clean_base_path
    out: list[str] = []
    for entry in value.split(","):
        trimmed = entry.strip()
        m = _SRCSET_ENTRY_RE.match(trimmed)
        if not m:
            out.append(trimmed)
            continue
        url, descriptor = m.group(1), m.group(2) or ""
        if url.startswith(("assets/", "/assets/")) and not url.startswith(bp + "/"):
            out.append(f"{_prefixed(bp + '/', url)}{descriptor}")
        else:
            out.append(trimmed)
    return ", ".join(out)


# -------------------------
# Public API
# -------------------------


def transform_urls(html: str, config: BuildConfig, file_name: str, site: SiteConfig = SITE) -> str:
    """Return `html` with URLs rewritten for `config`. `file_name` picks the canonical URL."""
    domain = re.escape(site.canonical_domain)
    canonical = canonical_url(config, file_name)
    root = config.public_root

    html = re.sub(
        r"<link\s+rel=[\"']canonical[\"']\s+href=[\"'][^\"']+[\"']\s*/?>",
        lambda m: f'<link rel="canonical" href="{canonical}">',
        html,
        flags=re.IGNORECASE,
    )
    html = re.sub(
        r"<meta\s+property=[\"']og:url[\"']\s+content=[\"'][^\"']+[\"']\s*/?>",
        lambda m: f'<meta property="og:url" content="{canonical}">',
        html,
        flags=re.IGNORECASE,
    )
    for attr, name in (("property", "og:image"), ("name", "twitter:image")):
        html = re.sub(
            rf"(<meta\s+{attr}=[\"']{re.escape(name)}[\"']\s+content=[\"'])https?://[^\"']*{domain}/",
            lambda m: f"{m.group(1)}{root}/",
            html,
            flags=re.IGNORECASE,
        )

    keys = "|".join(re.escape(k) for k in _JSONLD_KEYS)
    html = re.sub(
        rf"\"({keys})\":\s*\"https?://[^\"']*{domain}([^\"]*)\"",
        lambda m: f'"{m.group(1)}": "{root}/{m.group(2).lstrip("/")}"',
        html,
        flags=re.IGNORECASE,
    )

    if config.has_sub_path:
        html = _prefix_local_paths(html, config)
    return html


def _prefix_local_paths(html: str, config: BuildConfig) -> str:
    bp = config.clean_base_path + "/"
    not_prefixed = rf"(?!https?://)(?!//)(?!{re.escape(bp)})"

    html = re.sub(
        r"(<meta\s+name=[\"']msapplication[^\"']*[\"']\s+content=[\"'])(/mstile-[^\"']+)([\"'])",
        lambda m: f"{m.group(1)}{_prefixed(bp, m.group(2))}{m.group(3)}",
        html,
        flags=re.IGNORECASE,
    )
    html = re.sub(
        rf"(<img[^>]*\ssrc=[\"']){not_prefixed}/?(assets/[^\"']+)([\"'])",
        lambda m: f"{m.group(1)}{_prefixed(bp, m.group(2))}{m.group(3)}",
        html,
        flags=re.IGNORECASE,
    )
    # stylesheets, modulepreload and prefetch links
    html = re.sub(
        rf"(<link[^>]*\shref=[\"']){not_prefixed}/?((?:css|js)/[^\"']+)([\"'])",
        lambda m: f"{m.group(1)}{_prefixed(bp, m.group(2))}{m.group(3)}",
        html,
        flags=re.IGNORECASE,
    )
    html = re.sub(
        rf"(<script[^>]*\ssrc=[\"']){not_prefixed}/?(js/[^\"']+)([\"'])",
        lambda m: f"{m.group(1)}{_prefixed(bp, m.group(2))}{m.group(3)}",
        html,
        flags=re.IGNORECASE,
    )

    def _link(m: re.Match[str]) -> str:
        prefix, path, suffix = m.group(1), m.group(2), m.group(3)
        if not path or path.startswith("#") or _SCHEME_RE.match(path):
            return m.group(0)
        bare = path.lstrip("/")
        if bare.startswith(("css/", "js/", "assets/")):
            return m.group(0)
        page, _, fragment = bare.partition("#")
        if page.endswith(".html"):
            page = page[: -len(".html")]
        if page == "index":
            page = ""
        target = f"{bp}{page}" if page else bp
        if fragment:
            target = f"{target}#{fragment}"
        return f"{prefix}{target}{suffix}"

    html = re.sub(
        rf"(<a[^>]*\shref=[\"']){not_prefixed}([^\"']*)([\"'])",
        _link,
        html,
        flags=re.IGNORECASE,
    )
    html = re.sub(
        r"(<(?:source|img)[^>]*\ssrcset=[\"'])([^\"']+)([\"'])",
        lambda m: f"{m.group(1)}{_transform_srcset(m.group(2), config)}{m.group(3)}",
        html,
        flags=re.IGNORECASE,
    )
    return html


def transform_css(css: str, config: BuildConfig) -> str:
    """Make url(../assets/...) references absolute under the sub-path."""
    if not config.has_sub_path:
        return css
    bp = config.clean_base_path + "/"
    return re.sub(
        r"url\(([\"']?)(?:\.\./)*/?assets/([^\"')]+)([\"']?)\)",
        lambda m: f"url({m.group(1)}{bp}assets/{m.group(2)}{m.group(3)})",
        css,
        flags=re.IGNORECASE,
    )


def transform_output_dir(out_dir: Path, config: BuildConfig, site: SiteConfig = SITE) -> list[Path]:
    """Rewrite every HTML (and, for sub-path targets, CSS) file under `out_dir`. Returns changed files."""
    changed: list[Path] = []
    if not out_dir.is_dir():
        logger.debug("Output dir %s does not exist; nothing to transform", out_dir)
        return changed

    for path in sorted(out_dir.rglob("*")):
        if not path.is_file():
            continue
        suffix = path.suffix.lower()
        if suffix not in (".html", ".css"):
            continue
        try:
            text = path.read_text(encoding="utf-8")
            new = transform_urls(text, config, path.name, site) if suffix == ".html" else transform_css(text, config)
            if new != text:
                path.write_text(new, encoding="utf-8")
                changed.append(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not transform %s: %s", path, e)
    return changed


__all__ = ["page_slug", "canonical_url", "transform_urls", "transform_css", "transform_output_dir"]
