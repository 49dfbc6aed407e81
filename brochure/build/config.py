# brochure/build/config.py
"""
Build targets. Each mode yields the {out_dir, base_path, base_url} triple the
file transforms consume.
"""

from __future__ import annotations

from brochure.schemas.models import BuildConfig, SiteConfig

DEFAULT_MODE = "production"

BUILD_CONFIGS: dict[str, BuildConfig] = {
    # normal server / FTP deploy at the domain root
    "production": BuildConfig(
        base_url="https://logia.co.za",
        base_path="/",
        out_dir="dist",
        sitemap_url="https://logia.co.za/sitemap.xml",
    ),
    # GitHub Pages project site
    "gh-pages": BuildConfig(
        base_url="https://courage-1984.github.io/logia",
        base_path="/logia/",
        out_dir="dist-gh-pages",
        sitemap_url="https://courage-1984.github.io/logia/sitemap.xml",
    ),
}

SITE = SiteConfig()


def get_build_config(mode: str | None = DEFAULT_MODE) -> BuildConfig:
    """Config for `mode`; unknown modes fall back to production."""
    return BUILD_CONFIGS.get(mode or DEFAULT_MODE, BUILD_CONFIGS[DEFAULT_MODE])


__all__ = ["BUILD_CONFIGS", "DEFAULT_MODE", "SITE", "get_build_config"]
