# brochure/build/static_files.py
"""
Rewrite sitemap.xml and robots.txt in the output directory for a build target.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from brochure.schemas.models import BuildConfig, SiteConfig

from .config import SITE

logger = logging.getLogger(__name__)


def transform_sitemap(content: str, config: BuildConfig, site: SiteConfig = SITE) -> str:
    """Point every production-domain URL (www or not) at the target's public root."""
    domain = re.escape(site.canonical_domain)
    return re.sub(rf"https?://(?:[^/\s<\"']*\.)?{domain}", lambda m: config.public_root, content)


def transform_robots(content: str, config: BuildConfig, site: SiteConfig = SITE) -> str:
    domain = re.escape(site.canonical_domain)
    return re.sub(
        rf"Sitemap:\s*https?://(?:[^/\s]*\.)?{domain}/sitemap\.xml",
        lambda m: f"Sitemap: {config.sitemap_url}",
        content,
        flags=re.IGNORECASE,
    )


def _rewrite(path: Path, fn, config: BuildConfig, site: SiteConfig) -> bool:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return False
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return False
    try:
        path.write_text(fn(text, config, site), encoding="utf-8")
    except OSError as e:
        logger.warning("Could not write %s: %s", path, e)
        return False
    logger.info("Transformed %s URLs", path.name)
    return True


def transform_static_files(out_dir: Path, config: BuildConfig, site: SiteConfig = SITE) -> list[Path]:
    """Rewrite sitemap.xml and robots.txt under `out_dir`; missing files are skipped."""
    done: list[Path] = []
    for name, fn in (("sitemap.xml", transform_sitemap), ("robots.txt", transform_robots)):
        path = out_dir / name
        if _rewrite(path, fn, config, site):
            done.append(path)
    return done


__all__ = ["transform_sitemap", "transform_robots", "transform_static_files"]
