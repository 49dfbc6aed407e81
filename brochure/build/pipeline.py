# brochure/build/pipeline.py
"""
Build orchestration.

    site/ --copy--> <out_dir>/
          --> optimize assets/images (responsive variants + placeholders)
          --> render widget and picture markers (carousels, <picture>)
          --> rewrite URLs in HTML/CSS for the target
          --> rewrite sitemap.xml / robots.txt
          --> inject the Search Console verification tag
          --> purge unused Font Awesome rules

Only the copy is required. Every later step is logged and skipped on failure
so a broken optimizer never blocks a deploy.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from brochure.schemas.models import BuildConfig, BuildReport

from .config import SITE, get_build_config
from .fontawesome import purge_fontawesome_file
from .gsc import inject_verification
from .images import optimize_images as _optimize_images
from .static_files import transform_static_files
from .url_transform import transform_output_dir
from .widgets import render_widgets_dir

logger = logging.getLogger(__name__)

SITE_DIR = "site"
IMAGES_DIR = Path("assets") / "images"
FONTAWESOME_CSS = Path("css") / "fontawesome-local.css"

_COPY_IGNORE = shutil.ignore_patterns(".git", "node_modules", "__pycache__", ".DS_Store")


def copy_sources(src: Path, out: Path) -> None:
    if not src.is_dir():
        raise FileNotFoundError(f"Source directory {src} does not exist")
    if out.exists():
        shutil.rmtree(out)
    shutil.copytree(src, out, ignore=_COPY_IGNORE)


def inject_verification_dir(out: Path, code: str | None) -> list[Path]:
    changed: list[Path] = []
    for page in sorted(out.rglob("*.html")):
        text = page.read_text(encoding="utf-8")
        new = inject_verification(text, code)
        if new != text:
            page.write_text(new, encoding="utf-8")
            changed.append(page)
    return changed


def _run_step(report: BuildReport, name: str, fn: Callable[[], object]) -> None:
    try:
        result = fn()
    except Exception as exc:  # noqa: BLE001
        logger.error("Build step %s failed, skipping: %s", name, exc)
        report.steps_failed.append(name)
        return
    if isinstance(result, list):
        logger.info("Build step %s: %d file(s) updated", name, len(result))
    report.steps_ok.append(name)


def run_build(
    mode: str,
    project_dir: Path,
    *,
    optimize_images: bool = True,
    gsc_code: str | None = None,
    config: BuildConfig | None = None,
) -> BuildReport:
    """Build the site under `project_dir` for `mode` ('production' or 'gh-pages')."""
    config = config or get_build_config(mode)
    src = project_dir / SITE_DIR
    out = project_dir / config.out_dir
    report = BuildReport(mode=mode, out_dir=out)

    logger.info("Building %s -> %s (base path %s)", mode, out, config.base_path)
    copy_sources(src, out)
    report.steps_ok.append("copy")

    if optimize_images:

        def _images() -> None:
            report.images = _optimize_images(src / IMAGES_DIR, out / IMAGES_DIR)

        _run_step(report, "images", _images)

    _run_step(report, "widgets", lambda: render_widgets_dir(out))
    _run_step(report, "urls", lambda: transform_output_dir(out, config, SITE))
    _run_step(report, "static-files", lambda: transform_static_files(out, config, SITE))
    _run_step(report, "gsc", lambda: inject_verification_dir(out, gsc_code))

    fa_css = out / FONTAWESOME_CSS
    if fa_css.exists():
        _run_step(report, "fontawesome", lambda: purge_fontawesome_file(fa_css, sorted(out.rglob("*.html"))))

    logger.info("Build %s done: %d ok, %d failed", mode, len(report.steps_ok), len(report.steps_failed))
    return report


__all__ = ["run_build", "copy_sources", "inject_verification_dir", "SITE_DIR"]
