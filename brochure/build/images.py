# brochure/build/images.py
"""
Responsive image generation for the build.

For every JPEG/PNG under the source tree:
  - <name>-<w>w.{avif,webp,jpg|jpeg} for each responsive width not wider than
    the original (PNG sources get JPEG sized variants)
  - full-size <name>.avif, <name>.webp and a re-encoded original
  - a 20px WebP blur-up placeholder as a base64 data URL

Placeholders are collected into <dest>/placeholders/placeholders.json, keyed by
image base name. Other files are copied unchanged; an image that fails to
process is logged and copied unchanged as well.
"""

from __future__ import annotations

import base64
import io
import json
import logging
import re
import shutil
from pathlib import Path

from PIL import Image, ImageOps, features

from brochure.schemas.models import ImageOptimizationReport, ImageVariant

logger = logging.getLogger(__name__)

RESPONSIVE_WIDTHS: tuple[int, ...] = (320, 640, 768, 1024, 1280, 1920)
PLACEHOLDER_WIDTH = 20
PLACEHOLDERS_FILE = Path("placeholders") / "placeholders.json"

_IMAGE_RE = re.compile(r"\.(jpe?g|png)$", re.IGNORECASE)

# Encoder settings per output format
_SAVE_OPTS: dict[str, dict[str, object]] = {
    "jpeg": {"quality": 85, "optimize": True, "progressive": True},
    "png": {"optimize": True, "compress_level": 9},
    "webp": {"quality": 85, "method": 6},
    "avif": {"quality": 80},
}


def avif_supported() -> bool:
    """True when this Pillow build can encode AVIF."""
    return "avif" in features.get_supported()


def _has_alpha(im: Image.Image) -> bool:
    return im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in im.info)


def _for_format(im: Image.Image, fmt: str) -> Image.Image:
    if fmt == "jpeg":
        if _has_alpha(im):
            rgba = im.convert("RGBA")
            flat = Image.new("RGB", rgba.size, (255, 255, 255))
            flat.paste(rgba, mask=rgba.getchannel("A"))
            return flat
        return im if im.mode == "RGB" else im.convert("RGB")
    if im.mode in ("RGB", "RGBA"):
        return im
    return im.convert("RGBA" if _has_alpha(im) else "RGB")


def resize_to_width(im: Image.Image, width: int) -> Image.Image:
    """Scale to `width` keeping aspect ratio; never enlarges."""
    if im.width <= width:
        return im.copy()
    height = max(1, round(im.height * width / im.width))
    return im.resize((width, height), Image.Resampling.LANCZOS)


def encode(im: Image.Image, fmt: str, **overrides: object) -> bytes:
    buf = io.BytesIO()
    opts = {**_SAVE_OPTS.get(fmt, {}), **overrides}
    _for_format(im, fmt).save(buf, format=fmt.upper(), **opts)
    return buf.getvalue()


def blur_placeholder(im: Image.Image, width: int = PLACEHOLDER_WIDTH) -> str:
    """Tiny low-quality WebP of `im` as a data URL."""
    small = resize_to_width(im, width)
    data = encode(small, "webp", quality=20)
    return f"data:image/webp;base64,{base64.b64encode(data).decode('ascii')}"


def _write(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def optimize_image(src: Path, dest_dir: Path, *, widths: tuple[int, ...] = RESPONSIVE_WIDTHS, with_avif: bool | None = None) -> tuple[list[ImageVariant], str]:
    """
    Generate all variants of one image into `dest_dir`.
    Returns the written variants and the blur placeholder data URL.
    """
    if with_avif is None:
        with_avif = avif_supported()

    m = _IMAGE_RE.search(src.name)
    if not m:
        raise ValueError(f"not a JPEG/PNG source: {src.name}")
    stem = src.name[: m.start()]
    ext = m.group(1).lower()
    sized_ext = "jpg" if ext == "png" else ext
    original_fmt = "png" if ext == "png" else "jpeg"

    variants: list[ImageVariant] = []
    with Image.open(src) as opened:
        opened.load()
        im = ImageOps.exif_transpose(opened) or opened

        placeholder = blur_placeholder(im)

        encodings: list[tuple[str, str]] = [("webp", "webp"), ("jpeg", sized_ext)]
        if with_avif:
            encodings.insert(0, ("avif", "avif"))

        for width in widths:
            if im.width < width:
                continue
            resized = resize_to_width(im, width)
            for fmt, suffix in encodings:
                out = dest_dir / f"{stem}-{width}w.{suffix}"
                _write(out, encode(resized, fmt))
                variants.append(ImageVariant(path=out, width=width, fmt=fmt))

        full: list[tuple[str, Path]] = [("webp", dest_dir / f"{stem}.webp"), (original_fmt, dest_dir / src.name)]
        if with_avif:
            full.insert(0, ("avif", dest_dir / f"{stem}.avif"))
        for fmt, out in full:
            _write(out, encode(im, fmt))
            variants.append(ImageVariant(path=out, width=None, fmt=fmt))

    return variants, placeholder


def optimize_images(src_dir: Path, dest_dir: Path, *, widths: tuple[int, ...] = RESPONSIVE_WIDTHS) -> ImageOptimizationReport:
    """Process `src_dir` recursively into `dest_dir` and write the placeholders JSON."""
    report = ImageOptimizationReport()
    if not src_dir.is_dir():
        logger.debug("No image directory at %s", src_dir)
        return report

    with_avif = avif_supported()
    if not with_avif:
        report.warnings.append("avif_unsupported")
        logger.warning("Pillow has no AVIF codec; skipping AVIF variants")

    for src in sorted(src_dir.rglob("*")):
        if not src.is_file():
            continue
        rel = src.relative_to(src_dir)
        target_dir = dest_dir / rel.parent
        if not _IMAGE_RE.search(src.name):
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, target_dir / src.name)
            report.copied.append(target_dir / src.name)
            continue
        try:
            variants, placeholder = optimize_image(src, target_dir, widths=widths, with_avif=with_avif)
        except (OSError, ValueError) as e:
            logger.error("Error processing %s: %s", rel, e)
            report.failed.append(str(rel))
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, target_dir / src.name)
            report.copied.append(target_dir / src.name)
            continue
        report.variants.extend(variants)
        report.placeholders[_IMAGE_RE.sub("", src.name)] = placeholder
        logger.info("Optimized %s (%d variants, placeholder)", rel, len(variants))

    if report.placeholders:
        out = dest_dir / PLACEHOLDERS_FILE
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(report.placeholders, indent=2), encoding="utf-8")
        logger.info("Generated %d blur-up placeholders", len(report.placeholders))
    return report


__all__ = [
    "RESPONSIVE_WIDTHS",
    "PLACEHOLDER_WIDTH",
    "PLACEHOLDERS_FILE",
    "avif_supported",
    "resize_to_width",
    "encode",
    "blur_placeholder",
    "optimize_image",
    "optimize_images",
]
