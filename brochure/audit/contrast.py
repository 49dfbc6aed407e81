# brochure/audit/contrast.py
"""
WCAG 2.x contrast audit of the site palette.

Thresholds:
  normal text   AA 4.5:1   AAA 7:1
  large text    AA 3:1     AAA 4.5:1   (18px+, or 14px+ bold)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Literal, NamedTuple

from brochure.schemas.models import ContrastResult

logger = logging.getLogger(__name__)

TextSize = Literal["normal", "large"]

_HEX_RE = re.compile(r"^#?([0-9a-f]{3}|[0-9a-f]{6})$", re.IGNORECASE)

# Values from css/core/variables.css
PALETTE: dict[str, str] = {
    "primary": "#0A2463",
    "primary_light": "#1E3A8A",
    "primary_dark": "#061741",
    "accent": "#00D9FF",
    "accent_hover": "#00B8DB",
    "accent_text": "#006B82",
    "white": "#FFFFFF",
    "gray50": "#F8FAFC",
    "gray100": "#F1F5F9",
    "gray300": "#CBD5E1",
    "gray400": "#94A3B8",
    "gray600": "#475569",
    "gray900": "#0F172A",
    "dark_bg": "#000000",
    "dark_surface": "#0F172A",
    "warning": "#FFD700",
    "warning_dark": "#936C08",
    "error": "#DC2626",
    "whatsapp": "#0E7A6D",
    "whatsapp_dark": "#0D6B5F",
}


class ColorPair(NamedTuple):
    name: str
    foreground: str
    background: str
    size: TextSize = "normal"


def _pairs() -> list[ColorPair]:
    c = PALETTE
    return [
        ColorPair("Primary text on white", c["gray900"], c["white"]),
        ColorPair("Muted text on white", c["gray600"], c["white"]),
        ColorPair("Primary text on surface", c["gray900"], c["gray50"]),
        ColorPair("Primary text on black (dark mode)", c["gray100"], c["dark_bg"]),
        ColorPair("Muted text on dark surface", c["gray400"], c["dark_surface"]),
        ColorPair("Accent cyan on white", c["accent"], c["white"]),
        ColorPair("Accent cyan on dark surface", c["accent"], c["dark_surface"]),
        ColorPair("Accent text on white", c["accent_text"], c["white"]),
        ColorPair("Accent text on surface", c["accent_text"], c["gray50"]),
        ColorPair("Primary blue on white", c["primary"], c["white"]),
        ColorPair("White on primary button", c["white"], c["primary"]),
        ColorPair("White on primary light button", c["white"], c["primary_light"]),
        ColorPair("Footer text", c["gray300"], c["gray900"]),
        ColorPair("Footer links", c["gray400"], c["gray900"]),
        ColorPair("Accent on footer", c["accent"], c["gray900"]),
        ColorPair("Heading on white", c["gray900"], c["white"], "large"),
        ColorPair("Heading on black", c["gray100"], c["dark_bg"], "large"),
        ColorPair("Accent heading on white", c["accent"], c["white"], "large"),
        ColorPair("Accent heading on dark surface", c["accent"], c["dark_surface"], "large"),
        ColorPair("White on primary dark (hero/CTA)", c["white"], c["primary_dark"]),
        ColorPair("Stars on white (dark gold)", c["warning_dark"], c["white"]),
        ColorPair("Stars on dark surface", c["warning"], c["dark_surface"]),
        ColorPair("White on WhatsApp green", c["white"], c["whatsapp"]),
        ColorPair("White on WhatsApp dark green", c["white"], c["whatsapp_dark"]),
        ColorPair("Error text on white", c["error"], c["white"]),
    ]


DEFAULT_PAIRS: tuple[ColorPair, ...] = tuple(_pairs())


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """'#0A2463' or 'fff' -> (r, g, b). Raises ValueError for anything else."""
    m = _HEX_RE.match(value.strip())
    if not m:
        raise ValueError(f"not a hex colour: {value!r}")
    digits = m.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def _channel(v: int) -> float:
    s = v / 255
    return s / 12.92 if s <= 0.03928 else ((s + 0.055) / 1.055) ** 2.4


def relative_luminance(color: str) -> float:
    r, g, b = (_channel(v) for v in hex_to_rgb(color))
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(a: str, b: str) -> float:
    la, lb = relative_luminance(a), relative_luminance(b)
    lighter, darker = max(la, lb), min(la, lb)
    return (lighter + 0.05) / (darker + 0.05)


def check_compliance(ratio: float, size: TextSize = "normal") -> tuple[bool, bool]:
    """(passes AA, passes AAA) for `ratio` at text `size`."""
    if size == "large":
        return ratio >= 3.0, ratio >= 4.5
    return ratio >= 4.5, ratio >= 7.0


def audit_pairs(pairs: Iterable[ColorPair] = DEFAULT_PAIRS) -> list[ContrastResult]:
    results: list[ContrastResult] = []
    for pair in pairs:
        ratio = contrast_ratio(pair.foreground, pair.background)
        aa, aaa = check_compliance(ratio, pair.size)
        result = ContrastResult(
            name=pair.name,
            foreground=pair.foreground,
            background=pair.background,
            ratio=round(ratio, 2),
            size=pair.size,
            aa=aa,
            aaa=aaa,
        )
        if result.status == "FAIL":
            required = "4.5:1" if pair.size == "normal" else "3:1"
            logger.warning("%s: %.2f:1 (needs %s for %s text)", pair.name, ratio, required, pair.size)
        else:
            logger.debug("%s: %.2f:1 %s", pair.name, ratio, result.status)
        results.append(result)
    return results


__all__ = [
    "PALETTE",
    "ColorPair",
    "DEFAULT_PAIRS",
    "hex_to_rgb",
    "relative_luminance",
    "contrast_ratio",
    "check_compliance",
    "audit_pairs",
]
