# brochure/build/fontawesome.py
"""
Purge unused Font Awesome icon rules from the locally hosted stylesheet.

Used icons are collected from `class` attributes of the built HTML and from
any `fa-*` token in inline scripts. The purge keeps every at-rule
(@font-face, @keyframes, @media, @supports), :root/:host blocks, base and
utility classes (.fa, .fas, size modifiers, spin, stack, ...) and the
rules of used icons. Grouped icon selectors are narrowed to the used ones.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

STYLE_CLASSES = frozenset({"fa", "fas", "far", "fab", "fa-solid", "fa-regular", "fa-brands", "fa-classic"})

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_TOKEN_RE = re.compile(r"\bfa-([a-z0-9-]+)", re.IGNORECASE)
_ICON_SELECTOR_RE = re.compile(r"^\.(fa-[a-z0-9-]+)(?:::?(?:before|after))?$", re.IGNORECASE)
_UTILITY_RE = re.compile(
    r"^fa-(?:[0-9]+x|2xs|xs|sm|lg|xl|2xl|fw|ul|li|border|pull-\w+|beat[\w-]*|bounce|fade|flip[\w-]*|shake|"
    r"spin[\w-]*|pulse|stack[\w-]*|inverse|width-auto|rotate-\w+|sr-only[\w-]*|solid|regular|brands|classic)$",
    re.IGNORECASE,
)


def extract_icon_classes(html: str) -> set[str]:
    """Icon classes (e.g. 'fa-phone') used by `html`; style and utility classes excluded."""
    found: set[str] = set()
    soup = BeautifulSoup(html or "", "lxml")
    for tag in soup.find_all(class_=True):
        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        found.update(c.lower() for c in classes if c.lower().startswith("fa-"))
    # icons assembled in scripts, e.g. `<i class="fas fa-${icon}">`
    for script in soup.find_all("script"):
        found.update(f"fa-{m.group(1).lower()}" for m in _TOKEN_RE.finditer(script.get_text() or ""))
    return {c for c in found if c not in STYLE_CLASSES and not _UTILITY_RE.match(c)}


def collect_used_icons(html_files: Iterable[Path]) -> set[str]:
    used: set[str] = set()
    for path in html_files:
        try:
            used |= extract_icon_classes(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping %s while scanning icons: %s", path, e)
    return used


def _split_rules(css: str) -> list[tuple[str, str]]:
    """Top-level (prelude, block-with-braces) pairs; text outside rules is kept as a bare prelude."""
    rules: list[tuple[str, str]] = []
    i, n = 0, len(css)
    start = 0
    while i < n:
        if css.startswith("/*", i):
            end = css.find("*/", i + 2)
            i = n if end < 0 else end + 2
            continue
        ch = css[i]
        if ch == ";" and css[start:i].lstrip().startswith("@"):
            # statement at-rule such as @charset / @import
            rules.append((css[start : i + 1], ""))
            start = i = i + 1
            continue
        if ch == "{":
            depth = 1
            j = i + 1
            while j < n and depth:
                if css[j] == "{":
                    depth += 1
                elif css[j] == "}":
                    depth -= 1
                j += 1
            rules.append((css[start:i], css[i:j]))
            start = i = j
            continue
        i += 1
    if start < n:
        rules.append((css[start:], ""))
    return rules


def _keep_selector(selector: str, used: set[str]) -> bool:
    sel = selector.strip()
    if ".fa-" not in sel:
        return True
    m = _ICON_SELECTOR_RE.match(sel)
    if not m:
        # compound selectors (.fa-stack-1x, .fa-spin-reverse .fa-spin, ...) are utilities
        return True
    cls = m.group(1).lower()
    return cls in used or bool(_UTILITY_RE.match(cls))


def purge_fontawesome_css(css: str, used_icons: Iterable[str]) -> str:
    """Drop rules for icons not in `used_icons`."""
    used = {u.lower() if u.lower().startswith("fa-") else f"fa-{u.lower()}" for u in used_icons}
    out: list[str] = []
    for prelude, block in _split_rules(css):
        head = _COMMENT_RE.sub("", prelude).strip()
        if not block or head.startswith("@") or head.startswith(":"):
            out.append(prelude + block)
            continue
        lead = prelude[: len(prelude) - len(prelude.lstrip())]
        selectors = [s.strip() for s in head.split(",")]
        kept = [s for s in selectors if _keep_selector(s, used)]
        if not kept:
            continue
        if len(kept) == len(selectors):
            out.append(prelude + block)
        else:
            out.append(f"{lead}{', '.join(kept)} {block}")
    return "".join(out)


def purge_fontawesome_file(css_path: Path, html_files: Iterable[Path]) -> tuple[int, int]:
    """Purge `css_path` in place using icons found in `html_files`. Returns (before, after) sizes."""
    used = collect_used_icons(html_files)
    original = css_path.read_text(encoding="utf-8")
    purged = purge_fontawesome_css(original, used)
    css_path.write_text(purged, encoding="utf-8")
    before, after = len(original.encode("utf-8")), len(purged.encode("utf-8"))
    saved = (1 - after / before) * 100 if before else 0.0
    logger.info(
        "Font Awesome purge: %d icons used, %.1f KB -> %.1f KB (%.1f%% saved)",
        len(used),
        before / 1024,
        after / 1024,
        saved,
    )
    return before, after


__all__ = ["extract_icon_classes", "collect_used_icons", "purge_fontawesome_css", "purge_fontawesome_file"]
