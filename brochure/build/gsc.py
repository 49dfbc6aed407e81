# brochure/build/gsc.py
"""
Google Search Console verification tag injection.

Source pages carry a placeholder block:

    <!-- Google Search Console Verification -->
    <!-- Example: <meta name="google-site-verification" content="..." /> -->
"""

from __future__ import annotations

import html as _html
import re

_PLACEHOLDER_RE = re.compile(r"<!-- Google Search Console Verification -->[\s\S]*?<!-- Example:.*?-->\s*")
_CANONICAL_RE = re.compile(r"(<link rel=\"canonical\"[^>]*>)")


def inject_verification(page: str, code: str | None) -> str:
    """Replace the placeholder with the verification meta tag (or drop it when there is no code)."""
    if not code:
        return _PLACEHOLDER_RE.sub("", page)

    tag = f'<meta name="google-site-verification" content="{_html.escape(code, quote=True)}" />'
    if _PLACEHOLDER_RE.search(page):
        return _PLACEHOLDER_RE.sub(lambda m: f"{tag}\n    ", page, count=1)
    return _CANONICAL_RE.sub(lambda m: f"{m.group(1)}\n\n    {tag}", page, count=1)


__all__ = ["inject_verification"]
