# brochure/paths.py
"""
Base-path helpers for sites deployed at the domain root or under a sub-path
(e.g. a GitHub Pages project site served from ``/logia/``).
"""

from __future__ import annotations

from urllib.parse import urlparse


def derive_base_path(scope_url: str) -> str:
    """
    Base path of a registration scope, without trailing slash.

      https://example.github.io/logia/  -> "/logia"
      https://logia.co.za/              -> ""
    """
    path = urlparse(scope_url).path or "/"
    # a scope pointing at a file (".../sw.js") belongs to its directory
    if not path.endswith("/"):
        path = path.rsplit("/", 1)[0] + "/"
    return path.rstrip("/")


def get_base_path(pathname: str, hostname: str = "", project_slug: str = "logia") -> str:
    """Detect the project sub-path from a page location; empty string on the root domain."""
    prefix = f"/{project_slug}"
    on_pages = pathname.startswith(prefix + "/") or pathname == prefix or "github.io" in hostname
    if on_pages and pathname.startswith(prefix):
        return prefix
    return ""


def resource_path(path: str, base_path: str = "") -> str:
    """Prefix ``path`` with the base path, making sure it starts with a slash."""
    normalized = path if path.startswith("/") else f"/{path}"
    return f"{base_path.rstrip('/')}{normalized}"


__all__ = ["derive_base_path", "get_base_path", "resource_path"]
