# brochure/core/cache/classifier.py
"""
Request classification: which bucket (if any) a request belongs to.
"""

from __future__ import annotations

import re

from brochure.schemas.models import CacheRequest, RequestClass

_STATIC_RE = re.compile(r"\.(?:js|css|png|jpe?g|webp|avif|gif|svg|ico|woff2?|ttf|eot)$", re.IGNORECASE)


def is_static_asset(path: str) -> bool:
    return bool(_STATIC_RE.search(path))


def is_data_request(path: str) -> bool:
    return path.lower().endswith(".json") or "/data/" in path


def is_html_request(request: CacheRequest) -> bool:
    accept = request.header("accept") or ""
    return request.mode == "navigate" or "text/html" in accept


def classify_request(request: CacheRequest, origin: str) -> RequestClass:
    """
    GET + same-origin only, then first match wins:
      static  - binary asset extensions (scripts, styles, images, fonts)
      data    - *.json or anything under /data/
      html    - navigations or Accept: text/html
    Everything else is "unhandled" and never cached.
    """
    if request.method != "GET":
        return "unhandled"
    if request.origin != origin.rstrip("/"):
        return "unhandled"

    path = request.path
    if is_static_asset(path):
        return "static"
    if is_data_request(path):
        return "data"
    if is_html_request(request):
        return "html"
    return "unhandled"


__all__ = ["classify_request", "is_static_asset", "is_data_request", "is_html_request"]
