# brochure/feeds/instagram.py
"""
Instagram posts data file.

Posts come from the Instagram Graph API (`/{user_id}/media`) when a token and
account id are available, otherwise from the manual posts file. Post images
are downloaded into the site's assets so the feed does not hot-link the CDN;
a failed download keeps the remote URL.
"""

from __future__ import annotations

import logging
import re
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import requests
from pydantic import ValidationError

from brochure.logging_utils import redact
from brochure.schemas.models import FeedSource, InstagramFile, InstagramPost

from .errors import FeedApiError, FeedDownloadError, FeedError
from .sync import read_records, validate_records, write_data_file

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.instagram.com/v18.0"
MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,thumbnail_url,timestamp"
MAX_POSTS = 12
DEFAULT_TIMEOUT_S = 15.0
IMAGES_PUBLIC_PREFIX = "assets/images/instagram"

_DOWNLOAD_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Referer": "https://www.instagram.com/",
}
_STREAM_CHUNK = 256 * 1024

_POST_ID_RE = re.compile(r"/(?:p|reel)/([^/?#]+)")
_IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|webp|gif)(?:\?|$)", re.IGNORECASE)

# Graph API error codes worth a hint in the log
_ERROR_HINTS = {
    190: "invalid access token; check INSTAGRAM_ACCESS_TOKEN",
    100: "invalid user id; check INSTAGRAM_USER_ID",
}


def image_filename(post_url: str, image_url: str) -> str:
    """'instagram-<post id>.<ext>' (ext from the image URL, default jpg)."""
    m = _POST_ID_RE.search(post_url)
    post_id = m.group(1) if m else str(int(time.time() * 1000))
    ext_m = _IMAGE_EXT_RE.search(image_url)
    ext = ext_m.group(1).lower() if ext_m else "jpg"
    return f"instagram-{post_id}.{ext}"


def download_image(
    image_url: str,
    filename: str,
    images_dir: Path,
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    public_prefix: str = IMAGES_PUBLIC_PREFIX,
) -> str | None:
    """
    Download `image_url` to `images_dir/filename`; returns the site-relative path.

    Existing files are reused. Non-HTTP URLs yield None. Failures raise
    FeedDownloadError and leave no partial file behind.
    """
    if not image_url or not image_url.startswith("http"):
        return None
    rel = f"{public_prefix}/{filename}"
    final_path = images_dir / filename
    if final_path.exists():
        return rel

    images_dir.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with requests.get(image_url, headers=_DOWNLOAD_HEADERS, timeout=timeout_s, stream=True) as resp:
            if resp.status_code != 200:
                raise FeedDownloadError(f"Failed to download: HTTP {resp.status_code}")
            with tempfile.NamedTemporaryFile(prefix="dl_", suffix=".part", delete=False, dir=str(images_dir)) as tf:
                tmp_path = Path(tf.name)
                for chunk in resp.iter_content(chunk_size=_STREAM_CHUNK):
                    if chunk:
                        tf.write(chunk)
        tmp_path.replace(final_path)
    except (requests.RequestException, OSError) as e:
        raise FeedDownloadError(str(e)) from e
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
    return rel


def post_from_api(raw: dict[str, Any], local_image: str | None = None) -> InstagramPost:
    image_url = raw.get("media_url") or raw.get("thumbnail_url") or ""
    return InstagramPost(
        id=str(raw["id"]),
        post_url=raw.get("permalink") or f"https://www.instagram.com/p/{raw['id']}/",
        caption=raw.get("caption") or "",
        image_url=local_image or image_url,
        thumbnail_url=local_image or raw.get("thumbnail_url") or raw.get("media_url") or "",
        media_type=raw.get("media_type") or "IMAGE",
        timestamp=raw.get("timestamp") or datetime.now(timezone.utc).isoformat(),
    )


def _check_response(resp: requests.Response) -> dict[str, Any]:
    if not resp.ok:
        try:
            body = resp.json()
        except ValueError:
            body = None
        err = body.get("error") if isinstance(body, dict) else None
        if not isinstance(err, dict):
            err = {}
        msg = err.get("message") or f"HTTP {resp.status_code}"
        code = err.get("code")
        hint = _ERROR_HINTS.get(code) if isinstance(code, int) else None
        raise FeedApiError(
            f"Instagram Graph API error: {msg}" + (f" ({hint})" if hint else ""),
            status=resp.status_code,
            code=code,
        )
    try:
        data = resp.json()
    except ValueError as e:
        raise FeedApiError(f"Instagram Graph API returned invalid JSON: {e}", status=resp.status_code) from e
    if not isinstance(data, dict):
        raise FeedApiError(f"Instagram Graph API returned {type(data).__name__}, expected an object", status=resp.status_code)
    return data


def fetch_instagram_posts(
    access_token: str | None,
    user_id: str | None,
    *,
    limit: int = MAX_POSTS,
    images_dir: Path | None = None,
    download_delay_s: float = 0.5,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> list[InstagramPost] | None:
    """
    Latest posts of `user_id`, newest first.

    None when credentials are missing or the API call fails (token redacted
    in logs). With `images_dir`, images are downloaded and the post URLs point
    at the local copies.
    """
    if not access_token or not user_id:
        logger.warning("Instagram API credentials not provided")
        return None

    try:
        resp = requests.get(
            f"{GRAPH_API_URL}/{user_id}/media",
            params={"fields": MEDIA_FIELDS, "limit": limit, "access_token": access_token},
            headers={"Accept": "application/json"},
            timeout=timeout_s,
        )
        data = _check_response(resp)
    except (requests.RequestException, FeedError) as e:
        logger.error("Error fetching Instagram posts: %s", redact(str(e), access_token))
        return None

    items = data.get("data")
    if not isinstance(items, list):
        logger.warning("No posts found in Graph API response")
        return []
    items = items[:limit]

    posts: list[InstagramPost] = []
    for i, raw in enumerate(items):
        if not isinstance(raw, dict):
            logger.warning("Skipping malformed post #%d: not an object", i)
            continue
        local: str | None = None
        remote = raw.get("media_url") or raw.get("thumbnail_url") or ""
        if images_dir is not None and remote:
            post_url = raw.get("permalink") or f"https://www.instagram.com/p/{raw.get('id')}/"
            try:
                local = download_image(remote, image_filename(post_url, remote), images_dir, timeout_s=timeout_s)
            except FeedDownloadError as e:
                logger.warning("Image download failed, keeping remote URL: %s", redact(str(e), access_token))
            if download_delay_s and i < len(items) - 1:
                time.sleep(download_delay_s)
        try:
            posts.append(post_from_api(raw, local))
        except (KeyError, ValidationError) as e:
            logger.warning("Skipping malformed post #%d: %s", i, e)
    logger.info("Fetched %d Instagram posts", len(posts))
    return posts


def load_manual_posts(path: Path) -> list[InstagramPost] | None:
    records = read_records(path, "posts")
    if records is None:
        return None
    posts = validate_records(records, InstagramPost, path.name)
    logger.info("Using %d manual posts from %s", len(posts), path.name)
    return posts


def refresh_instagram_posts(
    output: Path,
    manual: Path,
    *,
    access_token: str | None = None,
    user_id: str | None = None,
    images_dir: Path | None = None,
    limit: int = MAX_POSTS,
    now: datetime | None = None,
) -> InstagramFile:
    """Rebuild the Instagram data file from the Graph API, falling back to the manual file."""
    posts: list[InstagramPost] | None = None
    source: FeedSource = "manual"

    if access_token and user_id:
        posts = fetch_instagram_posts(access_token, user_id, limit=limit, images_dir=images_dir)
        if posts:
            source = "instagram-graph-api"
    else:
        logger.warning("Instagram credentials not found (INSTAGRAM_ACCESS_TOKEN / INSTAGRAM_USER_ID)")

    if not posts:
        posts = (load_manual_posts(manual) or [])[:limit]
    if not posts:
        logger.warning("No Instagram posts found; writing an empty posts file")

    envelope = InstagramFile(last_updated=now or datetime.now(timezone.utc), source=source, posts=posts)
    write_data_file(output, envelope)
    logger.info("Instagram posts saved to %s (%d, source %s)", output, len(posts), source)
    return envelope


__all__ = [
    "GRAPH_API_URL",
    "MAX_POSTS",
    "image_filename",
    "download_image",
    "post_from_api",
    "fetch_instagram_posts",
    "load_manual_posts",
    "refresh_instagram_posts",
]
