# brochure/feeds/reviews.py
"""
Google reviews data file.

`refresh_reviews` tries the Places Details API when credentials are given and
falls back to the hand-maintained manual file; the envelope written to
google-reviews.json records which of the two produced the records.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import requests
from pydantic import ValidationError

from brochure.logging_utils import redact
from brochure.schemas.models import FeedSource, Review, ReviewsFile

from .errors import FeedApiError, FeedError
from .sync import read_records, validate_records, write_data_file

logger = logging.getLogger(__name__)

PLACES_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
DEFAULT_TIMEOUT_S = 15.0

_CONTRIB_RE = re.compile(r"/contrib/(\d+)")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def format_relative_time(timestamp: str | datetime | None, now: datetime | None = None) -> str:
    """'Today', 'Yesterday', 'N days/weeks/months/years ago'; '' for missing/unparseable input."""
    if not timestamp:
        return ""
    if isinstance(timestamp, str):
        try:
            ts = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError:
            return ""
    else:
        ts = timestamp
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    days = ((now or _now()) - ts).days

    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"


def _review_id(raw: dict[str, Any], index: int, now: datetime) -> str:
    author_url = str(raw.get("author_url") or "")
    m = _CONTRIB_RE.search(author_url)
    if m:
        return m.group(1)
    tail = author_url.rstrip("/").rsplit("/", 1)[-1].rsplit("=", 1)[-1]
    return tail or f"review-{int(now.timestamp() * 1000)}-{index}"


def review_from_api(raw: dict[str, Any], index: int = 0, now: datetime | None = None) -> Review:
    """Map one Places API review object onto `Review`."""
    now = now or _now()
    epoch = raw.get("time")
    ts = datetime.fromtimestamp(float(epoch), tz=timezone.utc) if epoch else now
    iso = ts.isoformat().replace("+00:00", "Z")
    rating = raw.get("rating")
    return Review(
        id=_review_id(raw, index, now),
        author=raw.get("author_name") or "Anonymous",
        rating=5 if rating is None else rating,
        text=raw.get("text") or "",
        time=iso,
        author_photo=raw.get("profile_photo_url") or None,
        relative_time=raw.get("relative_time_description") or format_relative_time(ts, now),
    )


def _check_response(resp: requests.Response) -> dict[str, Any]:
    if not resp.ok:
        raise FeedApiError(f"Google Places API HTTP error: {resp.status_code} - {resp.text[:200]}", status=resp.status_code)
    try:
        data = resp.json()
    except ValueError as e:
        raise FeedApiError(f"Google Places API returned invalid JSON: {e}", status=resp.status_code) from e
    if not isinstance(data, dict):
        raise FeedApiError(f"Google Places API returned {type(data).__name__}, expected an object", status=resp.status_code)
    status = data.get("status")
    if status and status not in ("OK", "ZERO_RESULTS"):
        raise FeedApiError(f"Google Places API error: {status} - {data.get('error_message', 'Unknown error')}", code=status)
    return data


def fetch_google_reviews(
    place_id: str | None,
    api_key: str | None,
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    now: datetime | None = None,
) -> list[Review] | None:
    """
    Reviews for `place_id` from the Places Details API.

    Returns None when credentials are missing or the call fails (logged, key
    redacted), [] when the place has no reviews.
    """
    if not place_id or not api_key:
        logger.warning("Google Places API credentials not provided")
        return None

    try:
        resp = requests.get(
            PLACES_DETAILS_URL,
            params={"place_id": place_id, "key": api_key},
            headers={"Accept": "application/json"},
            timeout=timeout_s,
        )
        data = _check_response(resp)
    except (requests.RequestException, FeedError) as e:
        logger.error("Error fetching Google Reviews: %s", redact(str(e), api_key))
        return None

    result = data.get("result")
    if not isinstance(result, dict) or not result:
        logger.warning("No result object in Places API response (status %s)", data.get("status"))
        return []
    raw_reviews = result.get("reviews")
    if not isinstance(raw_reviews, list):
        logger.warning("No reviews array in Places API result")
        return []

    reviews: list[Review] = []
    for i, raw in enumerate(raw_reviews):
        if not isinstance(raw, dict):
            logger.warning("Skipping malformed review #%d: not an object", i)
            continue
        try:
            reviews.append(review_from_api(raw, i, now))
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed review #%d: %s", i, e)
    logger.info("Fetched %d reviews from Google Places API", len(reviews))
    return reviews


def load_manual_reviews(path: Path) -> list[Review] | None:
    """Reviews from the manual fallback file; None when missing or unreadable."""
    records = read_records(path, "reviews")
    if records is None:
        return None
    reviews = validate_records(records, Review, path.name)
    logger.info("Using %d manual reviews from %s", len(reviews), path.name)
    return reviews


def refresh_reviews(
    output: Path,
    manual: Path,
    *,
    api_key: str | None = None,
    place_id: str | None = None,
    now: datetime | None = None,
) -> ReviewsFile:
    """Rebuild the reviews data file from the API, falling back to the manual file."""
    reviews: list[Review] | None = None
    source: FeedSource = "manual"

    if api_key and place_id:
        reviews = fetch_google_reviews(place_id, api_key, now=now)
        if reviews:
            source = "google-places-api"
        elif reviews is not None:
            logger.warning("API returned an empty reviews array")
    else:
        missing = [n for n, v in (("GOOGLE_PLACES_API_KEY", api_key), ("GOOGLE_PLACE_ID", place_id)) if not v]
        logger.warning("Google Places API credentials not found (missing: %s)", ", ".join(missing))

    if not reviews:
        reviews = load_manual_reviews(manual) or []
    if not reviews:
        logger.warning("No reviews found; writing an empty reviews file")

    envelope = ReviewsFile(last_updated=now or _now(), source=source, reviews=reviews)
    write_data_file(output, envelope)
    logger.info("Reviews saved to %s (%d, source %s)", output, len(reviews), source)
    return envelope


__all__ = [
    "PLACES_DETAILS_URL",
    "format_relative_time",
    "review_from_api",
    "fetch_google_reviews",
    "load_manual_reviews",
    "refresh_reviews",
]
