# brochure/schemas/models.py

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brochure.paths import derive_base_path

MB = 1024 * 1024

# Synthetic header stamped on every stored response (epoch seconds, as text).
CACHED_AT_HEADER = "x-cached-at"

# =========================
# Cache worker: requests & responses
# =========================

# Persistent cache partitions.
BucketName = Literal["static", "data", "html"]

# Classifier output; "unhandled" requests pass straight through to the network.
RequestClass = Literal["static", "data", "html", "unhandled"]

RequestMode = Literal["navigate", "same-origin", "cors", "no-cors"]

BUCKETS: tuple[BucketName, ...] = ("static", "html", "data")


def _header_lookup(headers: dict[str, str], name: str) -> str | None:
    low = name.lower()
    for k, v in headers.items():
        if k.lower() == low:
            return v
    return None


class CacheRequest(BaseModel):
    """
    An intercepted request, as seen by the cache worker.

    Identity for storage purposes is ``"<METHOD> <url>"`` (see `cache_key`).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(..., description="Absolute request URL.")
    method: str = Field("GET", description="HTTP method (normalized to upper case).")
    mode: RequestMode = Field("cors", description="Request mode; 'navigate' for top-level page loads.")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers (case-insensitive lookup).")

    @field_validator("method")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.upper()

    @property
    def cache_key(self) -> str:
        return f"{self.method} {self.url}"

    @property
    def path(self) -> str:
        return urlparse(self.url).path or "/"

    @property
    def origin(self) -> str:
        p = urlparse(self.url)
        return f"{p.scheme}://{p.netloc}"

    def header(self, name: str) -> str | None:
        return _header_lookup(self.headers, name)


class CachedResponse(BaseModel):
    """
    A response as returned by the network or read back from a cache bucket.

    Stored copies carry an ``x-cached-at`` header holding the write time.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(..., description="URL the response was produced for.")
    status: int = Field(200, ge=0, le=999, description="HTTP status code.")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers.")
    body: bytes = Field(b"", description="Raw response body.")

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def size(self) -> int:
        return len(self.body)

    @property
    def stored_at(self) -> float:
        """Write time in epoch seconds; 0.0 when missing or unreadable (oldest)."""
        raw = self.header(CACHED_AT_HEADER)
        if raw is None:
            return 0.0
        try:
            return float(raw)
        except ValueError:
            return 0.0

    def header(self, name: str) -> str | None:
        return _header_lookup(self.headers, name)

    def stamped(self, at: float | None = None) -> CachedResponse:
        """Copy of this response carrying a fresh stored-at header."""
        hdrs = {k: v for k, v in self.headers.items() if k.lower() != CACHED_AT_HEADER}
        hdrs[CACHED_AT_HEADER] = repr(time.time() if at is None else at)
        return self.model_copy(update={"headers": hdrs})

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


# =========================
# Cache worker: configuration
# =========================


class CacheBudgets(BaseModel):
    """Byte ceilings per bucket, enforced after every write."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    static: int = Field(50 * MB, gt=0, description="Static asset bucket ceiling (bytes).")
    html: int = Field(10 * MB, gt=0, description="HTML page bucket ceiling (bytes).")
    data: int = Field(5 * MB, gt=0, description="JSON data bucket ceiling (bytes).")

    def for_bucket(self, bucket: BucketName) -> int:
        return int(getattr(self, bucket))


class WorkerConfig(BaseModel):
    """
    Explicit configuration for the cache worker.

    Cache names encode the version tag (``<prefix>-<bucket>-<version>``); bumping
    `version` invalidates every old bucket on the next activation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    scope_url: str = Field(
        "http://localhost/",
        description="Registration scope of the worker; its origin and path define same-origin and the base path.",
    )
    prefix: str = Field("site", min_length=1, description="Cache name prefix shared by all buckets of this site.")
    version: str = Field("v1", min_length=1, description="Version tag embedded in every cache name.")
    budgets: CacheBudgets = Field(default_factory=CacheBudgets, description="Per-bucket byte ceilings.")
    data_max_age_s: float = Field(3600.0, gt=0, description="Data entries older than this are refetched before serving.")
    critical_pages: tuple[str, ...] = Field(
        ("/", "/index.html", "/about.html", "/services.html", "/contact.html"),
        description="Pages pre-cached into the HTML bucket on install (relative to the base path).",
    )
    critical_assets: tuple[str, ...] = Field(
        ("/css/main.css", "/js/main.js", "/assets/images/logo.png"),
        description="Assets pre-cached into the static bucket on install (relative to the base path).",
    )
    max_background_workers: int = Field(2, ge=1, description="Threads used for background revalidation.")

    @property
    def origin(self) -> str:
        p = urlparse(self.scope_url)
        return f"{p.scheme}://{p.netloc}"

    @property
    def base_path(self) -> str:
        return derive_base_path(self.scope_url)

    def cache_name(self, bucket: BucketName) -> str:
        return f"{self.prefix}-{bucket}-{self.version}"

    @property
    def cache_names(self) -> dict[BucketName, str]:
        return {b: self.cache_name(b) for b in BUCKETS}

    def absolute(self, path: str) -> str:
        """Absolute same-origin URL for a site path, prefixed by the base path."""
        normalized = path if path.startswith("/") else f"/{path}"
        return f"{self.origin}{self.base_path}{normalized}"

    @property
    def index_fallbacks(self) -> tuple[str, ...]:
        """Offline fallbacks for navigations, tried in order."""
        return (self.absolute("/index.html"), self.absolute("/"))


class PrecacheReport(BaseModel):
    """Outcome of the install step."""

    cached: list[str] = Field(default_factory=list, description="URLs stored during install.")
    failed: list[str] = Field(default_factory=list, description="URLs that could not be pre-cached (logged, ignored).")


class ActivationReport(BaseModel):
    """Outcome of the activate step."""

    deleted_caches: list[str] = Field(default_factory=list, description="Old-version cache names that were removed.")
    evicted: dict[str, list[str]] = Field(default_factory=dict, description="Keys evicted per current cache name.")


# =========================
# Build configuration
# =========================


class SiteConfig(BaseModel):
    """Static facts about the site the build transforms rewrite from."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field("Logia Genesis", description="Business / site name.")
    canonical_domain: str = Field("logia.co.za", description="Production domain hard-coded in the HTML sources.")
    project_slug: str = Field("logia", description="Sub-path used when served as a project site.")


class BuildConfig(BaseModel):
    """Per-target deployment settings."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    base_url: str = Field(..., description="Absolute origin (plus host path, if any) of the deployment.")
    base_path: str = Field("/", description="Path prefix the site is served from ('/' at domain root).")
    out_dir: str = Field("dist", description="Output directory, relative to the project directory.")
    sitemap_url: str = Field(..., description="Absolute sitemap URL advertised in robots.txt.")

    @property
    def clean_base_url(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def clean_base_path(self) -> str:
        """Base path without trailing slash; '' at the domain root."""
        return (self.base_path or "/").rstrip("/")

    @property
    def has_sub_path(self) -> bool:
        return self.clean_base_path not in ("", "/")

    @property
    def public_root(self) -> str:
        """Absolute URL of the site root, base path included."""
        if self.has_sub_path and not self.clean_base_url.endswith(self.clean_base_path):
            return f"{self.clean_base_url}{self.clean_base_path}"
        return self.clean_base_url


class ImageVariant(BaseModel):
    """One encoded output of the image optimizer."""

    path: Path = Field(..., description="Written file.")
    width: int | None = Field(None, ge=1, description="Target width, None for the full-size encodes.")
    fmt: Literal["jpeg", "png", "webp", "avif"] = Field(..., description="Encoding.")


class ImageOptimizationReport(BaseModel):
    """Summary of an image optimization run."""

    variants: list[ImageVariant] = Field(default_factory=list)
    placeholders: dict[str, str] = Field(default_factory=dict, description="Image base name -> base64 data URL.")
    copied: list[Path] = Field(default_factory=list, description="Files copied unchanged (non-images or failures).")
    failed: list[str] = Field(default_factory=list, description="Images that could not be processed.")
    warnings: list[str] = Field(default_factory=list)


class BuildReport(BaseModel):
    """Per-step outcome of a full build."""

    mode: str
    out_dir: Path
    steps_ok: list[str] = Field(default_factory=list)
    steps_failed: list[str] = Field(default_factory=list)
    images: ImageOptimizationReport | None = None


# =========================
# Content feeds
# =========================


class Review(BaseModel):
    """A customer review as stored in ``google-reviews.json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Stable review identifier.")
    author: str = Field("Anonymous", description="Reviewer display name.")
    rating: float = Field(5, ge=0, le=5, description="Star rating, 0-5.")
    text: str = Field("", description="Review body.")
    time: str = Field(..., description="ISO-8601 timestamp of the review.")
    author_photo: str | None = Field(None, alias="authorPhoto", description="Reviewer avatar URL.")
    relative_time: str = Field("", alias="relativeTime", description="Human readable age, e.g. '2 weeks ago'.")


FeedSource = Literal["google-places-api", "instagram-graph-api", "manual"]


class ReviewsFile(BaseModel):
    """Envelope of the reviews data file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_updated: datetime = Field(..., alias="lastUpdated")
    source: FeedSource = Field("manual", description="Provenance of the records.")
    reviews: list[Review] = Field(default_factory=list)


class InstagramPost(BaseModel):
    """An Instagram post as stored in ``instagram-posts.json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    post_url: str = Field(..., alias="postUrl", description="Permalink of the post.")
    caption: str = Field("", description="Post caption.")
    image_url: str = Field("", alias="imageUrl", description="Full image URL (local path once downloaded).")
    thumbnail_url: str = Field("", alias="thumbnailUrl", description="Thumbnail URL (local path once downloaded).")
    media_type: str = Field("IMAGE", alias="mediaType", description="IMAGE | VIDEO | CAROUSEL_ALBUM.")
    timestamp: str = Field(..., description="ISO-8601 publish time.")


class InstagramFile(BaseModel):
    """Envelope of the Instagram data file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_updated: datetime = Field(..., alias="lastUpdated")
    source: FeedSource = Field("manual")
    posts: list[InstagramPost] = Field(default_factory=list)


# =========================
# Audits
# =========================

AssetCategory = Literal["js", "css", "images", "fonts"]


class SizeBudget(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = Field(..., gt=0, description="Ceiling for the category total (bytes).")
    individual: int = Field(..., gt=0, description="Ceiling for any single file (bytes).")


class BundleBudgets(BaseModel):
    """Size budgets per asset category."""

    model_config = ConfigDict(frozen=True)

    js: SizeBudget = SizeBudget(total=500 * 1024, individual=200 * 1024)
    css: SizeBudget = SizeBudget(total=200 * 1024, individual=100 * 1024)
    images: SizeBudget = SizeBudget(total=2 * MB, individual=500 * 1024)
    fonts: SizeBudget = SizeBudget(total=300 * 1024, individual=150 * 1024)

    def for_category(self, cat: AssetCategory) -> SizeBudget:
        return getattr(self, cat)


class BundleFile(BaseModel):
    path: str
    size: int = Field(..., ge=0)


class BundleReport(BaseModel):
    """Bundle sizes by category plus any budget violations."""

    files: dict[str, list[BundleFile]] = Field(default_factory=dict)
    totals: dict[str, int] = Field(default_factory=dict)
    violations: list[str] = Field(default_factory=list, description="Category totals over budget (build fails).")
    warnings: list[str] = Field(default_factory=list, description="Single files over their per-file budget.")
    timestamp: datetime

    @property
    def ok(self) -> bool:
        return not self.violations


class ContrastResult(BaseModel):
    """WCAG contrast check for one foreground/background pair."""

    model_config = ConfigDict(frozen=True)

    name: str = Field("", description="What the pair is used for, e.g. 'Muted text on white'.")
    foreground: str
    background: str
    ratio: float = Field(..., ge=1.0)
    size: Literal["normal", "large"] = "normal"
    aa: bool
    aaa: bool

    @property
    def status(self) -> Literal["AAA", "AA", "FAIL"]:
        if self.aaa:
            return "AAA"
        return "AA" if self.aa else "FAIL"
