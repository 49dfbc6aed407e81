# brochure/feeds/errors.py
"""
Typed errors for the content-feed scripts (reviews, Instagram posts).

Feed failures never abort a refresh: callers log them (secrets redacted)
and fall back to the manual data files.
"""

from __future__ import annotations


class FeedError(RuntimeError):
    """Base class for feed fetch/parse failures."""


class FeedApiError(FeedError):
    """The upstream API answered with an HTTP or API-level error."""

    def __init__(self, message: str, *, status: int | None = None, code: int | str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class FeedDownloadError(FeedError):
    """A media file referenced by a feed could not be downloaded."""


FEED_ERRORS = (FeedApiError, FeedDownloadError)

__all__ = ["FeedError", "FeedApiError", "FeedDownloadError", "FEED_ERRORS"]
