# brochure/widgets/testimonials.py
"""Testimonials carousel rendered from google-reviews.json."""

from __future__ import annotations

import math
from html import escape
from pathlib import Path

from brochure.core.cache.memory import MemoryCache
from brochure.schemas.models import Review

from .carousel import load_carousel
from .sources import JsonDataSource

REVIEWS_FILE = Path("data") / "google-reviews.json"


def generate_stars(rating: float) -> str:
    """Five star icons: full, one half star for a fraction >= .5, then empty."""
    full = math.floor(rating)
    half = rating % 1 >= 0.5
    stars: list[str] = []
    for i in range(5):
        if i < full:
            stars.append('<i class="fas fa-star"></i>')
        elif i == full and half:
            stars.append('<i class="fas fa-star-half-alt"></i>')
        else:
            stars.append('<i class="far fa-star"></i>')
    return "".join(stars)


def format_author_name(author: str) -> str:
    """First and last name only ('Mary Anne Smith' -> 'Mary Smith')."""
    parts = author.split()
    if len(parts) >= 2:
        return f"{parts[0]} {parts[-1]}"
    return author.strip()


def render_testimonial_card(review: Review, index: int) -> str:
    name = escape(format_author_name(review.author or "Anonymous"))
    if review.author_photo:
        avatar = (
            f'<img src="{escape(review.author_photo, quote=True)}" alt="{name}" loading="lazy" '
            'referrerpolicy="no-referrer" crossorigin="anonymous" '
            "onerror=\"this.style.display='none'; this.nextElementSibling.style.display='flex';\">"
            '<i class="fas fa-user" style="display:none;"></i>'
        )
    else:
        avatar = '<i class="fas fa-user"></i>'
    when = f"<p>{escape(review.relative_time)}</p>" if review.relative_time else ""
    return (
        f'<div class="testimonial-card" data-review-index="{index}">'
        f'<div class="testimonial-stars">{generate_stars(review.rating)}</div>'
        f'<p class="testimonial-text">"{escape(review.text)}"</p>'
        '<div class="testimonial-author">'
        f'<div class="author-avatar">{avatar}</div>'
        f'<div class="author-info"><h4>{name}</h4>{when}</div>'
        "</div>"
        "</div>"
    )


def load_testimonials(path: Path = REVIEWS_FILE, *, memory: MemoryCache | None = None, max_reviews: int = 0) -> str | None:
    """Testimonials carousel HTML, or None to keep the fallback testimonials."""
    source = JsonDataSource(path, "reviews", Review, memory=memory)
    return load_carousel(
        source,
        render_testimonial_card,
        name="testimonials",
        label="testimonials",
        item_label="review",
        max_items=max_reviews,
    )


__all__ = ["generate_stars", "format_author_name", "render_testimonial_card", "load_testimonials"]
