# brochure/widgets/instagram_feed.py
"""Instagram feed carousel rendered from instagram-posts.json."""

from __future__ import annotations

from html import escape
from pathlib import Path

from brochure.core.cache.memory import MemoryCache
from brochure.schemas.models import InstagramPost

from .carousel import load_carousel
from .sources import JsonDataSource

POSTS_FILE = Path("data") / "instagram-posts.json"
CAPTION_LIMIT = 100


def truncate_caption(caption: str, limit: int = CAPTION_LIMIT) -> str:
    return caption if len(caption) <= limit else caption[:limit] + "..."


def _has_image(post: InstagramPost) -> bool:
    return bool(post.thumbnail_url or post.image_url)


def render_instagram_card(post: InstagramPost, index: int) -> str:
    image = escape(post.thumbnail_url or post.image_url, quote=True)
    alt = escape(post.caption or "Instagram post", quote=True)
    caption = (
        f'<div class="instagram-caption"><p>{escape(truncate_caption(post.caption))}</p></div>' if post.caption else ""
    )
    return (
        f'<div class="instagram-card" data-post-index="{index}">'
        f'<a href="{escape(post.post_url, quote=True)}" target="_blank" rel="noopener noreferrer" class="instagram-card-link">'
        '<div class="instagram-image-wrapper">'
        f'<img src="{image}" alt="{alt}" loading="lazy" decoding="async" class="instagram-image" '
        "onerror=\"this.style.display='none'; this.nextElementSibling.style.display='flex';\">"
        '<div class="instagram-placeholder" style="display:none;"><i class="fab fa-instagram"></i></div>'
        '<div class="instagram-overlay"><i class="fab fa-instagram"></i><span>View on Instagram</span></div>'
        "</div>"
        f"{caption}"
        "</a>"
        "</div>"
    )


def load_instagram_feed(path: Path = POSTS_FILE, *, memory: MemoryCache | None = None, max_posts: int = 0) -> str | None:
    """Instagram carousel HTML; posts without any image are skipped. None when nothing is left."""
    source = JsonDataSource(path, "posts", InstagramPost, memory=memory, keep=_has_image)
    return load_carousel(
        source,
        render_instagram_card,
        name="instagram",
        label="posts",
        item_label="post",
        max_items=max_posts,
    )


__all__ = ["CAPTION_LIMIT", "truncate_caption", "render_instagram_card", "load_instagram_feed"]
