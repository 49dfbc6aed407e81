# brochure/widgets/carousel.py
"""
Generic infinite carousel shared by the testimonials and Instagram widgets.

The carousel is parameterised by a card renderer and fed by a data source,
so each widget only supplies "how to draw one card" and "where items come
from". Navigation follows the clone-based loop used on the site:

    [last c clones] [original 0 .. n-1] [first c clones]
                     ^ current starts here (index c)

Moving past either end lands on a clone; `settle()` then jumps to the
matching original so the loop never runs out of cards.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

CLONE_COUNT = 3

CardRenderer = Callable[[T, int], str]

_ROOT_CLASS_RE = re.compile(r'^(\s*<[a-zA-Z][^>]*?\sclass=")([^"]*)(")')


class DataSource(Protocol[T_co]):
    def items(self) -> Sequence[T_co]: ...


def mark_clone(card_html: str) -> str:
    """Add `carousel-clone` to the card's root element (wrapping it when it has no class)."""
    m = _ROOT_CLASS_RE.match(card_html)
    if m:
        return f'{m.group(1)}{m.group(2)} carousel-clone" aria-hidden="true{m.group(3)}{card_html[m.end():]}'
    return f'<div class="carousel-clone" aria-hidden="true">{card_html}</div>'


class Carousel(Generic[T]):
    """Navigation state plus HTML rendering for one carousel instance."""

    def __init__(
        self,
        items: Sequence[T],
        render_card: CardRenderer[T],
        *,
        name: str = "carousel",
        label: str = "items",
        item_label: str = "item",
        clone_count: int = CLONE_COUNT,
    ) -> None:
        if not items:
            raise ValueError("carousel needs at least one item")
        self.items = list(items)
        self.render_card = render_card
        self.name = name
        self.label = label
        self.item_label = item_label
        self.clone_count = min(clone_count, len(self.items))
        self.current = self.clone_count

    # ---- navigation ----

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def track_length(self) -> int:
        return self.total + 2 * self.clone_count

    @property
    def original_index(self) -> int:
        return (self.current - self.clone_count) % self.total

    @property
    def on_clone(self) -> bool:
        return not (self.clone_count <= self.current < self.clone_count + self.total)

    def settle(self) -> int:
        """Jump from a clone position to the matching original; returns the current index."""
        if self.on_clone:
            self.current = self.clone_count + self.original_index
        return self.current

    def next(self) -> int:
        self.current += 1
        self.settle()
        return self.original_index

    def prev(self) -> int:
        self.current -= 1
        self.settle()
        return self.original_index

    def go_to(self, index: int) -> int:
        self.current = self.clone_count + index % self.total
        return self.original_index

    # ---- rendering ----

    def track_cards(self) -> list[str]:
        """Card HTML in track order: leading clones, originals, trailing clones."""
        originals = [self.render_card(item, i) for i, item in enumerate(self.items)]
        c = self.clone_count
        head = [mark_clone(card) for card in originals[-c:]] if c else []
        tail = [mark_clone(card) for card in originals[:c]] if c else []
        return head + originals + tail

    def render(self) -> str:
        cards = "\n".join(self.track_cards())
        parts = [
            f'<div class="{self.name}-carousel" tabindex="0" data-current="{self.current}">',
            f'  <div class="{self.name}-track">',
            cards,
            "  </div>",
            f'  <button class="carousel-btn carousel-btn-prev" aria-label="Previous {self.label}">'
            '<i class="fas fa-chevron-left"></i></button>',
            f'  <button class="carousel-btn carousel-btn-next" aria-label="Next {self.label}">'
            '<i class="fas fa-chevron-right"></i></button>',
        ]
        if self.total > 1:
            dots = "".join(
                f'<button class="carousel-dot{" active" if i == self.original_index else ""}"'
                f' aria-label="Go to {self.item_label} {i + 1}" data-index="{i}"></button>'
                for i in range(self.total)
            )
            parts.append(f'  <div class="carousel-dots">{dots}</div>')
        parts.append("</div>")
        return "\n".join(parts)


def load_carousel(
    source: DataSource[T],
    render_card: CardRenderer[T],
    *,
    name: str = "carousel",
    label: str = "items",
    item_label: str = "item",
    max_items: int = 0,
) -> str | None:
    """
    Carousel HTML for the items of `source`.

    None when the source fails or yields nothing; the page keeps its static
    fallback content in that case.
    """
    try:
        items = list(source.items())
    except (OSError, ValueError) as e:
        logger.warning("Could not load %s carousel items: %s", name, e)
        return None
    if max_items > 0:
        items = items[:max_items]
    if not items:
        logger.debug("No items for %s carousel; keeping fallback content", name)
        return None
    return Carousel(items, render_card, name=name, label=label, item_label=item_label).render()


__all__ = ["CLONE_COUNT", "Carousel", "CardRenderer", "DataSource", "mark_clone", "load_carousel"]
