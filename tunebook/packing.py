"""
Page packing: group full-width images into as few fixed-height pages as possible.

Every image is drawn at the booklet's content width, so packing is one
dimensional: a page holds any set of images whose scaled heights, plus the gap
between consecutive images, add up to no more than the content height.

Two heuristics run on every call and the better result is kept:

* best_fit_decreasing - classic BFD, fast and usually good.
* knapsack_pages      - fills one page at a time with the subset of remaining
                        images that wastes the least space (0/1 knapsack).

Images taller than a page are placed alone and allowed to overflow.
"""
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from .catalog import ScoreImage
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaledItem:
    image: ScoreImage
    scale: float

    @property
    def scaled_width(self):
        return self.image.width * self.scale

    @property
    def scaled_height(self):
        return self.image.height * self.scale

    @property
    def identifier(self):
        return self.image.identifier

    @property
    def title(self):
        return self.image.title


def scale_items(images, scale):
    return [ScaledItem(image, scale) for image in images]


@dataclass(frozen=True)
class Page:
    items: Tuple[ScaledItem, ...]
    used_height: float

    @classmethod
    def from_items(cls, items, gap):
        items = tuple(items)
        used = sum(item.scaled_height for item in items) + gap * max(0, len(items) - 1)
        return cls(items, used)

    def slack(self, content_height):
        return max(0.0, content_height - self.used_height)

    def overflows(self, content_height):
        return self.used_height > content_height


@dataclass(frozen=True)
class PageSet:
    pages: Tuple[Page, ...] = ()

    def __len__(self):
        return len(self.pages)

    def __iter__(self):
        return iter(self.pages)

    def __getitem__(self, index):
        return self.pages[index]

    @property
    def page_count(self):
        return len(self.pages)

    def total_slack(self, content_height):
        return sum(page.slack(content_height) for page in self.pages)

    def items(self):
        return [item for page in self.pages for item in page.items]


def _validate(content_height, gap):
    if content_height <= 0:
        raise ConfigurationError(f"Content height must be positive, got {content_height}")
    if gap <= 0:
        raise ConfigurationError(f"Image gap must be positive, got {gap}")


def _tallest_first(items):
    # sorted() is stable, so equal heights keep catalog order
    return sorted(items, key=lambda item: -item.scaled_height)


class _OpenPage:
    __slots__ = ('items', 'used')

    def __init__(self, item):
        self.items = [item]
        self.used = item.scaled_height


def best_fit_decreasing(items, content_height, gap):
    """Place each image, tallest first, on the open page it fills most tightly."""
    _validate(content_height, gap)

    open_pages = []
    for item in _tallest_first(items):
        best_page = None
        best_residual = None
        for page in open_pages:
            # An open page always holds at least one image, so a gap is needed
            residual = content_height - (page.used + gap + item.scaled_height)
            if residual >= 0 and (best_residual is None or residual < best_residual):
                best_page, best_residual = page, residual

        if best_page is None:
            open_pages.append(_OpenPage(item))
        else:
            best_page.items.append(item)
            best_page.used += gap + item.scaled_height

    return PageSet(tuple(Page(tuple(p.items), p.used) for p in open_pages))


def _select_page_subset(items, content_height, gap):
    """
    Return the indices of the subset of `items` that best fills one page.

    A page of n images uses sum(h) + (n - 1) * gap. Adding one gap to both
    sides turns that into sum(h + gap) <= content_height + gap, so each image
    weighs h + gap and the capacity is content_height + gap. Weights are
    rounded up and the capacity down, which keeps every selection feasible
    for the real heights. Value is the image height, so the page with the
    least slack wins; among equal values, more images wins.
    """
    capacity = math.floor(content_height + gap)
    weights = [math.ceil(item.scaled_height + gap) for item in items]
    values = [math.floor(item.scaled_height) for item in items]

    # best[c] = (value, count) of the best subset of the items seen so far with weight <= c
    best = [(0, 0)] * (capacity + 1)
    taken = []
    for weight, value in zip(weights, values):
        row = bytearray(capacity + 1)
        for c in range(capacity, weight - 1, -1):
            prev_value, prev_count = best[c - weight]
            candidate = (prev_value + value, prev_count + 1)
            if candidate > best[c]:
                best[c] = candidate
                row[c] = 1
        taken.append(row)

    chosen = []
    c = capacity
    for k in range(len(items) - 1, -1, -1):
        if taken[k][c]:
            chosen.append(k)
            c -= weights[k]
    chosen.reverse()
    return chosen


def knapsack_pages(items, content_height, gap):
    """Fill pages one at a time with the subset of remaining images that wastes least space."""
    _validate(content_height, gap)

    remaining = _tallest_first(items)
    oversized = [item for item in remaining if item.scaled_height > content_height]
    remaining = [item for item in remaining if item.scaled_height <= content_height]

    pages = [Page.from_items([item], gap) for item in oversized]
    while remaining:
        chosen = _select_page_subset(remaining, content_height, gap)
        if not chosen:
            # Rounding pushed every weight past the capacity; the tallest still fits alone
            chosen = [0]
        pages.append(Page.from_items([remaining[k] for k in chosen], gap))
        chosen = set(chosen)
        remaining = [item for k, item in enumerate(remaining) if k not in chosen]

    return PageSet(tuple(pages))


def choose_packing(preferred, alternative, content_height):
    """
    Pick the better of two packings of the same items.

    Fewer pages wins; on equal page counts the one with less total slack wins,
    and `preferred` is kept when the slack is equal too.
    """
    if alternative.page_count != preferred.page_count:
        return alternative if alternative.page_count < preferred.page_count else preferred
    if alternative.total_slack(content_height) < preferred.total_slack(content_height):
        return alternative
    return preferred


def pack(items, content_height, gap):
    """Group scaled items into pages, using whichever heuristic needs fewer pages."""
    _validate(content_height, gap)
    if not items:
        return PageSet()

    bfd = best_fit_decreasing(items, content_height, gap)
    exact = knapsack_pages(items, content_height, gap)
    result = choose_packing(exact, bfd, content_height)

    logger.debug(
        "Packed %d images: best-fit %d pages (slack %.1f), knapsack %d pages (slack %.1f) -> %s",
        len(items),
        bfd.page_count, bfd.total_slack(content_height),
        exact.page_count, exact.total_slack(content_height),
        "knapsack" if result is exact else "best-fit",
    )
    return result
