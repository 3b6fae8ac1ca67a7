"""
Alphabetical index: entries, natural ordering, pagination and line formatting.

Index order is independent of page order: tunes are packed by height but
listed by title, so every entry carries the page it points at.
"""
import logging
import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ELLIPSIS = "…"
LEADER_CHAR = "."
APPROX_LEADER_WIDTH = 3         # Used when the leader glyph measures as zero width
LEADER_SAFETY_PAD = 2           # Keeps the last dot clear of the page number

_DIGITS_RE = re.compile(r'([0-9]+)')


@dataclass(frozen=True)
class IndexEntry:
    title: str
    target_page_number: int     # Printed number, image pages only, 1-based
    target_page_index: int      # 0-based page the entry links to


def build_index(page_set, section_offset=0):
    """
    One entry per image in `page_set`, numbered from `section_offset + 1`.

    `target_page_index` is relative to the first image page; the assembler
    moves it past the index pages once their count is known.
    """
    entries = []
    for page_index, page in enumerate(page_set):
        for item in page.items:
            entries.append(IndexEntry(
                title=item.title,
                target_page_number=section_offset + page_index + 1,
                target_page_index=section_offset + page_index,
            ))
    return entries


def natural_key(text):
    """Sort key that ignores case and accents and compares digit runs as numbers."""
    decomposed = unicodedata.normalize('NFKD', text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()

    key = []
    for i, part in enumerate(_DIGITS_RE.split(folded)):
        if i % 2:
            key.append((0, int(part), part))
        elif part:
            key.append((1, 0, part))
    return tuple(key)


def sort_entries(entries):
    return sorted(entries, key=lambda e: (natural_key(e.title), e.title, e.target_page_number))


def paginate(entries, lines_per_page, first_page_lines=None):
    """Split entries into index pages; the first page may hold fewer lines than the rest."""
    if lines_per_page < 1:
        raise ConfigurationError(f"An index page must hold at least one line, got {lines_per_page}")
    first = lines_per_page if first_page_lines is None else max(1, first_page_lines)

    pages = []
    remaining = list(entries)
    capacity = first
    while remaining:
        pages.append(remaining[:capacity])
        remaining = remaining[capacity:]
        capacity = lines_per_page
    return pages


@dataclass(frozen=True)
class IndexLayout:
    first_page_lines: int
    lines_per_page: int

    @classmethod
    def from_settings(cls, settings):
        """Fill each page until another line would not fit; the first page also holds the banner."""
        line_height = settings.index_line_height
        content_height = settings.content_height
        return cls(
            first_page_lines=max(1, math.floor((content_height - settings.index_title_gap) / line_height)),
            lines_per_page=max(1, math.floor(content_height / line_height)),
        )

    def paginate(self, entries):
        return paginate(entries, self.lines_per_page, self.first_page_lines)

    def page_count(self, entry_count):
        if entry_count <= 0:
            return 0
        if entry_count <= self.first_page_lines:
            return 1
        return 1 + math.ceil((entry_count - self.first_page_lines) / self.lines_per_page)


@dataclass(frozen=True)
class IndexLine:
    entry: IndexEntry
    text: str                       # Title, truncated with an ellipsis when too long
    dots: str = ""
    dots_x: Optional[float] = None  # Where the dot leader starts, None without metrics

    @property
    def number_text(self):
        return str(self.entry.target_page_number)


class IndexFormatter:
    """
    Lays out one index line: title on the left, page number right-aligned at
    `column_right`, dot leader in between.

    `measure(text, font_size) -> width` is optional. Without it, or if it
    fails, lines keep their full title and get no leader.
    """

    def __init__(self, measure, font_size, left, column_right, gap=6):
        self.measure = measure
        self.font_size = font_size
        self.left = left
        self.column_right = column_right
        self.gap = gap

    def _width(self, text):
        return self.measure(text, self.font_size) or 0

    def fit_title(self, title, max_width):
        """Longest prefix of `title` that, with an ellipsis, fits in `max_width`."""
        if self._width(title) <= max_width:
            return title
        low, high = 0, len(title)
        while low < high:
            mid = (low + high + 1) // 2
            if self._width(title[:mid] + ELLIPSIS) <= max_width:
                low = mid
            else:
                high = mid - 1
        return title[:low].rstrip() + ELLIPSIS

    def dot_leader(self, max_width):
        if max_width <= 0:
            return ""
        dot_width = self._width(LEADER_CHAR)
        count = math.floor(max_width / (dot_width or APPROX_LEADER_WIDTH))
        dots = LEADER_CHAR * count
        # Kerning and rounding can make a run wider than count * dot_width
        while dots and self._width(dots) > max_width:
            dots = dots[:-1]
        return dots

    def format(self, entry):
        if self.measure is None:
            return IndexLine(entry, entry.title)
        try:
            number_x = self.column_right - self._width(str(entry.target_page_number))
            dot_width = self._width(LEADER_CHAR) or APPROX_LEADER_WIDTH
            text = self.fit_title(entry.title, number_x - self.left - self.gap - dot_width)

            dots_x = self.left + self._width(text) + self.gap
            dots = self.dot_leader(max(0, number_x - self.gap - dots_x - LEADER_SAFETY_PAD))
        except Exception as e:
            logger.debug("Text measurement failed for '%s', using plain title: %s", entry.title, e)
            return IndexLine(entry, entry.title)
        return IndexLine(entry, text, dots, dots_x if dots else None)
