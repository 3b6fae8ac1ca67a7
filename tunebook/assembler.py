"""
Booklet assembly: catalog in, fully positioned page list out.

The result is plain data (positions in PDF points, origin bottom-left) that
the renderer draws without making any layout decisions of its own:

    index pages  ->  original image pages  ->  appendix image pages
"""
import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .baseline import partition
from .errors import EmptyCatalogError
from .index import IndexFormatter, IndexLayout, IndexLine, build_index, sort_entries
from .packing import pack, scale_items
from .scale import resolve_scale

logger = logging.getLogger(__name__)

ORIGINAL = "original"
APPENDIX = "appendix"


@dataclass(frozen=True)
class PlacedImage:
    identifier: str
    title: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class LinkAnnotation:
    rect: Tuple[float, float, float, float]     # x1, y1, x2, y2
    target_page_index: Optional[int] = None
    url: Optional[str] = None

    @property
    def is_internal(self):
        return self.target_page_index is not None


@dataclass(frozen=True)
class IndexRow:
    line: IndexLine
    y: float                    # Text baseline


@dataclass(frozen=True)
class IndexPage:
    page_index: int
    show_banner: bool
    rows: Tuple[IndexRow, ...]
    links: Tuple[LinkAnnotation, ...]


@dataclass(frozen=True)
class ImagePage:
    page_index: int
    page_number: int
    section: str
    placements: Tuple[PlacedImage, ...]
    links: Tuple[LinkAnnotation, ...]
    used_height: float
    section_header: Optional[str] = None


@dataclass(frozen=True)
class Booklet:
    instrument_key: str
    instrument_name: str
    title: str
    scale: float
    index_pages: Tuple[IndexPage, ...]
    image_pages: Tuple[ImagePage, ...]
    appendix_start: Optional[int] = None    # page_index of the first appendix page

    @property
    def pages(self):
        return self.index_pages + self.image_pages

    @property
    def page_count(self):
        return len(self.index_pages) + len(self.image_pages)

    @property
    def has_appendix(self):
        return self.appendix_start is not None

    def section_pages(self, section):
        return [page for page in self.image_pages if page.section == section]

    @property
    def entries(self):
        return [row.line.entry for page in self.index_pages for row in page.rows]


@dataclass(frozen=True)
class LayoutCursor:
    """Running position in the booklet, passed from one section to the next."""

    page_index: int = 0         # Rendered pages so far, index pages included
    page_number: int = 0        # Printed numbers used so far, image pages only

    def advance(self, pages, numbered=True):
        return LayoutCursor(
            page_index=self.page_index + pages,
            page_number=self.page_number + (pages if numbered else 0),
        )


def _index_link_rect(settings, column_right, y):
    descent = settings.index_line_height - settings.index_font_size
    return (settings.margin_left, y - descent, column_right, y + settings.index_font_size)


def _layout_index(chunks, settings, formatter, cursor):
    pages = []
    for i, chunk in enumerate(chunks):
        y = settings.content_top
        if i == 0:
            y -= settings.index_title_gap

        rows, links = [], []
        for entry in chunk:
            rows.append(IndexRow(formatter.format(entry), y))
            links.append(LinkAnnotation(
                _index_link_rect(settings, formatter.column_right, y),
                target_page_index=entry.target_page_index,
            ))
            y -= settings.index_line_height

        pages.append(IndexPage(cursor.page_index, i == 0, tuple(rows), tuple(links)))
        cursor = cursor.advance(1, numbered=False)
    return pages, cursor


def _place_images(page, settings):
    placements, links = [], []
    top = settings.content_top
    for item in page.items:
        width, height = item.scaled_width, item.scaled_height
        x = settings.margin_left + (settings.content_width - width) / 2
        y = top - height
        placements.append(PlacedImage(item.identifier, item.title, x, y, width, height))
        if item.image.external_link:
            links.append(LinkAnnotation((x, y, x + width, y + height), url=item.image.external_link))
        top -= height + settings.image_gap
    return tuple(placements), tuple(links)


def _layout_section(page_set, section, settings, cursor):
    pages = []
    for i, page in enumerate(page_set):
        placements, links = _place_images(page, settings)
        header = settings.appendix_header if section == APPENDIX and i == 0 else None
        pages.append(ImagePage(
            page_index=cursor.page_index,
            page_number=cursor.page_number + 1,
            section=section,
            placements=placements,
            links=links,
            used_height=page.used_height,
            section_header=header,
        ))
        cursor = cursor.advance(1)
    return pages, cursor


def assemble(catalog, baseline, instrument, settings, measure=None):
    """
    Lay out one instrument's booklet.

    `baseline` is a set of identifiers or None. Images outside it are packed
    separately into an appendix after the original pages, but both sections
    share one scale and one alphabetical index. `measure(text, size)` enables
    title truncation and dot leaders in the index.
    """
    if not catalog:
        raise EmptyCatalogError(f"No readable images for {instrument.name}")

    original, appendix = partition(catalog, baseline)
    scale = resolve_scale(catalog, settings.content_width, settings.allow_upscale)

    sections = [(ORIGINAL, pack(scale_items(original, scale), settings.content_height, settings.image_gap))]
    if appendix:
        sections.append((APPENDIX, pack(scale_items(appendix, scale), settings.content_height, settings.image_gap)))

    entries = []
    offset = 0
    for _, page_set in sections:
        entries.extend(build_index(page_set, offset))
        offset += page_set.page_count

    # Image pages come after the index, so links need the index page count first
    layout = IndexLayout.from_settings(settings)
    index_page_count = layout.page_count(len(entries))
    entries = [replace(e, target_page_index=e.target_page_index + index_page_count) for e in entries]

    formatter = IndexFormatter(
        measure, settings.index_font_size, settings.margin_left,
        settings.index_column_right, settings.index_number_gap,
    )

    cursor = LayoutCursor()
    index_pages, cursor = _layout_index(layout.paginate(sort_entries(entries)), settings, formatter, cursor)

    image_pages = []
    appendix_start = None
    for section, page_set in sections:
        if section == APPENDIX and page_set.page_count:
            appendix_start = cursor.page_index
        pages, cursor = _layout_section(page_set, section, settings, cursor)
        image_pages.extend(pages)

    booklet = Booklet(
        instrument_key=instrument.key,
        instrument_name=instrument.name,
        title=instrument.booklet_title,
        scale=scale,
        index_pages=tuple(index_pages),
        image_pages=tuple(image_pages),
        appendix_start=appendix_start,
    )
    logger.info(
        "%s: %d images (%d new) on %d image pages, %d index pages, scale %.3f",
        instrument.name, len(catalog), len(appendix),
        len(image_pages), len(index_pages), scale,
    )
    return booklet
