"""
PDF output for an assembled Booklet, drawn directly on a reportlab canvas.

Every page gets a named destination ("page-<n>") so index lines can link
forward to the image pages that follow them.
"""
import logging
import os

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from .assembler import ORIGINAL
from .errors import UnreadableImageError

logger = logging.getLogger(__name__)

BOOKLET_FONT = 'BookletSans'

# Tried in order; the first that exists is used for the index and page numbers
FONT_CANDIDATES = [
    os.path.join(os.getcwd(), 'fonts', 'Roboto-Regular.ttf'),
    '/Library/Fonts/Arial.ttf',                                 # macOS
    '/System/Library/Fonts/Supplemental/Arial.ttf',             # alt macOS
    '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',          # common Linux
    '/usr/share/fonts/truetype/msttcorefonts/Arial.ttf',
    r'C:\Windows\Fonts\arial.ttf',                              # Windows
]


def register_fonts(candidates=None):
    """
    Try to register a TrueType font for index text. Falls back to Helvetica if
    none is found, which still measures and renders Latin-1 titles fine.

    Returns (heading_font, body_font).
    """
    heading_font = 'Helvetica-Bold'
    body_font = 'Helvetica'

    if BOOKLET_FONT in pdfmetrics.getRegisteredFontNames():
        return BOOKLET_FONT, BOOKLET_FONT

    for path in FONT_CANDIDATES if candidates is None else candidates:
        try:
            if os.path.exists(path):
                pdfmetrics.registerFont(TTFont(BOOKLET_FONT, path))
                logger.debug("Registered index font %s", path)
                return BOOKLET_FONT, BOOKLET_FONT
        except Exception as e:
            logger.debug("Could not register font %s: %s", path, e)
            continue

    logger.info("No TrueType font found, using %s", body_font)
    return heading_font, body_font


def reportlab_measure(font_name):
    """Text metrics provider for the index: measure(text, size) -> width in points."""
    def measure(text, size):
        return pdfmetrics.stringWidth(text, font_name, size)
    return measure


def page_destination(page_index):
    return f"page-{page_index}"


def _draw_links(c, links):
    for link in links:
        if link.is_internal:
            c.linkRect("", page_destination(link.target_page_index), link.rect, relative=0, thickness=0)
        else:
            c.linkURL(link.url, link.rect, relative=0, thickness=0)


def _draw_index_page(c, page, booklet, settings, heading_font, body_font):
    if page.show_banner:
        c.setFont(heading_font, settings.index_title_font_size)
        c.drawString(settings.margin_left, settings.content_top, booklet.title)

    c.setFont(body_font, settings.index_font_size)
    for row in page.rows:
        line = row.line
        c.drawString(settings.margin_left, row.y, line.text)
        if line.dots:
            c.drawString(line.dots_x, row.y, line.dots)
        c.drawRightString(settings.index_column_right, row.y, line.number_text)

    _draw_links(c, page.links)


def _draw_image_page(c, page, settings, heading_font, body_font):
    if page.section_header:
        # Centred in the top margin so it takes no space from the packed content
        c.setFont(heading_font, settings.section_header_font_size)
        y = settings.content_top + (settings.margin_top - settings.section_header_font_size) / 2
        c.drawCentredString(settings.page_width / 2, y, page.section_header)

    for placed in page.placements:
        try:
            c.drawImage(placed.identifier, placed.x, placed.y,
                        width=placed.width, height=placed.height, mask='auto')
        except OSError as e:
            raise UnreadableImageError(placed.identifier, str(e)) from e

    c.setFont(body_font, settings.page_number_font_size)
    c.drawRightString(
        settings.page_width - settings.margin_right,
        max(12, settings.margin_bottom / 2),
        str(page.page_number),
    )

    _draw_links(c, page.links)


def write_booklet(booklet, output_path, settings, fonts=None):
    """Render `booklet` to `output_path` and return the path."""
    heading_font, body_font = fonts or register_fonts()

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    c = canvas.Canvas(output_path, pagesize=(settings.page_width, settings.page_height), pageCompression=1)
    c.setTitle(f"{booklet.title} - {booklet.instrument_name}")
    c.setAuthor(booklet.title)

    for page in booklet.index_pages:
        dest = page_destination(page.page_index)
        c.bookmarkPage(dest)
        if page.show_banner:
            c.addOutlineEntry("Index", dest, level=0)
        _draw_index_page(c, page, booklet, settings, heading_font, body_font)
        c.showPage()

    for page in booklet.image_pages:
        dest = page_destination(page.page_index)
        c.bookmarkPage(dest)
        if page.page_number == 1 and page.section == ORIGINAL:
            c.addOutlineEntry("Tunes", dest, level=0)
        if page.section_header:
            c.addOutlineEntry(page.section_header, dest, level=0)
        _draw_image_page(c, page, settings, heading_font, body_font)
        c.showPage()

    c.save()
    return output_path
