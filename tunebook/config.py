"""
Layout settings and instrument definitions.

Everything here has a sensible default so a plain `tunebook build` works on a
folder of trimmed PNG exports. A JSON file can override any of it:

    {
        "layout": {"image_gap": 30, "allow_upscale": false},
        "instruments": [
            {"key": "flute", "name": "Flute", "pattern": "*Flute*.png",
             "title_suffix": "-Flute-\\\\d+"}
        ]
    }
"""
import json
import os
import re
from dataclasses import dataclass, field, fields, replace

from reportlab.lib.pagesizes import A4

from .errors import ConfigurationError

# --- Page geometry (points, 72 points = 1 inch) ---
PAGE_SIZE = A4
MARGIN_TOP = 36
MARGIN_BOTTOM = 36
MARGIN_LEFT = 36
MARGIN_RIGHT = 36
IMAGE_GAP = 40                  # Vertical space between two images on the same page

# --- Index layout ---
INDEX_LINE_HEIGHT = 14
INDEX_TITLE_GAP = 24            # Extra space reserved under the banner on the first index page
INDEX_FONT_SIZE = 12
INDEX_TITLE_FONT_SIZE = 20
INDEX_NUMBER_GAP = 6            # Space between title, dot leader and page number
INDEX_COLUMN_RATIO = 0.5        # Page numbers are right-aligned at this fraction of the content width
PAGE_NUMBER_FONT_SIZE = 10
SECTION_HEADER_FONT_SIZE = 16
APPENDIX_HEADER = "New Tunes"

DEFAULT_BOOKLET_TITLE = "Frome Balfolk Tunes"


@dataclass(frozen=True)
class LayoutSettings:
    """Page geometry and typography shared by every booklet in a run."""

    page_width: float = PAGE_SIZE[0]
    page_height: float = PAGE_SIZE[1]
    margin_top: float = MARGIN_TOP
    margin_bottom: float = MARGIN_BOTTOM
    margin_left: float = MARGIN_LEFT
    margin_right: float = MARGIN_RIGHT
    image_gap: float = IMAGE_GAP
    index_line_height: float = INDEX_LINE_HEIGHT
    index_title_gap: float = INDEX_TITLE_GAP
    index_font_size: float = INDEX_FONT_SIZE
    index_title_font_size: float = INDEX_TITLE_FONT_SIZE
    index_number_gap: float = INDEX_NUMBER_GAP
    index_column_ratio: float = INDEX_COLUMN_RATIO
    page_number_font_size: float = PAGE_NUMBER_FONT_SIZE
    section_header_font_size: float = SECTION_HEADER_FONT_SIZE
    appendix_header: str = APPENDIX_HEADER
    allow_upscale: bool = True  # When False, images are never drawn larger than their pixel size

    def __post_init__(self):
        if self.content_width <= 0 or self.content_height <= 0:
            raise ConfigurationError(
                f"Margins leave no content area on a {self.page_width}x{self.page_height} page"
            )
        if self.image_gap <= 0:
            raise ConfigurationError(f"image_gap must be positive, got {self.image_gap}")
        if self.index_line_height <= 0:
            raise ConfigurationError(f"index_line_height must be positive, got {self.index_line_height}")

    @property
    def content_width(self):
        return self.page_width - self.margin_left - self.margin_right

    @property
    def content_height(self):
        return self.page_height - self.margin_top - self.margin_bottom

    @property
    def content_top(self):
        """Y coordinate of the top edge of the content area (PDF origin is bottom-left)."""
        return self.page_height - self.margin_top

    @property
    def index_column_right(self):
        """X coordinate page numbers are right-aligned to in the index."""
        return self.margin_left + self.content_width * self.index_column_ratio


@dataclass(frozen=True)
class InstrumentConfig:
    """One booklet per instrument: which files belong to it and how to name it."""

    key: str
    name: str
    pattern: str
    title_suffix: str = ""
    booklet_title: str = DEFAULT_BOOKLET_TITLE
    output_name: str = ""

    def __post_init__(self):
        try:
            re.compile(self.title_suffix)
        except re.error as e:
            raise ConfigurationError(f"Invalid title_suffix for '{self.key}': {e}") from e

    @property
    def output_filename(self):
        return self.output_name or f"{self.name.replace(' ', '_')}.pdf"


DEFAULT_INSTRUMENTS = (
    InstrumentConfig(
        key="flute",
        name="Flute",
        pattern="*Flute*.png",
        title_suffix=r"-Flute-\d+$",
        output_name="Flute.pdf",
    ),
    InstrumentConfig(
        key="clarinet",
        name="Clarinet in Bb",
        pattern="*Clarinet_in_Bb*.png",
        title_suffix=r"-Clarinet_in_Bb-\d+$",
        output_name="Clarinet_in_Bb.pdf",
    ),
)


@dataclass(frozen=True)
class Config:
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    instruments: tuple = DEFAULT_INSTRUMENTS

    def select(self, keys):
        """Return the instruments whose key is in `keys` (all of them when empty)."""
        if not keys:
            return self.instruments
        known = {inst.key for inst in self.instruments}
        unknown = sorted(set(keys) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown instrument(s): {', '.join(unknown)} (known: {', '.join(sorted(known))})"
            )
        return tuple(inst for inst in self.instruments if inst.key in keys)


def _check_layout_value(name, expected, value):
    if expected is bool:
        valid = isinstance(value, bool)
    elif expected is str:
        valid = isinstance(value, str)
    else:
        # bool is an int subclass, but "image_gap": true is never meant as 1pt
        valid = isinstance(value, (int, float)) and not isinstance(value, bool)
    if not valid:
        raise ConfigurationError(
            f"Layout setting '{name}' must be {expected.__name__}, got {type(value).__name__} {value!r}"
        )


def _layout_from_dict(data):
    if not isinstance(data, dict):
        raise ConfigurationError("The 'layout' section must be a JSON object")
    types = {f.name: f.type for f in fields(LayoutSettings)}
    unknown = sorted(set(data) - set(types))
    if unknown:
        raise ConfigurationError(f"Unknown layout setting(s): {', '.join(unknown)}")
    for name, value in data.items():
        _check_layout_value(name, types[name], value)
    return replace(LayoutSettings(), **data)


def _instrument_from_dict(data):
    try:
        instrument = InstrumentConfig(**data)
    except TypeError as e:
        raise ConfigurationError(f"Invalid instrument definition {data!r}: {e}") from e
    for f in fields(InstrumentConfig):
        if not isinstance(getattr(instrument, f.name), str):
            raise ConfigurationError(f"Instrument setting '{f.name}' must be a string in {data!r}")
    return instrument


def load_config(path=None):
    """Load a JSON config file, falling back to defaults for anything it omits."""
    if path is None:
        return Config()
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file '{path}' not found")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file '{path}' is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file '{path}' must contain a JSON object")

    layout = _layout_from_dict(data.get("layout") or {})
    instruments = DEFAULT_INSTRUMENTS
    if "instruments" in data:
        if not isinstance(data["instruments"], list):
            raise ConfigurationError(f"'instruments' in '{path}' must be a JSON list")
        instruments = tuple(_instrument_from_dict(item) for item in data["instruments"])
        keys = [inst.key for inst in instruments]
        if len(keys) != len(set(keys)):
            raise ConfigurationError(f"Duplicate instrument keys in '{path}'")
    return Config(layout=layout, instruments=instruments)
