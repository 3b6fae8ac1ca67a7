"""Pack sheet-music images into indexed, printable PDF booklets."""
from .assembler import Booklet, assemble
from .baseline import partition
from .catalog import ScoreImage, build_catalog
from .errors import ConfigurationError, EmptyCatalogError, TunebookError, UnreadableImageError
from .index import IndexEntry, build_index
from .packing import Page, PageSet, ScaledItem, pack
from .scale import resolve_scale

__version__ = "1.0.0"
