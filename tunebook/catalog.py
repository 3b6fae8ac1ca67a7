"""
Image catalog: turns a folder of trimmed score exports into ScoreImage records.

Titles come from the file name with the extension and the instrument suffix
removed, e.g. "Andro-Flute-1.png" -> "Andro".
"""
import glob
import json
import logging
import os
import re
from dataclasses import dataclass, replace
from typing import Optional

from PIL import Image as PILImage, UnidentifiedImageError

from .errors import ConfigurationError, UnreadableImageError

logger = logging.getLogger(__name__)

IMAGE_EXTENSION_RE = re.compile(r'\.(png|jpe?g|gif|bmp|tiff?)$', re.IGNORECASE)


@dataclass(frozen=True)
class ScoreImage:
    identifier: str
    width: int
    height: int
    title: str
    external_link: Optional[str] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image '{self.identifier}' has non-positive size {self.width}x{self.height}"
            )

    @property
    def filename(self):
        return os.path.basename(self.identifier)


def derive_title(identifier, title_suffix=""):
    """Strip the directory, the image extension and the instrument suffix from a file name."""
    name = IMAGE_EXTENSION_RE.sub("", os.path.basename(identifier))
    if title_suffix:
        name = re.sub(title_suffix, "", name, flags=re.IGNORECASE)
    return name.strip() or os.path.basename(identifier)


def image_dimensions(path):
    """Return (width, height) in pixels, reading only the image header."""
    try:
        with PILImage.open(path) as img:
            width, height = img.size
    except FileNotFoundError as e:
        raise UnreadableImageError(path, "file not found") from e
    except (UnidentifiedImageError, OSError) as e:
        raise UnreadableImageError(path, str(e)) from e
    if width <= 0 or height <= 0:
        raise UnreadableImageError(path, f"invalid size {width}x{height}")
    return width, height


def find_images(images_dir, pattern="*.png"):
    """List image files in `images_dir` matching a glob pattern, sorted by name."""
    if not os.path.isdir(images_dir):
        logger.warning("Images folder %s does not exist", images_dir)
        return []
    matches = glob.glob(os.path.join(images_dir, pattern))
    return sorted(os.path.normpath(p) for p in matches if os.path.isfile(p) and IMAGE_EXTENSION_RE.search(p))


def build_catalog(paths, title_suffix="", dimensions_of=image_dimensions, links=None):
    """
    Build ScoreImage records for `paths`.

    Unreadable images are logged and skipped so one bad export does not stop
    the whole booklet. `links` is an optional mapping resolved by attach_links.
    """
    images = []
    for path in paths:
        try:
            width, height = dimensions_of(path)
        except UnreadableImageError as e:
            logger.warning("Skipping %s", e)
            continue
        images.append(ScoreImage(
            identifier=path,
            width=int(width),
            height=int(height),
            title=derive_title(path, title_suffix),
        ))

    if links:
        images = attach_links(images, links)
    return images


# --- External links side channel ---

def load_links(path):
    """Read a JSON object mapping image identifier, file name or title to a URL."""
    if not path:
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Links file '{path}' not found") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Links file '{path}' is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Links file '{path}' must contain a JSON object")
    return {str(k): str(v) for k, v in data.items() if v}


def resolve_link(image, links):
    """Identifier first, then file name, then derived title."""
    for key in (image.identifier, image.filename, image.title):
        if key in links:
            return links[key]
    return None


def attach_links(images, links):
    resolved = []
    for image in images:
        url = resolve_link(image, links)
        resolved.append(replace(image, external_link=url) if url else image)
    return resolved
