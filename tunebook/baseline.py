"""
Baseline snapshots and appendix mode.

A baseline is a plain text file listing the images that made up a published
booklet, one path per line relative to the images folder. When one exists,
images already in it keep their layout and anything new goes into a separate
"New Tunes" appendix, so printed copies of the original pages stay valid.
"""
import logging
import os

logger = logging.getLogger(__name__)

BASELINE_TEMPLATE = "baseline_{key}.txt"


def partition(catalog, baseline):
    """
    Split `catalog` into (original, appendix) by identifier membership in `baseline`.

    Catalog order is kept in both halves. An absent or empty baseline puts
    everything in `original`.
    """
    if not baseline:
        return list(catalog), []
    original = [image for image in catalog if image.identifier in baseline]
    appendix = [image for image in catalog if image.identifier not in baseline]
    return original, appendix


def baseline_path(directory, key):
    return os.path.join(directory, BASELINE_TEMPLATE.format(key=key))


def load_baseline(path):
    """Return the identifiers recorded in `path`, or None when there is no baseline."""
    if not os.path.exists(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        identifiers = frozenset(os.path.normpath(line.strip()) for line in f if line.strip())
    logger.debug("Loaded %d baseline identifiers from %s", len(identifiers), path)
    return identifiers


def save_baseline(path, identifiers):
    """Write a sorted snapshot of `identifiers`. Returns how many were written."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    lines = sorted(set(identifiers))
    with open(path, 'w', encoding='utf-8') as f:
        for identifier in lines:
            f.write(identifier + "\n")
    return len(lines)


def relative_identifiers(paths, images_dir):
    """Express image paths relative to `images_dir`, the form baseline files store."""
    return [os.path.relpath(path, images_dir) for path in paths]


def resolve_baseline(entries, images_dir):
    """
    Turn stored baseline entries back into catalog identifiers for `images_dir`.

    Entries are relative to the images folder, so a baseline written with
    `trimmed` still matches a build run with `/abs/path/trimmed`.
    """
    if entries is None:
        return None
    return frozenset(os.path.normpath(os.path.join(images_dir, entry)) for entry in entries)


def reset_baselines(directory, keys):
    """Delete the baseline files for `keys`, returning the paths that were removed."""
    removed = []
    for key in keys:
        path = baseline_path(directory, key)
        if os.path.exists(path):
            os.remove(path)
            removed.append(path)
    return removed
