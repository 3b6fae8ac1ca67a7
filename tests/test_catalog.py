import json
import os

import pytest
from PIL import Image

from tunebook.catalog import (
    ScoreImage,
    attach_links,
    build_catalog,
    derive_title,
    find_images,
    image_dimensions,
    load_links,
)
from tunebook.errors import ConfigurationError, UnreadableImageError


def write_png(path, size=(400, 120)):
    Image.new("RGB", size, "white").save(path)
    return str(path)


@pytest.mark.parametrize("identifier, suffix, expected", [
    ("trimmed/Andro-Flute-1.png", r"-Flute-\d+$", "Andro"),
    ("trimmed/Cochinchine-Clarinet_in_Bb-12.PNG", r"-Clarinet_in_Bb-\d+$", "Cochinchine"),
    ("Polka Piquee.png", r"-Flute-\d+$", "Polka Piquee"),
    ("Scottish-Flute-2.png", "", "Scottish-Flute-2"),
])
def test_derive_title(identifier, suffix, expected) -> None:
    assert derive_title(identifier, suffix) == expected


def test_image_dimensions_reads_pixel_size(tmp_path) -> None:
    path = write_png(tmp_path / "tune.png", size=(640, 180))

    assert image_dimensions(path) == (640, 180)


def test_corrupt_and_missing_images_are_unreadable(tmp_path) -> None:
    corrupt = tmp_path / "corrupt.png"
    corrupt.write_bytes(b"not a png at all")

    with pytest.raises(UnreadableImageError):
        image_dimensions(str(corrupt))
    with pytest.raises(UnreadableImageError):
        image_dimensions(str(tmp_path / "missing.png"))


def test_build_catalog_skips_unreadable_images() -> None:
    sizes = {"a-Flute-1.png": (800, 200), "c-Flute-1.png": (700, 150)}

    def dimensions_of(path):
        if path not in sizes:
            raise UnreadableImageError(path, "corrupt")
        return sizes[path]

    catalog = build_catalog(
        ["a-Flute-1.png", "b-Flute-1.png", "c-Flute-1.png"], r"-Flute-\d+$", dimensions_of,
    )

    assert [(img.identifier, img.width, img.height, img.title) for img in catalog] == [
        ("a-Flute-1.png", 800, 200, "a"),
        ("c-Flute-1.png", 700, 150, "c"),
    ]


def test_find_images_filters_by_instrument_pattern(tmp_path) -> None:
    for name in ["b-Flute-1.png", "a-Flute-1.png", "a-Clarinet_in_Bb-1.png"]:
        write_png(tmp_path / name)
    (tmp_path / "notes-Flute.txt").write_text("not an image")

    found = find_images(str(tmp_path), "*Flute*")

    assert [os.path.basename(p) for p in found] == ["a-Flute-1.png", "b-Flute-1.png"]


def test_find_images_in_missing_folder_is_empty(tmp_path) -> None:
    assert find_images(str(tmp_path / "nowhere")) == []


def test_scoreimage_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        ScoreImage("bad.png", 0, 100, "bad")


def test_links_match_identifier_before_title() -> None:
    images = [
        ScoreImage("trimmed/Andro-Flute-1.png", 100, 50, "Andro"),
        ScoreImage("trimmed/Bourree-Flute-1.png", 100, 50, "Bourree"),
        ScoreImage("trimmed/Polka-Flute-1.png", 100, 50, "Polka"),
    ]
    links = {
        "Andro": "https://example.org/by-title",
        "trimmed/Andro-Flute-1.png": "https://example.org/by-id",
        "Bourree-Flute-1.png": "https://example.org/by-filename",
    }

    linked = attach_links(images, links)

    assert [img.external_link for img in linked] == [
        "https://example.org/by-id",
        "https://example.org/by-filename",
        None,
    ]


def test_load_links(tmp_path) -> None:
    path = tmp_path / "links.json"
    path.write_text(json.dumps({"Andro": "https://example.org/andro", "Empty": ""}))

    assert load_links(str(path)) == {"Andro": "https://example.org/andro"}
    assert load_links(None) == {}


def test_load_links_rejects_bad_files(tmp_path) -> None:
    not_object = tmp_path / "list.json"
    not_object.write_text("[1, 2]")

    with pytest.raises(ConfigurationError):
        load_links(str(not_object))
    with pytest.raises(ConfigurationError):
        load_links(str(tmp_path / "missing.json"))
