import os

from tunebook.baseline import (
    baseline_path,
    load_baseline,
    partition,
    relative_identifiers,
    reset_baselines,
    resolve_baseline,
    save_baseline,
)
from tunebook.catalog import ScoreImage


def catalog_of(*names):
    return [ScoreImage(name, 100, 50, name[:-4]) for name in names]


def ids(images):
    return [img.identifier for img in images]


def test_new_images_go_to_appendix() -> None:
    catalog = catalog_of("a.png", "b.png", "c.png")

    original, appendix = partition(catalog, frozenset({"a.png", "b.png"}))

    assert ids(original) == ["a.png", "b.png"]
    assert ids(appendix) == ["c.png"]


def test_missing_or_empty_baseline_means_full_generation() -> None:
    catalog = catalog_of("a.png", "b.png")

    assert partition(catalog, None) == (catalog, [])
    assert partition(catalog, frozenset()) == (catalog, [])


def test_partition_is_a_bipartition_in_catalog_order() -> None:
    catalog = catalog_of("d.png", "a.png", "c.png", "b.png", "e.png")
    baseline = frozenset({"b.png", "d.png", "gone.png"})

    original, appendix = partition(catalog, baseline)

    assert set(ids(original)) | set(ids(appendix)) == set(ids(catalog))
    assert not set(ids(original)) & set(ids(appendix))
    assert ids(original) == ["d.png", "b.png"]
    assert ids(appendix) == ["a.png", "c.png", "e.png"]


def test_saved_baseline_loads_back_as_a_set(tmp_path) -> None:
    path = baseline_path(str(tmp_path), "flute")
    identifiers = [os.path.join("trimmed", "b.png"), os.path.join("trimmed", "a.png")]

    assert save_baseline(path, identifiers) == 2
    assert os.path.basename(path) == "baseline_flute.txt"
    with open(path, encoding="utf-8") as f:
        assert f.read().splitlines() == sorted(identifiers)
    assert load_baseline(path) == frozenset(identifiers)


def test_absent_baseline_loads_as_none(tmp_path) -> None:
    assert load_baseline(str(tmp_path / "baseline_flute.txt")) is None


def test_reset_removes_only_existing_baselines(tmp_path) -> None:
    save_baseline(baseline_path(str(tmp_path), "flute"), ["a.png"])

    removed = reset_baselines(str(tmp_path), ["flute", "clarinet"])

    assert removed == [baseline_path(str(tmp_path), "flute")]
    assert load_baseline(baseline_path(str(tmp_path), "flute")) is None


def test_baseline_entries_do_not_depend_on_folder_spelling(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    relative = [os.path.join("trimmed", "a.png"), os.path.join("trimmed", "b.png")]
    absolute = [os.path.normpath(os.path.join(str(tmp_path), p)) for p in relative]

    entries = relative_identifiers(relative, "trimmed")
    assert entries == ["a.png", "b.png"]
    assert relative_identifiers(absolute, str(tmp_path / "trimmed")) == entries

    catalog = catalog_of(*absolute)
    original, appendix = partition(catalog, resolve_baseline(frozenset(entries), str(tmp_path / "trimmed")))
    assert ids(original) == absolute
    assert appendix == []


def test_resolve_keeps_absent_and_empty_baselines_apart() -> None:
    assert resolve_baseline(None, "trimmed") is None
    assert resolve_baseline(frozenset(), "trimmed") == frozenset()
    assert resolve_baseline(frozenset({"a.png"}), "./trimmed") == frozenset({os.path.join("trimmed", "a.png")})
