import random

import pytest

from tunebook.catalog import ScoreImage
from tunebook.errors import ConfigurationError
from tunebook.packing import (
    PageSet,
    best_fit_decreasing,
    choose_packing,
    knapsack_pages,
    pack,
    scale_items,
)


def make_items(heights, scale=1.0):
    images = [ScoreImage(f"tune{i}.png", 500, h, f"Tune {i}") for i, h in enumerate(heights)]
    return scale_items(images, scale)


def heights_of(page_set):
    return [sorted((item.scaled_height for item in page.items), reverse=True) for page in page_set]


def random_heights(seed, count):
    rng = random.Random(seed)
    return [rng.randint(60, 520) for _ in range(count)]


def test_four_equal_items_pack_two_per_page() -> None:
    result = pack(make_items([300, 300, 300, 300]), content_height=700, gap=40)

    assert result.page_count == 2
    assert heights_of(result) == [[300, 300], [300, 300]]
    assert all(page.used_height == 640 for page in result)


def test_empty_input_gives_empty_page_set() -> None:
    result = pack([], content_height=700, gap=40)

    assert result == PageSet()
    assert result.page_count == 0


def test_oversized_item_gets_its_own_page() -> None:
    result = pack(make_items([900, 100, 100]), content_height=700, gap=40)

    oversized = [page for page in result if page.overflows(700)]
    assert len(oversized) == 1
    assert len(oversized[0].items) == 1
    assert oversized[0].used_height == 900
    assert result.page_count == 2


@pytest.mark.parametrize("packer", [best_fit_decreasing, knapsack_pages, pack])
@pytest.mark.parametrize("seed", range(8))
def test_pages_never_exceed_content_height(packer, seed) -> None:
    heights = random_heights(seed, 25) + [800]
    result = packer(make_items(heights), 700, 40)

    for page in result:
        if page.overflows(700):
            assert len(page.items) == 1
        else:
            assert page.used_height <= 700
    assert sorted(item.identifier for item in result.items()) == sorted(
        item.identifier for item in make_items(heights)
    )


@pytest.mark.parametrize("seed", range(8))
def test_never_worse_than_best_fit_or_one_per_page(seed) -> None:
    items = make_items(random_heights(seed, 30))
    result = pack(items, content_height=700, gap=40)

    assert result.page_count <= len(items)
    assert result.page_count <= best_fit_decreasing(items, 700, 40).page_count


def test_pack_is_deterministic() -> None:
    items = make_items(random_heights(42, 20))

    first = pack(items, content_height=700, gap=40)
    second = pack(items, content_height=700, gap=40)

    assert first == second


def test_knapsack_finds_packing_best_fit_misses() -> None:
    # With gap 1 each item weighs h + 1 against a capacity of 10:
    # BFD ends with 3 pages, but {4, 2, 1} and {3, 3, 1} fill two pages exactly.
    items = make_items([4, 3, 3, 2, 1, 1])

    assert best_fit_decreasing(items, 9, 1).page_count == 3
    assert knapsack_pages(items, 9, 1).page_count == 2

    result = pack(items, content_height=9, gap=1)
    assert result.page_count == 2
    assert all(page.used_height <= 9 for page in result)


def test_best_fit_prefers_tightest_page() -> None:
    # 30 fits on both pages; first fit would take the 500 page, best fit
    # takes the 450 + 200 page it fills exactly.
    items = make_items([500, 450, 200, 30])
    result = best_fit_decreasing(items, 700, 10)

    assert heights_of(result) == [[500], [450, 200, 30]]
    assert result[1].used_height == 700


def test_rounding_never_strands_an_item_that_fits() -> None:
    # 7003 * 0.1 weighs ceil(740.3) = 741 against floor(740.5) = 740
    items = make_items([7003, 7003], scale=0.1)
    result = knapsack_pages(items, 700.5, 40)

    assert result.page_count == 2
    assert all(len(page.items) == 1 for page in result)


def test_choose_packing_keeps_preferred_on_exact_tie() -> None:
    items = make_items([300, 300])
    preferred = knapsack_pages(items, 700, 40)
    alternative = best_fit_decreasing(items, 700, 40)

    assert choose_packing(preferred, alternative, 700) is preferred


def test_choose_packing_prefers_fewer_pages() -> None:
    items = make_items([4, 3, 3, 2, 1, 1])
    worse = best_fit_decreasing(items, 9, 1)
    better = knapsack_pages(items, 9, 1)

    assert choose_packing(worse, better, 9) is better
    assert choose_packing(better, worse, 9) is better


@pytest.mark.parametrize("content_height, gap", [(0, 40), (-10, 40), (700, 0), (700, -5)])
def test_invalid_parameters_raise(content_height, gap) -> None:
    with pytest.raises(ConfigurationError):
        pack(make_items([100]), content_height=content_height, gap=gap)
