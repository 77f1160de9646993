import numpy as np
import pytest

from core.errors import DecodeError, InsufficientSamplesError, InvalidRectError
from core.models import Rect
from OverlayRemove.background import estimate_background, merge_extremes
from tests.conftest import blend, make_clean_pages, make_watermark, write_corrupt_png, write_image

WIDTH, HEIGHT = 24, 16


@pytest.fixture
def group(manga_dir):
    pages = make_clean_pages(10, WIDTH, HEIGHT)
    alpha, overlay = make_watermark(WIDTH, HEIGHT)
    return [write_image(manga_dir / f"{i}.png", blend(page, alpha, overlay)) for i, page in enumerate(pages)]


def test_composites_match_group_dimensions(group):
    pair = estimate_background(group, WIDTH, HEIGHT, max_workers=3)

    assert pair.black.shape == (HEIGHT, WIDTH, 3)
    assert pair.white.shape == (HEIGHT, WIDTH, 3)
    assert pair.key == (WIDTH, HEIGHT)
    assert pair.rect is None


def test_black_never_exceeds_white(group):
    pair = estimate_background(group, WIDTH, HEIGHT)
    assert (pair.black <= pair.white).all()


def test_composites_are_pointwise_extremes(group):
    import cv2
    stack = np.stack([cv2.imread(str(path)) for path in group])

    pair = estimate_background(group, WIDTH, HEIGHT, max_workers=4)

    assert np.array_equal(pair.black, stack.min(axis=0))
    assert np.array_equal(pair.white, stack.max(axis=0))


def test_estimation_is_deterministic_across_worker_counts(group):
    first = estimate_background(group, WIDTH, HEIGHT, max_workers=1)
    second = estimate_background(list(reversed(group)), WIDTH, HEIGHT, max_workers=5)

    assert np.array_equal(first.black, second.black)
    assert np.array_equal(first.white, second.white)


def test_rect_crops_composites(group):
    rect = Rect(left=4, top=2, right=14, bottom=11)

    pair = estimate_background(group, WIDTH, HEIGHT, rect=rect)
    full = estimate_background(group, WIDTH, HEIGHT)

    assert pair.black.shape == (9, 10, 3)
    assert pair.composite_size == (10, 9)
    assert pair.key == (WIDTH, HEIGHT)
    assert np.array_equal(pair.black, rect.crop(full.black))
    assert np.array_equal(pair.white, rect.crop(full.white))


@pytest.mark.parametrize('rect', [
    Rect(0, 0, 0, 5),
    Rect(5, 0, 3, 5),
    Rect(0, 0, WIDTH + 1, HEIGHT),
    Rect(-1, 0, 4, 4),
])
def test_invalid_rect(group, rect):
    with pytest.raises(InvalidRectError):
        estimate_background(group, WIDTH, HEIGHT, rect=rect)


def test_insufficient_samples(group):
    with pytest.raises(InsufficientSamplesError) as info:
        estimate_background(group[:5], WIDTH, HEIGHT, min_samples=8)
    assert info.value.count == 5
    assert info.value.minimum == 8


def test_decode_error_aborts_and_names_file(group, manga_dir):
    broken = write_corrupt_png(manga_dir / 'broken.png', WIDTH, HEIGHT)

    with pytest.raises(DecodeError) as info:
        estimate_background(group + [broken], WIDTH, HEIGHT, max_workers=3)

    assert info.value.path == broken


def test_size_mismatch_is_a_decode_error(group, manga_dir):
    odd = write_image(manga_dir / 'odd.png', np.zeros((HEIGHT + 1, WIDTH, 3), dtype=np.uint8))

    with pytest.raises(DecodeError) as info:
        estimate_background(group + [odd], WIDTH, HEIGHT)

    assert info.value.path == odd


def test_merge_extremes_is_order_independent():
    rng = np.random.default_rng(7)
    parts = []
    for _ in range(3):
        a = rng.integers(0, 256, size=(2, 2, 3), dtype=np.uint8)
        b = rng.integers(0, 256, size=(2, 2, 3), dtype=np.uint8)
        parts.append((np.minimum(a, b), np.maximum(a, b)))

    left = merge_extremes(merge_extremes(parts[0], parts[1]), parts[2])
    right = merge_extremes(parts[2], merge_extremes(parts[1], parts[0]))

    assert np.array_equal(left[0], right[0]) and np.array_equal(left[1], right[1])
    assert merge_extremes(None, parts[0]) is parts[0]
