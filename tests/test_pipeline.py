import numpy as np
import pytest

from core.errors import DecodeError, DimensionGroupNotFoundError, InsufficientSamplesError, InvalidConfigError
from core.models import (
    ImageFormat, Rect,
    RemoveWatermarkEndEvent, RemoveWatermarkErrorEvent, RemoveWatermarkStartEvent, RemoveWatermarkSuccessEvent
)
from OverlayRemove.wm_remove import CANCELLED_MESSAGE
from tests.conftest import write_corrupt_png, write_flat_pages


@pytest.fixture
def mixed_dir(manga_dir):
    write_flat_pages(manga_dir, 10, 800, 1200, prefix='big')
    write_flat_pages(manga_dir, 5, 600, 900, prefix='small')
    return manga_dir


def by_type(events, event_type):
    return [event for event in events if isinstance(event, event_type)]


def test_directory_data_lists_groups_without_backgrounds(pipeline, mixed_dir):
    data = pipeline.get_manga_dir_data(mixed_dir)

    assert [(d.width, d.height, d.count) for d in data] == [(800, 1200, 10), (600, 900, 5)]
    assert all(d.black_background is None and d.white_background is None for d in data)


def test_generate_background_then_remove_with_one_pair(pipeline, mixed_dir, output_dir, events):
    pair = pipeline.generate_background(mixed_dir, None, 800, 1200)

    data = {(d.width, d.height): d for d in pipeline.get_manga_dir_data(mixed_dir)}
    assert data[(800, 1200)].has_background
    assert data[(800, 1200)].black_background.info.path == pipeline.cache.black_path(mixed_dir, 800, 1200)
    assert data[(600, 900)].black_background is None

    outcomes = pipeline.remove_watermark(mixed_dir, [pair], output_dir, ImageFormat.JPEG, False)

    assert len(outcomes) == 15
    starts = by_type(events, RemoveWatermarkStartEvent)
    successes = by_type(events, RemoveWatermarkSuccessEvent)
    errors = by_type(events, RemoveWatermarkErrorEvent)
    ends = by_type(events, RemoveWatermarkEndEvent)
    assert starts == [RemoveWatermarkStartEvent(dir_path=mixed_dir, total=15)]
    assert len(successes) == 10
    assert len(errors) == 5
    assert all(e.err_msg == 'no background pair for dimensions 600x900' for e in errors)
    assert all(e.img_path.name.startswith('small') for e in errors)
    assert ends == [RemoveWatermarkEndEvent(dir_path=mixed_dir)]
    assert events[0] == starts[0] and events[-1] == ends[0]


def test_progress_count_is_monotonic(pipeline, mixed_dir, output_dir, events):
    pair = pipeline.generate_background(mixed_dir, None, 800, 1200)
    pipeline.remove_watermark(mixed_dir, {pair.key: pair}, output_dir, 'Png', True)

    total = events[0].total
    per_file = events[1:-1]
    assert len(per_file) == total
    currents = [e.current for e in per_file if isinstance(e, RemoveWatermarkSuccessEvent)]
    assert currents == sorted(currents)
    assert all(1 <= c <= total for c in currents)


def test_remove_uses_config_defaults(pipeline, mixed_dir, output_dir):
    pair = pipeline.generate_background(mixed_dir, None, 800, 1200)
    pipeline.config.output_format = ImageFormat.PNG

    pipeline.remove_watermark(mixed_dir, [pair])

    assert (output_dir / mixed_dir.name / 'big_1.png').is_file()


def test_generate_background_with_rect(pipeline, mixed_dir):
    rect = Rect(100, 200, 500, 700)
    pair = pipeline.generate_background(mixed_dir, rect, 800, 1200)

    assert pair.black.shape == (500, 400, 3)
    cached = pipeline.cache.get(mixed_dir, 800, 1200)
    assert cached.rect == rect
    assert np.array_equal(cached.white, pair.white)


def test_generate_background_is_idempotent(pipeline, mixed_dir):
    first = pipeline.generate_background(mixed_dir, None, 800, 1200)
    second = pipeline.generate_background(mixed_dir, None, 800, 1200)
    assert np.array_equal(first.black, second.black)
    assert np.array_equal(first.white, second.white)


def test_generate_background_errors(pipeline, mixed_dir):
    with pytest.raises(InsufficientSamplesError):
        pipeline.generate_background(mixed_dir, None, 600, 900)
    with pytest.raises(DimensionGroupNotFoundError):
        pipeline.generate_background(mixed_dir, None, 10, 10)
    assert not pipeline.cache.has(mixed_dir, 600, 900)


def test_corrupt_member_aborts_generation(pipeline, manga_dir):
    write_flat_pages(manga_dir, 20, 40, 30)
    broken = write_corrupt_png(manga_dir / 'page_7b.png', 40, 30)

    with pytest.raises(DecodeError) as info:
        pipeline.generate_background(manga_dir, None, 40, 30)

    assert info.value.path == broken
    assert 'page_7b.png' in str(info.value)
    assert not pipeline.cache.has(manga_dir, 40, 30)
    assert not pipeline.cache.absolute_path(manga_dir, 40, 30).exists()


def test_batch_error_emits_no_events(pipeline, mixed_dir, events):
    with pytest.raises(InvalidConfigError):
        pipeline.remove_watermark(mixed_dir, [], output_dir='')
    assert events == []


def test_duplicate_pairs_rejected(pipeline, mixed_dir):
    pair = pipeline.generate_background(mixed_dir, None, 800, 1200)
    with pytest.raises(InvalidConfigError):
        pipeline.remove_watermark(mixed_dir, [pair, pair])


def test_cancel_still_ends_once(pipeline, manga_dir, output_dir, events):
    paths = write_flat_pages(manga_dir, 10, 16, 12)
    pair = pipeline.generate_background(manga_dir, None, 16, 12)
    pipeline.max_workers = 1

    def cancel_after_first(event):
        events.append(event)
        if isinstance(event, RemoveWatermarkSuccessEvent):
            pipeline.cancel()

    pipeline.event_callback = cancel_after_first
    pipeline.remove_watermark(manga_dir, [pair], output_dir, 'Png', False)

    assert len(by_type(events, RemoveWatermarkEndEvent)) == 1
    assert isinstance(events[-1], RemoveWatermarkEndEvent)
    per_file = by_type(events, RemoveWatermarkSuccessEvent) + by_type(events, RemoveWatermarkErrorEvent)
    assert len(per_file) == len(paths) == events[0].total
    assert len(by_type(events, RemoveWatermarkSuccessEvent)) == 1

    events.clear()
    pipeline.event_callback = events.append
    pipeline.remove_watermark(manga_dir, [pair], output_dir, 'Png', False)
    assert len(by_type(events, RemoveWatermarkSuccessEvent)) == len(paths)


def test_cancel_before_run_applies_to_that_run_only(pipeline, manga_dir, output_dir, events):
    paths = write_flat_pages(manga_dir, 8, 16, 12)
    pair = pipeline.generate_background(manga_dir, None, 16, 12)

    pipeline.cancel()
    outcomes = pipeline.remove_watermark(manga_dir, [pair], output_dir, 'Png', False)

    assert [outcome.error for outcome in outcomes] == [CANCELLED_MESSAGE] * len(paths)
    assert len(by_type(events, RemoveWatermarkErrorEvent)) == len(paths)
    assert len(by_type(events, RemoveWatermarkEndEvent)) == 1

    events.clear()
    outcomes = pipeline.remove_watermark(manga_dir, [pair], output_dir, 'Png', False)
    assert all(outcome.ok for outcome in outcomes)
    assert len(by_type(events, RemoveWatermarkSuccessEvent)) == len(paths)


def test_event_payloads():
    from pathlib import Path
    event = RemoveWatermarkSuccessEvent(dir_path=Path('m'), img_path=Path('m/1.jpg'), current=3)
    assert event.name == 'remove-watermark-success-event'
    assert event.to_dict() == {'dirPath': 'm', 'imgPath': str(Path('m/1.jpg')), 'current': 3}
    assert RemoveWatermarkErrorEvent(Path('m'), Path('a'), 'boom').to_dict()['errMsg'] == 'boom'
