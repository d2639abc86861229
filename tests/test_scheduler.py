"""
Frame Loop Tests
================

FrameTicker scheduling and the in-memory frame source.
"""

import asyncio
import itertools

import pytest

from ecg_assist.capture.scheduler import FrameTicker
from ecg_assist.capture.source import CameraAccessDenied, IterableFrameSource


@pytest.fixture
def frames(make_frame):
    return [make_frame(width=64, height=48, frame_id=i) for i in range(5)]


def _open(source):
    source.open()
    return source


class TestFrameTicker:
    """Tests for synchronous ticking."""

    def test_runs_until_source_exhausted(self, frames):
        seen = []

        def on_frame(frame):
            seen.append(frame.frame_id)
            return True

        ticker = FrameTicker(_open(IterableFrameSource(frames)), on_frame=on_frame)

        ticker.start()
        delivered = ticker.run()

        assert delivered == 5
        assert seen == [0, 1, 2, 3, 4]
        assert ticker.running is False

    def test_callback_false_stops_before_next_read(self, frames):
        source = _open(IterableFrameSource(frames))
        ticker = FrameTicker(source, on_frame=lambda f: f.frame_id < 2)

        ticker.start()
        delivered = ticker.run()

        assert delivered == 3
        assert source.frames_read == 3
        assert ticker.running is False

    def test_not_started_reads_nothing(self, frames):
        source = _open(IterableFrameSource(frames))
        ticker = FrameTicker(source, on_frame=lambda f: True)

        assert ticker.tick() is False
        assert ticker.run() == 0
        assert source.frames_read == 0

    def test_one_frame_per_tick(self, frames):
        source = _open(IterableFrameSource(frames))
        ticker = FrameTicker(source, on_frame=lambda f: True)
        ticker.start()

        assert ticker.tick() is True
        assert source.frames_read == 1
        assert ticker.ticks == 1

    def test_max_ticks(self, frames):
        ticker = FrameTicker(_open(IterableFrameSource(frames)), on_frame=lambda f: True)
        ticker.start()

        assert ticker.run(max_ticks=2) == 2
        assert ticker.running is True

    def test_stop_is_idempotent(self, frames):
        source = _open(IterableFrameSource(frames))
        ticker = FrameTicker(source, on_frame=lambda f: True)
        ticker.start()

        ticker.stop()
        ticker.stop()

        assert ticker.running is False
        assert ticker.tick() is False
        assert source.frames_read == 0

    def test_stop_from_callback(self, frames):
        source = _open(IterableFrameSource(frames))
        ticker = None

        def on_frame(frame):
            ticker.stop()
            return True

        ticker = FrameTicker(source, on_frame=on_frame)
        ticker.start()

        assert ticker.run() == 1
        assert source.frames_read == 1


class TestFrameTickerAsync:
    """Tests for cooperative ticking on an event loop."""

    def test_run_async_until_exhausted(self, frames):
        ticker = FrameTicker(_open(IterableFrameSource(frames)), on_frame=lambda f: True)
        ticker.start()

        delivered = asyncio.run(ticker.run_async())

        assert delivered == 5
        assert ticker.running is False

    def test_cancel_stops_loop(self, make_frame):
        frame = make_frame(width=32, height=32)
        source = _open(IterableFrameSource(itertools.repeat(frame)))
        ticker = FrameTicker(source, on_frame=lambda f: True)
        ticker.start()

        async def scenario():
            task = asyncio.create_task(ticker.run_async(frame_interval=0.001))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        read_at_cancel = source.frames_read
        assert ticker.running is False
        assert read_at_cancel > 0
        assert ticker.tick() is False
        assert source.frames_read == read_at_cancel


class TestIterableFrameSource:
    """Tests for the in-memory source."""

    def test_read_before_open_is_none(self, frames):
        assert IterableFrameSource(frames).read() is None

    def test_denied(self, frames):
        source = IterableFrameSource(frames, deny_access=True)
        with pytest.raises(CameraAccessDenied):
            source.open()
        assert source.is_open is False

    def test_close(self, frames):
        source = _open(IterableFrameSource(frames))
        assert source.is_open is True

        source.close()
        source.close()

        assert source.is_open is False
        assert source.read() is None
