"""
Capture Session Tests
=====================

Auto and manual capture, camera denial, failure recovery and profile wiring.
"""

import pytest

from ecg_assist.capture.session import CaptureSession, SessionStatus, create_capture_session
from ecg_assist.capture.source import IterableFrameSource
from ecg_assist.capture.stability import FrameStabilityDetector, StabilityConfig
from ecg_assist.config import Settings
from ecg_assist.imaging.enhancer import EnhancementError, ImageEnhancer


@pytest.fixture
def still_frames(make_frame):
    """Ten identical 320x240 frames."""
    return [make_frame(width=320, height=240, rgb=(200, 190, 180), frame_id=i) for i in range(10)]


def _session(frames, required=3, **kwargs) -> CaptureSession:
    detector = FrameStabilityDetector(StabilityConfig(required_stable_frames=required))
    return CaptureSession(IterableFrameSource(frames), detector=detector, **kwargs)


class FailingEnhancer(ImageEnhancer):
    def enhance(self, frame):
        raise EnhancementError("encoder unavailable")


class TestAutoCapture:
    """Tests for the automatic capture path."""

    def test_captures_once_stable(self, still_frames):
        session = _session(still_frames, required=3)

        assert session.start() is True
        assert session.status is SessionStatus.ALIGN
        session.run()

        # reference + 4 stable comparisons (4 > 3)
        assert session.source.frames_read == 5
        assert session.status is SessionStatus.CAPTURED
        assert session.captured_image is not None
        assert (session.captured_image.width, session.captured_image.height) == (256, 128)

    def test_loop_halts_and_detector_resets(self, still_frames):
        session = _session(still_frames, required=3)
        session.start()
        session.run()

        assert session.ticker.running is False
        assert session.detector.state.last_sample is None
        assert session.detector.state.consecutive_stable_count == 0
        assert session.source.is_open is False
        assert session.capturing is False

    def test_not_enough_frames(self, still_frames):
        session = _session(still_frames[:3], required=3)
        session.start()
        session.run()

        assert session.status is SessionStatus.ALIGN
        assert session.captured_image is None
        assert session.progress == pytest.approx(200 / 3)


class TestManualCapture:
    """Tests for manual mode and the shutter."""

    def test_manual_mode_never_auto_triggers(self, still_frames):
        session = _session(still_frames, required=3, manual_mode=True)
        session.start()

        delivered = session.run()

        assert delivered == 10
        assert session.status is SessionStatus.ALIGN
        assert session.captured_image is None
        assert session.progress == 100
        assert session.near_stable is True

    def test_shutter_captures_last_frame(self, still_frames):
        session = _session(still_frames, required=3, manual_mode=True)
        session.start()
        session.run(max_ticks=2)

        image = session.capture()

        assert image is not None
        assert session.status is SessionStatus.CAPTURED
        assert session.ticker.running is False
        assert session.source.frames_read == 2

    def test_shutter_before_any_frame(self, still_frames):
        session = _session(still_frames, manual_mode=True)
        session.start()

        assert session.capture() is None
        assert session.status is SessionStatus.ALIGN

    def test_capture_while_capturing_is_noop(self, still_frames):
        nested = []

        class ReentrantEnhancer(ImageEnhancer):
            def enhance(self, frame):
                nested.append(session.capture())
                return super().enhance(frame)

        session = _session(still_frames, manual_mode=True, enhancer=ReentrantEnhancer())
        session.start()
        session.run(max_ticks=1)

        assert session.capture() is not None
        assert nested == [None]

    def test_shutter_after_capture_is_noop(self, still_frames):
        session = _session(still_frames, manual_mode=True)
        session.start()
        session.run(max_ticks=2)
        first = session.capture()

        assert session.capture() is None
        assert session.captured_image is first
        assert session.status is SessionStatus.CAPTURED
        assert session.get_metrics()["captures"] == 1

    def test_retake_rearms_shutter(self, still_frames):
        session = _session(still_frames, manual_mode=True)
        session.start()
        session.run(max_ticks=1)
        session.capture()

        assert session.retake() is True
        assert session.captured_image is None
        assert session.capture() is None

        session.run(max_ticks=1)
        assert session.capture() is not None
        assert session.status is SessionStatus.CAPTURED

    def test_mode_toggle_resets_detector(self, still_frames):
        session = _session(still_frames, required=3)
        session.set_manual_mode(True)
        session.start()
        session.run(max_ticks=3)
        assert session.detector.state.consecutive_stable_count == 2

        session.set_manual_mode(False)

        assert session.detector.state.consecutive_stable_count == 0
        assert session.detector.state.last_sample is None
        assert session.progress == 0


class TestCameraDenied:
    """Tests for refused camera access."""

    def test_denied_is_terminal(self, still_frames):
        source = IterableFrameSource(still_frames, deny_access=True)
        session = CaptureSession(source)

        assert session.start() is False
        assert session.status is SessionStatus.CAMERA_DENIED
        assert session.run() == 0
        assert session.capture() is None
        assert session.start() is False
        assert source.frames_read == 0


class TestCaptureFailure:
    """Tests for enhancement failures."""

    def test_failure_keeps_no_artifact(self, still_frames):
        session = _session(still_frames, required=3, enhancer=FailingEnhancer())
        session.start()
        session.run()

        assert session.status is SessionStatus.FAILED
        assert session.captured_image is None
        assert session.capturing is False
        assert session.get_metrics()["failures"] == 1

    def test_retake_after_failure(self, still_frames):
        session = _session(still_frames, required=3, enhancer=FailingEnhancer())
        session.start()
        session.run()

        session.enhancer = ImageEnhancer()
        assert session.retake() is True
        assert session.status is SessionStatus.ALIGN
        assert session.ticker.running is True


class TestSessionLifecycle:
    """Tests for end() and configuration wiring."""

    def test_end_releases_source(self, still_frames):
        session = _session(still_frames, manual_mode=True)
        session.start()
        session.run(max_ticks=4)

        session.end()

        assert session.ticker.running is False
        assert session.source.is_open is False
        assert session.detector.state.last_sample is None
        assert session.capture() is None

    def test_create_from_profile(self, still_frames):
        settings = Settings()

        session = create_capture_session(
            IterableFrameSource(still_frames), settings, profile="relaxed"
        )

        assert session.detector.config.diff_threshold == 30
        assert session.detector.config.required_stable_frames == 40
        assert session.enhancer.config.contrast == 1.3
        assert session.enhancer.config.jpeg_quality == 0.85

    def test_create_unknown_profile(self, still_frames):
        with pytest.raises(KeyError):
            create_capture_session(IterableFrameSource(still_frames), Settings(), profile="fast")
