"""
Capture Session
===============

Orchestrates one photo-capture session: frame source, stability detector,
frame ticker and image enhancer.

State Machine:
    start() ──> "Align ECG in box" ──(stable / shutter)──> "Processing..."
       │                                                       │
       └─(camera denied)─> "Camera access denied"   ┌──────────┴──────────┐
                             (terminal)             ▼                     ▼
                                                "Captured"    "Capture failed, retake"
                                                    └──── retake() ───────┘

Design Rules:
    - The ``capturing`` flag is the only mutual exclusion; capture() while
      capturing is a no-op
    - Capture halts the frame loop before enhancement starts
    - The detector is reset on capture, on mode toggle and on session end
    - Manual mode keeps the detector running for progress feedback but never
      auto-triggers
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from ecg_assist.capture.frame import Frame
from ecg_assist.capture.scheduler import FrameTicker
from ecg_assist.capture.source import CameraAccessDenied, FrameSource
from ecg_assist.capture.stability import FrameStabilityDetector, StabilityConfig
from ecg_assist.config import Settings
from ecg_assist.imaging.enhancer import EnhancementConfig, EnhancementError, ImageEnhancer
from ecg_assist.models.capture import CapturedImage


logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """User-facing session status text."""

    ALIGN = "Align ECG in box"
    PROCESSING = "Processing..."
    CAPTURED = "Captured"
    FAILED = "Capture failed, retake"
    CAMERA_DENIED = "Camera access denied"


class CaptureSession:
    """
    One capture session from camera open to enhanced image.

    Attributes:
        source: Frame source (camera, video file, replay)
        detector: Stability detector
        enhancer: Image enhancement pipeline
        ticker: Frame loop over ``source``
        manual_mode: Auto-capture disabled when True
        status: Current SessionStatus
        progress: Stability progress of the last frame [0, 100]
        captured_image: Enhanced artifact, None until a capture succeeds

    Example:
        session = CaptureSession(VideoCaptureSource(0))
        if session.start():
            session.run()
        if session.captured_image is not None:
            save(session.captured_image.data)
    """

    def __init__(
        self,
        source: FrameSource,
        detector: Optional[FrameStabilityDetector] = None,
        enhancer: Optional[ImageEnhancer] = None,
        manual_mode: bool = False,
        near_stable_percent: float = 80.0,
    ) -> None:
        self.source = source
        self.detector = detector or FrameStabilityDetector()
        self.enhancer = enhancer or ImageEnhancer()
        self.ticker = FrameTicker(source, on_frame=self.on_frame)
        self.manual_mode = manual_mode
        self.near_stable_percent = near_stable_percent

        self.status: SessionStatus = SessionStatus.ALIGN
        self.progress: float = 0.0
        self.captured_image: Optional[CapturedImage] = None

        self._capturing: bool = False
        self._last_frame: Optional[Frame] = None
        self._captures: int = 0
        self._failures: int = 0

        logger.info(
            f"CaptureSession initialized: mode={'manual' if manual_mode else 'auto'}"
        )

    @property
    def capturing(self) -> bool:
        return self._capturing

    @property
    def near_stable(self) -> bool:
        """Progress high enough to highlight the alignment box."""
        return self.progress > self.near_stable_percent

    @property
    def camera_denied(self) -> bool:
        return self.status is SessionStatus.CAMERA_DENIED

    def start(self) -> bool:
        """
        Open the source and arm the frame loop.

        Returns:
            True if sampling started, False if the camera was denied
        """
        if self.camera_denied:
            return False

        try:
            self.source.open()
        except CameraAccessDenied as e:
            logger.warning(f"Camera access denied: {e}")
            self.status = SessionStatus.CAMERA_DENIED
            return False

        self.detector.reset()
        self.progress = 0.0
        self._last_frame = None
        self.status = SessionStatus.ALIGN
        self.ticker.start()
        return True

    def on_frame(self, frame: Frame) -> bool:
        """
        Frame callback for the ticker.

        Returns:
            True to keep sampling, False to stop the loop
        """
        if self._capturing:
            return False

        self._last_frame = frame
        update = self.detector.process(frame)
        self.progress = update.progress

        if update.capture_ready and not self.manual_mode:
            logger.info(
                f"Auto-capture triggered at frame {frame.frame_id}: "
                f"stable={update.stable_count}"
            )
            self._capture_frame(frame)
            return False

        return True

    def capture(self) -> Optional[CapturedImage]:
        """
        Manual shutter: capture the most recent frame now.

        No-op while a capture is in progress, after camera denial, before
        any frame has arrived, or once a capture has finished. Only
        retake() re-arms the shutter.

        Returns:
            The captured image, or None if nothing was captured
        """
        if self._capturing or self.camera_denied:
            return None
        if self._last_frame is None:
            logger.debug("Capture requested with no frame available")
            return None

        logger.info(f"Manual capture at frame {self._last_frame.frame_id}")
        return self._capture_frame(self._last_frame)

    def _capture_frame(self, frame: Frame) -> Optional[CapturedImage]:
        self._capturing = True
        self.status = SessionStatus.PROCESSING
        self.ticker.stop()

        try:
            image = self.enhancer.enhance(frame)
        except EnhancementError as e:
            logger.error(f"Capture failed: {e}")
            self._failures += 1
            self.captured_image = None
            self.status = SessionStatus.FAILED
        else:
            self._captures += 1
            self.captured_image = image
            self.status = SessionStatus.CAPTURED
        finally:
            self._capturing = False
            self.detector.reset()
            self.progress = 0.0
            self._last_frame = None
            self.source.close()

        return self.captured_image

    def retake(self) -> bool:
        """Discard the captured image and start sampling again."""
        self.captured_image = None
        return self.start()

    def set_manual_mode(self, manual: bool) -> None:
        """Switch between auto-capture and manual shutter."""
        if manual != self.manual_mode:
            logger.info(f"Capture mode: {'manual' if manual else 'auto'}")
        self.manual_mode = manual
        self.detector.reset()
        self.progress = 0.0

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Drive the frame loop synchronously."""
        return self.ticker.run(max_ticks=max_ticks)

    async def run_async(self, frame_interval: float = 0.0) -> int:
        """Drive the frame loop on the event loop."""
        return await self.ticker.run_async(frame_interval=frame_interval)

    def end(self) -> None:
        """Stop sampling and release the source. Keeps the captured image."""
        self.ticker.stop()
        self.source.close()
        self.detector.reset()
        self.progress = 0.0
        self._last_frame = None
        logger.info("CaptureSession ended")

    def get_metrics(self) -> Dict[str, Any]:
        """Get session metrics for observability."""
        return {
            "status": self.status.value,
            "mode": "manual" if self.manual_mode else "auto",
            "progress": self.progress,
            "near_stable": self.near_stable,
            "captures": self._captures,
            "failures": self._failures,
            "ticks": self.ticker.ticks,
            "detector": self.detector.get_metrics(),
        }


def create_capture_session(
    source: FrameSource,
    settings: Settings,
    profile: Optional[str] = None,
    manual_mode: bool = False,
) -> CaptureSession:
    """
    Create a capture session from configuration.

    Args:
        source: Frame source
        settings: Loaded settings
        profile: Capture profile name (defaults to the active profile)
        manual_mode: Start in manual mode

    Returns:
        Configured CaptureSession
    """
    capture_profile = settings.capture.get_profile(profile)
    sampling = settings.capture.sampling

    detector = FrameStabilityDetector(
        config=StabilityConfig(
            diff_threshold=capture_profile.diff_threshold,
            required_stable_frames=capture_profile.required_stable_frames,
            sample_stride=sampling.sample_stride,
        ),
        sample_width=sampling.sample_width,
        sample_height=sampling.sample_height,
        crop_width=sampling.crop_width,
        crop_height=sampling.crop_height,
        log_every_n_frames=sampling.log_every_n_frames,
    )
    enhancer = ImageEnhancer(
        EnhancementConfig(
            contrast=capture_profile.contrast,
            jpeg_quality=capture_profile.jpeg_quality,
            crop_width_ratio=settings.enhancement.crop_width_ratio,
            crop_aspect_ratio=settings.enhancement.crop_aspect_ratio,
        )
    )
    return CaptureSession(source, detector=detector, enhancer=enhancer, manual_mode=manual_mode)
