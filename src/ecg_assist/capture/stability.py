"""
Frame Stability Detector
========================

Decides when a photographed ECG trace has stopped moving.

Each frame is reduced to a small raster and compared with the previous one
using the mean absolute difference of a strided byte sample. Consecutive
frames below the difference threshold build up a stable count; any frame at
or above it resets the count to zero.

Algorithm (per frame):
    1. Downscale (center crop first when the source is large enough)
    2. First frame: store as reference, no comparison
    3. mean_diff = sum(|curr[i] - prev[i]| for i in 0, stride, 2*stride, ...)
                   / (len / stride)
    4. mean_diff < diff_threshold -> stable_count += 1, else stable_count = 0
    5. progress = min(stable_count / required_stable_frames, 1) * 100
    6. stable_count > required_stable_frames -> capture ready
    7. Current sample becomes the reference

The default stride of 40 bytes reads the red channel of every 10th RGBA pixel.
This is a coarse motion heuristic, not image registration.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from ecg_assist.capture.frame import Frame


logger = logging.getLogger(__name__)


@dataclass
class StabilityConfig:
    """
    Thresholds for the stability decision.

    Loaded from the active capture profile.
    """

    diff_threshold: float = 20.0
    required_stable_frames: int = 30
    sample_stride: int = 40

    def __post_init__(self) -> None:
        errors = []
        if self.diff_threshold <= 0:
            errors.append(f"diff_threshold must be > 0, got {self.diff_threshold}")
        if self.required_stable_frames < 1:
            errors.append(
                f"required_stable_frames must be >= 1, got {self.required_stable_frames}"
            )
        if self.sample_stride < 1:
            errors.append(f"sample_stride must be >= 1, got {self.sample_stride}")
        if errors:
            raise ValueError("Invalid stability config:\n" + "\n".join(errors))


@dataclass
class StabilityState:
    """
    Mutable per-session detector state.

    Attributes:
        last_sample: Previous downscaled RGBA raster (None before first frame)
        consecutive_stable_count: Stable comparisons in a row
    """

    last_sample: Optional[np.ndarray] = None
    consecutive_stable_count: int = 0

    def clear(self) -> None:
        self.last_sample = None
        self.consecutive_stable_count = 0


@dataclass(frozen=True, slots=True)
class StabilityUpdate:
    """
    Result of processing one frame.

    Attributes:
        compared: False for the reference frame (nothing to compare against)
        mean_diff: Mean strided absolute difference, None when not compared
        stable_count: Consecutive stable comparisons after this frame
        progress: Percentage towards the stability requirement [0, 100]
        capture_ready: Stable count exceeded the requirement
    """

    compared: bool
    mean_diff: Optional[float]
    stable_count: int
    progress: float
    capture_ready: bool

    def __repr__(self) -> str:
        diff = f"{self.mean_diff:.2f}" if self.mean_diff is not None else "n/a"
        return (
            f"StabilityUpdate(diff={diff}, stable={self.stable_count}, "
            f"progress={self.progress:.0f}%, ready={self.capture_ready})"
        )


class FrameStabilityDetector:
    """
    Pixel-difference stability detector.

    Attributes:
        config: Threshold configuration
        state: Current session state (reference sample and stable count)
        sample_size: (width, height) of the comparison raster
        crop_size: (width, height) of the center region sampled from large frames

    Example:
        detector = FrameStabilityDetector(StabilityConfig(diff_threshold=20))

        for frame in frames:
            update = detector.process(frame)
            if update.capture_ready:
                break
    """

    def __init__(
        self,
        config: Optional[StabilityConfig] = None,
        sample_width: int = 300,
        sample_height: int = 150,
        crop_width: int = 600,
        crop_height: int = 300,
        log_every_n_frames: int = 30,
    ) -> None:
        """
        Initialize the detector.

        Args:
            config: Stability thresholds (defaults to the strict values)
            sample_width: Width of the comparison raster
            sample_height: Height of the comparison raster
            crop_width: Width of the center crop taken from large frames
            crop_height: Height of the center crop taken from large frames
            log_every_n_frames: Log progress every N frames
        """
        if min(sample_width, sample_height, crop_width, crop_height) < 1:
            raise ValueError("sample and crop dimensions must be >= 1")

        self.config = config or StabilityConfig()
        self.sample_size = (sample_width, sample_height)
        self.crop_size = (crop_width, crop_height)
        self.log_every_n_frames = log_every_n_frames

        self.state = StabilityState()
        self._frame_count: int = 0

        logger.info(
            f"FrameStabilityDetector initialized: "
            f"threshold={self.config.diff_threshold}, "
            f"required={self.config.required_stable_frames}, "
            f"stride={self.config.sample_stride}, "
            f"raster={sample_width}x{sample_height}"
        )

    def downscale(self, frame: Frame) -> np.ndarray:
        """
        Reduce a frame to the comparison raster.

        Takes the centered crop region when the frame is at least that large,
        otherwise scales the whole frame.

        Args:
            frame: Full-resolution frame

        Returns:
            RGBA raster (sample_height, sample_width, 4), uint8
        """
        crop_w, crop_h = self.crop_size
        offset_x = (frame.width - crop_w) / 2
        offset_y = (frame.height - crop_h) / 2

        if offset_x >= 0 and offset_y >= 0:
            x0 = int(offset_x)
            y0 = int(offset_y)
            region = frame.pixels[y0:y0 + crop_h, x0:x0 + crop_w]
        else:
            region = frame.pixels

        return cv2.resize(
            np.ascontiguousarray(region),
            self.sample_size,
            interpolation=cv2.INTER_AREA,
        )

    def mean_difference(self, current: np.ndarray, previous: np.ndarray) -> float:
        """
        Mean absolute difference over every ``sample_stride``-th byte.

        Raises:
            ValueError: If the two rasters differ in shape
        """
        if current.shape != previous.shape:
            raise ValueError(
                f"Sample shapes must match. Got: {current.shape} vs {previous.shape}"
            )

        stride = self.config.sample_stride
        curr = current.reshape(-1)[::stride].astype(np.int32)
        prev = previous.reshape(-1)[::stride].astype(np.int32)
        total = int(np.abs(curr - prev).sum())
        return total / (current.size / stride)

    def progress_for(self, stable_count: int) -> float:
        required = self.config.required_stable_frames
        return min(stable_count / required, 1.0) * 100.0

    def process(self, frame: Frame) -> StabilityUpdate:
        """
        Process one frame and update the stable count.

        Args:
            frame: Frame from the source

        Returns:
            StabilityUpdate describing this step
        """
        self._frame_count += 1

        if frame.width == 0 or frame.height == 0:
            logger.warning(f"Empty frame skipped: {frame!r}")
            return self._snapshot(compared=False, mean_diff=None)

        sample = self.downscale(frame)
        previous = self.state.last_sample

        if previous is None:
            logger.debug(f"Reference frame stored (id={frame.frame_id})")
            self.state.last_sample = sample
            return self._snapshot(compared=False, mean_diff=None)

        mean_diff = self.mean_difference(sample, previous)

        if mean_diff < self.config.diff_threshold:
            self.state.consecutive_stable_count += 1
        else:
            self.state.consecutive_stable_count = 0

        self.state.last_sample = sample

        update = self._snapshot(compared=True, mean_diff=mean_diff)

        if self._frame_count % self.log_every_n_frames == 0:
            logger.info(f"Stability [frame {self._frame_count}]: {update!r}")

        return update

    def _snapshot(self, compared: bool, mean_diff: Optional[float]) -> StabilityUpdate:
        count = self.state.consecutive_stable_count
        return StabilityUpdate(
            compared=compared,
            mean_diff=mean_diff,
            stable_count=count,
            progress=self.progress_for(count),
            capture_ready=count > self.config.required_stable_frames,
        )

    def reset(self) -> None:
        """Drop the reference sample and the stable count."""
        self.state.clear()
        self._frame_count = 0
        logger.debug("FrameStabilityDetector reset")

    @property
    def frame_count(self) -> int:
        """Number of frames processed since the last reset."""
        return self._frame_count

    def get_metrics(self) -> dict:
        """Get detector metrics for observability."""
        return {
            "frame_count": self._frame_count,
            "stable_count": self.state.consecutive_stable_count,
            "progress": self.progress_for(self.state.consecutive_stable_count),
            "diff_threshold": self.config.diff_threshold,
            "required_stable_frames": self.config.required_stable_frames,
        }
