"""
Frame Sources
=============

Camera/video collaborators that feed the capture loop.

A source is opened once per session, read one frame at a time, and closed when
capture completes or the session ends. Opening is where permission problems
surface: a denied or missing camera raises CameraAccessDenied, which the
session turns into a terminal status.

Sources:
    - FrameSource: Protocol implemented by every source
    - IterableFrameSource: Replays in-memory frames (tests, demos)
    - VideoCaptureSource: OpenCV camera index or video file
"""

import logging
import time
from typing import Iterable, Iterator, Optional, Protocol, Union

import cv2
import numpy as np

from ecg_assist.capture.frame import Frame


logger = logging.getLogger(__name__)


class CameraAccessDenied(Exception):
    """Raised when the camera cannot be opened (permission denied or absent)."""
    pass


class FrameSource(Protocol):
    """
    Protocol for frame sources.

    read() returns None once the source has no more frames.
    """

    def open(self) -> None:
        """
        Acquire the camera.

        Raises:
            CameraAccessDenied: If access is refused
        """
        ...

    def read(self) -> Optional[Frame]:
        """Return the next frame, or None when exhausted."""
        ...

    def close(self) -> None:
        """Release the camera. Safe to call more than once."""
        ...


class IterableFrameSource:
    """
    Frame source backed by any iterable of frames.

    Attributes:
        deny_access: Simulate a refused camera permission on open()
    """

    def __init__(self, frames: Iterable[Frame], deny_access: bool = False) -> None:
        self._frames = frames
        self._iterator: Optional[Iterator[Frame]] = None
        self.deny_access = deny_access
        self.frames_read: int = 0
        self.is_open: bool = False

    def open(self) -> None:
        if self.deny_access:
            raise CameraAccessDenied("Camera permission denied")
        self._iterator = iter(self._frames)
        self.is_open = True

    def read(self) -> Optional[Frame]:
        if self._iterator is None:
            return None
        frame = next(self._iterator, None)
        if frame is not None:
            self.frames_read += 1
        return frame

    def close(self) -> None:
        self._iterator = None
        self.is_open = False


class VideoCaptureSource:
    """
    OpenCV-backed source for a camera device or a video file.

    Frames are converted from OpenCV's BGR layout to RGBA.

    Example:
        source = VideoCaptureSource(0)          # default camera
        source = VideoCaptureSource("ecg.mp4")  # recorded clip
    """

    def __init__(self, device: Union[int, str] = 0) -> None:
        self.device = device
        self._capture: Optional[cv2.VideoCapture] = None
        self._frame_id: int = 0

    def open(self) -> None:
        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise CameraAccessDenied(f"Unable to open video device {self.device!r}")
        self._capture = capture
        self._frame_id = 0
        logger.info(f"VideoCaptureSource opened: {self.device!r}")

    def read(self) -> Optional[Frame]:
        if self._capture is None:
            return None

        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            return None

        rgba = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)
        frame = Frame(
            pixels=np.ascontiguousarray(rgba, dtype=np.uint8),
            timestamp=time.time(),
            frame_id=self._frame_id,
        )
        self._frame_id += 1
        return frame

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"VideoCaptureSource closed: {self.device!r}")
