"""
Capture Module
==============

Frame acquisition and capture timing:
    - Frame: RGBA frame data model
    - FrameSource / IterableFrameSource / VideoCaptureSource: Frame providers
    - FrameTicker: One-frame-per-tick scheduler
    - FrameStabilityDetector: Pixel-difference stability heuristic

CaptureSession (capture.session) ties these to the enhancer and is imported
directly.
"""

from ecg_assist.capture.frame import Frame
from ecg_assist.capture.source import (
    CameraAccessDenied,
    FrameSource,
    IterableFrameSource,
    VideoCaptureSource,
)
from ecg_assist.capture.scheduler import FrameTicker
from ecg_assist.capture.stability import (
    FrameStabilityDetector,
    StabilityConfig,
    StabilityUpdate,
)

__all__ = [
    "Frame",
    "CameraAccessDenied",
    "FrameSource",
    "IterableFrameSource",
    "VideoCaptureSource",
    "FrameTicker",
    "FrameStabilityDetector",
    "StabilityConfig",
    "StabilityUpdate",
]
