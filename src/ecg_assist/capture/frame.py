"""
Frame Data Model
================

Internal frame representation for the capture loop.

Design Rules:
    - This is the ONLY frame format passed to the detector and the enhancer
    - Pixels are RGBA, uint8, shape (height, width, 4)
    - Frames are ephemeral; the capture loop replaces them every tick
"""

from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    One camera frame.

    Attributes:
        pixels: RGBA pixel buffer (H, W, 4), uint8
        timestamp: Capture time in seconds
        frame_id: Monotonically increasing counter from the source
    """

    pixels: np.ndarray
    timestamp: float = 0.0
    frame_id: int = field(default=0)

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Frame pixels must be (H, W, 4) RGBA, got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Frame pixels must be uint8, got {self.pixels.dtype}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return (
            f"Frame(frame_id={self.frame_id}, "
            f"size={self.width}x{self.height}, "
            f"timestamp={self.timestamp:.3f})"
        )
