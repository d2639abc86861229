"""
Captured Image Model
====================

The enhanced image artifact handed from the capture stage to measurement and,
later, to the report collaborator.
"""

import base64
from dataclasses import dataclass

import numpy as np


JPEG_MIME_TYPE = "image/jpeg"


def to_data_url(data: bytes, mime_type: str = JPEG_MIME_TYPE) -> str:
    """Wrap encoded bytes in a base64 data URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


@dataclass(frozen=True, slots=True, eq=False)
class CapturedImage:
    """
    Enhanced, cropped trace image.

    Immutable once produced.

    Attributes:
        pixels: Enhanced RGBA buffer (height, width, 4)
        width: Final width in pixels
        height: Final height in pixels
        data: Compressed image bytes
        quality: Encoder quality in (0, 1]
        mime_type: MIME type of ``data``
    """

    pixels: np.ndarray
    width: int
    height: int
    data: bytes
    quality: float
    mime_type: str = JPEG_MIME_TYPE

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.pixels.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"pixels shape {self.pixels.shape} does not match "
                f"{self.width}x{self.height}"
            )
        if not self.data:
            raise ValueError("data must not be empty")

    @property
    def data_url(self) -> str:
        """Displayable/embeddable form of the artifact."""
        return to_data_url(self.data, self.mime_type)

    def __repr__(self) -> str:
        return (
            f"CapturedImage({self.width}x{self.height}, "
            f"{len(self.data)} bytes, {self.mime_type}, q={self.quality})"
        )

    def to_dict(self) -> dict:
        """Export for JSON responses."""
        return {
            "image": self.data_url,
            "width": self.width,
            "height": self.height,
            "mimeType": self.mime_type,
            "quality": self.quality,
        }
