"""
Image Enhancer
==============

Deterministic normalization of a captured ECG photo.

Pipeline:
    1. Copy the full-resolution frame into a working buffer
    2. Grayscale: avg = (R + G + B) / 3  (plain average, not luminance-weighted)
    3. Contrast:  out = avg * contrast + 128 * (1 - contrast)  on R, G, B
       Alpha is untouched. Results are rounded half-to-even and clamped to
       [0, 255], the semantics of an 8-bit clamped pixel buffer.
    4. Crop a centered box: width = 80% of the frame, height = half the crop
       width (2:1). On frames wider than 2.5:1 the box overhangs the top and
       bottom; those rows are left blank (transparent black)
    5. JPEG-encode the crop

Same input always yields byte-identical output.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ecg_assist.capture.frame import Frame
from ecg_assist.imaging.codec import ImageEncodeError, encode_jpeg
from ecg_assist.models.capture import JPEG_MIME_TYPE, CapturedImage


logger = logging.getLogger(__name__)


class EnhancementError(Exception):
    """Raised when the enhancement pipeline cannot produce an artifact."""
    pass


@dataclass
class EnhancementConfig:
    """
    Enhancement parameters.

    contrast and jpeg_quality come from the active capture profile.
    """

    contrast: float = 1.5
    jpeg_quality: float = 0.8
    crop_width_ratio: float = 0.8
    crop_aspect_ratio: float = 0.5

    def __post_init__(self) -> None:
        errors = []
        if self.contrast <= 0:
            errors.append(f"contrast must be > 0, got {self.contrast}")
        if not 0 < self.jpeg_quality <= 1:
            errors.append(f"jpeg_quality must be in (0, 1], got {self.jpeg_quality}")
        if not 0 < self.crop_width_ratio <= 1:
            errors.append(f"crop_width_ratio must be in (0, 1], got {self.crop_width_ratio}")
        if self.crop_aspect_ratio <= 0:
            errors.append(f"crop_aspect_ratio must be > 0, got {self.crop_aspect_ratio}")
        if errors:
            raise ValueError("Invalid enhancement config:\n" + "\n".join(errors))


class ImageEnhancer:
    """
    Grayscale/contrast/crop pipeline for captured frames.

    Example:
        enhancer = ImageEnhancer(EnhancementConfig(contrast=1.5))
        image = enhancer.enhance(frame)
        print(image.width, image.height, len(image.data))
    """

    def __init__(self, config: Optional[EnhancementConfig] = None) -> None:
        self.config = config or EnhancementConfig()
        logger.info(
            f"ImageEnhancer initialized: contrast={self.config.contrast}, "
            f"quality={self.config.jpeg_quality}, "
            f"crop={self.config.crop_width_ratio:.0%} "
            f"aspect={self.config.crop_aspect_ratio}"
        )

    def enhance(self, frame: Frame) -> CapturedImage:
        """
        Run the full pipeline on one frame.

        Args:
            frame: Full-resolution RGBA frame

        Returns:
            CapturedImage with the enhanced crop and its JPEG encoding

        Raises:
            EnhancementError: If the frame is empty or encoding fails
        """
        if frame.width == 0 or frame.height == 0:
            raise EnhancementError(f"Cannot enhance empty frame: {frame!r}")

        working = np.array(frame.pixels, dtype=np.uint8, copy=True)
        contrasted = self.apply_contrast(working)
        cropped = self.crop_center(contrasted)

        try:
            data = encode_jpeg(cropped, self.config.jpeg_quality)
        except ImageEncodeError as e:
            raise EnhancementError(f"Encoding failed for {frame!r}: {e}") from e

        height, width = cropped.shape[:2]
        image = CapturedImage(
            pixels=cropped,
            width=width,
            height=height,
            data=data,
            quality=self.config.jpeg_quality,
            mime_type=JPEG_MIME_TYPE,
        )
        logger.info(f"Frame {frame.frame_id} enhanced: {image!r}")
        return image

    def apply_contrast(self, pixels: np.ndarray) -> np.ndarray:
        """
        Grayscale then linear contrast expansion on the RGB channels.

        Args:
            pixels: RGBA buffer (H, W, 4), uint8

        Returns:
            New RGBA buffer with R = G = B = enhanced gray, alpha preserved
        """
        contrast = self.config.contrast
        intercept = 128 * (1 - contrast)

        rgb = pixels[..., :3].astype(np.float64)
        avg = (rgb[..., 0] + rgb[..., 1] + rgb[..., 2]) / 3
        gray = avg * contrast + intercept
        gray = np.clip(np.rint(gray), 0, 255).astype(np.uint8)

        result = pixels.copy()
        result[..., 0] = gray
        result[..., 1] = gray
        result[..., 2] = gray
        return result

    def crop_box(self, width: int, height: int) -> tuple:
        """
        Compute the centered crop rectangle for a frame size.

        y0 is negative when the box is taller than the frame.

        Returns:
            (x0, y0, crop_width, crop_height)

        Raises:
            EnhancementError: If the crop would be empty
        """
        crop_w = int(width * self.config.crop_width_ratio)
        crop_h = int(width * self.config.crop_width_ratio * self.config.crop_aspect_ratio)

        if crop_w == 0 or crop_h == 0:
            raise EnhancementError(f"Frame {width}x{height} too small to crop")

        x0 = (width - crop_w) // 2
        y0 = (height - crop_h) // 2
        return x0, y0, crop_w, crop_h

    def crop_center(self, pixels: np.ndarray) -> np.ndarray:
        """Cut the centered 2:1 box out of an RGBA buffer."""
        height, width = pixels.shape[:2]
        x0, y0, crop_w, crop_h = self.crop_box(width, height)

        if y0 >= 0:
            return np.ascontiguousarray(pixels[y0:y0 + crop_h, x0:x0 + crop_w])

        logger.warning(
            f"Crop height {crop_h} exceeds frame height {height}, padding blank rows"
        )
        canvas = np.zeros((crop_h, crop_w, pixels.shape[2]), dtype=np.uint8)
        canvas[-y0:-y0 + height] = pixels[:, x0:x0 + crop_w]
        return canvas
