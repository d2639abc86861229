"""
Image Codec
===========

Dedicated module for moving images in and out of the pipeline.

Design Rules:
    - This is the ONLY place in the codebase that decodes or encodes images
    - Decoded images are returned as RGBA Frames
    - Fails fast on corrupt input
    - JPEG quality is expressed in (0, 1], like a canvas export
"""

import base64
import binascii
import logging

import cv2
import numpy as np

from ecg_assist.capture.frame import Frame


logger = logging.getLogger(__name__)


class ImageDecodeError(Exception):
    """Raised when image decoding fails."""
    pass


class ImageEncodeError(Exception):
    """Raised when image encoding fails."""
    pass


def decode_image_b64(image_b64: str, frame_id: int = 0, timestamp: float = 0.0) -> Frame:
    """
    Decode a base64 image (optionally a data URL) into an RGBA frame.

    Args:
        image_b64: Base64 JPEG/PNG bytes, with or without a ``data:`` prefix
        frame_id: Frame id to attach
        timestamp: Timestamp to attach

    Returns:
        Frame with RGBA pixels

    Raises:
        ImageDecodeError: If decoding fails or the image is invalid
    """
    payload = image_b64.strip()
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")

    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Base64 decode failed: {e}")

    if not image_bytes:
        raise ImageDecodeError("Empty image payload")

    nparr = np.frombuffer(image_bytes, np.uint8)
    bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

    if bgr is None:
        raise ImageDecodeError("cv2.imdecode returned None")

    if bgr.ndim != 3 or bgr.shape[2] != 3:
        raise ImageDecodeError(f"Invalid image shape: {bgr.shape}")

    rgba = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)
    return Frame(pixels=rgba, timestamp=timestamp, frame_id=frame_id)


def encode_jpeg(rgba: np.ndarray, quality: float) -> bytes:
    """
    Encode an RGBA buffer as JPEG. Alpha is dropped.

    Args:
        rgba: (H, W, 4) uint8 pixels
        quality: Quality in (0, 1]

    Returns:
        JPEG bytes

    Raises:
        ImageEncodeError: If the buffer is invalid or OpenCV refuses it
    """
    if not 0 < quality <= 1:
        raise ImageEncodeError(f"quality must be in (0, 1], got {quality}")
    if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.size == 0:
        raise ImageEncodeError(f"Invalid RGBA buffer shape: {rgba.shape}")

    bgr = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)
    params = [cv2.IMWRITE_JPEG_QUALITY, int(round(quality * 100))]
    ok, buffer = cv2.imencode(".jpg", bgr, params)

    if not ok:
        raise ImageEncodeError("cv2.imencode returned failure")

    return buffer.tobytes()

