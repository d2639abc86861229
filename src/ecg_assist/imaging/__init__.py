"""
Imaging Module
==============

Image decoding/encoding and the deterministic enhancement pipeline.
"""

from ecg_assist.imaging.codec import (
    ImageDecodeError,
    ImageEncodeError,
    decode_image_b64,
    encode_jpeg,
)
from ecg_assist.imaging.enhancer import EnhancementConfig, EnhancementError, ImageEnhancer

__all__ = [
    "ImageDecodeError",
    "ImageEncodeError",
    "decode_image_b64",
    "encode_jpeg",
    "EnhancementConfig",
    "EnhancementError",
    "ImageEnhancer",
]
