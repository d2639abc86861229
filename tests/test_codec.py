"""
Image Codec Tests
=================

Base64 decoding into RGBA frames and JPEG encoding.
"""

import base64

import cv2
import numpy as np
import pytest

from ecg_assist.imaging.codec import (
    ImageDecodeError,
    ImageEncodeError,
    decode_image_b64,
    encode_jpeg,
)


def _png_b64(width=40, height=20, bgr=(0, 0, 255)) -> str:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = bgr
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return base64.b64encode(buffer.tobytes()).decode("ascii")


class TestDecode:
    """Tests for decode_image_b64()."""

    def test_decodes_to_rgba(self):
        frame = decode_image_b64(_png_b64(), frame_id=7, timestamp=1.5)

        assert (frame.width, frame.height) == (40, 20)
        assert frame.frame_id == 7
        assert frame.timestamp == 1.5
        # BGR red becomes RGBA red
        assert tuple(frame.pixels[0, 0]) == (255, 0, 0, 255)

    def test_accepts_data_url(self):
        frame = decode_image_b64("data:image/png;base64," + _png_b64())
        assert frame.width == 40

    def test_invalid_base64(self):
        with pytest.raises(ImageDecodeError):
            decode_image_b64("not base64 at all!!")

    def test_not_an_image(self):
        payload = base64.b64encode(b"plain text, not pixels").decode("ascii")
        with pytest.raises(ImageDecodeError):
            decode_image_b64(payload)

    def test_empty(self):
        with pytest.raises(ImageDecodeError):
            decode_image_b64("")


class TestEncode:
    """Tests for encode_jpeg()."""

    def test_encodes_jpeg(self):
        rgba = np.full((16, 32, 4), 128, dtype=np.uint8)

        data = encode_jpeg(rgba, 0.8)

        assert data[:2] == b"\xff\xd8"
        decoded = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
        assert decoded.shape == (16, 32, 3)

    @pytest.mark.parametrize("quality", [0, -0.1, 1.5])
    def test_quality_range(self, quality):
        with pytest.raises(ImageEncodeError):
            encode_jpeg(np.zeros((4, 4, 4), dtype=np.uint8), quality)

    def test_rejects_non_rgba(self):
        with pytest.raises(ImageEncodeError):
            encode_jpeg(np.zeros((4, 4, 3), dtype=np.uint8), 0.8)
