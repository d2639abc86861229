"""
Test Configuration
==================

Pytest fixtures and test configuration for ECG Assist.

Frames are synthetic numpy buffers; no camera is needed.
"""

import numpy as np
import pytest


def _solid(width: int, height: int, rgb=(0, 0, 0), alpha: int = 255) -> np.ndarray:
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = rgb[0]
    pixels[..., 1] = rgb[1]
    pixels[..., 2] = rgb[2]
    pixels[..., 3] = alpha
    return pixels


@pytest.fixture
def make_frame():
    """Factory for solid-color RGBA frames."""
    from ecg_assist.capture.frame import Frame

    def _make(width=640, height=480, rgb=(0, 0, 0), alpha=255, frame_id=0):
        return Frame(
            pixels=_solid(width, height, rgb, alpha),
            timestamp=float(frame_id),
            frame_id=frame_id,
        )

    return _make


@pytest.fixture
def noise_frame():
    """Factory for reproducible random-noise frames."""
    from ecg_assist.capture.frame import Frame

    def _make(width=640, height=480, seed=0, frame_id=0):
        rng = np.random.default_rng(seed)
        pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
        pixels[..., 3] = 255
        return Frame(pixels=pixels, timestamp=float(frame_id), frame_id=frame_id)

    return _make


@pytest.fixture
def trace_frame():
    """A 640x480 frame with a gridded, trace-like pattern."""
    from ecg_assist.capture.frame import Frame

    pixels = _solid(640, 480, rgb=(240, 200, 200))
    pixels[::16, :, :3] = (230, 120, 120)
    pixels[:, ::16, :3] = (230, 120, 120)
    pixels[200:280, 100:540, :3] = (20, 20, 20)
    return Frame(pixels=pixels, timestamp=0.0, frame_id=0)


@pytest.fixture
def normal_measurements():
    """Scenario A: normal sinus values."""
    from ecg_assist.models.measurements import ECGMeasurementSet

    return ECGMeasurementSet(
        rrIntervalMs="1000",
        prIntervalMs="150",
        qrsWidthMs="90",
        qtIntervalMs="380",
    )


@pytest.fixture
def sample_measurement_payload():
    """Wire-format measurement set."""
    return {
        "rrIntervalMs": "800",
        "prIntervalMs": "160",
        "qrsWidthMs": "90",
        "qtIntervalMs": "380",
        "stElevationMm": "0",
        "stElevationLeads": "",
        "tWaveInversion": False,
        "tWaveInversionLeads": "",
    }
