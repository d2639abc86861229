"""
Measurement Module
==================

Caliper-based interval measurement over the captured trace.
"""

from ecg_assist.measurement.calipers import (
    CaliperLimits,
    CaliperMeasurementModel,
    CaliperReading,
    Marker,
    ViewportRect,
    measure_span,
)

__all__ = [
    "CaliperLimits",
    "CaliperMeasurementModel",
    "CaliperReading",
    "Marker",
    "ViewportRect",
    "measure_span",
]
