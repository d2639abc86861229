"""
Caliper Measurement Model
=========================

Two draggable markers over the captured trace, converted to a duration.

Positions are percentages of the viewport width. The full width represents
``total_view_ms`` milliseconds, so:

    left        = min(p1, p2)
    right       = max(p1, p2)
    measured_ms = round((right - left) / 100 * total_view_ms)
    small_boxes = measured_ms / 40    (1 decimal)
    large_boxes = measured_ms / 200   (1 decimal)

Box counts assume standard ECG paper (40 ms small box, 200 ms large box) and
are display-only.

Markers are visually distinct but logically symmetric; nothing downstream
depends on which one is "first".
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ecg_assist.models.measurements import ECGMeasurementSet, IntervalSlot
from ecg_assist.numeric import round_half_up, to_fixed


logger = logging.getLogger(__name__)


class Marker(str, Enum):
    """The two caliper markers."""

    FIRST = "first"
    SECOND = "second"


@dataclass(frozen=True, slots=True)
class ViewportRect:
    """Horizontal extent of the image container in client coordinates."""

    left: float
    width: float


@dataclass
class CaliperLimits:
    """
    Caliper defaults and bounds.

    Loaded from configuration.
    """

    default_first: float = 30.0
    default_second: float = 70.0
    default_total_view_ms: int = 2500
    min_total_view_ms: int = 1000
    max_total_view_ms: int = 5000
    small_box_ms: float = 40.0
    large_box_ms: float = 200.0

    def __post_init__(self) -> None:
        errors = []
        if not 0 < self.min_total_view_ms <= self.max_total_view_ms:
            errors.append(
                f"time scale bounds invalid: "
                f"[{self.min_total_view_ms}, {self.max_total_view_ms}]"
            )
        elif not self.min_total_view_ms <= self.default_total_view_ms <= self.max_total_view_ms:
            errors.append(
                f"default_total_view_ms {self.default_total_view_ms} outside bounds"
            )
        for name in ("default_first", "default_second"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                errors.append(f"{name} must be in [0, 100], got {value}")
        if self.small_box_ms <= 0 or self.large_box_ms <= 0:
            errors.append("box durations must be > 0")
        if errors:
            raise ValueError("Invalid caliper limits:\n" + "\n".join(errors))


@dataclass(frozen=True, slots=True)
class CaliperReading:
    """
    Derived values for the current caliper span.

    Attributes:
        left: Lower marker position (%)
        right: Upper marker position (%)
        diff_percent: right - left
        total_view_ms: Time scale the reading was taken at
        measured_ms: Span duration in milliseconds
        small_boxes: Span in small boxes, formatted to 1 decimal
        large_boxes: Span in large boxes, formatted to 1 decimal
        small_box_width_percent: Width of one small box as % of the viewport
    """

    left: float
    right: float
    diff_percent: float
    total_view_ms: int
    measured_ms: int
    small_boxes: str
    large_boxes: str
    small_box_width_percent: float

    def to_dict(self) -> dict:
        """Export for JSON responses."""
        return {
            "left": self.left,
            "right": self.right,
            "diffPercent": self.diff_percent,
            "totalViewMs": self.total_view_ms,
            "measuredMs": self.measured_ms,
            "smallBoxes": self.small_boxes,
            "largeBoxes": self.large_boxes,
            "smallBoxWidthPercent": self.small_box_width_percent,
        }


def clamp_percent(value: float) -> float:
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, value))


class CaliperMeasurementModel:
    """
    Live caliper state for one measurement session.

    Holds only the two marker positions and the time scale; there is no
    history.

    Example:
        calipers = CaliperMeasurementModel()
        calipers.drag(Marker.FIRST, client_x=120, rect=ViewportRect(20, 400))
        calipers.set_time_scale(3000)
        measurements = calipers.apply(measurements, IntervalSlot.RR)
    """

    def __init__(self, limits: Optional[CaliperLimits] = None) -> None:
        self.limits = limits or CaliperLimits()
        self._positions = {
            Marker.FIRST: self.limits.default_first,
            Marker.SECOND: self.limits.default_second,
        }
        self._total_view_ms: int = self.limits.default_total_view_ms

    @property
    def p1(self) -> float:
        return self._positions[Marker.FIRST]

    @property
    def p2(self) -> float:
        return self._positions[Marker.SECOND]

    @property
    def total_view_ms(self) -> int:
        return self._total_view_ms

    def set_position(self, marker: Marker, percent: float) -> float:
        """Place a marker, clamped to [0, 100]. Returns the stored value."""
        value = clamp_percent(percent)
        self._positions[Marker(marker)] = value
        return value

    def drag(self, marker: Marker, client_x: float, rect: ViewportRect) -> float:
        """
        Move a marker to a pointer position inside the container.

        A zero-width container leaves the marker where it is.

        Args:
            marker: Marker being dragged
            client_x: Pointer/touch x coordinate
            rect: Container bounding box

        Returns:
            The marker's position after the drag
        """
        if rect.width <= 0:
            logger.debug(f"Ignoring drag on zero-width viewport: {rect}")
            return self._positions[Marker(marker)]
        percent = (client_x - rect.left) / rect.width * 100
        return self.set_position(marker, percent)

    def set_time_scale(self, total_view_ms: float) -> int:
        """
        Set the duration represented by the full viewport width.

        Values outside [min, max] are clamped and a non-finite value falls
        back to the default. Returns the stored value.
        """
        value = float(total_view_ms)
        if not math.isfinite(value):
            logger.warning(f"Ignoring non-finite time scale {value}, using default")
            value = self.limits.default_total_view_ms
        value = int(round_half_up(value))
        value = max(self.limits.min_total_view_ms, min(self.limits.max_total_view_ms, value))
        self._total_view_ms = value
        return value

    def reading(self) -> CaliperReading:
        """Derive the current span values."""
        return measure_span(self.p1, self.p2, self._total_view_ms, self.limits)

    @property
    def measured_ms(self) -> int:
        return self.reading().measured_ms

    def apply(self, measurements: ECGMeasurementSet, slot: IntervalSlot) -> ECGMeasurementSet:
        """
        Write the current reading into one interval slot.

        The slot's previous value is overwritten; other fields are untouched.
        """
        measured = self.measured_ms
        logger.info(f"Caliper reading {measured}ms applied to {IntervalSlot(slot).value}")
        return measurements.with_slot(IntervalSlot(slot), str(measured))

    def reset(self) -> None:
        """Restore default positions and time scale."""
        self._positions[Marker.FIRST] = self.limits.default_first
        self._positions[Marker.SECOND] = self.limits.default_second
        self._total_view_ms = self.limits.default_total_view_ms


def measure_span(
    p1: float,
    p2: float,
    total_view_ms: int,
    limits: Optional[CaliperLimits] = None,
) -> CaliperReading:
    """
    Stateless caliper derivation.

    Positions are clamped to [0, 100]; order does not matter.
    """
    limits = limits or CaliperLimits()
    first = clamp_percent(p1)
    second = clamp_percent(p2)
    left = min(first, second)
    right = max(first, second)
    diff_percent = right - left

    measured_ms = round_half_up(diff_percent / 100 * total_view_ms)

    return CaliperReading(
        left=left,
        right=right,
        diff_percent=diff_percent,
        total_view_ms=total_view_ms,
        measured_ms=measured_ms,
        small_boxes=to_fixed(measured_ms / limits.small_box_ms, 1),
        large_boxes=to_fixed(measured_ms / limits.large_box_ms, 1),
        small_box_width_percent=limits.small_box_ms / total_view_ms * 100,
    )
