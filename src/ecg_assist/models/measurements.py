"""
Measurement Set Schema
======================

The shared measurement set populated by the caliper model and by manual entry.

Values are kept as text exactly as entered ("" means absent). Formulas parse
them on demand, so a half-typed value never makes the set invalid.

Wire Format (camelCase, as exchanged with the wizard and report collaborators):
    {
        "rrIntervalMs": "800",
        "prIntervalMs": "160",
        "qrsWidthMs": "90",
        "qtIntervalMs": "380",
        "stElevationMm": "0",
        "stElevationLeads": "",
        "tWaveInversion": false,
        "tWaveInversionLeads": ""
    }

Example:
    from ecg_assist.models.measurements import ECGMeasurementSet, IntervalSlot

    measurements = ECGMeasurementSet()
    measurements = measurements.update(rrIntervalMs="800")
    measurements = measurements.with_slot(IntervalSlot.QT, "380")
"""

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ecg_assist.numeric import format_number, parse_number


class IntervalSlot(str, Enum):
    """
    The four duration slots a caliper reading can be applied to.

    Values are the wire names of the corresponding measurement fields.
    """

    RR = "rrIntervalMs"
    PR = "prIntervalMs"
    QRS = "qrsWidthMs"
    QT = "qtIntervalMs"

    @property
    def field_name(self) -> str:
        """Python attribute name on ECGMeasurementSet."""
        return _ALIAS_TO_FIELD[self.value]


class ECGMeasurementSet(BaseModel):
    """
    User-entered ECG interval measurements.

    Attributes:
        rr_interval_ms: RR interval (ms), "" when absent
        pr_interval_ms: PR interval (ms), "" when absent
        qrs_width_ms: QRS width (ms), "" when absent
        qt_interval_ms: QT interval (ms), "" when absent
        st_elevation_mm: Signed ST deviation (mm), defaults to "0"
        st_elevation_leads: Leads showing elevation (free text)
        t_wave_inversion: Whether T-wave inversion was observed
        t_wave_inversion_leads: Leads showing inversion (free text)
    """

    rr_interval_ms: str = Field(
        default="",
        alias="rrIntervalMs",
        description="RR interval in milliseconds",
    )

    pr_interval_ms: str = Field(
        default="",
        alias="prIntervalMs",
        description="PR interval in milliseconds",
    )

    qrs_width_ms: str = Field(
        default="",
        alias="qrsWidthMs",
        description="QRS width in milliseconds",
    )

    qt_interval_ms: str = Field(
        default="",
        alias="qtIntervalMs",
        description="QT interval in milliseconds",
    )

    st_elevation_mm: str = Field(
        default="0",
        alias="stElevationMm",
        description="ST segment elevation in millimetres (signed)",
    )

    st_elevation_leads: str = Field(
        default="",
        alias="stElevationLeads",
        description="Leads with ST elevation, only meaningful when elevation > 0",
    )

    t_wave_inversion: bool = Field(
        default=False,
        alias="tWaveInversion",
        description="T-wave inversion observed",
    )

    t_wave_inversion_leads: str = Field(
        default="",
        alias="tWaveInversionLeads",
        description="Leads with T-wave inversion",
    )

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        frozen = True

    @field_validator(
        "rr_interval_ms",
        "pr_interval_ms",
        "qrs_width_ms",
        "qt_interval_ms",
        "st_elevation_mm",
        mode="before",
    )
    @classmethod
    def _coerce_numeric_text(cls, value: Any) -> Any:
        """Accept numbers from JSON clients and store them as text."""
        if value is None:
            return ""
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            if not math.isfinite(value):
                return ""
            return format_number(float(value))
        return value

    @property
    def is_ready_for_analysis(self) -> bool:
        """RR, QRS and QT must all be entered before analysis is offered."""
        return bool(self.rr_interval_ms and self.qrs_width_ms and self.qt_interval_ms)

    @property
    def shows_st_elevation_leads(self) -> bool:
        """Lead entry is only meaningful for a positive elevation."""
        return parse_number(self.st_elevation_mm) > 0

    def update(self, **changes: Any) -> "ECGMeasurementSet":
        """
        Return a copy with the given fields overwritten.

        Accepts either attribute names (``rr_interval_ms``) or wire names
        (``rrIntervalMs``).

        Raises:
            KeyError: If a field name is unknown
        """
        data = self.model_dump()
        for key, value in changes.items():
            name = _ALIAS_TO_FIELD.get(key, key)
            if name not in data:
                raise KeyError(f"Unknown measurement field: {key}")
            data[name] = value
        return ECGMeasurementSet.model_validate(data)

    def with_slot(self, slot: IntervalSlot, value: str) -> "ECGMeasurementSet":
        """Overwrite one interval slot."""
        return self.update(**{slot.field_name: value})

    def to_wire(self) -> dict:
        """Export using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)


_ALIAS_TO_FIELD = {
    field.alias: name
    for name, field in ECGMeasurementSet.model_fields.items()
    if field.alias
}
