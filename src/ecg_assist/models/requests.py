"""
HTTP Request Schemas
====================

Request bodies accepted by the HTTP service. Field names on the wire are
camelCase, matching the measurement set.

Example (POST /calipers/apply):
    {
        "p1": 25,
        "p2": 57,
        "totalViewMs": 2500,
        "slot": "rrIntervalMs",
        "measurements": {"rrIntervalMs": "", "qtIntervalMs": "380"}
    }
"""

from typing import Optional

from pydantic import BaseModel, Field

from ecg_assist.models.measurements import ECGMeasurementSet, IntervalSlot
from ecg_assist.models.report import ReportImage


class CaliperRequest(BaseModel):
    """Marker positions (%) and time scale."""

    p1: float = Field(default=30.0, description="First marker position (%)")
    p2: float = Field(default=70.0, description="Second marker position (%)")
    total_view_ms: float = Field(
        default=2500,
        alias="totalViewMs",
        description="Milliseconds represented by the full viewport width",
    )

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True


class CaliperApplyRequest(CaliperRequest):
    """Caliper reading to write into one interval slot."""

    slot: IntervalSlot = Field(..., description="Target interval slot (wire name)")
    measurements: ECGMeasurementSet = Field(default_factory=ECGMeasurementSet)


class EnhanceRequest(BaseModel):
    """Raw photo to run through the enhancement pipeline."""

    image: str = Field(..., description="Base64 image, with or without a data: prefix")
    profile: Optional[str] = Field(
        default=None,
        description="Capture profile name (defaults to the active profile)",
    )


class ReportRequest(BaseModel):
    """Inputs for a report bundle; the analysis is always recomputed."""

    image: Optional[ReportImage] = None
    measurements: ECGMeasurementSet
