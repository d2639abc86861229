"""
Analysis Result Models
======================

Output contract of the ECG rule classifier.

Output Contract:
    {
        "calculatedHeartRate": 75,
        "rhythm": "Regular",
        "prInterpretation": "Prolonged (1st Degree AV Block)",
        "qrsInterpretation": "Normal",
        "qtc": 425,
        "qtInterpretation": "Normal",
        "stInterpretation": "Normal",
        "riskLevel": "LOW",
        "summary": ["PR > 200ms: Suggests 1st Degree AV Block"]
    }

Design Rules:
    - Recomputed wholesale on every measurement change
    - Interpretations come from a fixed vocabulary (see constants below)
    - summary preserves rule order and is never deduplicated
"""

from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, Field


# Interpretation vocabulary
NORMAL = "Normal"
PR_PROLONGED = "Prolonged (1st Degree AV Block)"
PR_SHORT = "Short (Pre-excitation?)"
QRS_WIDE = "Wide (Bundle Branch Block / Ventricular)"
QT_PROLONGED = "Prolonged"
ST_ELEVATION = "Elevation"
T_WAVE_INVERSION = "T-Wave Inversion"


class RiskLevel(str, Enum):
    """
    Ordinal risk levels.

    Ordered LOW < MODERATE < HIGH. Rules escalate a level only upward,
    except ST elevation which assigns HIGH directly.
    """

    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        """Position on the LOW < MODERATE < HIGH scale."""
        return _RISK_ORDER[self]

    @property
    def headline(self) -> str:
        """One-line description shown next to the level."""
        return _RISK_HEADLINES[self]

    def escalate_to(self, target: "RiskLevel") -> "RiskLevel":
        """Return ``target`` if it is strictly higher, otherwise self."""
        return target if target.rank > self.rank else self


_RISK_ORDER = {RiskLevel.LOW: 0, RiskLevel.MODERATE: 1, RiskLevel.HIGH: 2}

_RISK_HEADLINES = {
    RiskLevel.LOW: "No critical abnormalities found",
    RiskLevel.MODERATE: "Abnormal ECG requiring consultation",
    RiskLevel.HIGH: "Possible STEMI or Dangerous Arrhythmia",
}


class AnalysisResult(BaseModel):
    """
    Deterministic rule-based interpretation of one measurement set.

    Attributes:
        calculated_heart_rate: 60000 / RR, rounded (0 when RR absent)
        rhythm: Always "Regular" (a single RR sample cannot show irregularity)
        pr_interpretation: PR interval reading
        qrs_interpretation: QRS width reading
        qtc: Bazett-corrected QT in ms (0 when RR absent)
        qt_interpretation: QTc reading
        st_interpretation: ST segment / T-wave reading
        risk_level: Overall risk level
        summary: Clinical notes in rule order
    """

    calculated_heart_rate: int = Field(
        ...,
        ge=0,
        alias="calculatedHeartRate",
        description="Heart rate derived from the RR interval (bpm)",
    )

    rhythm: Literal["Regular", "Irregular"] = Field(
        default="Regular",
        description="Rhythm regularity",
    )

    pr_interpretation: str = Field(..., alias="prInterpretation")

    qrs_interpretation: str = Field(..., alias="qrsInterpretation")

    qtc: int = Field(
        ...,
        ge=0,
        description="Bazett-corrected QT interval (ms)",
    )

    qt_interpretation: str = Field(..., alias="qtInterpretation")

    st_interpretation: str = Field(..., alias="stInterpretation")

    risk_level: RiskLevel = Field(
        ...,
        alias="riskLevel",
        description="Overall risk level (LOW, MODERATE, HIGH)",
    )

    summary: List[str] = Field(
        default_factory=list,
        description="Ordered clinical notes",
    )

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        frozen = True
        json_schema_extra = {
            "example": {
                "calculatedHeartRate": 60,
                "rhythm": "Regular",
                "prInterpretation": "Normal",
                "qrsInterpretation": "Normal",
                "qtc": 380,
                "qtInterpretation": "Normal",
                "stInterpretation": "Normal",
                "riskLevel": "LOW",
                "summary": [],
            }
        }

    def to_wire(self) -> dict:
        """Export using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
