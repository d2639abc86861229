"""
Data Models
===========

Pydantic models and data containers for the ECG assistant.

Models:
    Measurements:
        - ECGMeasurementSet: User-entered intervals (text, camelCase wire names)
        - IntervalSlot: The four slots a caliper reading can fill

    Analysis:
        - RiskLevel: LOW < MODERATE < HIGH
        - AnalysisResult: Classifier output contract

    Capture:
        - CapturedImage: Enhanced JPEG artifact

Note:
    models.report and models.requests depend on the classifier and are
    imported directly rather than re-exported here.
"""

from ecg_assist.models.measurements import ECGMeasurementSet, IntervalSlot
from ecg_assist.models.analysis import AnalysisResult, RiskLevel
from ecg_assist.models.capture import CapturedImage

__all__ = [
    # Measurements
    "ECGMeasurementSet",
    "IntervalSlot",
    # Analysis
    "AnalysisResult",
    "RiskLevel",
    # Capture
    "CapturedImage",
]
