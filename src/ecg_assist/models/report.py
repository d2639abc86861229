"""
Report Bundle
=============

Hand-off payload for the report collaborator: the captured image, the final
measurement set and the analysis derived from it.

Output Contract:
    {
        "image": {"image": "data:image/jpeg;base64,...", "width": 1024, ...},
        "measurements": { ...measurement set wire format... },
        "analysis": { ...analysis result wire format... },
        "riskHeadline": "No critical abnormalities found"
    }

The analysis is never trusted as given: construction re-classifies the
measurements and rejects a bundle whose analysis does not match. The check
uses the shared classifier unless one is passed in the validation context
(``context={"classifier": ...}``), which is what build() does.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationInfo, model_validator

from ecg_assist.classifier.graph import ECGRuleClassifier, analyze_ecg
from ecg_assist.models.analysis import AnalysisResult
from ecg_assist.models.capture import JPEG_MIME_TYPE, CapturedImage
from ecg_assist.models.measurements import ECGMeasurementSet


class ReportImage(BaseModel):
    """Embeddable form of a CapturedImage."""

    image: str = Field(..., description="Base64 data URL")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    mime_type: str = Field(default=JPEG_MIME_TYPE, alias="mimeType")
    quality: float = Field(..., gt=0, le=1.0)

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        frozen = True

    @classmethod
    def from_captured(cls, captured: CapturedImage) -> "ReportImage":
        return cls.model_validate(captured.to_dict())


class ReportBundle(BaseModel):
    """
    Image, measurements and analysis for one patient report.

    Attributes:
        image: Captured trace, None when the user skipped the photo
        measurements: Final measurement set
        analysis: Classification of ``measurements``
    """

    image: Optional[ReportImage] = None
    measurements: ECGMeasurementSet
    analysis: AnalysisResult

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        frozen = True

    @model_validator(mode="after")
    def _analysis_matches_measurements(self, info: ValidationInfo) -> "ReportBundle":
        classifier = (info.context or {}).get("classifier")
        expected = analyze_ecg(self.measurements, classifier)
        if expected != self.analysis:
            raise ValueError("analysis does not match a fresh classification of measurements")
        return self

    @classmethod
    def build(
        cls,
        measurements: ECGMeasurementSet,
        captured: Optional[Union[CapturedImage, ReportImage]] = None,
        classifier: Optional[ECGRuleClassifier] = None,
    ) -> "ReportBundle":
        """
        Classify ``measurements`` and bundle the result with the image.

        Args:
            measurements: Final measurement set
            captured: Captured image, or its embeddable form
            classifier: Classifier to use instead of the shared default
        """
        if isinstance(captured, CapturedImage):
            captured = ReportImage.from_captured(captured)

        return cls.model_validate(
            {
                "image": captured,
                "measurements": measurements,
                "analysis": analyze_ecg(measurements, classifier),
            },
            context={"classifier": classifier},
        )

    @property
    def risk_headline(self) -> str:
        return self.analysis.risk_level.headline

    def to_wire(self) -> dict:
        """Export using the camelCase wire names."""
        return {
            "image": (
                self.image.model_dump(mode="json", by_alias=True)
                if self.image is not None
                else None
            ),
            "measurements": self.measurements.to_wire(),
            "analysis": self.analysis.to_wire(),
            "riskHeadline": self.risk_headline,
        }
