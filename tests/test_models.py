"""
Model Tests
===========

Measurement set, captured image and report bundle validation.
"""

import numpy as np
import pytest
from pydantic import ValidationError


class TestMeasurementSet:
    """Tests for ECGMeasurementSet."""

    def test_defaults(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        measurements = ECGMeasurementSet()

        assert measurements.rr_interval_ms == ""
        assert measurements.st_elevation_mm == "0"
        assert measurements.t_wave_inversion is False

    def test_wire_names(self, sample_measurement_payload):
        from ecg_assist.models.measurements import ECGMeasurementSet

        measurements = ECGMeasurementSet.model_validate(sample_measurement_payload)

        assert measurements.rr_interval_ms == "800"
        assert measurements.to_wire() == sample_measurement_payload

    def test_update_by_alias_or_name(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        measurements = ECGMeasurementSet()

        by_alias = measurements.update(rrIntervalMs="800")
        by_name = measurements.update(rr_interval_ms="800")

        assert by_alias == by_name
        assert measurements.rr_interval_ms == ""

    def test_update_unknown_field(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        with pytest.raises(KeyError):
            ECGMeasurementSet().update(heartRate="70")

    def test_frozen(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        measurements = ECGMeasurementSet()
        with pytest.raises(ValidationError):
            measurements.rr_interval_ms = "800"

    def test_with_slot(self):
        from ecg_assist.models.measurements import ECGMeasurementSet, IntervalSlot

        measurements = ECGMeasurementSet().with_slot(IntervalSlot.QT, "380")

        assert measurements.qt_interval_ms == "380"
        assert IntervalSlot.QRS.field_name == "qrs_width_ms"

    def test_ready_for_analysis(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        partial = ECGMeasurementSet(rrIntervalMs="800", qtIntervalMs="380")
        complete = partial.update(qrsWidthMs="90")

        assert partial.is_ready_for_analysis is False
        assert complete.is_ready_for_analysis is True

    def test_st_leads_visibility(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        assert ECGMeasurementSet().shows_st_elevation_leads is False
        assert ECGMeasurementSet(stElevationMm="0.5").shows_st_elevation_leads is True
        assert ECGMeasurementSet(stElevationMm="-1").shows_st_elevation_leads is False

    def test_numbers_stored_as_text(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        measurements = ECGMeasurementSet(rrIntervalMs=800, stElevationMm=1.5, qtIntervalMs=None)

        assert measurements.rr_interval_ms == "800"
        assert measurements.st_elevation_mm == "1.5"
        assert measurements.qt_interval_ms == ""

    def test_non_finite_numbers_are_blank(self):
        from ecg_assist.models.measurements import ECGMeasurementSet

        measurements = ECGMeasurementSet(
            rrIntervalMs=float("inf"),
            qtIntervalMs=float("nan"),
            stElevationMm=float("-inf"),
        )

        assert measurements.rr_interval_ms == ""
        assert measurements.qt_interval_ms == ""
        assert measurements.st_elevation_mm == ""
        assert measurements.is_ready_for_analysis is False


class TestCapturedImage:
    """Tests for CapturedImage."""

    def test_shape_must_match(self):
        from ecg_assist.models.capture import CapturedImage

        with pytest.raises(ValueError):
            CapturedImage(
                pixels=np.zeros((10, 20, 4), dtype=np.uint8),
                width=10,
                height=20,
                data=b"\xff\xd8",
                quality=0.8,
            )

    def test_data_required(self):
        from ecg_assist.models.capture import CapturedImage

        with pytest.raises(ValueError):
            CapturedImage(
                pixels=np.zeros((10, 20, 4), dtype=np.uint8),
                width=20,
                height=10,
                data=b"",
                quality=0.8,
            )

    def test_data_url(self):
        from ecg_assist.models.capture import to_data_url

        assert to_data_url(b"abc") == "data:image/jpeg;base64,YWJj"


class TestReportBundle:
    """Tests for ReportBundle."""

    def test_build(self, normal_measurements, trace_frame):
        from ecg_assist.imaging.enhancer import ImageEnhancer
        from ecg_assist.models.report import ReportBundle

        captured = ImageEnhancer().enhance(trace_frame)
        bundle = ReportBundle.build(normal_measurements, captured)

        wire = bundle.to_wire()
        assert wire["image"]["width"] == 512
        assert wire["image"]["image"] == captured.data_url
        assert wire["analysis"]["riskLevel"] == "LOW"
        assert wire["riskHeadline"] == "No critical abnormalities found"

    def test_build_without_image(self, normal_measurements):
        from ecg_assist.models.report import ReportBundle

        bundle = ReportBundle.build(normal_measurements)

        assert bundle.image is None
        assert bundle.to_wire()["image"] is None

    def test_mismatched_analysis_rejected(self, normal_measurements):
        from ecg_assist.classifier import analyze_ecg
        from ecg_assist.models.measurements import ECGMeasurementSet
        from ecg_assist.models.report import ReportBundle

        stale = analyze_ecg(ECGMeasurementSet(stElevationMm="2"))

        with pytest.raises(ValidationError):
            ReportBundle(measurements=normal_measurements, analysis=stale)

    def test_build_with_custom_classifier(self):
        from ecg_assist.classifier import ClassifierThresholds, ECGRuleClassifier
        from ecg_assist.models.analysis import QRS_WIDE
        from ecg_assist.models.measurements import ECGMeasurementSet
        from ecg_assist.models.report import ReportBundle

        custom = ECGRuleClassifier(ClassifierThresholds(qrs_wide_ms=100))
        measurements = ECGMeasurementSet(rrIntervalMs="1000", qrsWidthMs="110", qtIntervalMs="380")

        bundle = ReportBundle.build(measurements, classifier=custom)

        assert bundle.analysis.qrs_interpretation == QRS_WIDE
        assert bundle.analysis == custom.classify(measurements)

    def test_custom_analysis_checked_against_its_classifier(self):
        from ecg_assist.classifier import ClassifierThresholds, ECGRuleClassifier
        from ecg_assist.models.measurements import ECGMeasurementSet
        from ecg_assist.models.report import ReportBundle

        custom = ECGRuleClassifier(ClassifierThresholds(qrs_wide_ms=100))
        measurements = ECGMeasurementSet(rrIntervalMs="1000", qrsWidthMs="110", qtIntervalMs="380")
        data = {"measurements": measurements, "analysis": custom.classify(measurements)}

        with pytest.raises(ValidationError):
            ReportBundle(**data)

        bundle = ReportBundle.model_validate(data, context={"classifier": custom})
        assert bundle.analysis.risk_level.value == "MODERATE"
