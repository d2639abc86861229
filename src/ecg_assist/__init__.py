"""
ECG Assist
==========

Photo-capture and measurement assistant for paper ECG traces.

Components:
    - capture: Frame sources, stability detection, capture sessions
    - imaging: Image decoding/encoding and the enhancement pipeline
    - measurement: Caliper model converting marker spans to milliseconds
    - classifier: LangGraph-based deterministic risk classifier
    - models: Measurement set, analysis result and report schemas

Example:
    from ecg_assist.classifier import analyze_ecg
    from ecg_assist.models import ECGMeasurementSet

    result = analyze_ecg(ECGMeasurementSet(rrIntervalMs="800", qtIntervalMs="380"))
    print(result.risk_level, result.summary)

Note:
    The HTTP service lives in ecg_assist.main.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
