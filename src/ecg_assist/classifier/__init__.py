"""
Classifier Module
=================

LangGraph-based deterministic ECG risk classifier.

    - rules.py: Thresholds and the individual rule steps
    - graph.py: Step wiring, classify() and analyze_ecg()

Key Design Decisions:
    - LangGraph is used for STRUCTURE, not model inference
    - Every step is a pure function of the measurement set
    - Risk only escalates, except the ST elevation override
"""

from ecg_assist.classifier.graph import (
    ECGRuleClassifier,
    analyze_ecg,
    create_classifier,
    set_default_classifier,
)
from ecg_assist.classifier.rules import ClassificationRules, ClassifierThresholds

__all__ = [
    "ECGRuleClassifier",
    "analyze_ecg",
    "create_classifier",
    "set_default_classifier",
    "ClassificationRules",
    "ClassifierThresholds",
]
