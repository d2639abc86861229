"""
Classifier Graph
================

LangGraph pipeline for the rule-based ECG risk classifier.

LangGraph is used for CONTROL FLOW only. Every node is a deterministic rule
step from ``ClassificationRules``; there is no model inference.

Graph Structure:
    START → parse → rate_and_rhythm → pr_interval → qrs_width
          → qtc_correction → st_segment → heart_rate_bounds → END

Design Philosophy:
    - Pure function of the measurement set
    - Fixed rule order, so summary order is fixed
    - Recomputed wholesale on every change, no incremental state
"""

import logging
from typing import Any, Dict, Optional

from langgraph.graph import StateGraph, END

from ecg_assist.classifier.rules import (
    ClassificationRules,
    ClassificationState,
    ClassifierThresholds,
    initial_state,
)
from ecg_assist.models.analysis import AnalysisResult
from ecg_assist.models.measurements import ECGMeasurementSet


logger = logging.getLogger(__name__)


# Node order is part of the output contract (summary order).
_STEP_ORDER = (
    "parse",
    "rate_and_rhythm",
    "pr_interval",
    "qrs_width",
    "qtc_correction",
    "st_segment",
    "heart_rate_bounds",
)


class ECGRuleClassifier:
    """
    Deterministic risk classifier over a measurement set.

    Example:
        classifier = ECGRuleClassifier()
        result = classifier.classify(ECGMeasurementSet(rrIntervalMs="800"))
        print(result.risk_level, result.summary)
    """

    def __init__(self, thresholds: Optional[ClassifierThresholds] = None) -> None:
        """
        Initialize the classifier.

        Args:
            thresholds: Rule thresholds (uses defaults if None)
        """
        self.thresholds = thresholds or ClassifierThresholds()
        self.rules = ClassificationRules(self.thresholds)
        self._classifications = 0

        self._graph = self._build_graph()

        logger.info("ECGRuleClassifier initialized")

    def _build_graph(self):
        """Build and compile the rule pipeline."""
        workflow = StateGraph(ClassificationState)

        for name in _STEP_ORDER:
            workflow.add_node(name, getattr(self.rules, name))

        workflow.set_entry_point(_STEP_ORDER[0])
        for current, following in zip(_STEP_ORDER, _STEP_ORDER[1:]):
            workflow.add_edge(current, following)
        workflow.add_edge(_STEP_ORDER[-1], END)

        return workflow.compile()

    def classify(self, measurements: ECGMeasurementSet) -> AnalysisResult:
        """
        Run every rule over one measurement set.

        Args:
            measurements: Current measurement set (blank fields parse as 0)

        Returns:
            AnalysisResult
        """
        final = self._graph.invoke(initial_state(measurements))
        self._classifications += 1

        result = AnalysisResult(
            calculated_heart_rate=final["calculated_heart_rate"],
            rhythm=final["rhythm"],
            pr_interpretation=final["pr_interpretation"],
            qrs_interpretation=final["qrs_interpretation"],
            qtc=final["qtc"],
            qt_interpretation=final["qt_interpretation"],
            st_interpretation=final["st_interpretation"],
            risk_level=final["risk_level"],
            summary=list(final["summary"]),
        )

        logger.debug(
            f"Classified: hr={result.calculated_heart_rate}, qtc={result.qtc}, "
            f"risk={result.risk_level.value}, notes={len(result.summary)}"
        )
        return result

    def get_metrics(self) -> Dict[str, Any]:
        """Get classifier metrics for observability."""
        return {
            "classifications": self._classifications,
            "steps": list(_STEP_ORDER),
        }


_default_classifier: Optional[ECGRuleClassifier] = None


def set_default_classifier(classifier: Optional[ECGRuleClassifier]) -> None:
    """Replace the classifier used by analyze_ecg (None restores defaults)."""
    global _default_classifier
    _default_classifier = classifier


def analyze_ecg(
    measurements: ECGMeasurementSet,
    classifier: Optional[ECGRuleClassifier] = None,
) -> AnalysisResult:
    """
    Classify a measurement set with the shared classifier.

    Args:
        measurements: Measurement set to classify
        classifier: Classifier to use instead of the shared default

    Returns:
        AnalysisResult
    """
    global _default_classifier
    if classifier is None:
        if _default_classifier is None:
            _default_classifier = ECGRuleClassifier()
        classifier = _default_classifier
    return classifier.classify(measurements)


def create_classifier(config: Dict[str, Any]) -> ECGRuleClassifier:
    """
    Create a classifier from a ``classifier`` configuration dictionary.

    Args:
        config: Classifier configuration dictionary

    Returns:
        Configured ECGRuleClassifier
    """
    defaults = ClassifierThresholds()
    thresholds = ClassifierThresholds(
        pr_prolonged_ms=config.get("pr_prolonged_ms", defaults.pr_prolonged_ms),
        pr_short_ms=config.get("pr_short_ms", defaults.pr_short_ms),
        qrs_wide_ms=config.get("qrs_wide_ms", defaults.qrs_wide_ms),
        qtc_prolonged_ms=config.get("qtc_prolonged_ms", defaults.qtc_prolonged_ms),
        st_elevation_mm=config.get("st_elevation_mm", defaults.st_elevation_mm),
        heart_rate_high_bpm=config.get("heart_rate_high_bpm", defaults.heart_rate_high_bpm),
        heart_rate_low_bpm=config.get("heart_rate_low_bpm", defaults.heart_rate_low_bpm),
    )
    return ECGRuleClassifier(thresholds=thresholds)
