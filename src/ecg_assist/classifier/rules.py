"""
Classification Rules
====================

Rule steps for the ECG risk classifier.

Each step reads the parsed intervals plus the risk level and summary built by
the steps before it, and returns only the channels it changes. Steps run in a
fixed order:

    parse -> rate_and_rhythm -> pr_interval -> qrs_width -> qtc_correction
          -> st_segment -> heart_rate_bounds

Rules:
    Heart rate:  hr = round(60000 / rr), 0 when rr is absent
    Rhythm:      always "Regular" (one RR sample cannot show irregularity)
    PR:          pr > 200 -> prolonged + note (no escalation)
                 0 < pr < 120 -> short (no note)
    QRS:         qrs > 120 -> wide + note, escalate to MODERATE
    QTc:         qtc = round(qt / sqrt(rr / 1000)), 0 when rr is absent
                 qtc > 460 -> prolonged + note, escalate to MODERATE
    ST:          st >= 1 -> elevation + note, risk = HIGH (direct assignment)
                 else T-wave inversion -> note, escalate to MODERATE
    HR bounds:   hr > 120 or hr < 45 -> note, escalate to MODERATE
                 (hr == 0 from a blank RR also trips the lower bound)

Escalation only ever raises the level. The ST elevation rule is the one
assignment that does not go through escalation.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TypedDict

from ecg_assist.models.analysis import (
    NORMAL,
    PR_PROLONGED,
    PR_SHORT,
    QRS_WIDE,
    QT_PROLONGED,
    ST_ELEVATION,
    T_WAVE_INVERSION,
    RiskLevel,
)
from ecg_assist.models.measurements import ECGMeasurementSet
from ecg_assist.numeric import format_number, parse_number, round_half_up


logger = logging.getLogger(__name__)


@dataclass
class ClassifierThresholds:
    """
    Rule thresholds.

    Loaded from configuration. Defaults are the conventional adult cut-offs.
    The PR, QRS and QTc notes quote the configured limit.
    """

    pr_prolonged_ms: float = 200.0
    pr_short_ms: float = 120.0
    qrs_wide_ms: float = 120.0
    qtc_prolonged_ms: float = 460.0
    st_elevation_mm: float = 1.0
    heart_rate_high_bpm: float = 120.0
    heart_rate_low_bpm: float = 45.0


class ClassificationState(TypedDict, total=False):
    """
    State passed through the classification graph.

    Attributes:
        measurements: Input measurement set
        rr, pr, qrs, qt, st_elevation: Parsed numeric values
        t_wave_inversion: Parsed flag
        calculated_heart_rate ... st_interpretation: Result fields
        risk_level: Level so far
        summary: Notes so far, in rule order
    """

    measurements: ECGMeasurementSet
    rr: float
    pr: float
    qrs: float
    qt: float
    st_elevation: float
    t_wave_inversion: bool
    calculated_heart_rate: int
    rhythm: str
    pr_interpretation: str
    qrs_interpretation: str
    qtc: int
    qt_interpretation: str
    st_interpretation: str
    risk_level: RiskLevel
    summary: List[str]


def initial_state(measurements: ECGMeasurementSet) -> ClassificationState:
    """Blank classification state for one measurement set."""
    return {
        "measurements": measurements,
        "rr": 0.0,
        "pr": 0.0,
        "qrs": 0.0,
        "qt": 0.0,
        "st_elevation": 0.0,
        "t_wave_inversion": False,
        "calculated_heart_rate": 0,
        "rhythm": "Regular",
        "pr_interpretation": NORMAL,
        "qrs_interpretation": NORMAL,
        "qtc": 0,
        "qt_interpretation": NORMAL,
        "st_interpretation": NORMAL,
        "risk_level": RiskLevel.LOW,
        "summary": [],
    }


class ClassificationRules:
    """
    The rule table, one method per step.

    Every method is a pure function of the incoming state and the thresholds.
    Methods return new lists rather than appending in place.
    """

    def __init__(self, thresholds: Optional[ClassifierThresholds] = None) -> None:
        self.thresholds = thresholds or ClassifierThresholds()

    def parse(self, state: ClassificationState) -> Dict[str, Any]:
        """Parse the text fields; blanks and garbage become 0."""
        m = state["measurements"]
        return {
            "rr": parse_number(m.rr_interval_ms),
            "pr": parse_number(m.pr_interval_ms),
            "qrs": parse_number(m.qrs_width_ms),
            "qt": parse_number(m.qt_interval_ms),
            "st_elevation": parse_number(m.st_elevation_mm),
            "t_wave_inversion": bool(m.t_wave_inversion),
        }

    def rate_and_rhythm(self, state: ClassificationState) -> Dict[str, Any]:
        rr = state["rr"]
        heart_rate = round_half_up(60000 / rr) if rr > 0 else 0
        return {
            "calculated_heart_rate": heart_rate,
            "rhythm": "Regular",
        }

    def pr_interval(self, state: ClassificationState) -> Dict[str, Any]:
        th = self.thresholds
        pr = state["pr"]

        if pr > th.pr_prolonged_ms:
            note = f"PR > {format_number(th.pr_prolonged_ms)}ms: Suggests 1st Degree AV Block"
            return {
                "pr_interpretation": PR_PROLONGED,
                "summary": state["summary"] + [note],
            }
        if 0 < pr < th.pr_short_ms:
            return {"pr_interpretation": PR_SHORT}
        return {"pr_interpretation": NORMAL}

    def qrs_width(self, state: ClassificationState) -> Dict[str, Any]:
        limit = self.thresholds.qrs_wide_ms
        if state["qrs"] > limit:
            note = f"QRS > {format_number(limit)}ms: Delay in ventricular depolarization"
            return {
                "qrs_interpretation": QRS_WIDE,
                "summary": state["summary"] + [note],
                "risk_level": state["risk_level"].escalate_to(RiskLevel.MODERATE),
            }
        return {"qrs_interpretation": NORMAL}

    def qtc_correction(self, state: ClassificationState) -> Dict[str, Any]:
        """Bazett correction: QT / sqrt(RR in seconds)."""
        rr_seconds = state["rr"] / 1000
        qtc = round_half_up(state["qt"] / math.sqrt(rr_seconds)) if rr_seconds > 0 else 0

        limit = self.thresholds.qtc_prolonged_ms
        if qtc > limit:
            note = f"QTc {qtc}ms: Prolonged (>{format_number(limit)}ms). Risk of TdP."
            return {
                "qtc": qtc,
                "qt_interpretation": QT_PROLONGED,
                "summary": state["summary"] + [note],
                "risk_level": state["risk_level"].escalate_to(RiskLevel.MODERATE),
            }
        return {"qtc": qtc, "qt_interpretation": NORMAL}

    def st_segment(self, state: ClassificationState) -> Dict[str, Any]:
        st_elevation = state["st_elevation"]

        if st_elevation >= self.thresholds.st_elevation_mm:
            note = (
                f"ST Elevation {format_number(st_elevation)}mm: "
                f"Suspicion of Ischemia/Infarction."
            )
            logger.debug(f"ST elevation {st_elevation}mm overrides risk to HIGH")
            return {
                "st_interpretation": ST_ELEVATION,
                "summary": state["summary"] + [note],
                "risk_level": RiskLevel.HIGH,
            }
        if state["t_wave_inversion"]:
            return {
                "st_interpretation": T_WAVE_INVERSION,
                "summary": state["summary"] + ["T-Wave Inversion: Suggests Ischemia or Strain."],
                "risk_level": state["risk_level"].escalate_to(RiskLevel.MODERATE),
            }
        return {"st_interpretation": NORMAL}

    def heart_rate_bounds(self, state: ClassificationState) -> Dict[str, Any]:
        th = self.thresholds
        heart_rate = state["calculated_heart_rate"]

        if heart_rate > th.heart_rate_high_bpm or heart_rate < th.heart_rate_low_bpm:
            return {
                "summary": state["summary"] + [f"Abnormal Heart Rate: {heart_rate} bpm"],
                "risk_level": state["risk_level"].escalate_to(RiskLevel.MODERATE),
            }
        return {}
