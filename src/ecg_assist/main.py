"""
ECG Assist Main Application
===========================

FastAPI entry point exposing the stateless core operations to the wizard and
report collaborators.

Endpoints:
    GET  /                  - Service information
    GET  /health            - Liveness probe
    GET  /profiles          - Capture profiles and the active one
    POST /analyze           - Measurement set -> analysis result
    POST /calipers/measure  - Marker positions + time scale -> caliper reading
    POST /calipers/apply    - Write a caliper reading into a slot, re-analyze
    POST /enhance           - Raw photo -> enhanced JPEG artifact
    POST /report            - Measurements (+ image) -> report bundle
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from ecg_assist.config import settings
from ecg_assist.classifier import ECGRuleClassifier, create_classifier, set_default_classifier
from ecg_assist.imaging.codec import ImageDecodeError, decode_image_b64
from ecg_assist.imaging.enhancer import EnhancementConfig, EnhancementError, ImageEnhancer
from ecg_assist.measurement.calipers import CaliperLimits, CaliperMeasurementModel, Marker
from ecg_assist.models.measurements import ECGMeasurementSet
from ecg_assist.models.report import ReportBundle
from ecg_assist.models.requests import (
    CaliperApplyRequest,
    CaliperRequest,
    EnhanceRequest,
    ReportRequest,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_classifier: Optional[ECGRuleClassifier] = None
_caliper_limits: Optional[CaliperLimits] = None
_startup_time: float = 0.0

# Error counters
_decode_error_count: int = 0
_enhance_error_count: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_classifier() -> ECGRuleClassifier:
    global _classifier
    if _classifier is None:
        _classifier = create_classifier(settings.classifier.model_dump())
        set_default_classifier(_classifier)
    return _classifier


def get_caliper_limits() -> CaliperLimits:
    global _caliper_limits
    if _caliper_limits is None:
        _caliper_limits = create_caliper_limits()
    return _caliper_limits


def create_caliper_limits() -> CaliperLimits:
    """Caliper limits from the ``calipers`` settings section."""
    cfg = settings.calipers
    return CaliperLimits(
        default_first=cfg.default_first,
        default_second=cfg.default_second,
        default_total_view_ms=cfg.default_total_view_ms,
        min_total_view_ms=cfg.min_total_view_ms,
        max_total_view_ms=cfg.max_total_view_ms,
        small_box_ms=cfg.small_box_ms,
        large_box_ms=cfg.large_box_ms,
    )


def create_enhancer(profile_name: Optional[str] = None) -> ImageEnhancer:
    """
    Enhancer for a capture profile.

    Raises:
        KeyError: If the profile does not exist
    """
    profile = settings.capture.get_profile(profile_name)
    return ImageEnhancer(
        EnhancementConfig(
            contrast=profile.contrast,
            jpeg_quality=profile.jpeg_quality,
            crop_width_ratio=settings.enhancement.crop_width_ratio,
            crop_aspect_ratio=settings.enhancement.crop_aspect_ratio,
        )
    )


def _calipers_for(request: CaliperRequest) -> CaliperMeasurementModel:
    calipers = CaliperMeasurementModel(get_caliper_limits())
    calipers.set_position(Marker.FIRST, request.p1)
    calipers.set_position(Marker.SECOND, request.p2)
    calipers.set_time_scale(request.total_view_ms)
    return calipers


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _classifier, _caliper_limits, _startup_time

    # Startup
    _startup_time = time.time()
    logger.info(f"Starting {settings.app.name} {settings.app.version}")

    port = int(os.environ.get("PORT", settings.server.port))
    logger.info(f"Configured port: {port}")

    _classifier = create_classifier(settings.classifier.model_dump())
    set_default_classifier(_classifier)
    _caliper_limits = create_caliper_limits()

    logger.info(f"Active capture profile: {settings.capture.profile}")

    yield

    # Shutdown
    set_default_classifier(None)
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="ECG Assist",
    description="ECG photo capture, caliper measurement and rule-based risk classification",
    version=settings.app.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "ECG Assist",
        "version": settings.app.version,
        "name": settings.app.name,
        "status": "running",
        "capture_profile": settings.capture.profile,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "decode_errors": _decode_error_count,
        "enhance_errors": _enhance_error_count,
    })


@app.get("/profiles")
async def profiles() -> JSONResponse:
    """Available capture profiles and the active one."""
    return JSONResponse({
        "active": settings.capture.profile,
        "profiles": {
            name: profile.model_dump()
            for name, profile in settings.capture.profiles.items()
        },
    })


@app.post("/analyze")
async def analyze(measurements: ECGMeasurementSet) -> JSONResponse:
    """Classify a measurement set."""
    result = get_classifier().classify(measurements)
    return JSONResponse({
        **result.to_wire(),
        "riskHeadline": result.risk_level.headline,
        "readyForAnalysis": measurements.is_ready_for_analysis,
    })


@app.post("/calipers/measure")
async def calipers_measure(request: CaliperRequest) -> JSONResponse:
    """Derive the caliper reading for two marker positions."""
    reading = _calipers_for(request).reading()
    return JSONResponse(reading.to_dict())


@app.post("/calipers/apply")
async def calipers_apply(request: CaliperApplyRequest) -> JSONResponse:
    """Write the caliper reading into one slot and re-classify."""
    calipers = _calipers_for(request)
    measurements = calipers.apply(request.measurements, request.slot)
    analysis = get_classifier().classify(measurements)
    return JSONResponse({
        "reading": calipers.reading().to_dict(),
        "measurements": measurements.to_wire(),
        "analysis": analysis.to_wire(),
    })


@app.post("/enhance")
async def enhance(request: EnhanceRequest) -> JSONResponse:
    """Run a raw photo through the enhancement pipeline."""
    global _decode_error_count, _enhance_error_count

    try:
        enhancer = create_enhancer(request.profile)
    except KeyError as e:
        return JSONResponse({"error": str(e)}, status_code=422)

    try:
        frame = decode_image_b64(request.image)
    except ImageDecodeError as e:
        _decode_error_count += 1
        logger.warning(f"Image decode failed: {e}")
        return JSONResponse({"error": f"Image decode failed: {e}"}, status_code=422)

    try:
        captured = enhancer.enhance(frame)
    except EnhancementError as e:
        _enhance_error_count += 1
        logger.error(f"Enhancement failed: {e}")
        return JSONResponse({"error": f"Enhancement failed: {e}"}, status_code=422)

    return JSONResponse(captured.to_dict())


@app.post("/report")
async def report(request: ReportRequest) -> JSONResponse:
    """Bundle measurements, analysis and the optional image."""
    bundle = ReportBundle.build(
        request.measurements,
        request.image,
        classifier=get_classifier(),
    )
    return JSONResponse(bundle.to_wire())


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "ecg_assist.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
