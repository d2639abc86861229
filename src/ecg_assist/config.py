"""
ECG Assist Configuration
========================

This module handles configuration loading for the ECG capture assistant.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ECG_ASSIST_CAPTURE_PROFILE         -> capture.profile
    ECG_ASSIST_DIFF_THRESHOLD          -> capture.profiles.<active>.diff_threshold
    ECG_ASSIST_REQUIRED_STABLE_FRAMES  -> capture.profiles.<active>.required_stable_frames
    ECG_ASSIST_PORT                    -> server.port
    ECG_ASSIST_LOG_LEVEL               -> logging.level
    PORT                               -> server.port (Cloud Run)

Example:
    from ecg_assist.config import settings

    profile = settings.capture.active_profile()
    print(profile.diff_threshold, profile.required_stable_frames)
    print(settings.classifier.qtc_prolonged_ms)
"""

import os
import logging
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, model_validator


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Application identification configuration."""

    name: str = Field(default="ecg-assist", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class CaptureProfile(BaseModel):
    """
    One named capture profile.

    Stability and enhancement parameters vary together: a relaxed profile
    tolerates more motion and compensates with gentler contrast.
    """

    diff_threshold: float = Field(
        default=20.0,
        gt=0,
        description="Mean byte difference below which two samples are 'stable'",
    )
    required_stable_frames: int = Field(
        default=30,
        ge=1,
        description="Stable comparisons that must be exceeded before capture",
    )
    contrast: float = Field(default=1.5, gt=0, description="Contrast multiplier")
    jpeg_quality: float = Field(
        default=0.8,
        gt=0,
        le=1.0,
        description="JPEG quality in (0, 1]",
    )


def _default_profiles() -> Dict[str, CaptureProfile]:
    return {
        "strict": CaptureProfile(
            diff_threshold=20.0,
            required_stable_frames=30,
            contrast=1.5,
            jpeg_quality=0.8,
        ),
        "relaxed": CaptureProfile(
            diff_threshold=30.0,
            required_stable_frames=40,
            contrast=1.3,
            jpeg_quality=0.85,
        ),
    }


class SamplingConfig(BaseModel):
    """Stability sampling raster configuration."""

    sample_width: int = Field(default=300, ge=1, description="Comparison raster width")
    sample_height: int = Field(default=150, ge=1, description="Comparison raster height")
    crop_width: int = Field(default=600, ge=1, description="Center crop width before downscale")
    crop_height: int = Field(default=300, ge=1, description="Center crop height before downscale")
    sample_stride: int = Field(
        default=40,
        ge=1,
        description="Byte stride through the flattened RGBA sample",
    )
    log_every_n_frames: int = Field(default=30, ge=1, description="Progress log interval")


class CaptureConfig(BaseModel):
    """Capture configuration: active profile plus sampling raster."""

    profile: str = Field(default="strict", description="Active capture profile name")
    profiles: Dict[str, CaptureProfile] = Field(default_factory=_default_profiles)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)

    @model_validator(mode="after")
    def _check_profile(self) -> "CaptureConfig":
        if self.profile not in self.profiles:
            raise ValueError(
                f"Unknown capture profile '{self.profile}', "
                f"available: {sorted(self.profiles)}"
            )
        return self

    def active_profile(self) -> CaptureProfile:
        """The profile named by ``profile``."""
        return self.profiles[self.profile]

    def get_profile(self, name: Optional[str] = None) -> CaptureProfile:
        """
        Look up a profile by name.

        Raises:
            KeyError: If the profile does not exist
        """
        if name is None:
            return self.active_profile()
        if name not in self.profiles:
            raise KeyError(f"Unknown capture profile: {name}")
        return self.profiles[name]


class EnhancementSettings(BaseModel):
    """Crop geometry for the enhancement pipeline."""

    crop_width_ratio: float = Field(
        default=0.8,
        gt=0,
        le=1.0,
        description="Crop width as a fraction of the frame width",
    )
    crop_aspect_ratio: float = Field(
        default=0.5,
        gt=0,
        description="Crop height as a fraction of the crop width",
    )


class CaliperSettings(BaseModel):
    """Caliper defaults and time scale bounds."""

    default_first: float = Field(default=30.0, ge=0, le=100)
    default_second: float = Field(default=70.0, ge=0, le=100)
    default_total_view_ms: int = Field(default=2500, ge=1)
    min_total_view_ms: int = Field(default=1000, ge=1)
    max_total_view_ms: int = Field(default=5000, ge=1)
    time_scale_step_ms: int = Field(default=100, ge=1, description="Slider step")
    small_box_ms: float = Field(default=40.0, gt=0, description="Small ECG paper box")
    large_box_ms: float = Field(default=200.0, gt=0, description="Large ECG paper box")


class ClassifierSettings(BaseModel):
    """Classifier rule thresholds."""

    pr_prolonged_ms: float = Field(default=200.0, ge=0)
    pr_short_ms: float = Field(default=120.0, ge=0)
    qrs_wide_ms: float = Field(default=120.0, ge=0)
    qtc_prolonged_ms: float = Field(default=460.0, ge=0)
    st_elevation_mm: float = Field(default=1.0, ge=0)
    heart_rate_high_bpm: float = Field(default=120.0, ge=0)
    heart_rate_low_bpm: float = Field(default=45.0, ge=0)


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the ECG capture assistant.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    enhancement: EnhancementSettings = Field(default_factory=EnhancementSettings)
    calipers: CaliperSettings = Field(default_factory=CaliperSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    capture = config_data.setdefault("capture", {})

    if env_profile := os.environ.get("ECG_ASSIST_CAPTURE_PROFILE"):
        capture["profile"] = env_profile

    # Threshold overrides land on the active profile
    env_diff = os.environ.get("ECG_ASSIST_DIFF_THRESHOLD")
    env_frames = os.environ.get("ECG_ASSIST_REQUIRED_STABLE_FRAMES")
    if env_diff or env_frames:
        profile_name = capture.get("profile", "strict")
        profiles = capture.setdefault(
            "profiles",
            {name: p.model_dump() for name, p in _default_profiles().items()},
        )
        profile = profiles.setdefault(profile_name, {})
        if env_diff:
            profile["diff_threshold"] = float(env_diff)
        if env_frames:
            profile["required_stable_frames"] = int(env_frames)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("ECG_ASSIST_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("ECG_ASSIST_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
