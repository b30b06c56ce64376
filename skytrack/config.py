"""Configuration settings for the SkyTrack backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("skytrack.config")


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def _get_optional_float(env_var: str) -> float | None:
    value = os.getenv(env_var)
    return float(value) if value else None


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    skytrack_env: str = os.getenv("SKYTRACK_ENV", "local")
    log_level: str = os.getenv("SKYTRACK_LOG_LEVEL", "INFO")

    # Trajectory tracking
    trajectory_max_points: int = int(os.getenv("SKYTRACK_TRAJECTORY_MAX_POINTS", "50"))
    trajectory_max_age_seconds: float = float(
        os.getenv("SKYTRACK_TRAJECTORY_MAX_AGE_SECONDS", "300")
    )
    sweep_interval_seconds: float = float(
        os.getenv("SKYTRACK_SWEEP_INTERVAL_SECONDS", "60")
    )
    enable_tick: bool = _get_bool("SKYTRACK_ENABLE_TICK", default=True)
    tick_interval_seconds: float = float(os.getenv("SKYTRACK_TICK_INTERVAL_SECONDS", "1.0"))
    prediction_horizon_seconds: float = float(
        os.getenv("SKYTRACK_PREDICTION_HORIZON_SECONDS", "60")
    )
    maneuver_threshold_deg: float = float(
        os.getenv("SKYTRACK_MANEUVER_THRESHOLD_DEG", "30")
    )

    # ADS-B snapshot source
    enable_adsb_ingestor: bool = _get_bool("ENABLE_ADSB_INGESTOR")
    adsb_base_url: str = os.getenv(
        "ADSB_BASE_URL",
        "https://opensky-network.org/api/states/all",
    )
    adsb_timeout: float = float(os.getenv("ADSB_TIMEOUT", "10.0"))
    adsb_default_radius_nm: float = float(os.getenv("ADSB_DEFAULT_RADIUS_NM", "25.0"))
    adsb_poll_interval_seconds: float = float(
        os.getenv("ADSB_POLL_INTERVAL_SECONDS", "15")
    )
    area_center_lat: float | None = _get_optional_float("AREA_CENTER_LAT")
    area_center_lon: float | None = _get_optional_float("AREA_CENTER_LON")


settings = Settings()

if settings.enable_adsb_ingestor and (
    settings.area_center_lat is None or settings.area_center_lon is None
):
    logger.warning("ADS-B ingestion enabled but AREA_CENTER_LAT/LON are not set")

__all__ = ["settings", "Settings"]
