"""
Configuration loading utilities.

Loads optional overrides from `.env` / the environment for the grade thresholds
and physics defaults. Every value has a built-in default, so a missing `.env`
is the normal case.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv, find_dotenv
from streamlit.logger import get_logger

import config as defaults
from utils.coercion import finite_float_optional

logger = get_logger(__name__)


@dataclass(frozen=True)
class Config:
    grade_display_clamp_pct: float = defaults.GRADE_DISPLAY_CLAMP_PCT
    grade_outlier_pct: float = defaults.GRADE_OUTLIER_PCT
    grade_solver_clamp_pct: float = defaults.GRADE_SOLVER_CLAMP_PCT
    gravity: float = defaults.GRAVITY
    air_density: float = defaults.DEFAULT_AIR_DENSITY
    elevation_trust_fraction: float = defaults.ELEVATION_TRUST_FRACTION
    synthetic_gain_per_km: float = defaults.SYNTHETIC_GAIN_PER_KM


_ENV_FIELDS = {
    "GRADE_DISPLAY_CLAMP_PCT": "grade_display_clamp_pct",
    "GRADE_OUTLIER_PCT": "grade_outlier_pct",
    "GRADE_SOLVER_CLAMP_PCT": "grade_solver_clamp_pct",
    "GRAVITY": "gravity",
    "AIR_DENSITY": "air_density",
    "ELEVATION_TRUST_FRACTION": "elevation_trust_fraction",
    "SYNTHETIC_GAIN_PER_KM": "synthetic_gain_per_km",
}


def _env_positive_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    value = finite_float_optional(raw)
    if value is None or value <= 0:
        logger.warning("Ignoring invalid %s=%r; using default", name, raw)
        return None
    return value


def load_config() -> Config:
    """Load configuration from environment, falling back to built-in defaults."""
    load_dotenv(find_dotenv(usecwd=True), override=False)

    overrides = {}
    for env_name, field_name in _ENV_FIELDS.items():
        value = _env_positive_float(env_name)
        if value is not None:
            overrides[field_name] = value
            logger.debug("%s override: %s", env_name, value)

    trust = overrides.get("elevation_trust_fraction")
    if trust is not None and trust >= 1.0:
        logger.warning("ELEVATION_TRUST_FRACTION must be < 1; using default")
        overrides.pop("elevation_trust_fraction")

    return Config(**overrides)
