"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Elevation-related helpers.
"""

from __future__ import annotations

import math

from config import GRADE_DISPLAY_CLAMP_PCT, GRADE_SOLVER_CLAMP_PCT
from utils.coercion import clamp


def compute_avg_grade(elev_gain_m: float, elev_loss_m: float, distance_km: float) -> float:
    """Compute average grade from elevation gain/loss and distance.

    Rules:
    - If D+ >= 2 * D-: use D+ / distance
    - If D- >= 2 * D+: use -D- / distance
    - Otherwise: use (D+ - D-) / distance

    Args:
        elev_gain_m: Total elevation gain in meters
        elev_loss_m: Total elevation loss in meters
        distance_km: Distance in kilometers

    Returns:
        Average grade (decimal, not percentage)
    """
    if distance_km <= 0:
        return 0.0

    if elev_gain_m >= 2 * elev_loss_m:
        return elev_gain_m / (distance_km * 1000)
    if elev_loss_m >= 2 * elev_gain_m:
        return -elev_loss_m / (distance_km * 1000)
    return (elev_gain_m - elev_loss_m) / (distance_km * 1000)


def calculate_grade(
    start_elevation_m: float,
    end_elevation_m: float,
    horizontal_distance_m: float,
    clamp_pct: float = GRADE_SOLVER_CLAMP_PCT,
) -> float:
    """Grade (decimal) between two elevations, clamped to ±clamp_pct.

    Zero or negative horizontal distance yields 0, never inf/NaN.
    """
    if not horizontal_distance_m > 0:
        return 0.0
    grade = (end_elevation_m - start_elevation_m) / horizontal_distance_m
    if not math.isfinite(grade):
        return 0.0
    limit = clamp_pct / 100.0
    return clamp(grade, -limit, limit)


def estimate_average_grade(total_distance_m: float, total_gain_m: float) -> float:
    """Coarse grade (decimal) from route length and total gain."""
    if not total_distance_m > 0:
        return 0.0
    return total_gain_m / total_distance_m


def display_grade_pct(
    elevation_change_m: float,
    horizontal_distance_m: float,
    clamp_pct: float = GRADE_DISPLAY_CLAMP_PCT,
) -> float | None:
    """Percent grade for charts, clamped to ±clamp_pct; None without run."""
    if not horizontal_distance_m > 0:
        return None
    return clamp(elevation_change_m / horizontal_distance_m * 100.0, -clamp_pct, clamp_pct)
