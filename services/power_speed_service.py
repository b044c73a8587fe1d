"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Physics-based power <-> speed conversion for cycling.

The forward model gives the pedal power needed to hold a speed against
rolling resistance, air drag (with head/cross wind) and gravity. The inverse
has no closed form, so it is solved by bounded bisection over a fixed speed
bracket. Under a strong tailwind or a steep descent power can fall as speed
rises; the solver detects that orientation from the bracket ends and flips
its narrowing rule.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from streamlit.logger import get_logger

import config as defaults
from services.route_models import RiderPhysicalProfile
from utils import elevation as elevation_utils
from utils.coercion import finite_or
from utils.config import Config

logger = get_logger(__name__)


def wind_components(
    wind_speed_mps: float, wind_direction_deg: float, ride_direction_deg: float
) -> Tuple[float, float]:
    """Split a wind vector into (headwind, crosswind) against the ride heading.

    Signed projection of ``wind_direction - ride_direction``; positive headwind
    opposes the rider.
    """
    angle = math.radians(finite_or(wind_direction_deg) - finite_or(ride_direction_deg))
    speed = finite_or(wind_speed_mps)
    return speed * math.cos(angle), speed * math.sin(angle)


def air_density_at_altitude(altitude_m: float, temperature_c: float) -> float:
    """Air density (kg/m³) from the barometric formula and the local temperature."""
    t_std = defaults.SEA_LEVEL_TEMPERATURE_K - defaults.TEMPERATURE_LAPSE_K_PER_M * finite_or(altitude_m)
    exponent = (defaults.GRAVITY * defaults.AIR_MOLAR_MASS) / (
        defaults.UNIVERSAL_GAS_CONSTANT * defaults.TEMPERATURE_LAPSE_K_PER_M
    )
    pressure = defaults.SEA_LEVEL_PRESSURE_PA * (t_std / defaults.SEA_LEVEL_TEMPERATURE_K) ** exponent
    temperature_k = finite_or(temperature_c, 15.0) + 273.15
    if not temperature_k > 0 or not math.isfinite(pressure):
        return defaults.DEFAULT_AIR_DENSITY
    return pressure / (defaults.AIR_SPECIFIC_GAS_CONSTANT * temperature_k)


def air_density_from_weather(
    temperature_c: float, humidity_pct: float = 0.0, base_density: float = defaults.DEFAULT_AIR_DENSITY
) -> float:
    """Sea-level density adjusted for temperature and humidity (up to -2% at 100% RH)."""
    temperature_k = finite_or(temperature_c, 15.0) + 273.15
    if not temperature_k > 0:
        return base_density
    density = base_density * (defaults.SEA_LEVEL_TEMPERATURE_K / temperature_k)
    humidity = max(0.0, min(100.0, finite_or(humidity_pct)))
    return density * (1.0 - humidity / 100.0 * 0.02)


class PowerSpeedSolver:
    """Forward power model and bisection inverse for one rider."""

    def __init__(self, rider: RiderPhysicalProfile, config: Optional[Config] = None) -> None:
        self.rider = rider
        self.config = config or Config()

    def required_power(
        self,
        speed_mps: float,
        grade: float = 0.0,
        headwind_mps: float = 0.0,
        crosswind_mps: float = 0.0,
        air_density: Optional[float] = None,
        is_wet: bool = False,
    ) -> float:
        """Pedal power (W) needed to hold ``speed_mps``; never negative."""
        v = finite_or(speed_mps)
        rho = finite_or(air_density, self.config.air_density)
        rider = self.rider
        weight_force = rider.total_weight_kg * self.config.gravity
        slope = math.atan(finite_or(grade))
        crr = rider.crr_wet if is_wet else rider.crr_dry

        rolling = crr * weight_force * math.cos(slope) * v
        relative_air = math.sqrt((v + finite_or(headwind_mps)) ** 2 + finite_or(crosswind_mps) ** 2)
        aero = 0.5 * rider.drag_coefficient * rider.frontal_area_m2 * rho * relative_air**2 * v
        climbing = weight_force * math.sin(slope) * v

        return max(0.0, (rolling + aero + climbing) / rider.drivetrain_efficiency)

    def solve_speed(
        self,
        target_power_w: float,
        grade: float = 0.0,
        headwind_mps: float = 0.0,
        crosswind_mps: float = 0.0,
        air_density: Optional[float] = None,
        is_wet: bool = False,
    ) -> float:
        """Speed (m/s) at which the rider produces ``target_power_w``.

        Always returns a finite value inside the solver bracket.
        """
        target = max(0.0, finite_or(target_power_w))

        def power(v: float) -> float:
            return self.required_power(v, grade, headwind_mps, crosswind_mps, air_density, is_wet)

        lo, hi = defaults.SOLVER_MIN_SPEED_MPS, defaults.SOLVER_MAX_SPEED_MPS
        p_lo, p_hi = power(lo), power(hi)
        inverted = p_hi < p_lo

        if not inverted:
            if target < p_lo:
                logger.debug("Target %.1f W below bracket (%.1f W); clamping to %.2f m/s", target, p_lo, lo)
                return lo
            if target > p_hi:
                logger.debug("Target %.1f W above bracket (%.1f W); clamping to %.2f m/s", target, p_hi, hi)
                return hi
        else:
            if target > p_lo:
                return lo
            if target < p_hi:
                return hi

        for _ in range(defaults.SOLVER_MAX_ITERATIONS):
            mid = (lo + hi) / 2.0
            p_mid = power(mid)
            if hi - lo < defaults.SOLVER_SPEED_TOLERANCE_MPS or abs(p_mid - target) < defaults.SOLVER_POWER_TOLERANCE_W:
                break
            # normal: too little power means go faster; inverted: the opposite
            if (p_mid < target) != inverted:
                lo = mid
            else:
                hi = mid

        return (lo + hi) / 2.0

    def segment_time(
        self,
        distance_m: float,
        target_power_w: float,
        grade: float = 0.0,
        headwind_mps: float = 0.0,
        crosswind_mps: float = 0.0,
        air_density: Optional[float] = None,
        is_wet: bool = False,
    ) -> float:
        """Seconds to cover ``distance_m`` at the solved speed."""
        if not distance_m > 0:
            return 0.0
        speed = self.solve_speed(target_power_w, grade, headwind_mps, crosswind_mps, air_density, is_wet)
        return distance_m / speed

    def calculate_grade(self, start_elevation_m: float, end_elevation_m: float, horizontal_distance_m: float) -> float:
        return elevation_utils.calculate_grade(
            start_elevation_m, end_elevation_m, horizontal_distance_m, self.config.grade_solver_clamp_pct
        )

    @staticmethod
    def estimate_average_grade(total_distance_m: float, total_gain_m: float) -> float:
        return elevation_utils.estimate_average_grade(total_distance_m, total_gain_m)
