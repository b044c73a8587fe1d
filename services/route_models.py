"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Canonical value types for route ingestion, elevation analysis and pacing.

Each logical entity has exactly one definition here; parsers, the elevation
reconstructor and the pacing engine all exchange these frozen dataclasses.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

import config as defaults


@dataclass(frozen=True)
class RoutePoint:
    """One ingested track point. ``distance_m`` is cumulative from the start."""

    lat: float
    lon: float
    elevation_m: Optional[float]
    distance_m: float
    timestamp: Optional[dt.datetime] = None


@dataclass(frozen=True)
class ElevationProfilePoint:
    distance_m: float
    elevation_m: float
    grade_pct: Optional[float] = None


@dataclass(frozen=True)
class ElevationAnalysis:
    """Elevation totals and profile for a route.

    ``has_actual_data`` is False when the profile was synthesized from route
    length; in that case the totals are estimates, never measurements.
    ``excluded_gain`` / ``excluded_loss`` report the change dropped by the
    implausible-grade filter and are not part of the totals.
    """

    total_gain: float
    total_loss: float
    max_elevation: float
    min_elevation: float
    profile: Tuple[ElevationProfilePoint, ...]
    has_actual_data: bool
    excluded_gain: float = 0.0
    excluded_loss: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["profile"] = [asdict(p) for p in self.profile]
        return data


@dataclass(frozen=True)
class RiderPhysicalProfile:
    """Rider + bike physical parameters, read-only for one computation."""

    total_weight_kg: float
    target_power_w: float
    drag_coefficient: float = defaults.DRAG_COEFFICIENT
    frontal_area_m2: float = defaults.FRONTAL_AREA_M2
    crr_dry: float = defaults.CRR_DRY
    crr_wet: float = defaults.CRR_WET
    drivetrain_efficiency: float = defaults.DRIVETRAIN_EFFICIENCY
    average_speed_mps: Optional[float] = None


@dataclass(frozen=True)
class WindSample:
    """Forecast conditions for one segment, supplied by the weather collaborator.

    ``direction_deg`` uses the same angular convention as the ride heading.
    """

    speed_mps: float = 0.0
    direction_deg: float = 0.0
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    precipitation_probability: float = 0.0


@dataclass(frozen=True)
class PacingSegmentSpec:
    start_m: float
    end_m: float
    bearing_deg: float = 0.0

    @property
    def distance_m(self) -> float:
        return max(0.0, self.end_m - self.start_m)


@dataclass(frozen=True)
class RideETASegment:
    index: int
    distance_m: float
    power_w: float
    time_s: float
    start_m: float = 0.0
    end_m: float = 0.0
    grade: float = 0.0
    speed_mps: float = 0.0
    headwind_mps: float = 0.0
    crosswind_mps: float = 0.0
    segment_type: str = "flat"
    eta_offset_s: float = 0.0


@dataclass(frozen=True)
class RideETAResult:
    segments: Tuple[RideETASegment, ...]
    total_time_s: float
    total_distance_m: float = 0.0
    total_energy_kj: float = 0.0
    start_time: Optional[dt.datetime] = field(default=None, compare=False)

    @property
    def average_speed_mps(self) -> float:
        if self.total_time_s <= 0:
            return 0.0
        return self.total_distance_m / self.total_time_s

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segments": [asdict(s) for s in self.segments],
            "total_time_s": self.total_time_s,
            "total_distance_m": self.total_distance_m,
            "total_energy_kj": self.total_energy_kj,
            "average_speed_mps": self.average_speed_mps,
            "start_time": self.start_time.isoformat() if self.start_time else None,
        }
