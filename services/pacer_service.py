"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Pacer service for ride segmentation and power-based ETA calculations.

Combines the elevation profile, the rider's physical profile and per-segment
wind forecasts into a sequence of pacing segments and a total ride time.
Each segment's ETA feeds the wind lookup of the next one.
"""

from __future__ import annotations

import bisect
import datetime as dt
import math
from typing import Callable, Literal, Optional, Sequence

import pandas as pd
from streamlit.logger import get_logger

import config as defaults
from services.elevation_sampler import ElevationSampler
from services.power_speed_service import (
    PowerSpeedSolver,
    air_density_at_altitude,
    air_density_from_weather,
    wind_components,
)
from services.route_models import (
    ElevationAnalysis,
    PacingSegmentSpec,
    RideETAResult,
    RideETASegment,
    RiderPhysicalProfile,
    RoutePoint,
    WindSample,
)
from utils.config import Config
from utils.elevation import compute_avg_grade, estimate_average_grade
from utils.grade_classification import adaptive_segment_length_m, classify_segment_type
from utils.track_preprocessing import bearing_deg

logger = get_logger(__name__)

PacingMode = Literal["power", "average_speed"]

# (segment index, segment, seconds elapsed since start) -> forecast for that segment
WindProvider = Callable[[int, PacingSegmentSpec, float], Optional[WindSample]]


class PacerService:
    """Service for ride segmentation and pacing."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()

    def split_route(
        self,
        points: Sequence[RoutePoint],
        analysis: Optional[ElevationAnalysis] = None,
        segment_length_m: Optional[float] = None,
    ) -> list[PacingSegmentSpec]:
        """Split a route into pacing segments.

        With ``segment_length_m`` the route is cut into fixed-length chunks.
        Otherwise every point-to-point interval is subdivided with a
        grade-adaptive length (steeper terrain, shorter pieces).

        Args:
            points: Ingested route points
            analysis: Elevation analysis used for the rough interval grade
            segment_length_m: Optional fixed segment length in meters

        Returns:
            Ordered list of segment specs (sub-meter pieces dropped)
        """
        if len(points) < 2:
            return []

        if segment_length_m is not None and segment_length_m > 0:
            return self._split_fixed(points, float(segment_length_m))

        sampler = ElevationSampler(analysis) if analysis is not None and analysis.has_actual_data else None
        specs: list[PacingSegmentSpec] = []
        for a, b in zip(points[:-1], points[1:]):
            interval = b.distance_m - a.distance_m
            if interval <= 0:
                continue

            rough_grade = 0.0
            if sampler is not None:
                rough_grade = sampler.grade_between(
                    a.distance_m, b.distance_m, self.config.grade_solver_clamp_pct
                ) or 0.0
            length = adaptive_segment_length_m(rough_grade, interval, defaults.MIN_SEGMENT_LENGTH_M)
            sub_count = max(1, math.ceil(interval / length))
            sub_len = interval / sub_count
            heading = bearing_deg(a.lat, a.lon, b.lat, b.lon)

            for k in range(sub_count):
                start = a.distance_m + k * sub_len
                end = min(b.distance_m, start + sub_len)
                if end - start < defaults.MIN_SUBSEGMENT_M:
                    continue
                specs.append(PacingSegmentSpec(start_m=start, end_m=end, bearing_deg=heading))
        return specs

    def _split_fixed(self, points: Sequence[RoutePoint], length_m: float) -> list[PacingSegmentSpec]:
        distances = [p.distance_m for p in points]
        start_m = distances[0]
        total_m = distances[-1]

        def nearest(d: float) -> RoutePoint:
            i = bisect.bisect_left(distances, d)
            if i <= 0:
                return points[0]
            if i >= len(points):
                return points[-1]
            before, after = points[i - 1], points[i]
            return before if d - before.distance_m <= after.distance_m - d else after

        specs: list[PacingSegmentSpec] = []
        start = start_m
        while total_m - start >= defaults.MIN_SUBSEGMENT_M:
            end = min(total_m, start + length_m)
            a, b = nearest(start), nearest(end)
            heading = bearing_deg(a.lat, a.lon, b.lat, b.lon) if a is not b else (specs[-1].bearing_deg if specs else 0.0)
            specs.append(PacingSegmentSpec(start_m=start, end_m=end, bearing_deg=heading))
            start = end
        return specs

    def estimate_ride(
        self,
        segments: Sequence[PacingSegmentSpec],
        analysis: ElevationAnalysis,
        rider: RiderPhysicalProfile,
        wind_provider: Optional[WindProvider] = None,
        mode: PacingMode = "power",
        start_time: Optional[dt.datetime] = None,
    ) -> RideETAResult:
        """Compute per-segment pacing and the total estimated time.

        In ``power`` mode the rider's target power is converted to speed by the
        bisection solver. In ``average_speed`` mode the configured speed is used
        directly and the reported power is what that speed would require.

        Args:
            segments: Ordered segment specs (see ``split_route``)
            analysis: Elevation analysis of the route (read only)
            rider: Rider physical profile
            wind_provider: Optional forecast lookup, called with the segment's ETA offset
            mode: "power" or "average_speed"
            start_time: Optional departure time, carried on the result

        Returns:
            RideETAResult with one RideETASegment per non-empty segment
        """
        if mode not in ("power", "average_speed"):
            raise ValueError(f"Unknown pacing mode: {mode!r}")
        if mode == "average_speed" and not (rider.average_speed_mps or 0) > 0:
            raise ValueError("average_speed mode requires a positive average_speed_mps")

        sampler = ElevationSampler(analysis)
        solver = PowerSpeedSolver(rider, self.config)
        use_profile = analysis.has_actual_data and sampler.has_data

        total_distance = sum(s.distance_m for s in segments)
        fallback_grade = 0.0
        if not use_profile:
            fallback_grade = min(
                estimate_average_grade(total_distance, analysis.total_gain),
                self.config.grade_solver_clamp_pct / 100.0,
            )
            logger.debug("No measured profile; using average grade %.4f", fallback_grade)

        results: list[RideETASegment] = []
        elapsed = 0.0
        energy_j = 0.0
        for index, spec in enumerate(segments):
            distance_m = spec.distance_m
            if distance_m <= 0:
                continue

            grade = fallback_grade
            if use_profile:
                grade = sampler.grade_between(
                    spec.start_m, spec.end_m, self.config.grade_solver_clamp_pct
                ) or 0.0

            wind = wind_provider(index, spec, elapsed) if wind_provider is not None else None
            headwind, crosswind = (0.0, 0.0)
            is_wet = False
            air_density = None
            if wind is not None:
                headwind, crosswind = wind_components(wind.speed_mps, wind.direction_deg, spec.bearing_deg)
                is_wet = wind.precipitation_probability >= defaults.WET_PRECIPITATION_THRESHOLD
                air_density = self._air_density(wind, sampler if use_profile else None, spec)

            if mode == "average_speed":
                speed = float(rider.average_speed_mps)
                power = solver.required_power(speed, grade, headwind, crosswind, air_density, is_wet)
            else:
                power = rider.target_power_w
                speed = solver.solve_speed(power, grade, headwind, crosswind, air_density, is_wet)

            time_s = distance_m / speed
            results.append(
                RideETASegment(
                    index=index,
                    distance_m=distance_m,
                    power_w=power,
                    time_s=time_s,
                    start_m=spec.start_m,
                    end_m=spec.end_m,
                    grade=grade,
                    speed_mps=speed,
                    headwind_mps=headwind,
                    crosswind_mps=crosswind,
                    segment_type=classify_segment_type(grade),
                    eta_offset_s=elapsed,
                )
            )
            elapsed += time_s
            energy_j += power * time_s

        logger.info("Estimated %d segments: %.0f m in %.0f s", len(results), total_distance, elapsed)
        return RideETAResult(
            segments=tuple(results),
            total_time_s=elapsed,
            total_distance_m=total_distance,
            total_energy_kj=energy_j / 1000.0,
            start_time=start_time,
        )

    @staticmethod
    def _air_density(
        wind: WindSample, sampler: Optional[ElevationSampler], spec: PacingSegmentSpec
    ) -> Optional[float]:
        if wind.temperature_c is None:
            return None
        if sampler is not None:
            start = sampler.elevation_at(spec.start_m)
            end = sampler.elevation_at(spec.end_m)
            if start is not None and end is not None:
                return air_density_at_altitude((start + end) / 2.0, wind.temperature_c)
        return air_density_from_weather(wind.temperature_c, wind.humidity_pct or 0.0)

    def segments_to_frame(self, result: RideETAResult) -> pd.DataFrame:
        """One row per pacing segment, distances in km and speed in km/h."""
        columns = [
            "segmentId", "startKm", "endKm", "distanceKm", "gradePct", "segmentType",
            "powerW", "speedKmh", "timeSec", "etaSec", "headwindMps", "crosswindMps",
        ]
        rows = [
            {
                "segmentId": s.index,
                "startKm": s.start_m / 1000.0,
                "endKm": s.end_m / 1000.0,
                "distanceKm": s.distance_m / 1000.0,
                "gradePct": s.grade * 100.0,
                "segmentType": s.segment_type,
                "powerW": s.power_w,
                "speedKmh": s.speed_mps * 3.6,
                "timeSec": s.time_s,
                "etaSec": s.eta_offset_s,
                "headwindMps": s.headwind_mps,
                "crosswindMps": s.crosswind_mps,
            }
            for s in result.segments
        ]
        return pd.DataFrame(rows, columns=columns)

    def aggregate_summary(self, result: RideETAResult, analysis: Optional[ElevationAnalysis] = None) -> dict:
        """Aggregate totals from a pacing result.

        Args:
            result: Pacing result
            analysis: Optional elevation analysis for gain/loss/average grade

        Returns:
            Dictionary with totals
        """
        distance_km = result.total_distance_m / 1000.0
        summary = {
            "distanceKm": distance_km,
            "timeSec": int(round(result.total_time_s)),
            "energyKj": result.total_energy_kj,
            "avgSpeedKmh": result.average_speed_mps * 3.6,
            "elevGainM": 0.0,
            "elevLossM": 0.0,
            "avgGrade": 0.0,
        }
        if analysis is not None:
            summary["elevGainM"] = analysis.total_gain
            summary["elevLossM"] = analysis.total_loss
            summary["avgGrade"] = compute_avg_grade(analysis.total_gain, analysis.total_loss, distance_km)
        return summary
