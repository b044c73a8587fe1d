"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Elevation reconstruction for ingested routes.

Decides whether per-point elevation is trustworthy and builds an
ElevationAnalysis, either from the measured samples or, as a last resort,
from a synthetic profile derived from route length.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

import config as defaults
from services.route_models import ElevationAnalysis, ElevationProfilePoint, RoutePoint
from utils.config import Config
from utils.elevation import display_grade_pct

logger = get_logger(__name__)


class ElevationReconstructor:
    """Build elevation/grade profiles and gain/loss totals from route points."""

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()

    def analyze(self, points: Sequence[RoutePoint]) -> ElevationAnalysis:
        """Return an ElevationAnalysis for ``points``. Never raises."""
        if not points:
            return self.flat_analysis()

        with_elevation = [p for p in points if p.elevation_m is not None]
        fraction = len(with_elevation) / len(points)
        if fraction <= self.config.elevation_trust_fraction:
            logger.info(
                "Only %.0f%% of %d points carry elevation; synthesizing profile",
                fraction * 100,
                len(points),
            )
            return self.synthetic_analysis(points)

        return self.measured_analysis(with_elevation)

    def measured_analysis(self, points: Sequence[RoutePoint]) -> ElevationAnalysis:
        """Gain/loss from measured samples with the single-step outlier filter.

        No smoothing window is applied: a moving average flattens real steep
        ramps. Only pairs whose implied grade exceeds the outlier threshold are
        dropped from the totals.
        """
        df = pd.DataFrame(
            {
                "distance": [p.distance_m for p in points],
                "elevationM": [float(p.elevation_m) for p in points],
            }
        )
        df["elevation_difference"] = df["elevationM"].diff().fillna(0.0)
        df["horizontal_distance"] = df["distance"].diff().fillna(0.0)

        dz = df["elevation_difference"].to_numpy()
        dx = df["horizontal_distance"].to_numpy()
        implied_grade = np.divide(np.abs(dz), dx, out=np.zeros_like(dz), where=dx > 0)
        outlier = (dx > 0) & (implied_grade > self.config.grade_outlier_pct / 100.0)

        kept = dz[~outlier]
        dropped = dz[outlier]
        total_gain = float(kept[kept > 0].sum())
        total_loss = float(-kept[kept < 0].sum())
        excluded_gain = float(dropped[dropped > 0].sum())
        excluded_loss = float(-dropped[dropped < 0].sum())
        if outlier.any():
            logger.debug(
                "Excluded %d implausible elevation steps (+%.1f m / -%.1f m)",
                int(outlier.sum()),
                excluded_gain,
                excluded_loss,
            )

        profile: list[ElevationProfilePoint] = []
        for distance_m, elevation_m in zip(df["distance"], df["elevationM"]):
            grade = None
            if profile:
                prev = profile[-1]
                run = distance_m - prev.distance_m
                if run <= 0:
                    continue
                grade = display_grade_pct(
                    elevation_m - prev.elevation_m, run, self.config.grade_display_clamp_pct
                )
            profile.append(
                ElevationProfilePoint(
                    distance_m=float(distance_m), elevation_m=float(elevation_m), grade_pct=grade
                )
            )

        return ElevationAnalysis(
            total_gain=total_gain,
            total_loss=total_loss,
            max_elevation=float(df["elevationM"].max()),
            min_elevation=float(df["elevationM"].min()),
            profile=tuple(profile),
            has_actual_data=True,
            excluded_gain=excluded_gain,
            excluded_loss=excluded_loss,
        )

    def synthetic_analysis(self, points: Sequence[RoutePoint]) -> ElevationAnalysis:
        """Estimated profile for routes without trustworthy elevation.

        The two sine undulations only make the chart look plausible; the
        result is flagged ``has_actual_data=False``.
        """
        total_distance_m = points[-1].distance_m if points else 0.0
        if not total_distance_m > 0:
            return self.flat_analysis()

        estimated_gain = total_distance_m / 1000.0 * self.config.synthetic_gain_per_km
        base = defaults.SYNTHETIC_BASE_ELEVATION_M

        profile: list[ElevationProfilePoint] = []
        if len(points) > 1:
            last_index = len(points) - 1
            for index, point in enumerate(points):
                if profile and point.distance_m <= profile[-1].distance_m:
                    continue
                progress = index / last_index
                elevation = (
                    base
                    + progress * estimated_gain
                    + math.sin(progress * math.pi * 3) * 20.0
                    + math.sin(progress * math.pi * 12) * 5.0
                )
                profile.append(ElevationProfilePoint(distance_m=point.distance_m, elevation_m=elevation))

        if profile:
            elevations = [p.elevation_m for p in profile]
            max_elevation, min_elevation = max(elevations), min(elevations)
        else:
            max_elevation = min_elevation = base

        return ElevationAnalysis(
            total_gain=estimated_gain,
            total_loss=estimated_gain * defaults.SYNTHETIC_LOSS_RATIO,
            max_elevation=max_elevation,
            min_elevation=min_elevation,
            profile=tuple(profile),
            has_actual_data=False,
        )

    @staticmethod
    def flat_analysis() -> ElevationAnalysis:
        base = defaults.SYNTHETIC_BASE_ELEVATION_M
        return ElevationAnalysis(
            total_gain=0.0,
            total_loss=0.0,
            max_elevation=base,
            min_elevation=base,
            profile=(),
            has_actual_data=False,
        )
