"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from config import GRADE_SOLVER_CLAMP_PCT, SAMPLER_EXACT_MATCH_M
from services.route_models import ElevationAnalysis
from utils.elevation import calculate_grade


class ElevationSampler:
    """Point-in-time elevation lookups against an analysis profile.

    The analysis is only read; arrays are copied once at construction so a
    sampler can be shared between workers.
    """

    def __init__(self, analysis: ElevationAnalysis, exact_match_m: float = SAMPLER_EXACT_MATCH_M) -> None:
        self.analysis = analysis
        self.exact_match_m = exact_match_m
        self._distances = np.array([p.distance_m for p in analysis.profile], dtype=float)
        self._elevations = np.array([p.elevation_m for p in analysis.profile], dtype=float)

    @property
    def has_data(self) -> bool:
        return self._distances.size > 0

    def elevation_at(self, distance_m: float) -> Optional[float]:
        """Interpolated elevation at a cumulative distance, None without profile."""
        if not self.has_data or distance_m is None or not math.isfinite(distance_m):
            return None

        exact = np.flatnonzero(np.abs(self._distances - distance_m) < self.exact_match_m)
        if exact.size:
            return float(self._elevations[exact[0]])

        if distance_m <= self._distances[0]:
            return float(self._elevations[0])
        if distance_m >= self._distances[-1]:
            return float(self._elevations[-1])

        nxt = int(np.searchsorted(self._distances, distance_m, side="right"))
        prev = nxt - 1
        d0, d1 = self._distances[prev], self._distances[nxt]
        e0, e1 = self._elevations[prev], self._elevations[nxt]
        ratio = (distance_m - d0) / (d1 - d0)
        return float(e0 + ratio * (e1 - e0))

    def grade_between(
        self, start_m: float, end_m: float, clamp_pct: float = GRADE_SOLVER_CLAMP_PCT
    ) -> Optional[float]:
        """Clamped grade (decimal) between two distances, None without profile."""
        start = self.elevation_at(start_m)
        end = self.elevation_at(end_m)
        if start is None or end is None:
            return None
        return calculate_grade(start, end, end_m - start_m, clamp_pct)
