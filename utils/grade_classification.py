"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

from typing import Literal

import pandas as pd

SegmentType = Literal["climb", "rolling", "flat", "descent"]


def classify_segment_type(grade: float) -> SegmentType:
    """Classify a pacing segment by grade (decimal, not percentage).

    Returns:
        One of: climb, descent, rolling, flat.
    """
    if pd.isna(grade):
        return "flat"
    if grade > 0.035:
        return "climb"
    if grade < -0.025:
        return "descent"
    if abs(grade) > 0.015:
        return "rolling"
    return "flat"


def adaptive_segment_length_m(grade: float, interval_m: float, min_length_m: float = 100.0) -> float:
    """Pick a pacing sub-segment length for an interval of the given grade.

    Short intervals (< 2 * min_length_m) are kept whole.
    """
    if interval_m < min_length_m * 2:
        return max(min_length_m, interval_m)

    abs_grade = abs(grade)
    if abs_grade > 0.08:
        return 400.0
    if abs_grade > 0.03:
        return 300.0
    if abs_grade > 0.01:
        return 250.0
    return 400.0
