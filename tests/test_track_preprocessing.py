"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from utils.coercion import finite_float_optional, finite_or
from utils.track_preprocessing import (
    bearing_deg,
    cumulated_distance,
    distance,
    embedded_cumulated_distance,
    frame_to_points,
    is_valid_coordinate,
    points_to_frame,
)


@pytest.mark.parametrize(
    "lat,lon,expected",
    [
        (45.0, 5.0, True),
        (0.0, 5.0, True),
        (0.0, 0.0, False),
        (91.0, 5.0, False),
        (45.0, -181.0, False),
        (None, 5.0, False),
    ],
)
def test_is_valid_coordinate(lat, lon, expected):
    assert is_valid_coordinate(lat, lon) is expected


def test_distance_and_cumulated_distance():
    df = pd.DataFrame({"lat": [45.0, 45.01, 45.02], "lon": [5.0, 5.0, 5.0]})
    df = cumulated_distance(distance(df))

    assert df["distance"].iloc[0] == 0.0
    assert df["distance"].iloc[1] == pytest.approx(1112.0, abs=2.0)
    assert df["cumulated_distance"].iloc[-1] == pytest.approx(df["distance"].sum())


def test_embedded_cumulated_distance_is_monotonic():
    df = pd.DataFrame({"d": [np.nan, 100.0, 50.0, np.nan, 300.0]})
    out = embedded_cumulated_distance(df, "d")
    assert list(out["cumulated_distance"]) == [0.0, 100.0, 100.0, 100.0, 300.0]


@pytest.mark.parametrize(
    "dest,expected",
    [((46.0, 5.0), 0.0), ((45.0, 6.0), 90.0), ((44.0, 5.0), 180.0), ((45.0, 4.0), 270.0)],
)
def test_bearing_cardinal_directions(dest, expected):
    assert bearing_deg(45.0, 5.0, *dest) == pytest.approx(expected, abs=0.5)


def test_points_frame_round_trip(line_points):
    points = line_points(3, elevations=[100.0, None, 102.0])
    df = points_to_frame(points)
    assert list(df.columns) == ["lat", "lon", "elevationM", "cumulated_distance", "timestamp"]
    assert frame_to_points(df) == points


def test_coercion():
    assert finite_float_optional(" 12.5 ") == 12.5
    assert finite_float_optional("") is None
    assert finite_float_optional("inf") is None
    assert finite_float_optional(object()) is None
    assert finite_or(None, 3.0) == 3.0
