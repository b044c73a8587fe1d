"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd
from haversine import Unit, haversine

from services.route_models import RoutePoint

TRACK_COLUMNS = ["lat", "lon", "elevationM", "timestamp"]


def is_valid_coordinate(lat: Optional[float], lon: Optional[float]) -> bool:
    """Return True for a usable WGS84 coordinate.

    ``(0, 0)`` is the "no fix" sentinel written by recording devices and is
    rejected along with out-of-range values.
    """
    if lat is None or lon is None:
        return False
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return False
    return not (lat == 0.0 and lon == 0.0)


def distance(df: pd.DataFrame, lat_col: str = "lat", lon_col: str = "lon") -> pd.DataFrame:
    """Compute the great-circle distance from the previous point in meters."""
    df = df.copy()
    lats = df[lat_col].to_numpy(dtype=float)
    lons = df[lon_col].to_numpy(dtype=float)
    steps = [0.0] * len(df)
    for i in range(1, len(df)):
        steps[i] = haversine((lats[i - 1], lons[i - 1]), (lats[i], lons[i]), unit=Unit.METERS)
    df["distance"] = steps
    return df


def cumulated_distance(df: pd.DataFrame, distance_col: str = "distance") -> pd.DataFrame:
    """Compute cumulated distance from a per-row distance column."""
    df = df.copy()
    df["cumulated_distance"] = df[distance_col].fillna(0.0).clip(lower=0.0).cumsum()
    return df


def embedded_cumulated_distance(df: pd.DataFrame, distance_col: str) -> pd.DataFrame:
    """Use a file-provided cumulative distance as-is, only forcing it monotonic.

    Missing values inherit the previous distance; the first point starts at
    its own value (or 0 when absent).
    """
    df = df.copy()
    cum = pd.to_numeric(df[distance_col], errors="coerce").ffill().fillna(0.0)
    df["cumulated_distance"] = np.maximum.accumulate(cum.to_numpy(dtype=float))
    return df


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing from point 1 to point 2, in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lon = math.radians(lon2 - lon1)
    y = math.sin(d_lon) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lon)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def frame_to_points(df: pd.DataFrame) -> list[RoutePoint]:
    """Convert a frame with lat/lon/elevationM/timestamp/cumulated_distance to points."""
    points: list[RoutePoint] = []
    has_ts = "timestamp" in df.columns
    for row in df.itertuples(index=False):
        elevation = getattr(row, "elevationM")
        ts = getattr(row, "timestamp") if has_ts else None
        points.append(
            RoutePoint(
                lat=float(row.lat),
                lon=float(row.lon),
                elevation_m=None if pd.isna(elevation) else float(elevation),
                distance_m=float(row.cumulated_distance),
                timestamp=None if ts is None or pd.isna(ts) else pd.Timestamp(ts).to_pydatetime(),
            )
        )
    return points


def points_to_frame(points: Sequence[RoutePoint]) -> pd.DataFrame:
    """Tabular view of ingested points (one row per point)."""
    return pd.DataFrame(
        {
            "lat": [p.lat for p in points],
            "lon": [p.lon for p in points],
            "elevationM": [p.elevation_m for p in points],
            "cumulated_distance": [p.distance_m for p in points],
            "timestamp": [p.timestamp for p in points],
        },
        columns=["lat", "lon", "elevationM", "cumulated_distance", "timestamp"],
    )


def rows_to_frame(rows: Iterable[dict]) -> pd.DataFrame:
    df = pd.DataFrame(list(rows))
    for col in TRACK_COLUMNS:
        if col not in df.columns:
            df[col] = None
    if df["timestamp"].notna().any():
        df["timestamp"] = pd.to_datetime(df["timestamp"], format="ISO8601", errors="coerce", utc=True)
    return df
