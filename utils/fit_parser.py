"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

FIT file parser for recorded activities and planned courses.

Recorded activities carry ``record`` messages; courses that were never ridden
may only carry ``course_point`` messages, which embed their own cumulative
distance. Field names vary between devices, so every semantic field is looked
up through an ordered list of candidate keys.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from fitparse import FitFile, FitParseError
from streamlit.logger import get_logger

from services.route_errors import NoCoordinatesFound, ParseFailure
from services.route_models import RoutePoint
from utils import track_preprocessing as track_pre
from utils.coercion import finite_float_optional

logger = get_logger(__name__)

SEMICIRCLES_PER_180_DEG = 2**31

# Semantic field -> source keys, tried in order; first present wins.
FIELD_KEY_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    "latitude": ("position_lat",),
    "longitude": ("position_long",),
    "altitude": ("enhanced_altitude", "altitude", "enhanced_alt", "alt"),
    "distance": ("distance", "enhanced_distance"),
    "timestamp": ("timestamp",),
}


def semicircles_to_degrees(semicircles: float) -> float:
    return semicircles * (180.0 / SEMICIRCLES_PER_180_DEG)


def degrees_to_semicircles(degrees: float) -> int:
    return int(round(degrees * SEMICIRCLES_PER_180_DEG / 180.0))


def probe_field(values: Mapping[str, Any], field: str) -> Any:
    """Return the first non-None value among the candidate keys for ``field``."""
    for key in FIELD_KEY_CANDIDATES[field]:
        value = values.get(key)
        if value is not None:
            return value
    return None


def _message_row(values: Mapping[str, Any], with_distance: bool) -> Optional[dict]:
    lat_semi = finite_float_optional(probe_field(values, "latitude"))
    lon_semi = finite_float_optional(probe_field(values, "longitude"))
    if lat_semi is None or lon_semi is None:
        return None

    lat = semicircles_to_degrees(lat_semi)
    lon = semicircles_to_degrees(lon_semi)
    if not track_pre.is_valid_coordinate(lat, lon):
        return None

    row = {
        "lat": lat,
        "lon": lon,
        "elevationM": finite_float_optional(probe_field(values, "altitude")),
        "timestamp": probe_field(values, "timestamp"),
    }
    if with_distance:
        row["embedded_distance"] = finite_float_optional(probe_field(values, "distance"))
    return row


def rows_from_messages(messages: Iterable[Any], with_distance: bool = False) -> list[dict]:
    """Extract track rows from decoded messages exposing ``get_values()``."""
    rows = []
    skipped = 0
    for msg in messages:
        row = _message_row(msg.get_values(), with_distance)
        if row is None:
            skipped += 1
            continue
        rows.append(row)
    if skipped:
        logger.debug(f"Skipped {skipped} FIT messages without a valid position")
    return rows


def parse_fit_points(fit_bytes: bytes) -> list[RoutePoint]:
    """Parse FIT bytes into an ordered list of route points.

    ``record`` messages are preferred and their distance is re-derived from
    coordinates. When no record has a valid position, ``course_point``
    messages are used and their embedded distance is authoritative.

    Raises:
        ParseFailure: bytes are not a decodable FIT stream
        NoCoordinatesFound: no message carries a valid position
    """
    try:
        fit = FitFile(io.BytesIO(fit_bytes))
        fit.parse()
        records = rows_from_messages(fit.get_messages("record"))
        course_points: list[dict] = []
        if not records:
            course_points = rows_from_messages(fit.get_messages("course_point"), with_distance=True)
    except (FitParseError, EOFError) as e:
        logger.warning(f"Invalid FIT data: {e}")
        raise ParseFailure(f"Invalid FIT data: {e}") from e

    if records:
        df = track_pre.rows_to_frame(records)
        df = track_pre.distance(df, lat_col="lat", lon_col="lon")
        df = track_pre.cumulated_distance(df)
    elif course_points:
        df = track_pre.rows_to_frame(course_points)
        if df["embedded_distance"].notna().any():
            df = track_pre.embedded_cumulated_distance(df, "embedded_distance")
        else:
            logger.debug("Course points carry no distance; deriving from coordinates")
            df = track_pre.distance(df, lat_col="lat", lon_col="lon")
            df = track_pre.cumulated_distance(df)
    else:
        logger.warning("FIT contains no record or course_point with a valid position")
        raise NoCoordinatesFound("FIT contains no record or course_point with a valid position")

    logger.debug(f"Parsed FIT: {len(df)} points, {df['cumulated_distance'].iloc[-1]:.0f} m")
    return track_pre.frame_to_points(df)
