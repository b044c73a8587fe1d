"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Route ingestion: dispatch raw track bytes to the parser for their dialect.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Callable, Dict, Literal

from streamlit.logger import get_logger

from config import TRACK_DIALECTS
from services.route_errors import UnsupportedFormat
from services.route_models import RoutePoint
from utils.fit_parser import parse_fit_points
from utils.gpx_parser import parse_gpx_points

logger = get_logger(__name__)

TrackDialect = Literal["gpx", "fit"]

_EXTENSIONS = {".gpx": "gpx", ".fit": "fit"}


def dialect_from_filename(filename: str) -> TrackDialect:
    """Map a file name to its track dialect by extension."""
    suffix = PurePath(filename).suffix.lower()
    dialect = _EXTENSIONS.get(suffix)
    if dialect is None:
        raise UnsupportedFormat(f"Unsupported track file extension: {suffix or filename!r}")
    return dialect  # type: ignore[return-value]


class RouteIngestService:
    """Turn raw track bytes into the canonical RoutePoint sequence."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Callable[[bytes], list[RoutePoint]]] = {
            "gpx": parse_gpx_points,
            "fit": parse_fit_points,
        }

    def ingest(self, data: bytes, dialect: str) -> list[RoutePoint]:
        """Parse ``data`` as ``dialect``.

        Returns:
            Non-empty list of points with monotonic non-decreasing distance

        Raises:
            UnsupportedFormat: unknown dialect tag
            ParseFailure: bytes do not decode as the dialect
            NoCoordinatesFound: no usable coordinate in the decoded file
        """
        key = str(dialect).strip().lower()
        if key not in TRACK_DIALECTS:
            raise UnsupportedFormat(f"Unsupported track dialect: {dialect!r}")

        points = self._parsers[key](data)
        logger.info(
            "Ingested %d %s points (%.0f m)", len(points), key, points[-1].distance_m
        )
        return points

    def ingest_file(self, filename: str, data: bytes) -> list[RoutePoint]:
        return self.ingest(data, dialect_from_filename(filename))
