"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

GPX file parser for route and track data.

Handles both timestamped tracks and time-invariant routes (waypoints only).
Track points are preferred; route points are only read when the file holds no
usable track point.
"""

from __future__ import annotations

from typing import Optional

from lxml import etree
from streamlit.logger import get_logger

from services.route_errors import NoCoordinatesFound, ParseFailure
from services.route_models import RoutePoint
from utils import track_preprocessing as track_pre
from utils.coercion import finite_float_optional

logger = get_logger(__name__)

_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _child_text(element: etree._Element, name: str) -> Optional[str]:
    child = element.find(f"{{*}}{name}")
    if child is None:
        child = element.find(name)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _collect_rows(elements: list, keep_time: bool) -> list[dict]:
    rows = []
    for pt in elements:
        lat = finite_float_optional(pt.get("lat"))
        lon = finite_float_optional(pt.get("lon"))
        if not track_pre.is_valid_coordinate(lat, lon):
            logger.debug(f"Skipping point with invalid coordinate lat={lat} lon={lon}")
            continue

        rows.append(
            {
                "lat": lat,
                "lon": lon,
                "elevationM": finite_float_optional(_child_text(pt, "ele")),
                "timestamp": _child_text(pt, "time") if keep_time else None,
            }
        )
    return rows


def parse_gpx_points(gpx_bytes: bytes) -> list[RoutePoint]:
    """Parse GPX bytes into an ordered list of route points.

    Tracks and their segments are concatenated in file order. Cumulative
    distance is the running sum of great-circle steps between kept points.

    Args:
        gpx_bytes: Raw GPX file content as bytes

    Returns:
        Non-empty list of RoutePoint

    Raises:
        ParseFailure: bytes are not a GPX document
        NoCoordinatesFound: the document has no usable trkpt/rtept
    """
    try:
        root = etree.fromstring(gpx_bytes, parser=_XML_PARSER)
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.warning(f"Invalid GPX XML: {e}")
        raise ParseFailure(f"Invalid GPX XML: {e}") from e

    if root is None or _local_name(root) != "gpx":
        raise ParseFailure("Document root is not <gpx>")

    trkpts = root.xpath(".//*[local-name()='trk']//*[local-name()='trkpt']")
    rows = _collect_rows(trkpts, keep_time=True)

    if not rows:
        rtepts = root.xpath(".//*[local-name()='rte']/*[local-name()='rtept']")
        if rtepts:
            logger.debug(f"No track points, falling back to {len(rtepts)} route points")
        rows = _collect_rows(rtepts, keep_time=False)

    if not rows:
        logger.warning("GPX contains no usable track or route points")
        raise NoCoordinatesFound("GPX contains no usable track or route points")

    df = track_pre.rows_to_frame(rows)
    df = track_pre.distance(df, lat_col="lat", lon_col="lon")
    df = track_pre.cumulated_distance(df)

    logger.debug(f"Parsed GPX: {len(df)} points, {df['cumulated_distance'].iloc[-1]:.0f} m")
    return track_pre.frame_to_points(df)
