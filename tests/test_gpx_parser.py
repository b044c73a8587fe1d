"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for GPX parser.
"""

from __future__ import annotations

import datetime as dt

import pytest
from haversine import Unit, haversine

from services.route_errors import NoCoordinatesFound, ParseFailure, RouteParseError
from utils.gpx_parser import parse_gpx_points


def test_parse_gpx_minimal_valid(build_gpx_doc):
    """Test parsing a minimal valid GPX with 5 points."""
    coords = [(45.0 + i * 0.001, 5.0, 100 + i * 10) for i in range(5)]
    points = parse_gpx_points(build_gpx_doc(coords))

    assert len(points) == 5
    assert points[0].distance_m == 0.0
    assert [p.elevation_m for p in points] == [100.0, 110.0, 120.0, 130.0, 140.0]
    assert points[0].lat == pytest.approx(45.0)
    assert points[0].lon == pytest.approx(5.0)


def test_parse_gpx_cumulative_distance_is_haversine_sum(build_gpx_doc):
    coords = [(45.0, 5.0, 100), (45.01, 5.0, 100), (45.01, 5.01, 100)]
    points = parse_gpx_points(build_gpx_doc(coords))

    expected = haversine((45.0, 5.0), (45.01, 5.0), unit=Unit.METERS) + haversine(
        (45.01, 5.0), (45.01, 5.01), unit=Unit.METERS
    )
    assert points[-1].distance_m == pytest.approx(expected, rel=1e-9)
    distances = [p.distance_m for p in points]
    assert distances == sorted(distances)


def test_parse_gpx_keeps_timestamps(build_gpx_doc):
    coords = [(45.0 + i * 0.001, 5.0, 100) for i in range(3)]
    points = parse_gpx_points(build_gpx_doc(coords, with_time=True))

    assert all(p.timestamp is not None for p in points)
    assert points[1].timestamp > points[0].timestamp


def test_parse_gpx_mixed_iso8601_timestamps():
    gpx_content = b"""<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><trkseg>
    <trkpt lat="45.0" lon="5.0"><time>2024-05-01T08:00:00Z</time></trkpt>
    <trkpt lat="45.001" lon="5.0"><time>2024-05-01T08:00:01.500Z</time></trkpt>
    <trkpt lat="45.002" lon="5.0"><time>2024-05-01T08:00:03+00:00</time></trkpt>
  </trkseg></trk>
</gpx>"""
    points = parse_gpx_points(gpx_content)

    start = dt.datetime(2024, 5, 1, 8, 0, 0, tzinfo=dt.timezone.utc)
    assert [p.timestamp for p in points] == [
        start,
        start + dt.timedelta(seconds=1.5),
        start + dt.timedelta(seconds=3),
    ]


def test_parse_gpx_concatenates_tracks_and_segments():
    """Tracks and segments are read in file order with distance carried over."""
    gpx_content = b"""<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <trkseg>
      <trkpt lat="45.000" lon="5.0"><ele>100</ele></trkpt>
      <trkpt lat="45.001" lon="5.0"><ele>101</ele></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="45.002" lon="5.0"><ele>102</ele></trkpt>
      <trkpt lat="45.003" lon="5.0"><ele>103</ele></trkpt>
    </trkseg>
  </trk>
  <trk>
    <trkseg>
      <trkpt lat="45.004" lon="5.0"><ele>104</ele></trkpt>
      <trkpt lat="45.005" lon="5.0"><ele>105</ele></trkpt>
    </trkseg>
  </trk>
</gpx>"""
    points = parse_gpx_points(gpx_content)

    assert [p.elevation_m for p in points] == [100.0, 101.0, 102.0, 103.0, 104.0, 105.0]
    distances = [p.distance_m for p in points]
    assert all(b > a for a, b in zip(distances, distances[1:]))
    # each 0.001 deg step of latitude is about 111 m, boundaries included
    steps = [b - a for a, b in zip(distances, distances[1:])]
    assert all(step == pytest.approx(111.2, abs=1.0) for step in steps)


def test_parse_gpx_without_timestamps(build_gpx_doc):
    """Test parsing route-only GPX without timestamps."""
    coords = [(45.0 + i * 0.001, 5.0, 100) for i in range(3)]
    points = parse_gpx_points(build_gpx_doc(coords))
    assert all(p.timestamp is None for p in points)


def test_parse_gpx_with_missing_elevation(build_gpx_doc):
    """Missing <ele> stays absent, it is never filled in."""
    coords = [(45.0, 5.0, 100), (45.001, 5.0, None), (45.002, 5.0, 102)]
    points = parse_gpx_points(build_gpx_doc(coords))

    assert len(points) == 3
    assert points[1].elevation_m is None


def test_parse_gpx_falls_back_to_route_points(build_gpx_doc):
    coords = [(45.0, 5.0, 200), (45.01, 5.0, 210)]
    points = parse_gpx_points(build_gpx_doc(coords, tag="rtept"))

    assert len(points) == 2
    assert points[1].distance_m > 1000
    assert points[1].timestamp is None


@pytest.mark.parametrize(
    "namespace",
    ["http://www.topografix.com/GPX/1/1", "http://www.topografix.com/GPX/1/0", None],
)
def test_parse_gpx_any_namespace(build_gpx_doc, namespace):
    coords = [(45.0, 5.0, 100), (45.001, 5.0, 101)]
    points = parse_gpx_points(build_gpx_doc(coords, namespace=namespace))
    assert len(points) == 2


def test_parse_gpx_skips_invalid_coordinates(build_gpx_doc):
    coords = [(45.0, 5.0, 100), (0.0, 0.0, 100), (95.0, 5.0, 100), (45.001, 5.0, 100)]
    points = parse_gpx_points(build_gpx_doc(coords))

    assert len(points) == 2
    assert points[1].distance_m < 200


def test_parse_gpx_bad_input():
    """Test parsing invalid XML raises a parse failure."""
    with pytest.raises(ParseFailure):
        parse_gpx_points(b"<gpx><trk>")


def test_parse_gpx_wrong_root():
    with pytest.raises(ParseFailure):
        parse_gpx_points(b"<invalid>xml</invalid>")


def test_parse_gpx_no_points(build_gpx_doc):
    with pytest.raises(NoCoordinatesFound):
        parse_gpx_points(build_gpx_doc([]))


def test_parse_gpx_only_sentinel_points(build_gpx_doc):
    with pytest.raises(RouteParseError):
        parse_gpx_points(build_gpx_doc([(0.0, 0.0, 10), (0.0, 0.0, 12)]))
