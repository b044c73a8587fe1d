"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for FIT parser. The decoder is replaced by an in-memory fake so the
tests exercise field probing and point building without binary fixtures.
"""

from __future__ import annotations

import datetime as dt

import pytest

from services.route_errors import NoCoordinatesFound, ParseFailure
from utils import fit_parser
from utils.fit_parser import (
    degrees_to_semicircles,
    parse_fit_points,
    probe_field,
    semicircles_to_degrees,
)


class _FakeMessage:
    def __init__(self, values):
        self._values = values

    def get_values(self):
        return dict(self._values)


def _fake_fit_file(messages_by_name):
    class _FakeFitFile:
        def __init__(self, data):
            self.data = data

        def parse(self):
            return None

        def get_messages(self, name):
            for values in messages_by_name.get(name, []):
                yield _FakeMessage(values)

    return _FakeFitFile


def _record(lat, lon, **extra):
    values = {"position_lat": degrees_to_semicircles(lat), "position_long": degrees_to_semicircles(lon)}
    values.update(extra)
    return values


def test_semicircle_conversion():
    assert semicircles_to_degrees(2**31) == pytest.approx(180.0)
    assert semicircles_to_degrees(-(2**30)) == pytest.approx(-90.0)
    assert semicircles_to_degrees(degrees_to_semicircles(45.123456)) == pytest.approx(45.123456, abs=1e-7)


def test_probe_field_priority():
    values = {"altitude": 120.0, "enhanced_altitude": 121.5, "alt": 99.0}
    assert probe_field(values, "altitude") == 121.5

    values = {"enhanced_altitude": None, "alt": 99.0}
    assert probe_field(values, "altitude") == 99.0

    assert probe_field({}, "altitude") is None


def test_parse_fit_records(monkeypatch):
    start = dt.datetime(2024, 5, 1, 8, 0, 0)
    records = [
        _record(45.0, 5.0, enhanced_altitude=200.0, timestamp=start),
        _record(45.001, 5.0, altitude=201.0, timestamp=start + dt.timedelta(seconds=30)),
        _record(45.002, 5.0, timestamp=start + dt.timedelta(seconds=60)),
    ]
    monkeypatch.setattr(fit_parser, "FitFile", _fake_fit_file({"record": records}))

    points = parse_fit_points(b"fit")

    assert len(points) == 3
    assert points[0].lat == pytest.approx(45.0, abs=1e-7)
    assert [p.elevation_m for p in points] == [200.0, 201.0, None]
    assert points[0].distance_m == 0.0
    assert points[2].distance_m == pytest.approx(222.4, abs=1.0)
    assert points[0].timestamp is not None


def test_parse_fit_skips_records_without_position(monkeypatch):
    records = [
        {"altitude": 100.0},
        _record(0.0, 0.0, altitude=100.0),
        _record(45.0, 5.0, altitude=100.0),
        _record(45.001, 5.0, altitude=100.0),
    ]
    monkeypatch.setattr(fit_parser, "FitFile", _fake_fit_file({"record": records}))

    points = parse_fit_points(b"fit")
    assert len(points) == 2


def test_parse_fit_course_points_use_embedded_distance(monkeypatch):
    course_points = [
        _record(45.0, 5.0, distance=0.0),
        _record(45.01, 5.0, distance=1500.0),
        _record(45.02, 5.0, distance=None),
        _record(45.03, 5.0, distance=1400.0),
    ]
    monkeypatch.setattr(fit_parser, "FitFile", _fake_fit_file({"course_point": course_points}))

    points = parse_fit_points(b"fit")

    assert [p.distance_m for p in points] == [0.0, 1500.0, 1500.0, 1500.0]
    assert all(p.elevation_m is None for p in points)


def test_parse_fit_course_points_without_distance(monkeypatch):
    course_points = [_record(45.0, 5.0), _record(45.01, 5.0)]
    monkeypatch.setattr(fit_parser, "FitFile", _fake_fit_file({"course_point": course_points}))

    points = parse_fit_points(b"fit")
    assert points[1].distance_m == pytest.approx(1112.0, abs=2.0)


def test_parse_fit_no_positions(monkeypatch):
    monkeypatch.setattr(fit_parser, "FitFile", _fake_fit_file({"record": [{"heart_rate": 120}]}))
    with pytest.raises(NoCoordinatesFound):
        parse_fit_points(b"fit")


def test_parse_fit_corrupt_bytes():
    with pytest.raises(ParseFailure):
        parse_fit_points(b"this is not a fit file at all")
