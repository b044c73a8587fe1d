import sys
from pathlib import Path

import pytest

# Ensure project root is importable for tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from services.route_models import (
    ElevationAnalysis,
    ElevationProfilePoint,
    RiderPhysicalProfile,
    RoutePoint,
)


def build_gpx(points, *, tag="trkpt", namespace="http://www.topografix.com/GPX/1/1", with_time=False):
    """Build a GPX document from (lat, lon, ele) tuples; ``ele`` may be None."""
    body = []
    for i, (lat, lon, ele) in enumerate(points):
        children = ""
        if ele is not None:
            children += f"<ele>{ele}</ele>"
        if with_time:
            children += f"<time>2024-05-01T08:{i // 60:02d}:{i % 60:02d}Z</time>"
        body.append(f'<{tag} lat="{lat}" lon="{lon}">{children}</{tag}>')
    if tag == "trkpt":
        inner = f"<trk><trkseg>{''.join(body)}</trkseg></trk>"
    else:
        inner = f"<rte>{''.join(body)}</rte>"
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return f'<?xml version="1.0" encoding="UTF-8"?><gpx version="1.1"{xmlns}>{inner}</gpx>'.encode("utf-8")


def straight_line_points(count, step_m=100.0, elevations=None):
    """Points due north every ``step_m`` meters along a meridian."""
    points = []
    for i in range(count):
        ele = None if elevations is None else elevations[i]
        points.append(RoutePoint(lat=45.0 + i * step_m / 111_195.0, lon=5.0, elevation_m=ele, distance_m=i * step_m))
    return points


@pytest.fixture
def build_gpx_doc():
    return build_gpx


@pytest.fixture
def rider() -> RiderPhysicalProfile:
    return RiderPhysicalProfile(total_weight_kg=80.0, target_power_w=200.0)


@pytest.fixture
def flat_analysis() -> ElevationAnalysis:
    profile = tuple(ElevationProfilePoint(distance_m=d, elevation_m=100.0) for d in (0.0, 1000.0, 2000.0))
    return ElevationAnalysis(
        total_gain=0.0,
        total_loss=0.0,
        max_elevation=100.0,
        min_elevation=100.0,
        profile=profile,
        has_actual_data=True,
    )


@pytest.fixture
def climb_analysis() -> ElevationAnalysis:
    """Flat first km, then a steady 8 % climb for one km."""
    profile = (
        ElevationProfilePoint(distance_m=0.0, elevation_m=100.0),
        ElevationProfilePoint(distance_m=1000.0, elevation_m=100.0, grade_pct=0.0),
        ElevationProfilePoint(distance_m=2000.0, elevation_m=180.0, grade_pct=8.0),
    )
    return ElevationAnalysis(
        total_gain=80.0,
        total_loss=0.0,
        max_elevation=180.0,
        min_elevation=100.0,
        profile=profile,
        has_actual_data=True,
    )


@pytest.fixture
def line_points():
    return straight_line_points
