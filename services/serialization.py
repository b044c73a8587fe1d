"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from services.route_models import ElevationAnalysis, RideETAResult


def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def serialize_elevation_analysis(analysis: Optional[ElevationAnalysis]) -> str:
    if analysis is None:
        return ""
    return _dumps(analysis.to_dict())


def serialize_eta_result(result: Optional[RideETAResult]) -> str:
    if result is None:
        return ""
    return _dumps(result.to_dict())


def deserialize(s: Optional[str]) -> Optional[Dict[str, Any]]:
    if not s:
        return None
    return json.loads(s)
