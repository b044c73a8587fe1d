"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Numeric coercion helpers shared by the track parsers, the physics solver and
the configuration loader.
"""

from __future__ import annotations

import math
from typing import Any, Optional


def finite_float_optional(value: Any) -> Optional[float]:
    """Convert a raw field value to a finite float.

    Handles None, empty strings, "NaN", infinities and conversion errors by
    returning None, so a missing sensor value never leaks into the profile.

    Args:
        value: Raw value (str from XML text, int/float from decoded messages)

    Returns:
        Optional[float]: Finite float or None
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def finite_or(value: Any, default: float = 0.0) -> float:
    """Return a finite float, substituting ``default`` for anything else."""
    result = finite_float_optional(value)
    return default if result is None else result


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
