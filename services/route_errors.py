"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Typed ingestion failures. Elevation analysis, sampling and the power solver
have no error path; only route ingestion raises.
"""

from __future__ import annotations


class RouteParseError(ValueError):
    """Base class for route ingestion failures."""


class UnsupportedFormat(RouteParseError):
    """The dialect tag (or file extension) is not a known track format."""


class ParseFailure(RouteParseError):
    """The bytes could not be decoded as the claimed dialect."""


class NoCoordinatesFound(RouteParseError):
    """Decoding succeeded but produced no usable coordinate."""
