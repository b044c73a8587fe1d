"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

TRACK_DIALECTS = ["gpx", "fit"]

# Physical constants
GRAVITY = 9.80665  # m/s²
DEFAULT_AIR_DENSITY = 1.225  # kg/m³ at sea level, 15°C
CRR_DRY = 0.004
CRR_WET = 0.006
FRONTAL_AREA_M2 = 0.38
DRAG_COEFFICIENT = 0.88
DRIVETRAIN_EFFICIENCY = 0.97

# Bisection solver
SOLVER_MIN_SPEED_MPS = 0.1
SOLVER_MAX_SPEED_MPS = 25.0
SOLVER_MAX_ITERATIONS = 100
SOLVER_SPEED_TOLERANCE_MPS = 0.01
SOLVER_POWER_TOLERANCE_W = 0.5

# Grade bounds (percent). Three independent knobs, do not merge.
GRADE_DISPLAY_CLAMP_PCT = 25.0
GRADE_OUTLIER_PCT = 35.0
GRADE_SOLVER_CLAMP_PCT = 30.0

# Elevation reconstruction
ELEVATION_TRUST_FRACTION = 0.5
SYNTHETIC_GAIN_PER_KM = 15.0
SYNTHETIC_LOSS_RATIO = 0.7
SYNTHETIC_BASE_ELEVATION_M = 100.0
SAMPLER_EXACT_MATCH_M = 1.0

# Pacing
WET_PRECIPITATION_THRESHOLD = 0.4
MIN_SEGMENT_LENGTH_M = 100.0
MIN_SUBSEGMENT_M = 1.0

# Barometric air density
SEA_LEVEL_PRESSURE_PA = 101325.0
SEA_LEVEL_TEMPERATURE_K = 288.15
TEMPERATURE_LAPSE_K_PER_M = 0.0065
UNIVERSAL_GAS_CONSTANT = 8.31447
AIR_MOLAR_MASS = 0.0289644
AIR_SPECIFIC_GAS_CONSTANT = 287.05
