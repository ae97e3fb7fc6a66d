from __future__ import annotations

import math
from typing import Tuple

# Load combination U = 1.2D + 1.6L
DEAD_LOAD_FACTOR = 1.2
LIVE_LOAD_FACTOR = 1.6

# Strength reduction factors
PHI_TIED = 0.65
PHI_SPIRAL = 0.75
# phi for the design-mode sizing equations (tied and spiral)
PHI_DESIGN = 0.75
# Maximum axial strength factor applied with phi for the design-mode equations
ALPHA_MAX = 0.85

# Longitudinal steel ratio limits for tied columns (analysis/sizing)
RHO_MIN_TIED = 0.01
RHO_MAX_TIED = 0.08

STANDARD_BAR_SIZES: Tuple[int, ...] = (10, 12, 16, 20, 25, 32, 40)

MIN_BARS_TIED = 4
MIN_BARS_SPIRAL = 6

# Spiral clear spacing limits (mm)
SPIRAL_CLEAR_SPACING_MIN = 25.0
SPIRAL_CLEAR_SPACING_MAX = 75.0

# Detailing increment for designed column dimensions (mm)
DIMENSION_MODULUS = 5.0


def safe_div(num: float, den: float) -> float:
    """IEEE-754 division: x/0 -> +-inf, 0/0 -> nan (never raises)."""
    if den == 0.0:
        if num == 0.0 or math.isnan(num):
            return float("nan")
        sign = math.copysign(1.0, num) * math.copysign(1.0, den)
        return math.copysign(float("inf"), sign)
    return num / den


def safe_sqrt(x: float) -> float:
    if math.isnan(x) or x < 0.0:
        return float("nan")
    return math.sqrt(x)


def ceil_or_nan(x: float) -> float:
    """math.ceil that passes nan/inf through instead of raising."""
    if not math.isfinite(x):
        return x
    return float(math.ceil(x))


def round_half_up(x: float) -> float:
    if not math.isfinite(x):
        return x
    return float(math.floor(x + 0.5))


def nan_min(*values: float) -> float:
    for v in values:
        if math.isnan(v):
            return float("nan")
    return min(values)


def nan_max(*values: float) -> float:
    for v in values:
        if math.isnan(v):
            return float("nan")
    return max(values)


def factored_load(dead_load: float, live_load: float) -> float:
    return DEAD_LOAD_FACTOR * dead_load + LIVE_LOAD_FACTOR * live_load


def circle_area(diameter: float) -> float:
    r = diameter / 2.0
    return math.pi * r * r


def bar_area(diameter: float) -> float:
    """Area of one round bar (mm^2)."""
    return circle_area(diameter)


def nominal_strength_kn(fc: float, fy: float, gross_area: float, steel_area: float) -> float:
    """0.85 f'c (Ag - Ast) + fy Ast, converted from N to kN."""
    return (0.85 * fc * (gross_area - steel_area) + fy * steel_area) / 1000.0


def even_bar_count(required: float, minimum: int) -> float:
    """Round a bar count up to an even number, no fewer than `minimum`."""
    n = ceil_or_nan(safe_div(required, 2.0)) * 2.0
    return nan_max(float(minimum), n)


def as_count(n: float) -> int | float:
    """Bar counts are reported as int when finite."""
    return int(n) if math.isfinite(n) else n
