from __future__ import annotations

import math
from typing import Tuple

from .rc_column_common import (
    MIN_BARS_TIED,
    PHI_TIED,
    STANDARD_BAR_SIZES,
    as_count,
    bar_area,
    ceil_or_nan,
    nan_max,
    nan_min,
    nominal_strength_kn,
    round_half_up,
    safe_div,
)
from .rc_column_models import ReinforcementInputs, ReinforcementResult


def _fmt_count(n: float) -> str:
    return f"{n:g}"


def select_bars(steel_area: float, sizes: Tuple[int, ...] = STANDARD_BAR_SIZES) -> Tuple[int, float]:
    """
    Smallest standard bar size whose even bar count (>= 4) provides `steel_area`.

    Returns (bar_size_mm, number_of_bars). Falls back to the smallest size
    with the minimum count when no size is accepted (non-finite area).
    """
    for size in sizes:
        a_bar = bar_area(size)
        needed = ceil_or_nan(safe_div(steel_area, a_bar))
        if not math.isfinite(needed):
            continue
        count = needed if needed % 2 == 0 else needed + 1
        count = max(float(MIN_BARS_TIED), count)
        if count * a_bar >= steel_area:
            return size, count
    return sizes[0], float(MIN_BARS_TIED)


def bar_arrangement(number_of_bars: float, length: float, width: float) -> str:
    """Describe how the bars are distributed around the section perimeter."""
    if length == width:
        per_side = math.floor(number_of_bars / 4) if math.isfinite(number_of_bars) else number_of_bars
        extras = number_of_bars - per_side * 4
        text = f"{_fmt_count(per_side)} bars per side"
        if extras > 0:
            text += f" + {_fmt_count(extras)} extra"
        return text

    longer = nan_max(length, width)
    shorter = nan_min(length, width)
    ratio = round_half_up(safe_div(longer, shorter))
    on_long = ceil_or_nan(safe_div(number_of_bars, 2.0 * (ratio + 1.0))) * ratio
    on_short = (number_of_bars - 2.0 * on_long) / 2.0
    return f"{_fmt_count(on_long)} on long sides, {_fmt_count(on_short)} on short sides"


def reinforcement(inputs: ReinforcementInputs) -> ReinforcementResult:
    """
    Size longitudinal steel and ties for a tied column carrying a factored load.

    Ast,req = max((Pu/0.65 - 0.85 f'c Ag) / (fy - 0.85 f'c), rho_min Ag),
    capped at rho_max Ag. Safe when phi Pn >= Pu.
    """
    pu = inputs.axial_load
    ag = inputs.length * inputs.width

    ast_from_load = safe_div(pu * 1000.0 / PHI_TIED - 0.85 * inputs.fc * ag, inputs.fy - 0.85 * inputs.fc)
    ast_required = nan_max(ast_from_load, inputs.min_steel_ratio * ag)
    ast_capped = nan_min(ast_required, inputs.max_steel_ratio * ag)
    rho = safe_div(ast_capped, ag)

    bar_size, n_bars = select_bars(ast_capped)
    a_bar = bar_area(bar_size)
    ast = n_bars * a_bar

    tie_spacing = nan_min(16.0 * bar_size, 48.0 * inputs.tie_diameter, nan_min(inputs.length, inputs.width))
    capacity = PHI_TIED * nominal_strength_kn(inputs.fc, inputs.fy, ag, ast)

    return ReinforcementResult(
        factored_load=pu,
        cross_sectional_area=ag,
        area_of_bar=a_bar,
        steel_area=ast,
        axial_load_capacity=capacity,
        is_safe=capacity >= pu,
        is_ratio_valid=inputs.min_steel_ratio <= rho <= inputs.max_steel_ratio,
        required_steel_area=ast_capped,
        recommended_bar_size=bar_size,
        number_of_bars=as_count(n_bars),
        bar_arrangement=bar_arrangement(n_bars, inputs.length, inputs.width),
        max_tie_spacing=tie_spacing,
        steel_ratio=rho,
        min_steel_ratio=inputs.min_steel_ratio,
        max_steel_ratio=inputs.max_steel_ratio,
    )
