from __future__ import annotations

from .rc_column_common import (
    ALPHA_MAX,
    DIMENSION_MODULUS,
    MIN_BARS_TIED,
    PHI_DESIGN,
    as_count,
    bar_area,
    ceil_or_nan,
    even_bar_count,
    factored_load,
    nan_min,
    nominal_strength_kn,
    safe_div,
    safe_sqrt,
)
from .rc_column_models import TiedColumnInputs, TiedColumnResult
from .rc_materials import beta1, rho_max, rho_min

# Design-mode strength factors phi * alpha = 0.75 * 0.85
_DESIGN_FACTOR = PHI_DESIGN * ALPHA_MAX


def tied_column(inputs: TiedColumnInputs) -> TiedColumnResult:
    """
    Size a square tied column for the factored load at a target steel ratio.

    Ag,req = Pu / (0.75 (0.85) [0.85 f'c (1 - rho) + fy rho]); the side is
    rounded up to the next 5 mm, bars to an even count of at least 4.
    """
    pu = factored_load(inputs.dead_load, inputs.live_load)
    rho = inputs.steel_ratio
    b1 = beta1(inputs.fc)
    r_min = rho_min(inputs.fy)
    r_max = rho_max(inputs.fc, inputs.fy)

    ag_req = safe_div(pu * 1000.0, _DESIGN_FACTOR * (0.85 * inputs.fc * (1.0 - rho) + inputs.fy * rho))
    side = ceil_or_nan(safe_sqrt(ag_req) / DIMENSION_MODULUS) * DIMENSION_MODULUS
    ag = side * side

    a_bar = bar_area(inputs.bar_diameter)
    n_bars = even_bar_count(safe_div(rho * ag, a_bar), MIN_BARS_TIED)
    ast = n_bars * a_bar

    capacity = _DESIGN_FACTOR * nominal_strength_kn(inputs.fc, inputs.fy, ag, ast)
    tie_spacing = nan_min(16.0 * inputs.bar_diameter, 48.0 * inputs.tie_diameter, side)

    return TiedColumnResult(
        factored_load=pu,
        cross_sectional_area=ag,
        area_of_bar=a_bar,
        steel_area=ast,
        axial_load_capacity=capacity,
        is_safe=capacity >= pu,
        is_ratio_valid=r_min <= rho <= r_max,
        steel_ratio=safe_div(ast, ag),
        column_dimension=side,
        number_of_bars=as_count(n_bars),
        tie_spacing=tie_spacing,
        min_steel_ratio=r_min,
        max_steel_ratio=r_max,
        beta1=b1,
        required_gross_area=ag_req,
    )
