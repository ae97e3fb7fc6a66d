from __future__ import annotations

import math

from .rc_column_common import (
    ALPHA_MAX,
    DIMENSION_MODULUS,
    MIN_BARS_SPIRAL,
    PHI_DESIGN,
    PHI_SPIRAL,
    SPIRAL_CLEAR_SPACING_MAX,
    SPIRAL_CLEAR_SPACING_MIN,
    as_count,
    bar_area,
    ceil_or_nan,
    circle_area,
    factored_load,
    nan_max,
    nominal_strength_kn,
    safe_div,
    safe_sqrt,
)
from .rc_column_models import SpiralColumnInputs, SpiralColumnResult, SpiralDesignInputs, SpiralDesignResult
from .rc_materials import beta1, rho_max, rho_min


def _spiral_details(column_diameter: float, cover: float, spiral_bar_diameter: float, gross_area: float, fc: float, fy: float) -> dict:
    """
    Minimum spiral ratio and the pitch that provides it.

    rho_s = 0.45 (Ag/Ach - 1) f'c/fy
    s = 4 Asp (Dc - ds) / (rho_s Dc^2)
    """
    dc = column_diameter - 2.0 * cover
    ach = circle_area(dc)
    rho_s = 0.45 * (safe_div(gross_area, ach) - 1.0) * safe_div(fc, fy)
    asp = bar_area(spiral_bar_diameter)
    pitch = safe_div(4.0 * asp * (dc - spiral_bar_diameter), rho_s * dc * dc)
    clear = pitch - spiral_bar_diameter
    return {
        "core_diameter": dc,
        "core_area": ach,
        "spiral_ratio": rho_s,
        "spiral_spacing": pitch,
        "clear_spacing": clear,
        "is_spacing_valid": SPIRAL_CLEAR_SPACING_MIN <= clear <= SPIRAL_CLEAR_SPACING_MAX,
    }


def _spiral_bars(gross_area: float, steel_ratio: float, bar_diameter: float):
    a_bar = bar_area(bar_diameter)
    n_bars = nan_max(float(MIN_BARS_SPIRAL), ceil_or_nan(safe_div(steel_ratio * gross_area, a_bar)))
    ast = n_bars * a_bar
    return a_bar, n_bars, ast


def spiral_capacity(fc: float, fy: float, gross_area: float, steel_area: float) -> float:
    """phi Pn = 0.75 (0.85) [0.85 f'c (Ag - Ast) + fy Ast] in kN."""
    return PHI_SPIRAL * ALPHA_MAX * nominal_strength_kn(fc, fy, gross_area, steel_area)


def spiral_column(inputs: SpiralColumnInputs) -> SpiralColumnResult:
    pu = factored_load(inputs.dead_load, inputs.live_load)
    ag = circle_area(inputs.column_diameter)
    b1 = beta1(inputs.fc)
    r_min = rho_min(inputs.fy)
    r_max = rho_max(inputs.fc, inputs.fy)

    a_bar, n_bars, ast = _spiral_bars(ag, inputs.steel_ratio, inputs.bar_diameter)
    capacity = spiral_capacity(inputs.fc, inputs.fy, ag, ast)
    spiral = _spiral_details(inputs.column_diameter, inputs.concrete_cover, inputs.spiral_bar_diameter, ag, inputs.fc, inputs.fy)

    return SpiralColumnResult(
        factored_load=pu,
        cross_sectional_area=ag,
        area_of_bar=a_bar,
        steel_area=ast,
        axial_load_capacity=capacity,
        is_safe=capacity > pu,
        is_ratio_valid=r_min <= inputs.steel_ratio <= r_max,
        steel_ratio=safe_div(ast, ag),
        column_dimension=inputs.column_diameter,
        number_of_bars=as_count(n_bars),
        min_steel_ratio=r_min,
        max_steel_ratio=r_max,
        beta1=b1,
        **spiral,
    )


def spiral_column_design(inputs: SpiralDesignInputs) -> SpiralDesignResult:
    """
    Size a circular spiral column for the factored load.

    Ag,req = Pu / (0.75 (0.85) [0.85 f'c (1 - rho) + fy rho]); the diameter
    is rounded up to the next 5 mm and the section is then checked as built.
    """
    pu = factored_load(inputs.dead_load, inputs.live_load)
    rho = inputs.steel_ratio
    ag_req = safe_div(pu * 1000.0, PHI_DESIGN * ALPHA_MAX * (0.85 * inputs.fc * (1.0 - rho) + inputs.fy * rho))
    diameter = ceil_or_nan(safe_sqrt(4.0 * ag_req / math.pi) / DIMENSION_MODULUS) * DIMENSION_MODULUS
    ag = circle_area(diameter)

    a_bar, n_bars, ast = _spiral_bars(ag, rho, inputs.bar_diameter)
    rho_actual = safe_div(ast, ag)
    capacity = spiral_capacity(inputs.fc, inputs.fy, ag, ast)
    spiral = _spiral_details(diameter, inputs.concrete_cover, inputs.spiral_bar_diameter, ag, inputs.fc, inputs.fy)

    b1 = beta1(inputs.fc)
    r_min = rho_min(inputs.fy)
    r_max = rho_max(inputs.fc, inputs.fy)

    return SpiralDesignResult(
        factored_load=pu,
        cross_sectional_area=ag,
        area_of_bar=a_bar,
        steel_area=ast,
        axial_load_capacity=capacity,
        is_safe=capacity >= pu,
        is_ratio_valid=r_min <= rho_actual <= r_max,
        steel_ratio=rho_actual,
        column_dimension=diameter,
        number_of_bars=as_count(n_bars),
        min_steel_ratio=r_min,
        max_steel_ratio=r_max,
        beta1=b1,
        required_gross_area=ag_req,
        **spiral,
    )
