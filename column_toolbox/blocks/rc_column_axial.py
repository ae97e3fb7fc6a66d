from __future__ import annotations

from .rc_column_common import (
    PHI_TIED,
    RHO_MAX_TIED,
    RHO_MIN_TIED,
    bar_area,
    factored_load,
    nan_max,
    nan_min,
    nominal_strength_kn,
    safe_div,
    safe_sqrt,
)
from .rc_column_models import AxialLoadInputs, AxialLoadResult, EccentricLoadInputs, EccentricLoadResult

# Floor on the simplified eccentricity reduction so capacity never collapses to zero.
ECCENTRIC_REDUCTION_FLOOR = 0.2


def axial_load(inputs: AxialLoadInputs) -> AxialLoadResult:
    """
    Tied column under concentric load.

    phi Pn = 0.65 [0.85 f'c (Ag - Ast) + fy Ast]; safe when phi Pn > Pu.
    """
    pu = factored_load(inputs.dead_load, inputs.live_load)
    ag = inputs.length * inputs.width
    a_bar = bar_area(inputs.bar_diameter)
    ast = inputs.number_of_bars * a_bar
    rho = safe_div(ast, ag)

    capacity = PHI_TIED * nominal_strength_kn(inputs.fc, inputs.fy, ag, ast)

    return AxialLoadResult(
        factored_load=pu,
        cross_sectional_area=ag,
        area_of_bar=a_bar,
        steel_area=ast,
        axial_load_capacity=capacity,
        is_safe=capacity > pu,
        is_ratio_valid=RHO_MIN_TIED <= rho <= RHO_MAX_TIED,
        steel_ratio=rho,
        min_steel_ratio=RHO_MIN_TIED,
        max_steel_ratio=RHO_MAX_TIED,
    )


def eccentric_load(inputs: EccentricLoadInputs) -> EccentricLoadResult:
    """
    Tied column with biaxial load eccentricity.

    Capacity uses a scalar reduction max(0.2, 1 - 0.5 e/h_min) on the
    concentric strength. This is a screening approximation, not a P-M
    interaction check.
    """
    base = axial_load(inputs)
    pu = base.factored_load

    mx = pu * inputs.eccentricity_x / 1000.0
    my = pu * inputs.eccentricity_y / 1000.0

    e_res = safe_sqrt(inputs.eccentricity_x * inputs.eccentricity_x + inputs.eccentricity_y * inputs.eccentricity_y)
    e_ratio = safe_div(e_res, nan_min(inputs.length, inputs.width))
    reduction = nan_max(ECCENTRIC_REDUCTION_FLOOR, 1.0 - 0.5 * e_ratio)

    capacity = PHI_TIED * reduction * nominal_strength_kn(
        inputs.fc, inputs.fy, base.cross_sectional_area, base.steel_area
    )

    return EccentricLoadResult(
        factored_load=pu,
        cross_sectional_area=base.cross_sectional_area,
        area_of_bar=base.area_of_bar,
        steel_area=base.steel_area,
        axial_load_capacity=capacity,
        is_safe=capacity > pu,
        is_ratio_valid=base.is_ratio_valid,
        steel_ratio=base.steel_ratio,
        min_steel_ratio=base.min_steel_ratio,
        max_steel_ratio=base.max_steel_ratio,
        moment_x=mx,
        moment_y=my,
        eccentricity_ratio=e_ratio,
        eccentric_reduction=reduction,
    )
