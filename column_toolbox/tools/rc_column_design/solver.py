from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Tuple

from pydantic import BaseModel

from column_toolbox.blocks import (
    AxialLoadInputs,
    EccentricLoadInputs,
    ReinforcementInputs,
    SpiralColumnInputs,
    SpiralDesignInputs,
    TiedColumnInputs,
    axial_load,
    eccentric_load,
    format_number,
    reinforcement,
    spiral_column,
    spiral_column_design,
    tied_column,
)
from column_toolbox.blocks.rc_column_common import (
    ALPHA_MAX,
    DEAD_LOAD_FACTOR,
    LIVE_LOAD_FACTOR,
    PHI_DESIGN,
    PHI_SPIRAL,
    PHI_TIED,
    bar_area,
    nan_min,
)
from column_toolbox.blocks.rc_column_models import ColumnResult

from .calc_trace import CalcTrace, TraceAssumption, compute_step
from .models import MODULE_INPUTS, MODULE_TITLES, module_units
from .paths import TOOL_ID

TOOL_VERSION = "1.0.0"
CODE_BASIS = "NSCP 2015 / ACI 318"
UNITS_SYSTEM = "SI (kN, mm, MPa)"

_R1 = {"rule": "decimals", "decimals_or_sigfigs": 1}
_R2 = {"rule": "decimals", "decimals_or_sigfigs": 2}
_R0 = {"rule": "decimals", "decimals_or_sigfigs": 0}
_SIG4 = {"rule": "sigfigs", "decimals_or_sigfigs": 4}

_COMMON_ASSUMPTIONS = [
    ("A1", "Short column; slenderness and second-order effects are not considered."),
    ("A2", "Nominal strength Pn = 0.85 f'c (Ag - Ast) + fy Ast; all longitudinal steel assumed yielded."),
    ("A3", "Factored load combination Pu = 1.2 D + 1.6 L unless the factored load is entered directly."),
]


def _var(symbol: str, description: str, value: float, units: str, source: str) -> Dict[str, Any]:
    return {"symbol": symbol, "description": description, "value": float(value), "units": units, "source": source}


def _code(ref: str) -> List[Dict[str, str]]:
    return [{"type": "code", "ref": ref}]


def _derived(ref: str) -> List[Dict[str, str]]:
    return [{"type": "derived", "ref": ref}]


def _capacity_check(label: str, demand: float, inclusive: bool) -> Callable[[float], List[Dict[str, Any]]]:
    def build(val: float) -> List[Dict[str, Any]]:
        ok = val >= demand if inclusive else val > demand
        return [{
            "label": label,
            "demand": float(demand),
            "capacity": float(val),
            "ratio": float(demand / val) if val else float("inf"),
            "pass_fail": "PASS" if ok else "FAIL",
        }]
    return build


def _ratio_check(rho: float, lo: float, hi: float, ok: bool) -> Callable[[float], List[Dict[str, Any]]]:
    def build(_val: float) -> List[Dict[str, Any]]:
        return [{
            "label": f"Steel ratio within [{lo:.4g}, {hi:.4g}]",
            "demand": float(rho),
            "capacity": float(hi),
            "ratio": float(rho / hi) if hi else float("inf"),
            "pass_fail": "PASS" if ok else "FAIL",
        }]
    return build


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------

def _step_factored_load(trace: CalcTrace, dead: float, live: float, result: ColumnResult) -> float:
    return compute_step(
        trace,
        id="Pu",
        section="Loads",
        title="Factored axial load",
        output_symbol="P_u",
        output_description="Factored axial load",
        equation=f"P_u = {DEAD_LOAD_FACTOR} D + {LIVE_LOAD_FACTOR} L",
        variables=[
            _var("D", "Service dead load", dead, "kN", "input:dead_load"),
            _var("L", "Service live load", live, "kN", "input:live_load"),
        ],
        compute_fn=lambda: result.factored_load,
        units="kN",
        rounding_rule=_R2,
        references=_code("NSCP 2015 203.3.1 (U = 1.2D + 1.6L)"),
    )


def _step_bar_area(trace: CalcTrace, bar_diameter: float, source: str, result: ColumnResult) -> float:
    return compute_step(
        trace,
        id="Ab",
        section="Reinforcement",
        title="Area of one longitudinal bar",
        output_symbol="A_b",
        output_description="Bar area",
        equation="A_b = π d_b^2 / 4",
        variables=[_var("d_b", "Longitudinal bar diameter", bar_diameter, "mm", source)],
        compute_fn=lambda: result.area_of_bar,
        units="mm^2",
        rounding_rule=_R2,
        references=_derived("Circle area"),
    )


def _step_steel_area(trace: CalcTrace, n_bars: float, source: str, result: ColumnResult) -> float:
    return compute_step(
        trace,
        id="Ast",
        section="Reinforcement",
        title="Total longitudinal steel area",
        output_symbol="A_st",
        output_description="Longitudinal steel area",
        equation="A_st = N_b × A_b",
        variables=[
            _var("N_b", "Number of bars", n_bars, "", source),
            _var("A_b", "Bar area", result.area_of_bar, "mm^2", "step:Ab"),
        ],
        compute_fn=lambda: result.steel_area,
        units="mm^2",
        rounding_rule=_R2,
        references=_derived("Bar count × bar area"),
    )


def _step_steel_ratio(trace: CalcTrace, result: Any, lo: float, hi: float, ok: bool) -> float:
    return compute_step(
        trace,
        id="rho",
        section="Reinforcement",
        title="Longitudinal steel ratio",
        output_symbol="rho_g",
        output_description="Steel ratio",
        equation="rho_g = A_st / A_g",
        variables=[
            _var("A_st", "Longitudinal steel area", result.steel_area, "mm^2", "step:Ast"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
        ],
        compute_fn=lambda: result.steel_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_code("NSCP 2015 410.6.1.1 (0.01 Ag ≤ Ast ≤ 0.08 Ag)"),
        checks_builder=_ratio_check(result.steel_ratio, lo, hi, ok),
    )


def _step_capacity(
    trace: CalcTrace,
    *,
    factor_equation: str,
    factor_vars: List[Dict[str, Any]],
    fc: float,
    fy: float,
    result: ColumnResult,
    inclusive: bool,
    reference: str,
) -> float:
    return compute_step(
        trace,
        id="phiPn",
        section="Axial strength",
        title="Design axial strength",
        output_symbol="φP_n",
        output_description="Design axial strength",
        equation=f"φP_n = {factor_equation} [0.85 f'c (A_g - A_st) + fy A_st] / 1000",
        variables=factor_vars + [
            _var("f'c", "Concrete compressive strength", fc, "MPa", "input:fc"),
            _var("fy", "Steel yield strength", fy, "MPa", "input:fy"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
            _var("A_st", "Longitudinal steel area", result.steel_area, "mm^2", "step:Ast"),
        ],
        compute_fn=lambda: result.axial_load_capacity,
        units="kN",
        rounding_rule=_R2,
        references=_code(reference),
        checks_builder=_capacity_check(
            "Axial compression (phiPn >= Pu)" if inclusive else "Axial compression (phiPn > Pu)",
            result.factored_load,
            inclusive,
        ),
    )


def _steps_material_limits(trace: CalcTrace, fc: float, fy: float, result: Any) -> None:
    compute_step(
        trace,
        id="beta1",
        section="Materials",
        title="Stress block factor",
        output_symbol="β1",
        output_description="Equivalent rectangular stress block factor",
        equation="β1 = 0.85 for f'c ≤ 30; max(0.65, 0.85 - 0.05 (f'c - 30) / 7) otherwise",
        variables=[_var("f'c", "Concrete compressive strength", fc, "MPa", "input:fc")],
        compute_fn=lambda: result.beta1,
        units="",
        rounding_rule={"rule": "decimals", "decimals_or_sigfigs": 3},
        references=_code("NSCP 2015 422.2.2.4.3"),
    )
    compute_step(
        trace,
        id="rho_min",
        section="Materials",
        title="Minimum steel ratio",
        output_symbol="rho_min",
        output_description="Minimum steel ratio",
        equation="rho_min = 1.4 / fy",
        variables=[_var("fy", "Steel yield strength", fy, "MPa", "input:fy")],
        compute_fn=lambda: result.min_steel_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_code("NSCP 2015 409.6.1.2"),
    )
    compute_step(
        trace,
        id="rho_max",
        section="Materials",
        title="Maximum steel ratio",
        output_symbol="rho_max",
        output_description="Maximum steel ratio (0.75 of balanced)",
        equation="rho_max = 0.75 × 0.85 f'c β1 600 / (fy (600 + 228))",
        variables=[
            _var("f'c", "Concrete compressive strength", fc, "MPa", "input:fc"),
            _var("fy", "Steel yield strength", fy, "MPa", "input:fy"),
            _var("β1", "Stress block factor", result.beta1, "", "step:beta1"),
        ],
        compute_fn=lambda: result.max_steel_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_derived("Balanced steel ratio"),
    )


def _steps_spiral(trace: CalcTrace, inputs: Any, diameter_source: str, result: Any) -> None:
    compute_step(
        trace,
        id="Dcore",
        section="Spiral",
        title="Core diameter",
        output_symbol="D_core",
        output_description="Diameter of the confined core",
        equation="D_core = D_col - 2 c_c",
        variables=[
            _var("D_col", "Column diameter", result.column_dimension, "mm", diameter_source),
            _var("c_c", "Concrete cover", inputs.concrete_cover, "mm", "input:concrete_cover"),
        ],
        compute_fn=lambda: result.core_diameter,
        units="mm",
        rounding_rule=_R1,
        references=_derived("Geometry"),
    )
    compute_step(
        trace,
        id="Ach",
        section="Spiral",
        title="Core area",
        output_symbol="A_ch",
        output_description="Area of the confined core",
        equation="A_ch = π D_core^2 / 4",
        variables=[_var("D_core", "Core diameter", result.core_diameter, "mm", "step:Dcore")],
        compute_fn=lambda: result.core_area,
        units="mm^2",
        rounding_rule=_R1,
        references=_derived("Circle area"),
    )
    compute_step(
        trace,
        id="rho_s",
        section="Spiral",
        title="Minimum volumetric spiral ratio",
        output_symbol="rho_s",
        output_description="Spiral ratio",
        equation="rho_s = 0.45 (A_g / A_ch - 1) f'c / fy",
        variables=[
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
            _var("A_ch", "Core area", result.core_area, "mm^2", "step:Ach"),
            _var("f'c", "Concrete compressive strength", inputs.fc, "MPa", "input:fc"),
            _var("fy", "Steel yield strength", inputs.fy, "MPa", "input:fy"),
        ],
        compute_fn=lambda: result.spiral_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_code("NSCP 2015 425.7.3.3"),
    )
    compute_step(
        trace,
        id="s_pitch",
        section="Spiral",
        title="Spiral pitch",
        output_symbol="s_p",
        output_description="Centre-to-centre spiral pitch",
        equation="s_p = 4 A_sp (D_core - d_sp) / (rho_s D_core^2)",
        variables=[
            _var("A_sp", "Spiral bar area", bar_area(inputs.spiral_bar_diameter), "mm^2", "derived"),
            _var("D_core", "Core diameter", result.core_diameter, "mm", "step:Dcore"),
            _var("d_sp", "Spiral bar diameter", inputs.spiral_bar_diameter, "mm", "input:spiral_bar_diameter"),
            _var("rho_s", "Spiral ratio", result.spiral_ratio, "", "step:rho_s"),
        ],
        compute_fn=lambda: result.spiral_spacing,
        units="mm",
        rounding_rule=_R1,
        references=_code("NSCP 2015 425.7.3.3"),
    )
    compute_step(
        trace,
        id="s_clear",
        section="Spiral",
        title="Clear spacing between spiral turns",
        output_symbol="s_clear",
        output_description="Clear spiral spacing",
        equation="s_clear = s_p - d_sp",
        variables=[
            _var("s_p", "Spiral pitch", result.spiral_spacing, "mm", "step:s_pitch"),
            _var("d_sp", "Spiral bar diameter", inputs.spiral_bar_diameter, "mm", "input:spiral_bar_diameter"),
        ],
        compute_fn=lambda: result.clear_spacing,
        units="mm",
        rounding_rule=_R1,
        references=_code("NSCP 2015 425.7.3.1 (25 mm ≤ clear ≤ 75 mm)"),
        checks_builder=lambda val: [{
            "label": "Clear spacing within [25, 75] mm",
            "demand": float(val),
            "capacity": 75.0,
            "ratio": float(val / 75.0),
            "pass_fail": "PASS" if result.is_spacing_valid else "FAIL",
        }],
    )


def _step_gross_area_required(trace: CalcTrace, inputs: Any, result: Any) -> float:
    return compute_step(
        trace,
        id="Ag_req",
        section="Sizing",
        title="Required gross area",
        output_symbol="Ag_req",
        output_description="Required gross area",
        equation="Ag_req = 1000 P_u / (phi alpha [0.85 f'c (1 - rho_t) + fy rho_t])",
        variables=[
            _var("P_u", "Factored axial load", result.factored_load, "kN", "step:Pu"),
            _var("phi", "Strength reduction factor (design)", PHI_DESIGN, "", "code:design"),
            _var("alpha", "Axial strength cap factor", ALPHA_MAX, "", "code:design"),
            _var("f'c", "Concrete compressive strength", inputs.fc, "MPa", "input:fc"),
            _var("fy", "Steel yield strength", inputs.fy, "MPa", "input:fy"),
            _var("rho_t", "Target steel ratio", inputs.steel_ratio, "", "input:steel_ratio"),
        ],
        compute_fn=lambda: result.required_gross_area,
        units="mm^2",
        rounding_rule=_R1,
        references=_code("NSCP 2015 422.4.2.1"),
    )


# ---------------------------------------------------------------------------
# Module solvers: each calls the pure block, then records the trace from it
# ---------------------------------------------------------------------------

def _axial_section_steps(trace: CalcTrace, inputs: AxialLoadInputs, result: Any) -> None:
    _step_factored_load(trace, inputs.dead_load, inputs.live_load, result)
    compute_step(
        trace,
        id="Ag",
        section="Section geometry",
        title="Gross area",
        output_symbol="A_g",
        output_description="Gross cross-sectional area",
        equation="A_g = L_c × W_c",
        variables=[
            _var("L_c", "Column length", inputs.length, "mm", "input:length"),
            _var("W_c", "Column width", inputs.width, "mm", "input:width"),
        ],
        compute_fn=lambda: result.cross_sectional_area,
        units="mm^2",
        rounding_rule=_R1,
        references=_derived("Geometry"),
    )
    _step_bar_area(trace, inputs.bar_diameter, "input:bar_diameter", result)
    _step_steel_area(trace, inputs.number_of_bars, "input:number_of_bars", result)
    _step_steel_ratio(trace, result, result.min_steel_ratio, result.max_steel_ratio, result.is_ratio_valid)


def _solve_axial(trace: CalcTrace, inputs: AxialLoadInputs):
    result = axial_load(inputs)
    _axial_section_steps(trace, inputs, result)
    _step_capacity(
        trace,
        factor_equation="phi",
        factor_vars=[_var("phi", "Strength reduction factor (tied)", PHI_TIED, "", "code:tied")],
        fc=inputs.fc,
        fy=inputs.fy,
        result=result,
        inclusive=False,
        reference="NSCP 2015 421.2.2 (phi = 0.65, tied)",
    )
    return result


def _solve_eccentric(trace: CalcTrace, inputs: EccentricLoadInputs):
    result = eccentric_load(inputs)
    _axial_section_steps(trace, inputs, result)
    trace.assumptions.append(TraceAssumption(
        id="E1",
        text="Eccentricity handled by a scalar reduction max(0.2, 1 - 0.5 e/h_min) on the concentric strength; "
             "this is a screening approximation, not a P-M interaction check.",
    ))
    for axis, ecc in (("x", inputs.eccentricity_x), ("y", inputs.eccentricity_y)):
        compute_step(
            trace,
            id=f"M{axis}",
            section="Eccentricity",
            title=f"Moment from eccentricity along {axis}",
            output_symbol=f"M_{axis}",
            output_description=f"Moment about the {axis} eccentricity",
            equation=f"M_{axis} = P_u e_{axis} / 1000",
            variables=[
                _var("P_u", "Factored axial load", result.factored_load, "kN", "step:Pu"),
                _var(f"e_{axis}", f"Eccentricity along {axis}", ecc, "mm", f"input:eccentricity_{axis}"),
            ],
            compute_fn=(lambda a=axis: result.moment_x if a == "x" else result.moment_y),
            units="kN·m",
            rounding_rule=_R2,
            references=_derived("M = P e"),
        )
    compute_step(
        trace,
        id="e_ratio",
        section="Eccentricity",
        title="Resultant eccentricity ratio",
        output_symbol="e_r",
        output_description="Resultant eccentricity over the smaller dimension",
        equation="e_r = sqrt(e_x^2 + e_y^2) / h_min",
        variables=[
            _var("e_x", "Eccentricity along x", inputs.eccentricity_x, "mm", "input:eccentricity_x"),
            _var("e_y", "Eccentricity along y", inputs.eccentricity_y, "mm", "input:eccentricity_y"),
            _var("h_min", "Smaller section dimension", nan_min(inputs.length, inputs.width), "mm", "derived"),
        ],
        compute_fn=lambda: result.eccentricity_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_derived("Resultant eccentricity"),
    )
    compute_step(
        trace,
        id="R_e",
        section="Eccentricity",
        title="Eccentricity reduction",
        output_symbol="R_e",
        output_description="Capacity reduction for eccentricity",
        equation="R_e = max(0.2, 1 - 0.5 e_r)",
        variables=[_var("e_r", "Eccentricity ratio", result.eccentricity_ratio, "", "step:e_ratio")],
        compute_fn=lambda: result.eccentric_reduction,
        units="",
        rounding_rule=_SIG4,
        references=_derived("Simplified eccentricity reduction"),
    )
    _step_capacity(
        trace,
        factor_equation="phi R_e",
        factor_vars=[
            _var("phi", "Strength reduction factor (tied)", PHI_TIED, "", "code:tied"),
            _var("R_e", "Eccentricity reduction", result.eccentric_reduction, "", "step:R_e"),
        ],
        fc=inputs.fc,
        fy=inputs.fy,
        result=result,
        inclusive=False,
        reference="NSCP 2015 421.2.2 (phi = 0.65, tied)",
    )
    return result


def _solve_reinforcement(trace: CalcTrace, inputs: ReinforcementInputs):
    result = reinforcement(inputs)
    trace.assumptions.append(TraceAssumption(
        id="R1",
        text="The axial load is entered already factored; bar sizes are chosen from 10, 12, 16, 20, 25, 32, 40 mm.",
    ))
    compute_step(
        trace,
        id="Ag",
        section="Section geometry",
        title="Gross area",
        output_symbol="A_g",
        output_description="Gross cross-sectional area",
        equation="A_g = L_c × W_c",
        variables=[
            _var("L_c", "Column length", inputs.length, "mm", "input:length"),
            _var("W_c", "Column width", inputs.width, "mm", "input:width"),
        ],
        compute_fn=lambda: result.cross_sectional_area,
        units="mm^2",
        rounding_rule=_R1,
        references=_derived("Geometry"),
    )
    compute_step(
        trace,
        id="Ast_req",
        section="Reinforcement",
        title="Required longitudinal steel area",
        output_symbol="As_req",
        output_description="Required steel area, bounded by the ratio limits",
        equation="As_req = min(max((1000 P_u / phi - 0.85 f'c A_g) / (fy - 0.85 f'c), rho_lo A_g), rho_hi A_g)",
        variables=[
            _var("P_u", "Factored axial load", inputs.axial_load, "kN", "input:axial_load"),
            _var("phi", "Strength reduction factor (tied)", PHI_TIED, "", "code:tied"),
            _var("f'c", "Concrete compressive strength", inputs.fc, "MPa", "input:fc"),
            _var("fy", "Steel yield strength", inputs.fy, "MPa", "input:fy"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
            _var("rho_lo", "Minimum steel ratio", inputs.min_steel_ratio, "", "input:min_steel_ratio"),
            _var("rho_hi", "Maximum steel ratio", inputs.max_steel_ratio, "", "input:max_steel_ratio"),
        ],
        compute_fn=lambda: result.required_steel_area,
        units="mm^2",
        rounding_rule=_R1,
        references=_code("NSCP 2015 422.4.2.2"),
    )
    _step_bar_area(trace, result.recommended_bar_size, "table:standard_bar_sizes", result)
    compute_step(
        trace,
        id="Nb",
        section="Reinforcement",
        title="Number of bars (even, at least 4)",
        output_symbol="N_b",
        output_description="Number of longitudinal bars",
        equation="N_b = max(4, even(ceil(As_req / A_b)))",
        variables=[
            _var("As_req", "Required steel area", result.required_steel_area, "mm^2", "step:Ast_req"),
            _var("A_b", "Bar area", result.area_of_bar, "mm^2", "step:Ab"),
        ],
        compute_fn=lambda: result.number_of_bars,
        units="",
        rounding_rule=_R0,
        references=_code("NSCP 2015 410.7.3.1 (at least 4 bars in tied columns)"),
    )
    _step_steel_area(trace, result.number_of_bars, "step:Nb", result)
    compute_step(
        trace,
        id="s_tie",
        section="Ties",
        title="Maximum tie spacing",
        output_symbol="s_max",
        output_description="Maximum lateral tie spacing",
        equation="s_max = min(16 d_b, 48 d_t, min(L_c, W_c))",
        variables=[
            _var("d_b", "Selected bar diameter", result.recommended_bar_size, "mm", "step:Ab"),
            _var("d_t", "Tie diameter", inputs.tie_diameter, "mm", "input:tie_diameter"),
            _var("L_c", "Column length", inputs.length, "mm", "input:length"),
            _var("W_c", "Column width", inputs.width, "mm", "input:width"),
        ],
        compute_fn=lambda: result.max_tie_spacing,
        units="mm",
        rounding_rule=_R0,
        references=_code("NSCP 2015 425.7.2.1"),
    )
    compute_step(
        trace,
        id="rho",
        section="Reinforcement",
        title="Design steel ratio",
        output_symbol="rho_g",
        output_description="Steel ratio of the required area",
        equation="rho_g = As_req / A_g",
        variables=[
            _var("As_req", "Required steel area", result.required_steel_area, "mm^2", "step:Ast_req"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
        ],
        compute_fn=lambda: result.steel_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_code("NSCP 2015 410.6.1.1"),
        checks_builder=_ratio_check(result.steel_ratio, inputs.min_steel_ratio, inputs.max_steel_ratio, result.is_ratio_valid),
    )
    _step_capacity(
        trace,
        factor_equation="phi",
        factor_vars=[_var("phi", "Strength reduction factor (tied)", PHI_TIED, "", "code:tied")],
        fc=inputs.fc,
        fy=inputs.fy,
        result=result,
        inclusive=True,
        reference="NSCP 2015 421.2.2 (phi = 0.65, tied)",
    )
    return result


def _spiral_core_steps(trace: CalcTrace, inputs: Any, result: Any, diameter_source: str) -> None:
    compute_step(
        trace,
        id="Ag",
        section="Section geometry",
        title="Gross area of circular section",
        output_symbol="A_g",
        output_description="Gross cross-sectional area",
        equation="A_g = π D_col^2 / 4",
        variables=[_var("D_col", "Column diameter", result.column_dimension, "mm", diameter_source)],
        compute_fn=lambda: result.cross_sectional_area,
        units="mm^2",
        rounding_rule=_R1,
        references=_derived("Circle area"),
    )
    _steps_material_limits(trace, inputs.fc, inputs.fy, result)
    _step_bar_area(trace, inputs.bar_diameter, "input:bar_diameter", result)
    compute_step(
        trace,
        id="Nb",
        section="Reinforcement",
        title="Number of bars (at least 6)",
        output_symbol="N_b",
        output_description="Number of longitudinal bars",
        equation="N_b = max(6, ceil(rho_t A_g / A_b))",
        variables=[
            _var("rho_t", "Target steel ratio", inputs.steel_ratio, "", "input:steel_ratio"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
            _var("A_b", "Bar area", result.area_of_bar, "mm^2", "step:Ab"),
        ],
        compute_fn=lambda: result.number_of_bars,
        units="",
        rounding_rule=_R0,
        references=_code("NSCP 2015 410.7.3.1 (at least 6 bars enclosed by spirals)"),
    )
    _step_steel_area(trace, result.number_of_bars, "step:Nb", result)


def _solve_spiral(trace: CalcTrace, inputs: SpiralColumnInputs):
    result = spiral_column(inputs)
    _step_factored_load(trace, inputs.dead_load, inputs.live_load, result)
    _spiral_core_steps(trace, inputs, result, "input:column_diameter")
    compute_step(
        trace,
        id="rho",
        section="Reinforcement",
        title="Steel ratio",
        output_symbol="rho_g",
        output_description="Provided steel ratio",
        equation="rho_g = A_st / A_g",
        variables=[
            _var("A_st", "Longitudinal steel area", result.steel_area, "mm^2", "step:Ast"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
        ],
        compute_fn=lambda: result.steel_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_derived("Provided ratio"),
        checks_builder=_ratio_check(inputs.steel_ratio, result.min_steel_ratio, result.max_steel_ratio, result.is_ratio_valid),
    )
    _step_capacity(
        trace,
        factor_equation="phi alpha",
        factor_vars=[
            _var("phi", "Strength reduction factor (spiral)", PHI_SPIRAL, "", "code:spiral"),
            _var("alpha", "Axial strength cap factor", ALPHA_MAX, "", "code:spiral"),
        ],
        fc=inputs.fc,
        fy=inputs.fy,
        result=result,
        inclusive=False,
        reference="NSCP 2015 422.4.2.1 (phi = 0.75, 0.85 Po for spirals)",
    )
    _steps_spiral(trace, inputs, "input:column_diameter", result)
    return result


def _solve_spiral_design(trace: CalcTrace, inputs: SpiralDesignInputs):
    result = spiral_column_design(inputs)
    _step_factored_load(trace, inputs.dead_load, inputs.live_load, result)
    _step_gross_area_required(trace, inputs, result)
    compute_step(
        trace,
        id="D_col",
        section="Sizing",
        title="Column diameter (rounded up to 5 mm)",
        output_symbol="D_col",
        output_description="Selected column diameter",
        equation="D_col = 5 ceil(sqrt(4 Ag_req / π) / 5)",
        variables=[_var("Ag_req", "Required gross area", result.required_gross_area, "mm^2", "step:Ag_req")],
        compute_fn=lambda: result.column_dimension,
        units="mm",
        rounding_rule=_R0,
        references=_derived("Dimension modulus 5 mm"),
    )
    _spiral_core_steps(trace, inputs, result, "step:D_col")
    _step_steel_ratio(trace, result, result.min_steel_ratio, result.max_steel_ratio, result.is_ratio_valid)
    _step_capacity(
        trace,
        factor_equation="phi alpha",
        factor_vars=[
            _var("phi", "Strength reduction factor (spiral)", PHI_SPIRAL, "", "code:spiral"),
            _var("alpha", "Axial strength cap factor", ALPHA_MAX, "", "code:spiral"),
        ],
        fc=inputs.fc,
        fy=inputs.fy,
        result=result,
        inclusive=True,
        reference="NSCP 2015 422.4.2.1 (phi = 0.75, 0.85 Po for spirals)",
    )
    _steps_spiral(trace, inputs, "step:D_col", result)
    return result


def _solve_tied(trace: CalcTrace, inputs: TiedColumnInputs):
    result = tied_column(inputs)
    trace.assumptions.append(TraceAssumption(
        id="T1",
        text="Square section sized with phi = 0.75 and the 0.85 axial cap; verify against the tied phi = 0.65 where required.",
    ))
    _step_factored_load(trace, inputs.dead_load, inputs.live_load, result)
    _steps_material_limits(trace, inputs.fc, inputs.fy, result)
    _step_gross_area_required(trace, inputs, result)
    compute_step(
        trace,
        id="L_c",
        section="Sizing",
        title="Column side (rounded up to 5 mm)",
        output_symbol="L_c",
        output_description="Selected side of the square column",
        equation="L_c = 5 ceil(sqrt(Ag_req) / 5)",
        variables=[_var("Ag_req", "Required gross area", result.required_gross_area, "mm^2", "step:Ag_req")],
        compute_fn=lambda: result.column_dimension,
        units="mm",
        rounding_rule=_R0,
        references=_derived("Dimension modulus 5 mm"),
    )
    compute_step(
        trace,
        id="Ag",
        section="Section geometry",
        title="Gross area",
        output_symbol="A_g",
        output_description="Gross cross-sectional area",
        equation="A_g = L_c^2",
        variables=[_var("L_c", "Column side", result.column_dimension, "mm", "step:L_c")],
        compute_fn=lambda: result.cross_sectional_area,
        units="mm^2",
        rounding_rule=_R1,
        references=_derived("Geometry"),
    )
    _step_bar_area(trace, inputs.bar_diameter, "input:bar_diameter", result)
    compute_step(
        trace,
        id="Nb",
        section="Reinforcement",
        title="Number of bars (even, at least 4)",
        output_symbol="N_b",
        output_description="Number of longitudinal bars",
        equation="N_b = max(4, even(ceil(rho_t A_g / A_b)))",
        variables=[
            _var("rho_t", "Target steel ratio", inputs.steel_ratio, "", "input:steel_ratio"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
            _var("A_b", "Bar area", result.area_of_bar, "mm^2", "step:Ab"),
        ],
        compute_fn=lambda: result.number_of_bars,
        units="",
        rounding_rule=_R0,
        references=_code("NSCP 2015 410.7.3.1 (at least 4 bars in tied columns)"),
    )
    _step_steel_area(trace, result.number_of_bars, "step:Nb", result)
    compute_step(
        trace,
        id="rho",
        section="Reinforcement",
        title="Steel ratio",
        output_symbol="rho_g",
        output_description="Provided steel ratio",
        equation="rho_g = A_st / A_g",
        variables=[
            _var("A_st", "Longitudinal steel area", result.steel_area, "mm^2", "step:Ast"),
            _var("A_g", "Gross area", result.cross_sectional_area, "mm^2", "step:Ag"),
        ],
        compute_fn=lambda: result.steel_ratio,
        units="",
        rounding_rule=_SIG4,
        references=_derived("Provided ratio"),
        checks_builder=_ratio_check(inputs.steel_ratio, result.min_steel_ratio, result.max_steel_ratio, result.is_ratio_valid),
    )
    _step_capacity(
        trace,
        factor_equation="phi alpha",
        factor_vars=[
            _var("phi", "Strength reduction factor (design)", PHI_SPIRAL, "", "code:design"),
            _var("alpha", "Axial strength cap factor", ALPHA_MAX, "", "code:design"),
        ],
        fc=inputs.fc,
        fy=inputs.fy,
        result=result,
        inclusive=True,
        reference="NSCP 2015 422.4.2.1",
    )
    compute_step(
        trace,
        id="s_tie",
        section="Ties",
        title="Tie spacing",
        output_symbol="s_tie",
        output_description="Lateral tie spacing",
        equation="s_tie = min(16 d_b, 48 d_t, L_c)",
        variables=[
            _var("d_b", "Longitudinal bar diameter", inputs.bar_diameter, "mm", "input:bar_diameter"),
            _var("d_t", "Tie diameter", inputs.tie_diameter, "mm", "input:tie_diameter"),
            _var("L_c", "Column side", result.column_dimension, "mm", "step:L_c"),
        ],
        compute_fn=lambda: result.tie_spacing,
        units="mm",
        rounding_rule=_R0,
        references=_code("NSCP 2015 425.7.2.1"),
    )
    return result


_SOLVERS: Dict[str, Callable[[CalcTrace, Any], Any]] = {
    "axial_load": _solve_axial,
    "eccentric_load": _solve_eccentric,
    "reinforcement": _solve_reinforcement,
    "spiral_column": _solve_spiral,
    "spiral_column_design": _solve_spiral_design,
    "tied_column": _solve_tied,
}


def _summary_lines(module: str, result: Any, decimals: int) -> List[str]:
    def f(v: float) -> str:
        return format_number(v, decimals)

    lines = [
        MODULE_TITLES[module],
        f"Pu = {f(result.factored_load)} kN; phiPn = {f(result.axial_load_capacity)} kN",
        f"Ag = {f(result.cross_sectional_area)} mm^2; Ast = {f(result.steel_area)} mm^2",
    ]
    if module == "reinforcement":
        lines.append(f"Use {result.number_of_bars} - {result.recommended_bar_size} mm bars ({result.bar_arrangement}); "
                     f"ties at {f(result.max_tie_spacing)} mm max")
    elif module in ("spiral_column", "spiral_column_design"):
        lines.append(f"D = {f(result.column_dimension)} mm with {result.number_of_bars} bars; "
                     f"spiral pitch {f(result.spiral_spacing)} mm (clear {f(result.clear_spacing)} mm)")
    elif module == "tied_column":
        lines.append(f"{f(result.column_dimension)} mm square with {result.number_of_bars} bars; "
                     f"ties at {f(result.tie_spacing)} mm")
    elif module == "eccentric_load":
        lines.append(f"Mx = {f(result.moment_x)} kN·m; My = {f(result.moment_y)} kN·m; "
                     f"reduction {f(result.eccentric_reduction)}")
    lines.append(f"Status: {'PASS' if result.is_safe else 'FAIL'}")
    return lines


def _warnings(result: Any) -> List[str]:
    out: List[str] = []
    if not math.isfinite(result.axial_load_capacity):
        out.append("Axial capacity is not a finite number; check the section dimensions and material strengths.")
    if not result.is_ratio_valid:
        out.append(
            f"Steel ratio outside the allowed range [{result.min_steel_ratio:.4g}, {result.max_steel_ratio:.4g}]."
        )
    if getattr(result, "is_spacing_valid", True) is False:
        out.append("Clear spiral spacing is outside 25 mm to 75 mm; adjust the spiral bar or cover.")
    return out


def solve(
    module: str,
    inputs: Dict[str, Any],
    *,
    tool_id: str = TOOL_ID,
    decimals: int = 2,
) -> Tuple[Dict[str, Any], CalcTrace]:
    """
    Run one calculation module with a full calculation trace.

    Raises KeyError for an unknown module and pydantic ValidationError for
    malformed inputs; numeric problems surface as warnings, never exceptions.
    """
    model_cls = MODULE_INPUTS[module]
    model: BaseModel = model_cls.model_validate(inputs)
    inp = model.model_dump()

    trace = CalcTrace.new(
        tool_id=tool_id,
        tool_version=TOOL_VERSION,
        module=module,
        inputs=inp,
        units=module_units(module),
        defaults=model_cls().model_dump(),
        units_system=UNITS_SYSTEM,
        code_basis=CODE_BASIS,
    )
    trace.assumptions.extend(TraceAssumption(id=i, text=t) for i, t in _COMMON_ASSUMPTIONS)

    result = _SOLVERS[module](trace, model)
    warnings = _warnings(result)
    status = "PASS" if result.is_safe else "FAIL"

    trace.summary.key_outputs = {
        "Pu": {"value": result.factored_load, "units": "kN"},
        "phiPn": {"value": result.axial_load_capacity, "units": "kN"},
        "Ast": {"value": result.steel_area, "units": "mm^2"},
    }
    trace.summary.governing_checks = [
        {"label": c.label, "pass_fail": c.pass_fail, "step": st.id}
        for st in trace.steps
        for c in (st.checks or [])
    ]
    trace.summary.warnings = list(warnings)

    results = {
        "ok": True,
        "module": module,
        "title": MODULE_TITLES[module],
        "inputs": inp,
        "outputs": result.as_dict(),
        "status": status,
        "summary_text": "\n".join(_summary_lines(module, result, decimals)),
        "warnings": warnings,
        "input_hash": trace.meta.input_hash,
        "tool_version": TOOL_VERSION,
    }
    return results, trace
