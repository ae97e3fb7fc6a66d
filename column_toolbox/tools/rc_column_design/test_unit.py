from __future__ import annotations

import math

import pytest

from column_toolbox.blocks import (
    AxialLoadInputs,
    EccentricLoadInputs,
    ReinforcementInputs,
    SpiralColumnInputs,
    SpiralDesignInputs,
    TiedColumnInputs,
    axial_load,
    beta1,
    check_inputs,
    eccentric_load,
    format_number,
    reinforcement,
    spiral_column,
    spiral_column_design,
    tied_column,
)
from column_toolbox.blocks import rc_column_axial, rc_column_sizing, rc_column_spiral, rc_column_tied
from column_toolbox.blocks.rc_column_common import PHI_DESIGN, STANDARD_BAR_SIZES, bar_area
from column_toolbox.blocks.rc_column_sizing import bar_arrangement, select_bars

from .calc_trace import CalcTrace, apply_rounding, compute_step
from .paths import compute_input_hash
from .solver import solve


def _worked_axial(**overrides) -> AxialLoadInputs:
    base = dict(dead_load=200, live_load=100, length=400, width=400, bar_diameter=25, number_of_bars=8, fc=28, fy=420)
    base.update(overrides)
    return AxialLoadInputs(**base)


# ---------------------------------------------------------------------------
# beta1
# ---------------------------------------------------------------------------

def test_beta1_constant_up_to_30() -> None:
    for fc in (17.0, 21.0, 28.0, 29.99, 30.0):
        assert beta1(fc) == 0.85


def test_beta1_reduces_above_30_with_floor() -> None:
    assert beta1(35.0) == pytest.approx(0.8143, abs=1e-4)
    assert beta1(100.0) == 0.65
    assert beta1(40.0) > beta1(45.0)


# ---------------------------------------------------------------------------
# axial / eccentric
# ---------------------------------------------------------------------------

def test_axial_worked_example() -> None:
    r = axial_load(_worked_axial())
    assert r.factored_load == pytest.approx(400.0)
    assert r.cross_sectional_area == pytest.approx(160000.0)
    assert r.area_of_bar == pytest.approx(490.87, abs=0.01)
    assert r.steel_area == pytest.approx(3926.99, abs=0.01)
    assert r.steel_ratio == pytest.approx(0.02454, abs=1e-5)
    assert r.is_ratio_valid is True
    expected = 0.65 * (0.85 * 28 * (160000 - r.steel_area) + 420 * r.steel_area) / 1000
    assert r.axial_load_capacity == pytest.approx(expected)
    assert r.is_safe is True


def test_axial_unsafe_when_demand_exceeds_capacity() -> None:
    assert axial_load(_worked_axial(dead_load=0, live_load=0)).is_safe is True
    r = axial_load(_worked_axial(dead_load=3000, live_load=1000))
    assert r.factored_load == pytest.approx(5200.0)
    assert r.is_safe is False


def test_axial_capacity_monotonic_in_strengths() -> None:
    caps_fc = [axial_load(_worked_axial(fc=fc)).axial_load_capacity for fc in (21, 28, 35, 42)]
    caps_fy = [axial_load(_worked_axial(fy=fy)).axial_load_capacity for fy in (275, 345, 415, 520)]
    assert caps_fc == sorted(caps_fc)
    assert caps_fy == sorted(caps_fy)


def test_calculations_are_idempotent() -> None:
    inp = _worked_axial()
    assert axial_load(inp) == axial_load(inp)
    t = TiedColumnInputs(dead_load=500, live_load=300)
    assert tied_column(t) == tied_column(t)
    s = SpiralColumnInputs(dead_load=500, live_load=300)
    assert spiral_column(s) == spiral_column(s)


def test_eccentric_zero_eccentricity_matches_axial() -> None:
    base = _worked_axial()
    r = eccentric_load(EccentricLoadInputs(**base.model_dump()))
    assert r.eccentric_reduction == 1.0
    assert r.moment_x == 0.0 and r.moment_y == 0.0
    assert r.axial_load_capacity == pytest.approx(axial_load(base).axial_load_capacity)


def test_eccentric_reduction_and_moments() -> None:
    r = eccentric_load(EccentricLoadInputs(**_worked_axial().model_dump(), eccentricity_x=60, eccentricity_y=80))
    # resultant 100 mm over 400 mm
    assert r.eccentricity_ratio == pytest.approx(0.25)
    assert r.eccentric_reduction == pytest.approx(0.875)
    assert r.moment_x == pytest.approx(400 * 60 / 1000)
    assert r.moment_y == pytest.approx(400 * 80 / 1000)
    concentric = axial_load(_worked_axial()).axial_load_capacity
    assert r.axial_load_capacity == pytest.approx(0.875 * concentric)


def test_eccentric_reduction_floor() -> None:
    r = eccentric_load(EccentricLoadInputs(**_worked_axial().model_dump(), eccentricity_x=5000))
    assert r.eccentric_reduction == 0.2


# ---------------------------------------------------------------------------
# safety comparison at demand == capacity
# ---------------------------------------------------------------------------

def test_analysis_checks_are_strict_at_equality(monkeypatch) -> None:
    cases = [
        (rc_column_axial, axial_load, _worked_axial()),
        (rc_column_axial, eccentric_load, EccentricLoadInputs(**_worked_axial().model_dump(), eccentricity_x=60)),
        (rc_column_spiral, spiral_column, SpiralColumnInputs(dead_load=500, live_load=300)),
    ]
    for module, fn, inp in cases:
        capacity = fn(inp).axial_load_capacity
        with monkeypatch.context() as m:
            m.setattr(module, "factored_load", lambda dead, live, c=capacity: c)
            r = fn(inp)
        assert r.factored_load == r.axial_load_capacity
        assert r.is_safe is False, fn.__name__


def test_reinforcement_check_is_inclusive_at_equality(monkeypatch) -> None:
    monkeypatch.setattr(rc_column_sizing, "nominal_strength_kn", lambda *a: 3000.0)
    r = reinforcement(ReinforcementInputs(axial_load=rc_column_sizing.PHI_TIED * 3000.0))
    assert r.axial_load_capacity == r.factored_load
    assert r.is_safe is True


def test_tied_design_check_is_inclusive_at_equality(monkeypatch) -> None:
    monkeypatch.setattr(rc_column_tied, "nominal_strength_kn", lambda *a: 2000.0)
    monkeypatch.setattr(rc_column_tied, "factored_load", lambda dead, live: rc_column_tied._DESIGN_FACTOR * 2000.0)
    r = tied_column(TiedColumnInputs(dead_load=500, live_load=300))
    assert r.axial_load_capacity == r.factored_load
    assert r.is_safe is True


def test_spiral_design_check_is_inclusive_at_equality(monkeypatch) -> None:
    monkeypatch.setattr(rc_column_spiral, "spiral_capacity", lambda *a: 1500.0)
    monkeypatch.setattr(rc_column_spiral, "factored_load", lambda dead, live: 1500.0)
    r = spiral_column_design(SpiralDesignInputs(dead_load=500, live_load=300))
    assert r.axial_load_capacity == r.factored_load
    assert r.is_safe is True


# ---------------------------------------------------------------------------
# reinforcement
# ---------------------------------------------------------------------------

def test_reinforcement_minimum_steel_governs() -> None:
    r = reinforcement(ReinforcementInputs(axial_load=2000, length=400, width=400, fc=28, fy=420))
    assert r.required_steel_area == pytest.approx(1600.0)
    assert r.steel_ratio == pytest.approx(0.01)
    assert r.recommended_bar_size == 10
    assert r.number_of_bars == 22
    assert r.bar_arrangement == "5 bars per side + 2 extra"
    assert r.max_tie_spacing == pytest.approx(160.0)
    assert r.is_safe is True
    assert r.is_ratio_valid is True


def test_reinforcement_bar_count_even_and_at_least_four() -> None:
    for pu in (0, 500, 2000, 4000, 6000, 9000):
        for side in (250, 300, 400, 600):
            r = reinforcement(ReinforcementInputs(axial_load=pu, length=side, width=side))
            assert r.number_of_bars % 2 == 0
            assert r.number_of_bars >= 4
            assert r.number_of_bars * r.area_of_bar >= r.required_steel_area - 1e-9


def test_select_bars_picks_smallest_size_that_covers_area() -> None:
    for area in (100.0, 1600.0, 5000.0, 12800.0):
        size, count = select_bars(area)
        assert size == STANDARD_BAR_SIZES[0]
        assert count % 2 == 0 and count >= 4
        assert count * bar_area(size) >= area


def test_select_bars_falls_back_on_non_finite_area() -> None:
    assert select_bars(float("nan")) == (10, 4.0)


def test_reinforcement_caps_at_max_ratio() -> None:
    r = reinforcement(ReinforcementInputs(axial_load=20000, length=300, width=300, fc=21, fy=415))
    assert r.required_steel_area == pytest.approx(0.08 * 90000)
    assert r.steel_ratio == pytest.approx(0.08)
    assert r.is_safe is False


def test_bar_arrangement_rectangular() -> None:
    assert bar_arrangement(8, 600, 300) == "4 on long sides, 0 on short sides"
    assert bar_arrangement(12, 400, 400) == "3 bars per side"


# ---------------------------------------------------------------------------
# spiral
# ---------------------------------------------------------------------------

def test_spiral_column_example() -> None:
    r = spiral_column(SpiralColumnInputs(dead_load=500, live_load=300, column_diameter=400))
    assert r.factored_load == pytest.approx(1080.0)
    assert r.cross_sectional_area == pytest.approx(math.pi * 200 * 200)
    assert r.number_of_bars == 13
    assert r.beta1 == 0.85
    assert r.min_steel_ratio == pytest.approx(1.4 / 415)
    assert r.is_ratio_valid is (r.min_steel_ratio <= 0.02 <= r.max_steel_ratio)
    assert r.core_diameter == pytest.approx(320.0)
    assert r.spiral_ratio == pytest.approx(0.45 * (400 ** 2 / 320 ** 2 - 1) * 21 / 415)
    assert r.spiral_spacing == pytest.approx(74.25, abs=0.01)
    assert r.clear_spacing == pytest.approx(r.spiral_spacing - 10)
    assert r.is_spacing_valid is True
    assert r.is_safe is True


def test_spiral_minimum_six_bars() -> None:
    r = spiral_column(SpiralColumnInputs(column_diameter=250, steel_ratio=0.01, bar_diameter=25))
    assert r.number_of_bars == 6


def _assert_smallest_spiral_count(r, rho: float) -> None:
    needed = rho * r.cross_sectional_area / r.area_of_bar
    assert r.number_of_bars >= 6
    assert r.number_of_bars >= needed
    assert r.number_of_bars == 6 or r.number_of_bars - 1 < needed


def test_spiral_bar_count_is_smallest_count_of_at_least_six() -> None:
    for diameter in (250, 400, 600, 900):
        for rho in (0.01, 0.02, 0.04):
            for db in (16, 20, 25):
                r = spiral_column(SpiralColumnInputs(column_diameter=diameter, steel_ratio=rho, bar_diameter=db))
                _assert_smallest_spiral_count(r, rho)


def test_spiral_design_bar_count_is_smallest_count_of_at_least_six() -> None:
    for dead in (100, 500, 2000, 6000):
        for rho in (0.01, 0.03):
            r = spiral_column_design(SpiralDesignInputs(dead_load=dead, live_load=0, steel_ratio=rho))
            _assert_smallest_spiral_count(r, rho)


def test_spiral_design_round_trip() -> None:
    design = spiral_column_design(SpiralDesignInputs(dead_load=500, live_load=300))
    assert design.column_dimension % 5 == 0
    assert design.cross_sectional_area >= design.required_gross_area
    assert design.is_safe is True

    check = spiral_column(SpiralColumnInputs(dead_load=500, live_load=300, column_diameter=design.column_dimension))
    assert check.number_of_bars == design.number_of_bars
    assert check.axial_load_capacity == pytest.approx(design.axial_load_capacity)
    assert check.is_safe is True


# ---------------------------------------------------------------------------
# tied
# ---------------------------------------------------------------------------

def test_tied_column_example() -> None:
    r = tied_column(TiedColumnInputs(dead_load=500, live_load=300))
    assert r.factored_load == pytest.approx(1080.0)
    assert r.column_dimension == pytest.approx(260.0)
    assert r.cross_sectional_area == pytest.approx(67600.0)
    assert r.number_of_bars == 8
    assert r.tie_spacing == pytest.approx(256.0)
    assert r.is_safe is True


def test_tied_bar_count_is_smallest_even_count() -> None:
    for pu_dead in (100, 400, 1200, 3000):
        r = tied_column(TiedColumnInputs(dead_load=pu_dead, live_load=0))
        needed = 0.02 * r.cross_sectional_area / r.area_of_bar
        assert r.number_of_bars % 2 == 0 and r.number_of_bars >= 4
        assert r.number_of_bars >= needed
        assert r.number_of_bars - 2 < max(needed, 4)


def test_tied_design_round_trip_through_axial() -> None:
    t = tied_column(TiedColumnInputs(dead_load=500, live_load=300))
    a = axial_load(AxialLoadInputs(
        dead_load=500, live_load=300, length=t.column_dimension, width=t.column_dimension,
        bar_diameter=16, number_of_bars=t.number_of_bars, fc=21, fy=415,
    ))
    assert a.steel_area == pytest.approx(t.steel_area)
    assert a.is_safe is True


# ---------------------------------------------------------------------------
# totality on degenerate input
# ---------------------------------------------------------------------------

def test_degenerate_inputs_never_raise() -> None:
    r = axial_load(_worked_axial(length=0, width=0))
    assert math.isinf(r.steel_ratio)
    assert r.is_ratio_valid is False

    e = eccentric_load(EccentricLoadInputs(length=0, width=0, eccentricity_x=10))
    assert math.isnan(e.eccentric_reduction) or e.eccentric_reduction == 0.2

    t = tied_column(TiedColumnInputs(dead_load=100, fc=0, fy=0, steel_ratio=0))
    assert not math.isfinite(t.required_gross_area)

    s = spiral_column(SpiralColumnInputs(column_diameter=50, concrete_cover=40))
    assert s.core_diameter < 0

    reinforcement(ReinforcementInputs(length=0, width=0, fc=0, fy=0))
    spiral_column_design(SpiralDesignInputs(fc=0, fy=0, steel_ratio=0))
    axial_load(AxialLoadInputs(length=float("nan")))


# ---------------------------------------------------------------------------
# pre-checks and formatting
# ---------------------------------------------------------------------------

def test_check_inputs_flags_bad_values() -> None:
    assert check_inputs("axial_load", AxialLoadInputs().model_dump()) == []
    problems = check_inputs("axial_load", {"length": 0, "width": 400, "dead_load": -1})
    assert any("length" in p.lower() for p in problems)
    assert any("dead load" in p.lower() for p in problems)
    assert check_inputs("tied_column", {"steel_ratio": 2}) != []
    assert check_inputs("reinforcement", {"min_steel_ratio": 0.05, "max_steel_ratio": 0.02}) != []
    assert check_inputs("spiral_column", {"column_diameter": 100, "concrete_cover": 50, "spiral_bar_diameter": 10}) != []


def test_format_number() -> None:
    assert format_number(1234567.891) == "1,234,567.89"
    assert format_number(0.5, 0) == "0"
    assert format_number(3.14159, 3) == "3.142"
    assert format_number(float("nan")) == "NaN"
    assert format_number(float("inf")) == "∞"


# ---------------------------------------------------------------------------
# trace
# ---------------------------------------------------------------------------

def test_input_hash_deterministic() -> None:
    a = {"b": 2.0, "a": 1.0}
    b = {"a": 1.0, "b": 2.0}
    assert compute_input_hash(a) == compute_input_hash(b)


def test_apply_rounding() -> None:
    assert apply_rounding(3486.5234, "decimals", 2) == pytest.approx(3486.52)
    assert apply_rounding(0.0245437, "sigfigs", 4) == pytest.approx(0.02454)
    assert math.isnan(apply_rounding(float("nan"), "decimals", 2))


def test_compute_step_substitutes_values() -> None:
    trace = CalcTrace.new(tool_id="t", tool_version="test", module="axial_load", inputs={"x": 1.0})
    val = compute_step(
        trace,
        id="Ag",
        section="Geometry",
        title="Gross area",
        output_symbol="A_g",
        output_description="Gross area",
        equation="A_g = L_c × W_c",
        variables=[
            {"symbol": "L_c", "description": "Length", "value": 400.0, "units": "mm", "source": "input:length"},
            {"symbol": "W_c", "description": "Width", "value": 300.0, "units": "mm", "source": "input:width"},
        ],
        compute_fn=lambda: 400.0 * 300.0,
        units="mm^2",
        rounding_rule={"rule": "decimals", "decimals_or_sigfigs": 0},
        references=[{"type": "derived", "ref": "Geometry"}],
    )
    assert val == 120000.0
    assert trace.steps[0].substitution == "A_g = 400 mm × 300 mm"


def test_solver_trace_matches_block_result() -> None:
    inputs = _worked_axial().model_dump()
    results, trace = solve("axial_load", inputs)
    assert results["ok"] is True
    assert results["status"] == "PASS"
    steps = {s.id: s for s in trace.steps}
    assert steps["phiPn"].result_unrounded.value == pytest.approx(results["outputs"]["axial_load_capacity"])
    assert steps["phiPn"].checks[0].pass_fail == "PASS"
    assert {i.id for i in trace.inputs} == set(inputs)
    assert trace.meta.code_basis == "NSCP 2015 / ACI 318"


def test_solver_reports_degenerate_capacity_as_warning() -> None:
    results, trace = solve("tied_column", {"dead_load": 100, "fc": 0, "fy": 0, "steel_ratio": 0})
    assert results["ok"] is True
    assert any("not a finite number" in w for w in results["warnings"])
    assert trace.summary.warnings == results["warnings"]


@pytest.mark.parametrize("module", ["tied_column", "spiral_column_design"])
def test_required_area_step_uses_design_phi(module) -> None:
    results, trace = solve(module, {"dead_load": 500, "live_load": 300})
    step = {s.id: s for s in trace.steps}["Ag_req"]
    phi = {v.symbol: v.value for v in step.variables}["phi"]
    assert phi == PHI_DESIGN
    assert step.result_unrounded.value == pytest.approx(results["outputs"]["required_gross_area"])
