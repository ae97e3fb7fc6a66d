from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from .paths import compute_input_hash


class CalcVariable(BaseModel):
    model_config = ConfigDict(extra="forbid")
    symbol: str
    description: str
    value: float
    units: str
    source: str  # input:<id> | step:<step_id> | code:<clause> | table:<name>


class CalcReference(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: str  # code/table/note/derived
    ref: str


class CalcCheck(BaseModel):
    model_config = ConfigDict(extra="forbid")
    label: str
    demand: float
    capacity: float
    ratio: float
    pass_fail: str


class CalcValue(BaseModel):
    model_config = ConfigDict(extra="forbid")
    value: float
    units: str


class Rounding(BaseModel):
    model_config = ConfigDict(extra="forbid")
    rule: str  # "decimals" or "sigfigs" or "none"
    decimals_or_sigfigs: int


class CalcStep(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    section: str
    title: str

    output_symbol: str
    output_description: str

    equation: str
    substitution: str

    variables: List[CalcVariable]

    result_unrounded: CalcValue
    rounding: Rounding
    result_rounded: CalcValue

    references: List[CalcReference]

    checks: Optional[List[CalcCheck]] = None
    warnings: Optional[List[str]] = None


class TraceMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tool_id: str
    tool_version: str
    module: str
    timestamp: str
    units_system: str
    code_basis: Optional[str] = None
    input_hash: str


class TraceInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    label: str
    value: Union[float, str, int, bool]
    units: str
    source: str  # user/default
    notes: Optional[str] = None


class TraceAssumption(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    text: str


class TraceSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")
    governing_checks: List[Dict[str, Any]] = Field(default_factory=list)
    key_outputs: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)


class CalcTrace(BaseModel):
    """Calculation record for one run. Every export is rendered from it."""

    model_config = ConfigDict(extra="forbid")
    meta: TraceMeta
    inputs: List[TraceInput] = Field(default_factory=list)
    assumptions: List[TraceAssumption] = Field(default_factory=list)
    steps: List[CalcStep] = Field(default_factory=list)
    summary: TraceSummary = Field(default_factory=TraceSummary)

    @classmethod
    def new(
        cls,
        *,
        tool_id: str,
        tool_version: str,
        module: str,
        inputs: Dict[str, Any],
        units: Optional[Dict[str, str]] = None,
        defaults: Optional[Dict[str, Any]] = None,
        units_system: str = "SI (kN, mm, MPa)",
        code_basis: Optional[str] = None,
        input_hash: Optional[str] = None,
    ) -> "CalcTrace":
        """Create a trace with a deterministic input hash and the input listing.

        An input whose value equals the model default is tagged source="default".
        """
        if input_hash is None:
            input_hash = compute_input_hash({"module": module, **inputs})
        meta = TraceMeta(
            tool_id=tool_id,
            tool_version=tool_version,
            module=module,
            timestamp=datetime.now().isoformat(timespec="seconds"),
            units_system=units_system,
            code_basis=code_basis,
            input_hash=input_hash,
        )
        trace = cls(meta=meta)
        units = units or {}
        defaults = defaults or {}
        for k, v in inputs.items():
            if v is None:
                continue
            source = "default" if k in defaults and defaults[k] == v else "user"
            trace.inputs.append(TraceInput(id=k, label=k, value=v, units=units.get(k, ""), source=source))
        return trace

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def _format_num(value: float) -> str:
    if value is None or (isinstance(value, float) and (math.isnan(value) or math.isinf(value))):
        return str(value)
    # Compact representation with up to 12 significant digits.
    return f"{value:.12g}"


def _value_with_units(value: float, units: str) -> str:
    u = units.strip()
    if u == "":
        return _format_num(value)
    return f"{_format_num(value)} {u}"


def apply_rounding(value: float, rule: str, n: int) -> float:
    if rule == "none" or not math.isfinite(value):
        return float(value)
    if rule == "decimals":
        return float(round(value, int(n)))
    if rule == "sigfigs":
        if value == 0:
            return 0.0
        sign = -1.0 if value < 0 else 1.0
        v = abs(float(value))
        exp = math.floor(math.log10(v))
        factor = 10 ** (n - 1 - exp)
        return sign * round(v * factor) / factor
    raise ValueError(f"Unknown rounding rule: {rule!r}")


def compute_step(
    trace: CalcTrace,
    *,
    id: str,
    section: str,
    title: str,
    output_symbol: str,
    output_description: str,
    equation: str,
    variables: Sequence[Dict[str, Any]],
    compute_fn: Callable[[], float],
    units: str,
    rounding_rule: Dict[str, Any],
    references: Sequence[Dict[str, str]],
    checks_builder: Optional[Callable[[float], List[Dict[str, Any]]]] = None,
    warnings: Optional[List[str]] = None,
) -> float:
    """
    Record one calculation step:
    - evaluates compute_fn (unrounded)
    - applies the display rounding rule
    - builds the numeric substitution by replacing symbols with values + units
    - appends the CalcStep to the trace

    Returns the unrounded value; rounding is for presentation only.
    """
    if not id or not section or not title:
        raise ValueError("compute_step requires non-empty id/section/title")
    if not output_symbol or not output_description:
        raise ValueError("compute_step requires output_symbol/output_description")
    if not equation:
        raise ValueError("compute_step requires equation")
    if not variables:
        raise ValueError("compute_step requires variables (non-empty)")
    if not references:
        raise ValueError("compute_step requires references (non-empty)")

    var_models: List[CalcVariable] = []
    for v in variables:
        if "symbol" not in v or "value" not in v or "units" not in v or "description" not in v or "source" not in v:
            raise ValueError(f"Variable missing required fields: {v}")
        var_models.append(CalcVariable(**v))

    unrounded = float(compute_fn())

    rule = rounding_rule.get("rule", "none")
    n = int(rounding_rule.get("decimals_or_sigfigs", 6))
    rounded = apply_rounding(unrounded, rule, n)

    # Replace longer symbols first to reduce partial overlap issues
    sub = equation
    for vm in sorted(var_models, key=lambda x: len(x.symbol), reverse=True):
        sub = sub.replace(vm.symbol, _value_with_units(vm.value, vm.units))

    step_checks = None
    if checks_builder is not None:
        step_checks = [CalcCheck(**c) for c in checks_builder(unrounded)]

    step = CalcStep(
        id=id,
        section=section,
        title=title,
        output_symbol=output_symbol,
        output_description=output_description,
        equation=equation,
        substitution=sub,
        variables=var_models,
        result_unrounded=CalcValue(value=unrounded, units=units),
        rounding=Rounding(rule=rule, decimals_or_sigfigs=n),
        result_rounded=CalcValue(value=rounded, units=units),
        references=[CalcReference(**r) for r in references],
        checks=step_checks,
        warnings=warnings,
    )
    trace.steps.append(step)
    return unrounded
