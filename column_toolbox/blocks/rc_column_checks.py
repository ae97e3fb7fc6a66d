from __future__ import annotations

from typing import Any, Dict, List, Mapping

# Pre-checks run by the calling layer before a calculation. The calculation
# functions themselves never validate; they return nan/inf for bad numbers.

_POSITIVE_FIELDS: Dict[str, List[str]] = {
    "axial_load": ["length", "width", "bar_diameter", "number_of_bars", "fc", "fy"],
    "eccentric_load": ["length", "width", "bar_diameter", "number_of_bars", "fc", "fy"],
    "reinforcement": ["length", "width", "fc", "fy", "tie_diameter"],
    "spiral_column": ["column_diameter", "bar_diameter", "spiral_bar_diameter", "fc", "fy", "steel_ratio"],
    "spiral_column_design": ["bar_diameter", "spiral_bar_diameter", "fc", "fy", "steel_ratio"],
    "tied_column": ["bar_diameter", "tie_diameter", "fc", "fy", "steel_ratio"],
}

_NON_NEGATIVE_FIELDS = ["dead_load", "live_load", "axial_load", "concrete_cover"]

_LABELS = {
    "length": "Column length",
    "width": "Column width",
    "column_diameter": "Column diameter",
    "bar_diameter": "Bar diameter",
    "spiral_bar_diameter": "Spiral bar diameter",
    "tie_diameter": "Tie diameter",
    "number_of_bars": "Number of bars",
    "fc": "Concrete strength f'c",
    "fy": "Steel yield strength fy",
    "steel_ratio": "Steel ratio",
    "dead_load": "Dead load",
    "live_load": "Live load",
    "axial_load": "Axial load",
    "concrete_cover": "Concrete cover",
}


def _num(inputs: Mapping[str, Any], key: str) -> Any:
    v = inputs.get(key)
    return float(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else None


def check_inputs(module: str, inputs: Mapping[str, Any]) -> List[str]:
    """
    Return a list of problems that would make `module` produce a degenerate result.

    An empty list means the inputs are usable. Unknown modules and fields not
    present in `inputs` are not reported.
    """
    problems: List[str] = []
    for key in _POSITIVE_FIELDS.get(module, []):
        v = _num(inputs, key)
        if v is not None and v <= 0.0:
            problems.append(f"{_LABELS.get(key, key)} must be greater than 0")

    for key in _NON_NEGATIVE_FIELDS:
        v = _num(inputs, key)
        if v is not None and v < 0.0:
            problems.append(f"{_LABELS.get(key, key)} must not be negative")

    rho = _num(inputs, "steel_ratio")
    if rho is not None and rho >= 1.0:
        problems.append("Steel ratio must be less than 1 (enter 0.02 for 2%)")

    if module == "reinforcement":
        lo = _num(inputs, "min_steel_ratio")
        hi = _num(inputs, "max_steel_ratio")
        if lo is not None and hi is not None and lo > hi:
            problems.append("Minimum steel ratio must not exceed maximum steel ratio")
        if hi is not None and not 0.0 < hi < 1.0:
            problems.append("Maximum steel ratio must be between 0 and 1")
        fc = _num(inputs, "fc")
        fy = _num(inputs, "fy")
        if fc is not None and fy is not None and fy <= 0.85 * fc:
            problems.append("Steel yield strength must exceed 0.85 f'c to solve for steel area")

    if module == "spiral_column":
        d = _num(inputs, "column_diameter")
        cover = _num(inputs, "concrete_cover")
        ds = _num(inputs, "spiral_bar_diameter")
        if d is not None and cover is not None and d - 2.0 * cover <= (ds or 0.0):
            problems.append("Concrete cover leaves no spiral core; reduce cover or enlarge the column")

    return problems
