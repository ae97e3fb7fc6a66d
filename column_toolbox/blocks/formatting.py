from __future__ import annotations

import math


def format_number(value: float, decimals: int = 2) -> str:
    """Group thousands with commas and show a fixed number of decimals (en-US)."""
    if value is None:
        return ""
    v = float(value)
    if math.isnan(v):
        return "NaN"
    if math.isinf(v):
        return "∞" if v > 0 else "-∞"
    return f"{v:,.{int(decimals)}f}"
