from __future__ import annotations

from .rc_column_common import nan_max, safe_div

# rho_max constants (MPa): 600 = Es * 0.003, 228 as tabulated for the balanced ratio
_BALANCED_STRESS = 600.0
_BALANCED_OFFSET = 228.0


def beta1(fc: float) -> float:
    """
    Equivalent rectangular stress block factor.

    0.85 for f'c <= 30 MPa, reduced by 0.05 per 7 MPa above 30 MPa,
    never below 0.65.
    """
    if fc <= 30.0:
        return 0.85
    return nan_max(0.65, 0.85 - (0.05 / 7.0) * (fc - 30.0))


def rho_min(fy: float) -> float:
    return safe_div(1.4, fy)


def rho_max(fc: float, fy: float) -> float:
    """0.75 rho_b = 0.75 (0.85 f'c beta1 600) / (fy (600 + 228))."""
    return 0.75 * safe_div(
        0.85 * fc * beta1(fc) * _BALANCED_STRESS,
        fy * (_BALANCED_STRESS + _BALANCED_OFFSET),
    )
