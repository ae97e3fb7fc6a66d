from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

# Parameter structs for the calculation blocks.
# No range constraints here: the calculation functions are total over the
# reals and degenerate inputs are screened by rc_column_checks instead.


class _BlockInputs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class AxialLoadInputs(_BlockInputs):
    """Square/rectangular tied column under concentric axial load (analysis)."""

    dead_load: float = Field(0.0, description="Service dead load D", json_schema_extra={"units": "kN"})
    live_load: float = Field(0.0, description="Service live load L", json_schema_extra={"units": "kN"})
    number_of_bars: float = Field(4, description="Number of longitudinal bars", json_schema_extra={"units": ""})
    bar_diameter: float = Field(16.0, description="Longitudinal bar diameter", json_schema_extra={"units": "mm"})
    length: float = Field(400.0, description="Column section length", json_schema_extra={"units": "mm"})
    width: float = Field(400.0, description="Column section width", json_schema_extra={"units": "mm"})
    fc: float = Field(28.0, description="Concrete compressive strength f'c", json_schema_extra={"units": "MPa"})
    fy: float = Field(420.0, description="Steel yield strength fy", json_schema_extra={"units": "MPa"})


class EccentricLoadInputs(AxialLoadInputs):
    """Axial load applied with eccentricities about both section axes."""

    eccentricity_x: float = Field(0.0, description="Load eccentricity along x", json_schema_extra={"units": "mm"})
    eccentricity_y: float = Field(0.0, description="Load eccentricity along y", json_schema_extra={"units": "mm"})


class ReinforcementInputs(_BlockInputs):
    """Inverse design: longitudinal steel for a given factored axial load."""

    axial_load: float = Field(0.0, description="Factored axial load Pu (already factored)", json_schema_extra={"units": "kN"})
    length: float = Field(400.0, description="Column section length", json_schema_extra={"units": "mm"})
    width: float = Field(400.0, description="Column section width", json_schema_extra={"units": "mm"})
    fc: float = Field(28.0, description="Concrete compressive strength f'c", json_schema_extra={"units": "MPa"})
    fy: float = Field(420.0, description="Steel yield strength fy", json_schema_extra={"units": "MPa"})
    min_steel_ratio: float = Field(0.01, description="Minimum steel ratio", json_schema_extra={"units": ""})
    max_steel_ratio: float = Field(0.08, description="Maximum steel ratio", json_schema_extra={"units": ""})
    tie_diameter: float = Field(10.0, description="Lateral tie diameter", json_schema_extra={"units": "mm"})
    concrete_cover: float = Field(40.0, description="Clear concrete cover (reported only)", json_schema_extra={"units": "mm"})


class SpiralColumnInputs(_BlockInputs):
    """Circular spiral column of known diameter (analysis + spiral pitch)."""

    dead_load: float = Field(0.0, description="Service dead load D", json_schema_extra={"units": "kN"})
    live_load: float = Field(0.0, description="Service live load L", json_schema_extra={"units": "kN"})
    column_diameter: float = Field(400.0, description="Column diameter", json_schema_extra={"units": "mm"})
    fc: float = Field(21.0, description="Concrete compressive strength f'c", json_schema_extra={"units": "MPa"})
    fy: float = Field(415.0, description="Steel yield strength fy", json_schema_extra={"units": "MPa"})
    bar_diameter: float = Field(16.0, description="Longitudinal bar diameter", json_schema_extra={"units": "mm"})
    spiral_bar_diameter: float = Field(10.0, description="Spiral bar diameter", json_schema_extra={"units": "mm"})
    concrete_cover: float = Field(40.0, description="Concrete cover to outside of spiral", json_schema_extra={"units": "mm"})
    steel_ratio: float = Field(0.02, description="Target longitudinal steel ratio", json_schema_extra={"units": ""})


class SpiralDesignInputs(_BlockInputs):
    """Circular spiral column sized from the factored load."""

    dead_load: float = Field(0.0, description="Service dead load D", json_schema_extra={"units": "kN"})
    live_load: float = Field(0.0, description="Service live load L", json_schema_extra={"units": "kN"})
    fc: float = Field(21.0, description="Concrete compressive strength f'c", json_schema_extra={"units": "MPa"})
    fy: float = Field(415.0, description="Steel yield strength fy", json_schema_extra={"units": "MPa"})
    bar_diameter: float = Field(16.0, description="Longitudinal bar diameter", json_schema_extra={"units": "mm"})
    spiral_bar_diameter: float = Field(10.0, description="Spiral bar diameter", json_schema_extra={"units": "mm"})
    concrete_cover: float = Field(40.0, description="Concrete cover to outside of spiral", json_schema_extra={"units": "mm"})
    steel_ratio: float = Field(0.02, description="Target longitudinal steel ratio", json_schema_extra={"units": ""})


class TiedColumnInputs(_BlockInputs):
    """Square tied column sized from the factored load."""

    dead_load: float = Field(0.0, description="Service dead load D", json_schema_extra={"units": "kN"})
    live_load: float = Field(0.0, description="Service live load L", json_schema_extra={"units": "kN"})
    fc: float = Field(21.0, description="Concrete compressive strength f'c", json_schema_extra={"units": "MPa"})
    fy: float = Field(415.0, description="Steel yield strength fy", json_schema_extra={"units": "MPa"})
    bar_diameter: float = Field(16.0, description="Longitudinal bar diameter", json_schema_extra={"units": "mm"})
    tie_diameter: float = Field(10.0, description="Lateral tie diameter", json_schema_extra={"units": "mm"})
    steel_ratio: float = Field(0.02, description="Target longitudinal steel ratio", json_schema_extra={"units": ""})
    concrete_cover: float = Field(40.0, description="Clear concrete cover (reported only)", json_schema_extra={"units": "mm"})


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnResult:
    factored_load: float  # kN
    cross_sectional_area: float  # mm^2
    area_of_bar: float  # mm^2
    steel_area: float  # mm^2
    axial_load_capacity: float  # kN
    is_safe: bool
    is_ratio_valid: bool

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AxialLoadResult(ColumnResult):
    steel_ratio: float
    min_steel_ratio: float
    max_steel_ratio: float


@dataclass(frozen=True)
class EccentricLoadResult(AxialLoadResult):
    moment_x: float  # kN-m
    moment_y: float  # kN-m
    eccentricity_ratio: float
    eccentric_reduction: float


@dataclass(frozen=True)
class ReinforcementResult(ColumnResult):
    required_steel_area: float  # mm^2, after the max ratio cap
    recommended_bar_size: int  # mm
    number_of_bars: int | float
    bar_arrangement: str
    max_tie_spacing: float  # mm
    steel_ratio: float
    min_steel_ratio: float
    max_steel_ratio: float


@dataclass(frozen=True)
class SpiralColumnResult(ColumnResult):
    steel_ratio: float
    column_dimension: float  # mm (diameter)
    number_of_bars: int | float
    spiral_spacing: float  # mm
    spiral_ratio: float
    clear_spacing: float  # mm
    is_spacing_valid: bool
    core_diameter: float  # mm
    core_area: float  # mm^2
    min_steel_ratio: float
    max_steel_ratio: float
    beta1: float


@dataclass(frozen=True)
class SpiralDesignResult(SpiralColumnResult):
    required_gross_area: float  # mm^2


@dataclass(frozen=True)
class TiedColumnResult(ColumnResult):
    steel_ratio: float
    column_dimension: float  # mm (side of square)
    number_of_bars: int | float
    tie_spacing: float  # mm
    min_steel_ratio: float
    max_steel_ratio: float
    beta1: float
    required_gross_area: float  # mm^2
