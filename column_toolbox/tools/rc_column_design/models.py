from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from column_toolbox.blocks.rc_column_models import (
    AxialLoadInputs,
    EccentricLoadInputs,
    ReinforcementInputs,
    SpiralColumnInputs,
    SpiralDesignInputs,
    TiedColumnInputs,
)

ModuleId = Literal[
    "axial_load",
    "eccentric_load",
    "reinforcement",
    "spiral_column",
    "spiral_column_design",
    "tied_column",
]

MODULE_INPUTS: Dict[str, Type[BaseModel]] = {
    "axial_load": AxialLoadInputs,
    "eccentric_load": EccentricLoadInputs,
    "reinforcement": ReinforcementInputs,
    "spiral_column": SpiralColumnInputs,
    "spiral_column_design": SpiralDesignInputs,
    "tied_column": TiedColumnInputs,
}

MODULE_TITLES: Dict[str, str] = {
    "axial_load": "Axial Load (square tied column)",
    "eccentric_load": "Eccentric Load (biaxial eccentricity)",
    "reinforcement": "Reinforcement Sizing",
    "spiral_column": "Spiral Column Analysis",
    "spiral_column_design": "Spiral Column Design",
    "tied_column": "Tied Column Design",
}


MODULE_HINTS: Dict[str, str] = {
    "axial_load": "Enter service loads; they are factored as 1.2D + 1.6L. Keep the steel ratio between 1% and 8%.",
    "eccentric_load": "Eccentricities are measured from the section centroid. The reduction is a screening check, not a P-M diagram.",
    "reinforcement": "Enter the factored load directly. Bars are chosen from the standard sizes 10 to 40 mm.",
    "spiral_column": "Cover is measured to the outside of the spiral. Clear spiral spacing must stay between 25 and 75 mm.",
    "spiral_column_design": "The diameter is rounded up to the next 5 mm and at least 6 bars are provided.",
    "tied_column": "The side is rounded up to the next 5 mm and an even bar count of at least 4 is provided.",
}

class SolveRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    module: ModuleId = Field(..., description="Calculation module identifier")
    inputs: Dict[str, Any] = Field(default_factory=dict, description="Module-specific inputs")


class SavedProject(BaseModel):
    """A calculation the user chose to keep, with its inputs and results."""

    model_config = ConfigDict(extra="forbid")
    id: str
    name: str
    type: ModuleId
    date: datetime
    inputs: Dict[str, Any] = Field(default_factory=dict)
    results: Optional[Dict[str, Any]] = None


class SaveProjectRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = Field(..., min_length=1, description="Project name shown in the saved list")
    type: ModuleId
    inputs: Dict[str, Any] = Field(default_factory=dict)
    results: Optional[Dict[str, Any]] = None


def module_units(module: str) -> Dict[str, str]:
    """Field -> units map taken from the block input schema."""
    model = MODULE_INPUTS[module]
    out: Dict[str, str] = {}
    for name, info in model.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        out[name] = str(extra.get("units", ""))
    return out
