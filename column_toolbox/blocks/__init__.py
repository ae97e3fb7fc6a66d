from .formatting import format_number
from .rc_column_axial import axial_load, eccentric_load
from .rc_column_checks import check_inputs
from .rc_column_models import (
    AxialLoadInputs,
    AxialLoadResult,
    ColumnResult,
    EccentricLoadInputs,
    EccentricLoadResult,
    ReinforcementInputs,
    ReinforcementResult,
    SpiralColumnInputs,
    SpiralColumnResult,
    SpiralDesignInputs,
    SpiralDesignResult,
    TiedColumnInputs,
    TiedColumnResult,
)
from .rc_column_sizing import reinforcement
from .rc_column_spiral import spiral_column, spiral_column_design
from .rc_column_tied import tied_column
from .rc_materials import beta1
