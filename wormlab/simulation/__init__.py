"""simulation — Predict behavior from a circuit and a stimulus.

Deterministic weighted spreading activation over a circuit snapshot,
followed by a priority-ordered behavior decision table.
"""

from .engine import (
    SimulationResult,
    simulate,
    ENTRY_LEVEL,
    ACTIVATION_THRESHOLD,
    WEIGHT_SCALE,
)
from .stimulus import (
    ENTRY_TABLE,
    entry_neurons,
)
from .behavior import (
    DRIVER_GROUPS,
    DECISION_TABLE,
    Rule,
    active_groups,
    classify,
)
