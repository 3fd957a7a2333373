"""circuit — The learner's neuron/synapse graph.

NeuronGraph is the only way to change a circuit; engines consume immutable
CircuitSnapshots. Rejected mutations come back as structured CircuitErrors.
"""

from .types import (
    NeuronType,
    SynapseKind,
    Stimulus,
    Behavior,
    Neuron,
    Connection,
    coerce,
)
from .errors import (
    CircuitError,
    DuplicateId,
    UnknownEndpoint,
    DuplicateEdge,
    InvalidWeight,
    InvalidKind,
    SelfLoop,
    MutationResult,
)
from .graph import (
    NeuronGraph,
    CircuitSnapshot,
    takes_snapshot,
    MIN_WEIGHT,
    MAX_WEIGHT,
)
from .io import (
    circuit_to_dict,
    circuit_from_dict,
    neurons_to_frame,
    connections_to_frame,
    circuit_from_frames,
    load_circuit,
    save_circuit,
    merge_circuits,
    MergeConflict,
    MergeReport,
)
