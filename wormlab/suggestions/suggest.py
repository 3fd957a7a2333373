"""Hints derived from the gap between a circuit and the reference.

Both functions are read-only: they take a snapshot and never touch the
learner's graph.
"""

from dataclasses import dataclass

from wormlab.circuit.graph import takes_snapshot
from wormlab.circuit.types import NeuronType
from wormlab.connectome.palette import neuron_type
from wormlab.connectome.reference import get_reference
from wormlab.utils import get_logger

LOG = get_logger("suggestions")

PROCESSING = (NeuronType.COMMAND, NeuronType.INTERNEURON)


@dataclass(frozen=True)
class ConnectionSuggestion:
    """A reference connection the learner could add."""
    source: str
    target: str
    weight: float
    kind: str
    reason: str

    def to_dict(self):
        return {"from": self.source, "to": self.target, "weight": self.weight,
                "kind": self.kind, "reason": self.reason}


@dataclass(frozen=True)
class PathwaySuggestion:
    """A reference pathway the learner has started but not finished."""
    pathway_name: str
    behavior: str
    missing_neurons: tuple
    description: str = ""

    def to_dict(self):
        return {"pathwayName": self.pathway_name, "behavior": self.behavior,
                "missingNeurons": list(self.missing_neurons),
                "description": self.description}


def connection_reason(source, target):
    """Why a reference connection matters, from the palette types."""
    pre, post = neuron_type(source), neuron_type(target)
    if pre is NeuronType.SENSORY and post in PROCESSING:
        return "Sensory → processing pathway"
    if pre in PROCESSING and post is NeuronType.MOTOR:
        return "Processing → motor pathway"
    return "Reference connectome data"


@takes_snapshot
def recommend_connections(circuit, behavior, connectome=None, limit=None):
    """Reference connections whose endpoints are placed but which are missing.

    Parameters
    ----------
    circuit : NeuronGraph or CircuitSnapshot
    behavior : Behavior or str
    connectome : ReferenceConnectome, optional
        Defaults to the process-wide reference.
    limit : int, optional
        Keep only the first `limit` suggestions.

    Returns
    -------
    list of ConnectionSuggestion
        Sorted by (from, to). Empty when the behavior has no reference.
    """
    if connectome is None:
        connectome = get_reference()
    reference = connectome.for_behavior(behavior)
    if reference is None:
        return []

    neuron_ids = circuit.neuron_ids
    built = circuit.pairs
    suggestions = [
        ConnectionSuggestion(
            source=conn.source,
            target=conn.target,
            weight=conn.weight,
            kind=conn.kind.value,
            reason=connection_reason(conn.source, conn.target),
        )
        for conn in reference.required_connections
        if conn.source in neuron_ids and conn.target in neuron_ids
        and conn.pair not in built
    ]
    LOG.debug("%d connection suggestions for %s",
              len(suggestions), reference.behavior.value)
    return suggestions[:limit] if limit is not None else suggestions


@takes_snapshot
def suggest_pathways(circuit, connectome=None, limit=None):
    """Reference pathways with some, but not all, members placed.

    Parameters
    ----------
    circuit : NeuronGraph or CircuitSnapshot
    connectome : ReferenceConnectome, optional
        Defaults to the process-wide reference.
    limit : int, optional
        Keep only the first `limit` suggestions.

    Returns
    -------
    list of PathwaySuggestion
        In reference order; missing neurons sorted by id.
    """
    if connectome is None:
        connectome = get_reference()

    neuron_ids = circuit.neuron_ids
    suggestions = []
    for behavior, pathway in connectome.pathways():
        present = pathway.neurons & neuron_ids
        if not present or pathway.covered_by(neuron_ids):
            continue
        suggestions.append(PathwaySuggestion(
            pathway_name=pathway.name,
            behavior=behavior.value,
            missing_neurons=tuple(pathway.missing_from(neuron_ids)),
            description=pathway.description,
        ))
    return suggestions[:limit] if limit is not None else suggestions
