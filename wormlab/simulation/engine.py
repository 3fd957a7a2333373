"""Weighted spreading-activation engine.

Activation enters at the stimulus's sensory neurons and spreads breadth
first. Each neuron is dequeued at most once; when dequeued it sends
weight / WEIGHT_SCALE to every partner (subtracted for inhibitory synapses,
in both directions for gap junctions). A neuron joins the next layer the
first time its level reaches ACTIVATION_THRESHOLD. Layers are ordered by
ascending id, so the result depends only on the circuit and the stimulus.
"""

from dataclasses import dataclass

import numpy as np

from wormlab.circuit.graph import takes_snapshot
from wormlab.circuit.types import Behavior, Stimulus, coerce
from wormlab.simulation.behavior import classify
from wormlab.simulation.stimulus import entry_neurons
from wormlab.utils import get_logger

LOG = get_logger("simulation.engine")

ENTRY_LEVEL = 1.0
ACTIVATION_THRESHOLD = 0.5
WEIGHT_SCALE = 10.0


@dataclass(frozen=True)
class SimulationResult:
    """Results from one propagation run.

    Attributes
    ----------
    behavior : Behavior
        Behavior read off the active driver neurons.
    active_neurons : tuple of str
        Every neuron that crossed threshold, in activation order.
    signal_path : tuple of str
        Neurons in BFS visitation order, entry neurons first.
    truncated : bool
        True if the dequeue bound stopped propagation early.
    stimulus : Stimulus
    revision : int
        Revision of the circuit snapshot the run consumed.
    circuit_id : int
        Identity of the graph that snapshot came from.
    """
    behavior: Behavior
    active_neurons: tuple = ()
    signal_path: tuple = ()
    truncated: bool = False
    stimulus: Stimulus = Stimulus.NONE
    revision: int = 0
    circuit_id: int = 0

    @property
    def n_active(self):
        return len(self.active_neurons)

    def is_active(self, neuron_id):
        return neuron_id in self.active_neurons

    def to_dict(self):
        """Serialize to plain data."""
        return {
            "behavior": self.behavior.value,
            "activeNeurons": list(self.active_neurons),
            "signalPath": list(self.signal_path),
            "truncated": self.truncated,
            "stimulus": self.stimulus.value,
            "revision": self.revision,
            "circuitId": self.circuit_id,
        }


def _partners(snapshot, contributions, idx):
    """Targets and signed contributions sent by neuron `idx`."""
    forward = np.flatnonzero(snapshot.pre_idx == idx)
    backward = np.flatnonzero((snapshot.post_idx == idx) & snapshot.symmetric)
    targets = np.concatenate([snapshot.post_idx[forward], snapshot.pre_idx[backward]])
    deltas = np.concatenate([contributions[forward], contributions[backward]])
    return targets, deltas


@takes_snapshot
def simulate(circuit, stimulus, max_dequeues=None, entry_level=ENTRY_LEVEL,
             threshold=ACTIVATION_THRESHOLD, weight_scale=WEIGHT_SCALE):
    """Propagate a stimulus through a circuit and classify the behavior.

    Parameters
    ----------
    circuit : NeuronGraph or CircuitSnapshot
        A graph is snapshotted first; the run never sees later edits.
    stimulus : Stimulus or str
    max_dequeues : int, optional
        Bound on the number of dequeued neurons. Defaults to twice the
        number of neurons.
    entry_level : float
        Starting level of the entry neurons.
    threshold : float
        Level at which a neuron becomes active.
    weight_scale : float
        A connection contributes weight / weight_scale.

    Returns
    -------
    SimulationResult
    """
    stimulus = coerce(Stimulus, stimulus)
    entries = entry_neurons(stimulus, circuit.neuron_ids)
    if not entries:
        LOG.info("No entry neurons for %s in %d-neuron circuit",
                 stimulus.value, circuit.n_neurons)
        return SimulationResult(behavior=Behavior.NO_MOVEMENT,
                                stimulus=stimulus, revision=circuit.revision,
                                circuit_id=circuit.circuit_id)

    n = circuit.n_neurons
    bound = 2 * n if max_dequeues is None else max_dequeues
    contributions = circuit.weights * circuit.signs / weight_scale

    levels = np.zeros(n, dtype=np.float64)
    active = np.zeros(n, dtype=bool)
    visited = set()
    activation_order = []
    signal_path = []

    # Dense indices follow id order, so sorting indices sorts ids.
    layer = sorted(circuit.id_to_idx[nid] for nid in entries)
    for idx in layer:
        levels[idx] = entry_level
        active[idx] = True
        activation_order.append(idx)

    dequeues = 0
    truncated = False
    while layer and not truncated:
        next_layer = []
        for idx in layer:
            if idx in visited:
                continue
            if dequeues >= bound:
                truncated = True
                break
            dequeues += 1
            visited.add(idx)
            signal_path.append(idx)

            targets, deltas = _partners(circuit, contributions, idx)
            if len(targets) == 0:
                continue
            np.add.at(levels, targets, deltas)
            for target in np.unique(targets):
                if not active[target] and levels[target] >= threshold:
                    active[target] = True
                    activation_order.append(int(target))
                    next_layer.append(int(target))
        layer = sorted(next_layer)

    active_ids = tuple(circuit.ids(activation_order))
    behavior = classify(active_ids)

    if truncated:
        LOG.warning("Propagation truncated after %d dequeues (%d neurons)",
                    dequeues, n)
    LOG.info("Simulated %s: %d/%d neurons active → %s",
             stimulus.value, len(active_ids), n, behavior.value)

    return SimulationResult(
        behavior=behavior,
        active_neurons=active_ids,
        signal_path=tuple(circuit.ids(signal_path)),
        truncated=truncated,
        stimulus=stimulus,
        revision=circuit.revision,
        circuit_id=circuit.circuit_id,
    )
