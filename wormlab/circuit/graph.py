"""The learner's circuit: a mutable graph of neurons and synapses.

A NeuronGraph is owned by one editing session and is changed only through
its methods, which keep the invariants below true at all times:

- neuron ids are strings,
- every connection joins two neurons of the same graph,
- no (from, to) pair appears twice (for gap junctions, neither direction),
- no connection starts and ends on the same neuron,
- every weight lies in [MIN_WEIGHT, MAX_WEIGHT].

Engines never read the graph directly. They take a CircuitSnapshot, an
immutable copy packed into dense numpy index arrays in the same layout the
propagation engine consumes.
"""

import itertools
import math
from dataclasses import dataclass, field
from numbers import Real
from types import MappingProxyType

import numpy as np
import pandas as pd

from wormlab.circuit.errors import (
    APPLIED, UNCHANGED, rejected,
    DuplicateId, UnknownEndpoint, DuplicateEdge, InvalidWeight, InvalidKind,
    SelfLoop,
)
from wormlab.circuit.types import Neuron, Connection, SynapseKind, coerce
from wormlab.utils import get_logger

LOG = get_logger("circuit.graph")

MIN_WEIGHT = 1
MAX_WEIGHT = 15

_CIRCUIT_IDS = itertools.count(1)


def _frozen_array(values, dtype):
    array = np.asarray(values, dtype=dtype)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class CircuitSnapshot:
    """An immutable copy of a circuit, ready for the engines.

    Neurons are sorted by id and indexed densely in [0, n_neurons); the
    mapping is stored in id_to_idx. Connections are sorted by (from, to).

    Attributes
    ----------
    neurons : tuple of Neuron
    connections : tuple of Connection
    revision : int
        Revision of the graph this snapshot was taken from.
    circuit_id : int
        Identity of that graph; 0 for a snapshot built directly.
    id_to_idx : Mapping[str, int]
    pre_idx, post_idx : np.ndarray
        Source and target index per connection (read-only).
    weights : np.ndarray
        Unsigned weight per connection (read-only).
    signs : np.ndarray
        +1 or -1 per connection (read-only).
    symmetric : np.ndarray
        True for gap junctions (read-only).
    """
    neurons: tuple
    connections: tuple
    revision: int = 0
    circuit_id: int = 0
    id_to_idx: MappingProxyType = field(default=None)
    pre_idx: np.ndarray = field(default=None, repr=False)
    post_idx: np.ndarray = field(default=None, repr=False)
    weights: np.ndarray = field(default=None, repr=False)
    signs: np.ndarray = field(default=None, repr=False)
    symmetric: np.ndarray = field(default=None, repr=False)

    @classmethod
    def build(cls, neurons, connections, revision=0, circuit_id=0):
        """Pack neurons and connections into a snapshot."""
        neurons = tuple(sorted(neurons, key=lambda n: n.id))
        connections = tuple(sorted(connections, key=lambda c: c.pair))
        id_to_idx = {n.id: i for i, n in enumerate(neurons)}
        return cls(
            neurons=neurons,
            connections=connections,
            revision=revision,
            circuit_id=circuit_id,
            id_to_idx=MappingProxyType(id_to_idx),
            pre_idx=_frozen_array([id_to_idx[c.source] for c in connections], np.int32),
            post_idx=_frozen_array([id_to_idx[c.target] for c in connections], np.int32),
            weights=_frozen_array([c.weight for c in connections], np.float64),
            signs=_frozen_array([c.kind.sign for c in connections], np.float64),
            symmetric=_frozen_array([c.kind.is_symmetric for c in connections], bool),
        )

    @property
    def n_neurons(self):
        return len(self.neurons)

    @property
    def n_connections(self):
        return len(self.connections)

    @property
    def neuron_ids(self):
        """Frozenset of the neuron ids in this snapshot."""
        return frozenset(self.id_to_idx)

    @property
    def pairs(self):
        """Frozenset of (from, to) pairs."""
        return frozenset(c.pair for c in self.connections)

    def ids(self, indices):
        """Convert dense indices back to neuron ids."""
        return [self.neurons[i].id for i in indices]

    def snapshot(self):
        return self

    def summary(self):
        """Return a summary string."""
        kinds = pd.Series([c.kind.value for c in self.connections],
                          dtype=object).value_counts()
        lines = [
            f"Circuit r{self.revision}: {self.n_neurons} neurons, "
            f"{self.n_connections} connections",
        ]
        if len(kinds) > 0:
            lines.append(f"  kinds: {dict(kinds)}")
        return "\n".join(lines)


def takes_snapshot(method):
    """Decorator: replace NeuronGraph arguments by a snapshot before calling.

    Engines decorated with it accept either a NeuronGraph or a
    CircuitSnapshot, and always compute on an immutable copy.
    """

    def _unwrap(arg):
        if isinstance(arg, NeuronGraph):
            return arg.snapshot()
        return arg

    def wrapper(*args, **kwargs):
        unwrapped_args = tuple(_unwrap(a) for a in args)
        unwrapped_kwargs = {k: _unwrap(v) for k, v in kwargs.items()}
        return method(*unwrapped_args, **unwrapped_kwargs)

    wrapper.__name__ = method.__name__
    wrapper.__doc__ = method.__doc__
    wrapper.__wrapped__ = method
    return wrapper


class NeuronGraph:
    """A mutable circuit of neurons and connections.

    Mutations return a MutationResult and never raise; queries for
    unknown ids return empty results.
    """

    def __init__(self, neurons=(), connections=()):
        self._neurons = {}
        self._connections = {}
        self._revision = 0
        self._circuit_id = next(_CIRCUIT_IDS)
        for neuron in neurons:
            self.add_neuron(neuron).raise_for_error()
        for conn in connections:
            self.add_connection(conn.source, conn.target,
                                conn.kind, conn.weight).raise_for_error()

    @classmethod
    def from_palette(cls, neuron_ids):
        """Build a graph holding the palette neurons with the given ids."""
        from wormlab.connectome.palette import palette_neuron
        return cls(neurons=[palette_neuron(nid) for nid in neuron_ids])

    # -- mutation ----------------------------------------------------------

    def add_neuron(self, neuron):
        """Add a neuron. Rejected with DuplicateId if its id is taken."""
        if not isinstance(neuron, Neuron):
            return rejected(InvalidKind(
                f"Expected a Neuron, got {type(neuron).__name__}"))
        if not isinstance(neuron.id, str):
            return rejected(InvalidKind(
                f"Neuron id must be a string, got {neuron.id!r}"))
        if neuron.id in self._neurons:
            return rejected(DuplicateId(
                f"Neuron {neuron.id} is already in the circuit", id=neuron.id))
        self._neurons[neuron.id] = neuron
        self._bump()
        return APPLIED

    def remove_neuron(self, neuron_id):
        """Remove a neuron and every connection touching it.

        Removing an absent id is a no-op.
        """
        if not self.has_neuron(neuron_id):
            return UNCHANGED
        incident = [pair for pair, conn in self._connections.items()
                    if conn.touches(neuron_id)]
        for pair in incident:
            del self._connections[pair]
        del self._neurons[neuron_id]
        self._bump()
        LOG.debug("Removed %s and %d incident connections",
                  neuron_id, len(incident))
        return APPLIED

    def add_connection(self, source, target, kind, weight):
        """Connect `source` to `target`.

        Rejected with UnknownEndpoint, SelfLoop, InvalidKind,
        DuplicateEdge or InvalidWeight; the graph is left unchanged.
        """
        missing = [nid for nid in (source, target) if not self.has_neuron(nid)]
        if missing:
            return rejected(UnknownEndpoint(
                f"Unknown neuron(s): {', '.join(map(str, missing))}",
                source=source, target=target, missing=missing))
        if source == target:
            return rejected(SelfLoop(
                f"{source} cannot connect to itself",
                source=source, target=target))
        try:
            kind = coerce(SynapseKind, kind)
        except ValueError:
            return rejected(InvalidKind(
                f"Unknown synapse kind: {kind!r}", kind=str(kind)))
        if self._find_pair(source, target, kind) is not None:
            return rejected(DuplicateEdge(
                f"{source} → {target} is already connected",
                source=source, target=target))
        if not _valid_weight(weight):
            return rejected(InvalidWeight(
                f"Weight must be a number in [{MIN_WEIGHT}, {MAX_WEIGHT}], "
                f"got {weight!r}",
                weight=repr(weight), min=MIN_WEIGHT, max=MAX_WEIGHT))
        self._connections[(source, target)] = Connection(
            source, target, kind, weight)
        self._bump()
        return APPLIED

    def remove_connection(self, source, target):
        """Remove the connection source → target; no-op if absent."""
        if not self.has_connection(source, target):
            return UNCHANGED
        del self._connections[(source, target)]
        self._bump()
        return APPLIED

    def _find_pair(self, source, target, kind):
        """An existing connection that makes (source, target) a duplicate."""
        existing = self._connections.get((source, target))
        if existing is not None:
            return existing
        reverse = self._connections.get((target, source))
        if reverse is not None and (kind.is_symmetric or reverse.kind.is_symmetric):
            return reverse
        return None

    def _bump(self):
        self._revision += 1

    # -- queries -----------------------------------------------------------

    @property
    def revision(self):
        """Counter increased by every applied mutation."""
        return self._revision

    @property
    def neurons(self):
        """Neurons, sorted by id."""
        return tuple(self._neurons[nid] for nid in sorted(self._neurons))

    @property
    def connections(self):
        """Connections, sorted by (from, to)."""
        return tuple(self._connections[p] for p in sorted(self._connections))

    @property
    def neuron_ids(self):
        return frozenset(self._neurons)

    @property
    def circuit_id(self):
        """Process-unique identity of this graph."""
        return self._circuit_id

    def neuron(self, neuron_id):
        """The neuron with this id, or None."""
        return self._neurons[neuron_id] if self.has_neuron(neuron_id) else None

    def has_neuron(self, neuron_id):
        return isinstance(neuron_id, str) and neuron_id in self._neurons

    def has_connection(self, source, target):
        return (self.has_neuron(source) and self.has_neuron(target)
                and (source, target) in self._connections)

    def connection(self, source, target):
        """The connection source → target, or None."""
        if not self.has_connection(source, target):
            return None
        return self._connections[(source, target)]

    def outgoing(self, neuron_id):
        """Connections leaving `neuron_id`, sorted by target."""
        return tuple(c for c in self.connections if c.source == neuron_id)

    def incoming(self, neuron_id):
        """Connections arriving at `neuron_id`, sorted by source."""
        return tuple(sorted((c for c in self.connections if c.target == neuron_id),
                            key=lambda c: c.source))

    def neighbors(self, neuron_id):
        """Sorted ids linked to `neuron_id` in either direction."""
        partners = set()
        for conn in self._connections.values():
            if conn.source == neuron_id:
                partners.add(conn.target)
            elif conn.target == neuron_id:
                partners.add(conn.source)
        return tuple(sorted(partners))

    def snapshot(self):
        """An immutable copy for the engines."""
        return CircuitSnapshot.build(self._neurons.values(),
                                     self._connections.values(),
                                     revision=self._revision,
                                     circuit_id=self._circuit_id)

    def is_stale(self, result):
        """True if `result` was not computed from this graph at its current revision."""
        return (getattr(result, "circuit_id", None) != self._circuit_id
                or getattr(result, "revision", None) != self._revision)

    def summary(self):
        return self.snapshot().summary()

    def __len__(self):
        return len(self._neurons)

    def __contains__(self, neuron_id):
        return self.has_neuron(neuron_id)

    def __repr__(self):
        return (f"NeuronGraph({len(self._neurons)} neurons, "
                f"{len(self._connections)} connections, r{self._revision})")


def _valid_weight(weight):
    if isinstance(weight, bool) or not isinstance(weight, Real):
        return False
    if not math.isfinite(weight):
        return False
    return MIN_WEIGHT <= weight <= MAX_WEIGHT
