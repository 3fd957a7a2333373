"""Circuit exchange: plain dicts, DataFrames, files, and merging.

The wire format is the one the editor and persistence layers use:

    {"neurons": [{"id", "type", "name", "function", "description"}],
     "connections": [{"from", "to", "kind", "weight"}]}

Loading never aborts on a bad entry. Each rejected neuron or connection
becomes a CircuitError in the returned error list, and the rest of the
circuit loads.
"""

from collections import namedtuple
from pathlib import Path

import numpy as np
import pandas as pd

from wormlab.bench import LocalDataset, evaluate_datasets, ftype_of
from wormlab.circuit.errors import CircuitError, InvalidKind
from wormlab.circuit.graph import NeuronGraph
from wormlab.circuit.types import Neuron
from wormlab.utils import get_logger

LOG = get_logger("circuit.io")

NEURON_COLUMNS = ["id", "type", "name", "function", "description"]
CONNECTION_COLUMNS = ["from", "to", "kind", "weight"]
DEFAULT_KIND = "chemical_excitatory"


# ---------------------------------------------------------------------------
# dict <-> graph
# ---------------------------------------------------------------------------

def circuit_to_dict(graph):
    """Serialize a graph (or snapshot) to the wire format."""
    return {
        "neurons": [n.to_dict() for n in graph.neurons],
        "connections": [c.to_dict() for c in graph.connections],
    }


def _neuron_from_entry(entry):
    """Build a Neuron from a dict, filling gaps from the palette."""
    from wormlab.connectome.palette import NEURON_PALETTE

    nid = entry["id"]
    known = NEURON_PALETTE.get(nid)
    defaults = known.to_dict() if known is not None else {}
    fields = {key: entry.get(key, defaults.get(key, "")) for key in NEURON_COLUMNS}
    return Neuron(**fields)


@evaluate_datasets
def circuit_from_dict(data):
    """Build a NeuronGraph from wire-format data.

    Parameters
    ----------
    data : dict or Dataset
        Wire-format circuit.

    Returns
    -------
    graph : NeuronGraph
    errors : list of CircuitError
        One entry per rejected neuron or connection.
    """
    graph = NeuronGraph()
    errors = []

    for entry in data.get("neurons", []):
        try:
            neuron = _neuron_from_entry(entry)
        except (KeyError, TypeError, ValueError) as err:
            errors.append(InvalidKind(f"Malformed neuron entry {entry!r}: {err}"))
            continue
        outcome = graph.add_neuron(neuron)
        if not outcome:
            errors.append(outcome.error)

    for entry in data.get("connections", []):
        try:
            source, target = entry["from"], entry["to"]
            weight = entry["weight"]
        except (KeyError, TypeError):
            errors.append(CircuitError(f"Malformed connection entry {entry!r}"))
            continue
        outcome = graph.add_connection(source, target,
                                       entry.get("kind", DEFAULT_KIND), weight)
        if not outcome:
            errors.append(outcome.error)

    if errors:
        LOG.warning("Loaded circuit with %d rejected entries", len(errors))
    return graph, errors


# ---------------------------------------------------------------------------
# DataFrames
# ---------------------------------------------------------------------------

def neurons_to_frame(graph):
    """Neuron table, one row per neuron."""
    return pd.DataFrame([n.to_dict() for n in graph.neurons], columns=NEURON_COLUMNS)


def connections_to_frame(graph):
    """Edge table with the presynaptic neurotransmitter, one row per connection."""
    from wormlab.connectome.palette import NEUROTRANSMITTERS

    edges = pd.DataFrame([c.to_dict() for c in graph.connections],
                         columns=CONNECTION_COLUMNS)
    edges["pre_nt"] = edges["from"].map(NEUROTRANSMITTERS).fillna("unknown")
    return edges


def circuit_from_frames(neurons, edges):
    """Build a NeuronGraph from neuron and edge DataFrames.

    Parameters
    ----------
    neurons : pd.DataFrame
        Must have an "id" column; other NEURON_COLUMNS are optional.
    edges : pd.DataFrame
        Must have "from", "to" and "weight"; "kind" is optional.

    Returns
    -------
    graph : NeuronGraph
    errors : list of CircuitError
    """
    ids = set(neurons["id"])
    valid = edges["from"].isin(ids) & edges["to"].isin(ids)
    if not valid.all():
        LOG.warning("%d edges name neurons not in the neuron table",
                    int((~valid).sum()))

    neuron_records = [
        {k: v for k, v in row.items() if not pd.isna(v)}
        for row in neurons.to_dict("records")
    ]
    edge_records = edges.to_dict("records")
    for record in edge_records:
        if "kind" not in record or pd.isna(record["kind"]):
            record["kind"] = DEFAULT_KIND
        # Weights are left as read; add_connection rejects bad ones.
        if isinstance(record["weight"], np.generic):
            record["weight"] = record["weight"].item()

    return circuit_from_dict({"neurons": neuron_records,
                              "connections": edge_records})


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def circuit_dataset(path):
    """A LocalDataset for a circuit file (JSON or YAML, by extension)."""
    path = Path(path)
    return LocalDataset(name=path.stem, ftype=ftype_of(path), origin=path,
                        description="Learner circuit")


def load_circuit(path):
    """Load a circuit file. Returns (graph, errors)."""
    return circuit_from_dict(circuit_dataset(path))


def save_circuit(graph, path):
    """Write a circuit to a JSON or YAML file."""
    circuit_dataset(path).save(circuit_to_dict(graph), path)
    return Path(path)


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------

MergeConflict = namedtuple("MergeConflict",
                           ["type", "description", "existing_id", "incoming_id"])

MergeReport = namedtuple("MergeReport", ["graph", "conflicts", "stats"])
MergeReport.__doc__ = """Result of merge_circuits.

graph is a new NeuronGraph; conflicts lists MergeConflicts in the order
they were met; stats counts added, skipped and replaced elements.
"""

MERGE_STRATEGIES = ("skip", "replace")


def merge_circuits(base, incoming, strategy="skip"):
    """Merge `incoming` into a copy of `base`.

    Parameters
    ----------
    base, incoming : NeuronGraph or CircuitSnapshot
        Neither is modified.
    strategy : {"skip", "replace"}
        On a neuron id or (from, to) clash, keep the base element ("skip")
        or take the incoming one ("replace"). A gap junction also clashes
        with a connection on the reverse pair, and "replace" drops every
        connection it clashes with.

    Returns
    -------
    MergeReport
    """
    if strategy not in MERGE_STRATEGIES:
        raise ValueError(f"Unknown merge strategy {strategy!r}; "
                         f"expected one of {MERGE_STRATEGIES}")

    neurons = {n.id: n for n in base.neurons}
    connections = {c.pair: c for c in base.connections}
    conflicts = []
    stats = {"neurons_added": 0, "neurons_skipped": 0, "neurons_replaced": 0,
             "connections_added": 0, "connections_skipped": 0,
             "connections_replaced": 0}

    for neuron in incoming.neurons:
        if neuron.id not in neurons:
            neurons[neuron.id] = neuron
            stats["neurons_added"] += 1
            continue
        conflicts.append(MergeConflict("duplicate_neuron",
                                       f"Neuron {neuron.id} exists in both circuits",
                                       neuron.id, neuron.id))
        if strategy == "replace":
            neurons[neuron.id] = neuron
            stats["neurons_replaced"] += 1
        else:
            stats["neurons_skipped"] += 1

    for conn in incoming.connections:
        clashes = _clashing(connections, conn)
        if not clashes:
            connections[conn.pair] = conn
            stats["connections_added"] += 1
            continue
        for clash in clashes:
            conflicts.append(MergeConflict(
                "duplicate_connection",
                f"Connection {conn.source} → {conn.target} clashes with "
                f"{clash.source} → {clash.target}",
                f"{clash.source} → {clash.target}",
                f"{conn.source} → {conn.target}"))
        if strategy == "replace":
            for clash in clashes:
                del connections[clash.pair]
            connections[conn.pair] = conn
            stats["connections_replaced"] += 1
        else:
            stats["connections_skipped"] += 1

    graph = NeuronGraph()
    for neuron in neurons.values():
        graph.add_neuron(neuron)
    for pair in sorted(connections):
        conn = connections[pair]
        result = graph.add_connection(conn.source, conn.target,
                                      conn.kind, conn.weight)
        if not result:
            conflicts.append(MergeConflict(
                "rejected_connection", str(result.error),
                None, f"{conn.source} → {conn.target}"))
    LOG.info("Merged circuits: %d neurons, %d connections, %d conflicts",
             len(graph), len(graph.connections), len(conflicts))
    return MergeReport(graph=graph, conflicts=conflicts, stats=stats)


def _clashing(connections, conn):
    """Every connection in `connections` that `conn` would duplicate.

    That is the same (from, to) pair, and the reverse pair when either
    side is a gap junction.
    """
    clashes = []
    existing = connections.get(conn.pair)
    if existing is not None:
        clashes.append(existing)
    reverse = connections.get((conn.target, conn.source))
    if reverse is not None and (conn.kind.is_symmetric or reverse.kind.is_symmetric):
        clashes.append(reverse)
    return clashes
