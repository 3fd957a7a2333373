"""The reference connectome: curated ground truth per behavior.

For each curated behavior the reference lists the neurons and connections
of a minimal biological circuit, and named pathways (groups of neurons
that must be present together). The data ships as a YAML file and is read
once per process through a CuratedDataset; nothing here can be mutated
after loading, so one instance is shared by every validation run.

Usage:
    from wormlab.connectome import init_reference, get_reference
    init_reference()                       # once, at process start
    ref = get_reference().for_behavior("forward_movement")
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import pandas as pd

from wormlab.bench import CuratedDataset, evaluate_datasets
from wormlab.circuit.types import Behavior, SynapseKind, coerce
from wormlab.utils import get_logger

LOG = get_logger("connectome.reference")

DEFAULT_REFERENCE_PATH = Path(__file__).parent / "data" / "reference.yaml"


# ---------------------------------------------------------------------------
# Reference records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceConnection:
    """A connection of the reference circuit, with its reference weight."""
    source: str
    target: str
    kind: SynapseKind
    weight: float

    @property
    def pair(self):
        return (self.source, self.target)

    def to_dict(self):
        return {"from": self.source, "to": self.target,
                "kind": self.kind.value, "weight": self.weight}


@dataclass(frozen=True)
class Pathway:
    """A named group of neurons that earns credit only when complete."""
    name: str
    neurons: frozenset
    description: str = ""

    def covered_by(self, neuron_ids):
        """True if every member is among `neuron_ids`."""
        return self.neurons <= frozenset(neuron_ids)

    def missing_from(self, neuron_ids):
        """Sorted members absent from `neuron_ids`."""
        return sorted(self.neurons - frozenset(neuron_ids))

    def to_dict(self):
        return {"name": self.name, "neurons": sorted(self.neurons),
                "description": self.description}


@dataclass(frozen=True)
class BehaviorReference:
    """Ground truth for one behavior.

    Attributes
    ----------
    behavior : Behavior
    required_neurons : frozenset of str
    required_connections : tuple of ReferenceConnection
        Sorted by (from, to).
    pathways : tuple of Pathway
    description : str
    """
    behavior: Behavior
    required_neurons: frozenset
    required_connections: tuple
    pathways: tuple = ()
    description: str = ""

    @property
    def required_pairs(self):
        """Frozenset of (from, to) pairs of the required connections."""
        return frozenset(c.pair for c in self.required_connections)

    def connection(self, source, target):
        """The reference connection source → target, or None."""
        for conn in self.required_connections:
            if conn.pair == (source, target):
                return conn
        return None

    def to_dict(self):
        return {
            "behavior": self.behavior.value,
            "description": self.description,
            "required_neurons": sorted(self.required_neurons),
            "required_connections": [c.to_dict() for c in self.required_connections],
            "pathways": [p.to_dict() for p in self.pathways],
        }


@dataclass(frozen=True)
class ReferenceConnectome:
    """Versioned, read-only mapping behavior → BehaviorReference."""
    version: str
    behaviors: MappingProxyType
    provenance: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def for_behavior(self, behavior):
        """Reference for `behavior`, or None when nothing is curated.

        Accepts a Behavior or its string value; unknown strings also give
        None.
        """
        try:
            behavior = coerce(Behavior, behavior)
        except ValueError:
            return None
        return self.behaviors.get(behavior)

    @property
    def curated_behaviors(self):
        """Behaviors that have a reference, in declaration order."""
        return list(self.behaviors)

    def pathways(self):
        """All (behavior, Pathway) pairs, deduplicated by pathway name."""
        seen = set()
        result = []
        for behavior, ref in self.behaviors.items():
            for pathway in ref.pathways:
                if pathway.name in seen:
                    continue
                seen.add(pathway.name)
                result.append((behavior, pathway))
        return result

    def connections_frame(self):
        """All reference connections as a DataFrame, one row per behavior and edge."""
        rows = [
            {"behavior": behavior.value, **conn.to_dict()}
            for behavior, ref in self.behaviors.items()
            for conn in ref.required_connections
        ]
        return pd.DataFrame(rows, columns=["behavior", "from", "to", "kind", "weight"])

    def to_dict(self):
        return {
            "version": self.version,
            "provenance": dict(self.provenance),
            "behaviors": {b.value: ref.to_dict() for b, ref in self.behaviors.items()},
        }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _parse_behavior(behavior, entry):
    neurons = frozenset(entry.get("required_neurons", []))

    connections = []
    for raw in entry.get("required_connections", []):
        conn = ReferenceConnection(
            source=raw["from"],
            target=raw["to"],
            kind=coerce(SynapseKind, raw.get("kind", "chemical_excitatory")),
            weight=raw["weight"],
        )
        stray = {conn.source, conn.target} - neurons
        if stray:
            raise ValueError(
                f"Reference for {behavior.value}: connection {conn.source} → "
                f"{conn.target} uses neurons not in required_neurons: {sorted(stray)}"
            )
        connections.append(conn)
    pairs = [c.pair for c in connections]
    if len(set(pairs)) != len(pairs):
        raise ValueError(f"Reference for {behavior.value} lists a connection twice")

    pathways = []
    for raw in entry.get("pathways", []):
        pathway = Pathway(name=raw["name"],
                          neurons=frozenset(raw["neurons"]),
                          description=raw.get("description", ""))
        if not pathway.neurons <= neurons:
            raise ValueError(
                f"Reference for {behavior.value}: pathway '{pathway.name}' has "
                f"members not in required_neurons: "
                f"{sorted(pathway.neurons - neurons)}"
            )
        pathways.append(pathway)

    return BehaviorReference(
        behavior=behavior,
        required_neurons=neurons,
        required_connections=tuple(sorted(connections, key=lambda c: c.pair)),
        pathways=tuple(pathways),
        description=entry.get("description", ""),
    )


@evaluate_datasets
def reference_from_data(data):
    """Build a ReferenceConnectome from parsed YAML/JSON data.

    Parameters
    ----------
    data : dict or Dataset
        Mapping with "version" and "behaviors" keys.

    Raises
    ------
    ValueError
        If the data names an unknown behavior or is internally inconsistent.
    """
    if not isinstance(data, dict) or "behaviors" not in data:
        raise ValueError("Reference data must be a mapping with a 'behaviors' key")

    behaviors = {}
    for name, entry in data["behaviors"].items():
        try:
            behavior = Behavior(name)
        except ValueError:
            raise ValueError(
                f"Unknown behavior in reference data: {name!r}. "
                f"Known: {[b.value for b in Behavior]}"
            ) from None
        behaviors[behavior] = _parse_behavior(behavior, entry or {})

    provenance = {k: data[k] for k in ("author", "source") if k in data}
    reference = ReferenceConnectome(
        version=str(data.get("version", "unversioned")),
        behaviors=MappingProxyType(behaviors),
        provenance=MappingProxyType(provenance),
    )
    LOG.info("Reference connectome %s: %d behaviors, %d connections",
             reference.version, len(behaviors),
             sum(len(r.required_connections) for r in behaviors.values()))
    return reference


def reference_dataset(path=None):
    """The CuratedDataset describing the reference file at `path`."""
    return CuratedDataset(
        name="reference_connectome",
        ftype="yaml",
        origin=Path(path) if path is not None else DEFAULT_REFERENCE_PATH,
        description="Minimal C. elegans circuits per behavior",
        author="wormlab curators",
        source="OpenWorm c302; WormAtlas",
    )


def load_reference(path=None):
    """Load a fresh ReferenceConnectome from a YAML file.

    Parameters
    ----------
    path : str or Path, optional
        Defaults to the reference shipped with the package.
    """
    return reference_from_data(reference_dataset(path))


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_REFERENCE = None


def init_reference(path=None, force=False):
    """Load the process-wide reference connectome.

    Call once at process start. Later calls return the loaded instance
    unless `force` is set.
    """
    global _REFERENCE
    if _REFERENCE is None or force:
        _REFERENCE = load_reference(path)
    return _REFERENCE


def get_reference():
    """The process-wide reference connectome.

    Raises
    ------
    RuntimeError
        If init_reference() has not been called.
    """
    if _REFERENCE is None:
        raise RuntimeError(
            "Reference connectome not initialized; call init_reference() first"
        )
    return _REFERENCE
