"""Closed vocabularies and the two immutable circuit elements.

Neuron and synapse kinds, stimuli and behaviors are Enums, so every table
keyed on them (entry table, decision table, reference data) can be checked
for exhaustiveness.
"""

from dataclasses import dataclass
from enum import Enum


class NeuronType(Enum):
    """Functional class of a neuron."""
    SENSORY = "sensory"
    INTERNEURON = "interneuron"
    COMMAND = "command"
    MOTOR = "motor"


class SynapseKind(Enum):
    """Kind of a connection between two neurons."""
    CHEMICAL_EXCITATORY = "chemical_excitatory"
    CHEMICAL_INHIBITORY = "chemical_inhibitory"
    ELECTRICAL = "electrical"

    @property
    def sign(self):
        """+1 for excitatory and electrical coupling, -1 for inhibitory."""
        return -1 if self is SynapseKind.CHEMICAL_INHIBITORY else 1

    @property
    def is_symmetric(self):
        """Gap junctions conduct in both directions."""
        return self is SynapseKind.ELECTRICAL


class Stimulus(Enum):
    """External stimulus applied to the worm."""
    TOUCH_HEAD = "touch_head"
    TOUCH_TAIL = "touch_tail"
    SMELL_FOOD = "smell_food"
    NONE = "none"


class Behavior(Enum):
    """Behavior predicted from the active command and motor neurons."""
    FORWARD_MOVEMENT = "forward_movement"
    BACKWARD_MOVEMENT = "backward_movement"
    OMEGA_TURN = "omega_turn"
    HEAD_WIGGLE = "head_wiggle"
    NO_MOVEMENT = "no_movement"


def coerce(enum_cls, value):
    """Return `value` as a member of `enum_cls`.

    Accepts a member or its string value. Raises ValueError otherwise.
    """
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)


@dataclass(frozen=True)
class Neuron:
    """A neuron, identified by its canonical connectome name.

    Attributes
    ----------
    id : str
        Canonical id (e.g., "AVAL").
    type : NeuronType
        Functional class.
    name : str
        Display name. Defaults to the id.
    function : str
        Short functional tag (e.g., "backward_command").
    description : str
        One-line description.
    """
    id: str
    type: NeuronType
    name: str = ""
    function: str = ""
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "type", coerce(NeuronType, self.type))
        if not self.name:
            object.__setattr__(self, "name", self.id)

    def to_dict(self):
        """Serialize to a plain dict."""
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "function": self.function,
            "description": self.description,
        }


@dataclass(frozen=True)
class Connection:
    """A synapse from `source` to `target`.

    Serialized with the keys "from" and "to".
    """
    source: str
    target: str
    kind: SynapseKind
    weight: float

    @property
    def pair(self):
        return (self.source, self.target)

    def touches(self, neuron_id):
        return neuron_id in (self.source, self.target)

    def to_dict(self):
        """Serialize to a plain dict."""
        return {
            "from": self.source,
            "to": self.target,
            "kind": self.kind.value,
            "weight": self.weight,
        }
