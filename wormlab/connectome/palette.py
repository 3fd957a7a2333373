"""The neuron palette: canonical C. elegans neurons available to learners.

Ids follow WormAtlas naming. The palette is a reduced subset of the 302
neurons, covering the touch reflex, chemotaxis and locomotion circuits.

References:
    White et al. 1986 — The structure of the nervous system of C. elegans
    Chalfie et al. 1985 — The neural circuit for touch sensitivity
    OpenWorm c302 — neuron annotations
"""

from wormlab.circuit.types import Neuron, NeuronType

SENSORY = NeuronType.SENSORY
INTERNEURON = NeuronType.INTERNEURON
COMMAND = NeuronType.COMMAND
MOTOR = NeuronType.MOTOR


def _neuron(nid, ntype, function, description):
    return Neuron(id=nid, type=ntype, name=nid,
                  function=function, description=description)


# ---------------------------------------------------------------------------
# The palette
# ---------------------------------------------------------------------------

NEURON_PALETTE = {n.id: n for n in [
    # Mechanosensory
    _neuron("ALML", SENSORY, "touch_anterior", "Left anterior touch receptor"),
    _neuron("ALMR", SENSORY, "touch_anterior", "Right anterior touch receptor"),
    _neuron("AVM", SENSORY, "touch_ventral", "Ventral touch receptor"),
    _neuron("PLML", SENSORY, "touch_posterior", "Left posterior touch receptor"),
    _neuron("PLMR", SENSORY, "touch_posterior", "Right posterior touch receptor"),

    # Chemosensory
    _neuron("ASEL", SENSORY, "chemosensory", "Left amphid sensory neuron (salt attraction)"),
    _neuron("ASER", SENSORY, "chemosensory", "Right amphid sensory neuron (salt avoidance)"),
    _neuron("AWC", SENSORY, "olfactory", "Olfactory neuron for odor detection"),

    # Command interneurons
    _neuron("AVAL", COMMAND, "backward_command", "Left backward command interneuron"),
    _neuron("AVAR", COMMAND, "backward_command", "Right backward command interneuron"),
    _neuron("AVBL", COMMAND, "forward_command", "Left forward command interneuron"),
    _neuron("AVBR", COMMAND, "forward_command", "Right forward command interneuron"),
    _neuron("AVDL", COMMAND, "backward_command", "Left reversal interneuron"),
    _neuron("AVDR", COMMAND, "backward_command", "Right reversal interneuron"),

    # Processing interneurons
    _neuron("AIYL", INTERNEURON, "integration", "Left integration interneuron"),
    _neuron("AIYR", INTERNEURON, "integration", "Right integration interneuron"),
    _neuron("AIZL", INTERNEURON, "processing", "Left processing interneuron"),
    _neuron("AIZR", INTERNEURON, "processing", "Right processing interneuron"),
    _neuron("RIM", INTERNEURON, "locomotion", "Ring motor interneuron"),

    # Motor neurons
    _neuron("DA1", MOTOR, "backward_motion", "Dorsal A-type motor neuron 1 (backward)"),
    _neuron("DA2", MOTOR, "backward_motion", "Dorsal A-type motor neuron 2 (backward)"),
    _neuron("DB1", MOTOR, "forward_motion", "Dorsal B-type motor neuron 1 (forward)"),
    _neuron("DB2", MOTOR, "forward_motion", "Dorsal B-type motor neuron 2 (forward)"),
    _neuron("VA1", MOTOR, "backward_motion", "Ventral A-type motor neuron 1 (backward)"),
    _neuron("VB1", MOTOR, "forward_motion", "Ventral B-type motor neuron 1 (forward)"),
    _neuron("SMBD", MOTOR, "head_motion", "Dorsal head motor neuron"),
    _neuron("SMBV", MOTOR, "head_motion", "Ventral head motor neuron"),
]}


# Dominant neurotransmitter per palette neuron (WormAtlas)
NEUROTRANSMITTERS = {
    "ALML": "glutamate", "ALMR": "glutamate", "AVM": "glutamate",
    "PLML": "glutamate", "PLMR": "glutamate",
    "ASEL": "glutamate", "ASER": "glutamate", "AWC": "glutamate",
    "AVAL": "acetylcholine", "AVAR": "acetylcholine",
    "AVBL": "acetylcholine", "AVBR": "acetylcholine",
    "AVDL": "glutamate", "AVDR": "glutamate",
    "AIYL": "acetylcholine", "AIYR": "acetylcholine",
    "AIZL": "glutamate", "AIZR": "glutamate",
    "RIM": "tyramine",
    "DA1": "acetylcholine", "DA2": "acetylcholine",
    "DB1": "acetylcholine", "DB2": "acetylcholine",
    "VA1": "acetylcholine", "VB1": "acetylcholine",
    "SMBD": "acetylcholine", "SMBV": "acetylcholine",
}


def palette_neuron(neuron_id):
    """Look up a palette neuron by id.

    Raises
    ------
    KeyError
        If the id is not in the palette.
    """
    try:
        return NEURON_PALETTE[neuron_id]
    except KeyError:
        raise KeyError(
            f"{neuron_id} is not in the neuron palette. "
            f"Available: {', '.join(sorted(NEURON_PALETTE))}"
        ) from None


def neuron_type(neuron_id):
    """Palette type of a neuron id, or None if it is not in the palette."""
    neuron = NEURON_PALETTE.get(neuron_id)
    return neuron.type if neuron is not None else None


def list_neurons(ntype=None):
    """Sorted palette ids, optionally restricted to one NeuronType."""
    return sorted(nid for nid, n in NEURON_PALETTE.items()
                  if ntype is None or n.type is ntype)
