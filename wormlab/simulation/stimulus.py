"""Stimulus entry table: where each stimulus enters the circuit.

Each stimulus maps to the canonical sensory neurons that detect it. The
table is a reduced analogue of the real connectome: posterior touch also
seeds the AVA backward command neurons, folding PLM's direct synapses onto
AVA into the entry set.
"""

from wormlab.circuit.types import Stimulus, coerce

ENTRY_TABLE = {
    Stimulus.TOUCH_HEAD: ("ALML", "ALMR", "AVM"),
    Stimulus.TOUCH_TAIL: ("PLML", "PLMR", "AVAL", "AVAR"),
    Stimulus.SMELL_FOOD: ("ASEL", "ASER", "AWC"),
    Stimulus.NONE: (),
}


def entry_neurons(stimulus, neuron_ids):
    """Entry neurons of `stimulus` present among `neuron_ids`, sorted by id.

    Parameters
    ----------
    stimulus : Stimulus or str
    neuron_ids : iterable of str
        Ids of the neurons in the circuit.

    Returns
    -------
    list of str
    """
    stimulus = coerce(Stimulus, stimulus)
    present = set(neuron_ids)
    return sorted(nid for nid in ENTRY_TABLE[stimulus] if nid in present)
