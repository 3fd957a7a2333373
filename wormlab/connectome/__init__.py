"""connectome — Curated C. elegans ground truth.

The neuron palette learners build from, and the reference circuits that
validation scores against.
"""

from .palette import (
    NEURON_PALETTE,
    NEUROTRANSMITTERS,
    palette_neuron,
    neuron_type,
    list_neurons,
)
from .reference import (
    ReferenceConnection,
    Pathway,
    BehaviorReference,
    ReferenceConnectome,
    reference_from_data,
    reference_dataset,
    load_reference,
    init_reference,
    get_reference,
)
