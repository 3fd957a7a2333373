"""wormlab — Circuit simulation and validation for C. elegans learning labs.

Learners assemble neurons and synapses from the C. elegans connectome;
wormlab predicts the behavior their circuit produces and scores it against
curated reference circuits.

Subpackages:
    bench        JSON/YAML circuit and reference files with provenance
    circuit      NeuronGraph data model, snapshots, circuit I/O and merge
    connectome   Neuron palette and the reference connectome
    simulation   Deterministic spreading-activation engine
    validation   Scores, grades, badges and feedback
    suggestions  Missing-connection and pathway hints
    session      Debounced, last-request-wins re-validation
"""

__version__ = "0.1.0"
