"""Score a circuit against the reference connectome.

Connections are compared by (from, to) identity, regardless of kind.
Extra connections lower accuracy but are reported as "extra", not as
wrong: they may be real wiring that lies outside the minimal reference
circuit for the behavior.

When no reference is curated for the behavior, the result carries
has_reference=False and no scores, so callers can hide the scoring
instead of showing a misleading F.
"""

from dataclasses import dataclass

import pandas as pd

from wormlab.circuit.graph import takes_snapshot
from wormlab.circuit.types import Behavior
from wormlab.connectome.reference import get_reference
from wormlab.utils import get_logger
from wormlab.validation.grading import (
    ScoreBreakdown,
    SCORE_WEIGHTS,
    overall_score,
    grade_for,
    award_badges,
    compose_feedback,
)

LOG = get_logger("validation.validator")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a circuit for one behavior.

    Scores and grade are None when has_reference is False.

    Attributes
    ----------
    has_reference : bool
    behavior : str
        Behavior value as requested.
    reference_version : str or None
    overall_score : int or None
    accuracy_score, completeness_score, pathway_score : float or None
    grade : str or None
    badges, feedback : tuple of str
    correct_connections, missing_connections, extra_connections : tuple
        Sorted (from, to) pairs.
    missing_neurons : tuple of str
    covered_pathways : tuple of str
    biologically_plausible : bool or None
    revision : int
        Revision of the circuit snapshot that was validated.
    circuit_id : int
        Identity of the graph that snapshot came from.
    """
    has_reference: bool
    behavior: str
    reference_version: str = None
    overall_score: int = None
    accuracy_score: float = None
    completeness_score: float = None
    pathway_score: float = None
    grade: str = None
    badges: tuple = ()
    feedback: tuple = ()
    correct_connections: tuple = ()
    missing_connections: tuple = ()
    extra_connections: tuple = ()
    missing_neurons: tuple = ()
    covered_pathways: tuple = ()
    biologically_plausible: bool = None
    revision: int = 0
    circuit_id: int = 0

    def to_dict(self):
        """Serialize to plain data."""
        return {
            "hasReference": self.has_reference,
            "behavior": self.behavior,
            "referenceVersion": self.reference_version,
            "overallScore": self.overall_score,
            "accuracyScore": self.accuracy_score,
            "completenessScore": self.completeness_score,
            "pathwayScore": self.pathway_score,
            "grade": self.grade,
            "badges": list(self.badges),
            "feedback": list(self.feedback),
            "correctConnections": [list(p) for p in self.correct_connections],
            "missingConnections": [list(p) for p in self.missing_connections],
            "extraConnections": [list(p) for p in self.extra_connections],
            "missingNeurons": list(self.missing_neurons),
            "coveredPathways": list(self.covered_pathways),
            "biologicallyPlausible": self.biologically_plausible,
            "revision": self.revision,
            "circuitId": self.circuit_id,
        }

    def to_frame(self):
        """Edge table with a status column: correct, missing or extra."""
        rows = [
            {"from": a, "to": b, "status": status}
            for status, pairs in (("correct", self.correct_connections),
                                  ("missing", self.missing_connections),
                                  ("extra", self.extra_connections))
            for a, b in pairs
        ]
        return pd.DataFrame(rows, columns=["from", "to", "status"])


def _behavior_label(behavior):
    return behavior.value if isinstance(behavior, Behavior) else str(behavior)


def _percent(numerator, denominator):
    return 100.0 * numerator / max(1, denominator)


def no_reference_result(behavior, reference_version=None, revision=0, circuit_id=0):
    """The distinguished result for a behavior without ground truth."""
    label = _behavior_label(behavior)
    return ValidationResult(
        has_reference=False,
        behavior=label,
        reference_version=reference_version,
        feedback=(f"No reference circuit is curated for '{label}'; "
                  "scoring is not available",),
        revision=revision,
        circuit_id=circuit_id,
    )


@takes_snapshot
def validate(circuit, behavior, connectome=None, weights=SCORE_WEIGHTS):
    """Validate a circuit against the reference for `behavior`.

    Parameters
    ----------
    circuit : NeuronGraph or CircuitSnapshot
    behavior : Behavior or str
    connectome : ReferenceConnectome, optional
        Defaults to the process-wide reference (see init_reference).
    weights : dict
        Weights of the accuracy, completeness and pathway scores.

    Returns
    -------
    ValidationResult
    """
    if connectome is None:
        connectome = get_reference()

    reference = connectome.for_behavior(behavior)
    if reference is None:
        LOG.info("No reference for behavior %s", _behavior_label(behavior))
        return no_reference_result(behavior, connectome.version,
                                   circuit.revision, circuit.circuit_id)

    built = circuit.pairs
    required = reference.required_pairs
    neuron_ids = circuit.neuron_ids

    correct = sorted(built & required)
    missing = sorted(required - built)
    extra = sorted(built - required)
    missing_neurons = sorted(reference.required_neurons - neuron_ids)
    covered = [p.name for p in reference.pathways if p.covered_by(neuron_ids)]

    # Overall is combined from the exact ratios; only the reported
    # components are rounded.
    exact = (_percent(len(correct), len(correct) + len(extra)),
             _percent(len(correct), len(required)),
             _percent(len(covered), len(reference.pathways)))
    overall = overall_score(*exact, weights=weights)
    accuracy, completeness, pathway = (round(score, 2) for score in exact)

    breakdown = ScoreBreakdown(
        behavior=reference.behavior.value,
        overall=overall,
        accuracy=accuracy,
        completeness=completeness,
        pathway=pathway,
        correct=correct,
        missing=missing,
        extra=extra,
        missing_neurons=missing_neurons,
        covered_pathways=covered,
        n_neurons=circuit.n_neurons,
        n_connections=circuit.n_connections,
        plausible=len(extra) <= 2 * len(correct),
    )

    LOG.info("Validated %s: overall %d (acc %.1f, comp %.1f, path %.1f)",
             breakdown.behavior, overall, accuracy, completeness, pathway)

    return ValidationResult(
        has_reference=True,
        behavior=breakdown.behavior,
        reference_version=connectome.version,
        overall_score=overall,
        accuracy_score=accuracy,
        completeness_score=completeness,
        pathway_score=pathway,
        grade=grade_for(overall),
        badges=tuple(award_badges(breakdown)),
        feedback=tuple(compose_feedback(breakdown)),
        correct_connections=tuple(correct),
        missing_connections=tuple(missing),
        extra_connections=tuple(extra),
        missing_neurons=tuple(missing_neurons),
        covered_pathways=tuple(covered),
        biologically_plausible=breakdown.plausible,
        revision=circuit.revision,
        circuit_id=circuit.circuit_id,
    )
