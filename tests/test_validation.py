"""Tests for scoring, grading, badges and feedback."""

import json

import pytest

from wormlab.circuit import NeuronGraph, SynapseKind, Behavior
from wormlab.connectome import load_reference
from wormlab.validation import (
    validate, ValidationResult, no_reference_result,
    GRADES, BADGE_RULES, grade_for, overall_score, round_half_up,
)


EXC = SynapseKind.CHEMICAL_EXCITATORY


@pytest.fixture(scope="module")
def reference():
    return load_reference()


def _reference_graph(reference, behavior):
    ref = reference.for_behavior(behavior)
    graph = NeuronGraph.from_palette(sorted(ref.required_neurons))
    for conn in ref.required_connections:
        graph.add_connection(conn.source, conn.target, conn.kind, conn.weight)
    return graph


@pytest.fixture
def partial_forward():
    """All forward neurons; two reference connections and one extra."""
    graph = NeuronGraph.from_palette(
        ["PLML", "PLMR", "AVBL", "AVBR", "DB1", "DB2", "VB1"])
    graph.add_connection("PLML", "AVBL", EXC, 6)
    graph.add_connection("AVBL", "DB1", EXC, 12)
    graph.add_connection("DB1", "VB1", EXC, 3)
    return graph


# ---------------------------------------------------------------------------
# Grading helpers
# ---------------------------------------------------------------------------

class TestGrading:
    @pytest.mark.parametrize("score, grade", [
        (100, "A+"), (95, "A+"), (94, "A"), (85, "A"), (84, "B"), (70, "B"),
        (69, "C"), (50, "C"), (49, "D"), (30, "D"), (29, "F"), (0, "F"),
    ])
    def test_cut_points(self, score, grade):
        assert grade_for(score) == grade

    def test_grade_is_monotonic(self):
        ranks = [GRADES[::-1].index(grade_for(s)) for s in range(101)]
        assert ranks == sorted(ranks)

    def test_round_half_up(self):
        assert round_half_up(66.5) == 67
        assert round_half_up(62.5) == 63
        assert round_half_up(66.49) == 66

    def test_overall_is_clamped(self):
        assert overall_score(100, 100, 100) == 100
        assert overall_score(0, 0, 0) == 0
        assert overall_score(100, 100, 100, {"accuracy": 1, "completeness": 1,
                                             "pathway": 1}) == 100

    def test_badge_names_unique(self):
        names = [rule.name for rule in BADGE_RULES]
        assert len(names) == len(set(names))


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

class TestValidate:
    def test_perfect_forward_circuit(self, reference):
        graph = _reference_graph(reference, "forward_movement")
        result = validate(graph, "forward_movement", reference)
        assert isinstance(result, ValidationResult)
        assert result.has_reference
        assert result.overall_score == 100
        assert result.grade == "A+"
        assert result.missing_connections == ()
        assert result.extra_connections == ()
        assert result.missing_neurons == ()
        assert result.covered_pathways == ("Posterior Touch Reflex",
                                           "Forward Locomotion")

    def test_perfect_forward_badges(self, reference):
        graph = _reference_graph(reference, "forward_movement")
        badges = validate(graph, Behavior.FORWARD_MOVEMENT, reference).badges
        assert badges == ("Connectome Master", "Complete Circuit", "Perfect Match",
                          "High Accuracy", "Valid Pathway", "Scientifically Sound")

    def test_large_circuit_badges(self, reference):
        graph = _reference_graph(reference, "backward_movement")
        badges = validate(graph, "backward_movement", reference).badges
        assert "Connection Master" in badges
        assert "Complex Network" in badges

    def test_partial_circuit(self, reference, partial_forward):
        result = validate(partial_forward, "forward_movement", reference)
        assert result.correct_connections == (("AVBL", "DB1"), ("PLML", "AVBL"))
        assert result.extra_connections == (("DB1", "VB1"),)
        assert result.missing_connections == (("AVBR", "VB1"), ("PLMR", "AVBR"))
        assert result.accuracy_score == 66.67
        assert result.completeness_score == 50.0
        assert result.pathway_score == 100.0
        assert result.overall_score == 67
        assert result.grade == "C"
        assert result.biologically_plausible

    def test_partition_of_connections(self, reference, partial_forward):
        result = validate(partial_forward, "forward_movement", reference)
        ref = reference.for_behavior("forward_movement")
        built = set(c.pair for c in partial_forward.connections)
        assert set(result.correct_connections) | set(result.extra_connections) == built
        assert not set(result.correct_connections) & set(result.extra_connections)
        assert (set(result.correct_connections)
                | set(result.missing_connections)) == ref.required_pairs

    def test_kind_does_not_matter(self, reference):
        graph = NeuronGraph.from_palette(["AVBL", "DB1"])
        graph.add_connection("AVBL", "DB1", SynapseKind.CHEMICAL_INHIBITORY, 2)
        result = validate(graph, "forward_movement", reference)
        assert result.correct_connections == (("AVBL", "DB1"),)

    def test_empty_circuit(self, reference):
        result = validate(NeuronGraph(), "backward_movement", reference)
        assert result.overall_score == 0
        assert result.grade == "F"
        assert result.badges == ()
        assert "Create connections between neurons to form a circuit" in result.feedback

    def test_implausible_circuit(self, reference):
        graph = NeuronGraph.from_palette(["PLML", "AVBL", "DB1", "VB1"])
        graph.add_connection("PLML", "AVBL", EXC, 6)
        graph.add_connection("DB1", "VB1", EXC, 3)
        graph.add_connection("VB1", "PLML", EXC, 3)
        graph.add_connection("AVBL", "VB1", EXC, 3)
        result = validate(graph, "forward_movement", reference)
        assert not result.biologically_plausible
        assert "Scientifically Sound" not in result.badges

    def test_idempotent(self, reference, partial_forward):
        first = validate(partial_forward, "forward_movement", reference)
        second = validate(partial_forward, "forward_movement", reference)
        assert first == second

    def test_feedback_starts_with_summary(self, reference, partial_forward):
        result = validate(partial_forward, "forward_movement", reference)
        assert result.feedback[0] == "Overall score 67/100 (grade C) for forward_movement"
        assert "Missing neurons" not in " ".join(result.feedback)

    def test_default_connectome_is_process_wide(self, reference, monkeypatch):
        import wormlab.connectome.reference as reference_module
        monkeypatch.setattr(reference_module, "_REFERENCE", reference)
        graph = _reference_graph(reference, "head_wiggle")
        assert validate(graph, "head_wiggle").overall_score == 100

    def test_overall_uses_unrounded_components(self, reference):
        graph = NeuronGraph.from_palette(
            ["PLML", "PLMR", "AVBL", "AVBR", "DB1", "DB2", "VB1"])
        graph.add_connection("PLML", "AVBL", EXC, 6)
        for source, target in [("DB1", "VB1"), ("VB1", "DB2"), ("DB2", "PLML"),
                               ("PLMR", "DB1"), ("AVBR", "DB2"), ("AVBL", "VB1")]:
            graph.add_connection(source, target, EXC, 3)
        weights = {"accuracy": 3.534, "completeness": 0.0, "pathway": 0.0}
        result = validate(graph, "forward_movement", reference, weights=weights)
        # 3.534 * 100/7 is 50.49; 3.534 * 14.29 would round to 51
        assert result.accuracy_score == 14.29
        assert result.overall_score == 50

    def test_circuit_identity_is_recorded(self, reference, partial_forward):
        result = validate(partial_forward, "forward_movement", reference)
        assert result.circuit_id == partial_forward.circuit_id
        assert result.to_dict()["circuitId"] == partial_forward.circuit_id
        other = NeuronGraph.from_palette(["AVBL"])
        assert other.is_stale(result)
        assert not partial_forward.is_stale(result)


class TestNoReference:
    def test_unknown_behavior(self, reference):
        result = validate(NeuronGraph(), "unknown_behavior", reference)
        assert not result.has_reference
        assert result.overall_score is None
        assert result.grade is None
        assert result.behavior == "unknown_behavior"
        assert len(result.feedback) == 1

    def test_uncurated_behavior(self, reference):
        result = validate(NeuronGraph(), Behavior.OMEGA_TURN, reference)
        assert not result.has_reference
        assert result.reference_version == reference.version

    def test_no_reference_result(self):
        result = no_reference_result("swim", revision=4)
        assert result.revision == 4
        assert result.badges == ()


class TestSerialization:
    def test_to_dict_is_json(self, reference, partial_forward):
        d = validate(partial_forward, "forward_movement", reference).to_dict()
        payload = json.loads(json.dumps(d))
        assert payload["overallScore"] == 67
        assert payload["extraConnections"] == [["DB1", "VB1"]]
        assert payload["hasReference"] is True

    def test_to_frame(self, reference, partial_forward):
        df = validate(partial_forward, "forward_movement", reference).to_frame()
        assert list(df.columns) == ["from", "to", "status"]
        assert df["status"].value_counts().to_dict() == {
            "correct": 2, "missing": 2, "extra": 1}
