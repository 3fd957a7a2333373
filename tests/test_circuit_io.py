"""Tests for circuit exchange: dicts, DataFrames, files and merging."""

import pandas as pd
import pytest

from wormlab.circuit import (
    NeuronGraph, SynapseKind, NeuronType,
    circuit_to_dict, circuit_from_dict,
    neurons_to_frame, connections_to_frame, circuit_from_frames,
    load_circuit, save_circuit, merge_circuits,
    UnknownEndpoint, InvalidWeight, DuplicateId, MergeReport,
)


EXC = SynapseKind.CHEMICAL_EXCITATORY
GAP = SynapseKind.ELECTRICAL


@pytest.fixture
def head_touch():
    graph = NeuronGraph.from_palette(["ALML", "AVAL", "VA1"])
    graph.add_connection("ALML", "AVAL", EXC, 8)
    graph.add_connection("AVAL", "VA1", EXC, 10)
    return graph


# ---------------------------------------------------------------------------
# dict
# ---------------------------------------------------------------------------

class TestDict:
    def test_round_trip(self, head_touch):
        graph, errors = circuit_from_dict(circuit_to_dict(head_touch))
        assert errors == []
        assert graph.neurons == head_touch.neurons
        assert graph.connections == head_touch.connections

    def test_palette_fills_missing_fields(self):
        graph, errors = circuit_from_dict({"neurons": [{"id": "AVAL"}]})
        assert errors == []
        assert graph.neuron("AVAL").type is NeuronType.COMMAND
        assert graph.neuron("AVAL").function == "backward_command"

    def test_custom_neuron(self):
        graph, _ = circuit_from_dict({"neurons": [
            {"id": "XYZ", "type": "interneuron", "name": "Custom"}]})
        assert graph.neuron("XYZ").name == "Custom"

    def test_bad_entries_are_collected(self):
        data = {
            "neurons": [{"id": "AVAL"}, {"id": "VA1"}, {"id": "AVAL"},
                        {"id": "ODD"}],
            "connections": [
                {"from": "AVAL", "to": "VA1", "kind": "chemical_excitatory", "weight": 10},
                {"from": "AVAL", "to": "DB1", "weight": 5},
                {"from": "VA1", "to": "AVAL", "weight": 40},
                {"to": "AVAL", "weight": 5},
            ],
        }
        graph, errors = circuit_from_dict(data)
        assert [type(e).__name__ for e in errors] == [
            "DuplicateId", "InvalidKind", "UnknownEndpoint", "InvalidWeight",
            "CircuitError"]
        assert isinstance(errors[0], DuplicateId)
        assert isinstance(errors[2], UnknownEndpoint)
        assert isinstance(errors[3], InvalidWeight)
        assert [c.pair for c in graph.connections] == [("AVAL", "VA1")]

    def test_non_string_endpoint_is_rejected(self):
        graph, errors = circuit_from_dict({
            "neurons": [{"id": "AVAL"}],
            "connections": [{"from": ["AVAL"], "to": "AVAL", "weight": 5}],
        })
        assert len(errors) == 1
        assert isinstance(errors[0], UnknownEndpoint)
        assert graph.connections == ()

    def test_default_kind(self):
        graph, _ = circuit_from_dict({
            "neurons": [{"id": "AVAL"}, {"id": "VA1"}],
            "connections": [{"from": "AVAL", "to": "VA1", "weight": 10}],
        })
        assert graph.connection("AVAL", "VA1").kind is EXC


# ---------------------------------------------------------------------------
# DataFrames
# ---------------------------------------------------------------------------

class TestFrames:
    def test_neurons_frame(self, head_touch):
        df = neurons_to_frame(head_touch)
        assert list(df["id"]) == ["ALML", "AVAL", "VA1"]
        assert list(df["type"]) == ["sensory", "command", "motor"]

    def test_connections_frame_has_transmitter(self, head_touch):
        df = connections_to_frame(head_touch)
        assert list(df.columns) == ["from", "to", "kind", "weight", "pre_nt"]
        assert list(df["pre_nt"]) == ["glutamate", "acetylcholine"]

    def test_from_frames(self):
        neurons = pd.DataFrame({"id": ["AVAL", "VA1", "RIM"]})
        edges = pd.DataFrame({
            "from": ["AVAL", "RIM", "AVAL"],
            "to": ["VA1", "AVAL", "DB1"],
            "kind": ["chemical_excitatory", "electrical", None],
            "weight": [10, 4, 5],
        })
        graph, errors = circuit_from_frames(neurons, edges)
        assert len(graph) == 3
        assert graph.connection("RIM", "AVAL").kind is GAP
        assert graph.connection("AVAL", "VA1").weight == 10.0
        assert len(errors) == 1
        assert isinstance(errors[0], UnknownEndpoint)

    def test_non_numeric_weight_is_an_error(self):
        neurons = pd.DataFrame({"id": ["AVAL", "VA1", "RIM"]})
        edges = pd.DataFrame({
            "from": ["AVAL", "RIM"],
            "to": ["VA1", "AVAL"],
            "weight": ["heavy", 4],
        })
        graph, errors = circuit_from_frames(neurons, edges)
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidWeight)
        assert [c.pair for c in graph.connections] == [("RIM", "AVAL")]

    def test_frames_round_trip(self, head_touch):
        graph, errors = circuit_from_frames(neurons_to_frame(head_touch),
                                            connections_to_frame(head_touch))
        assert errors == []
        assert [c.pair for c in graph.connections] == [c.pair for c in head_touch.connections]


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestFiles:
    @pytest.mark.parametrize("name", ["circuit.json", "circuit.yaml"])
    def test_save_and_load(self, head_touch, tmp_path, name):
        path = save_circuit(head_touch, tmp_path / name)
        assert path.exists()
        graph, errors = load_circuit(path)
        assert errors == []
        assert graph.connections == head_touch.connections

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_circuit(tmp_path / "absent.json")


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------

class TestMerge:
    @pytest.fixture
    def incoming(self):
        graph = NeuronGraph.from_palette(["AVAL", "VA1", "RIM"])
        graph.add_connection("AVAL", "VA1", EXC, 3)
        graph.add_connection("RIM", "AVAL", GAP, 4)
        return graph

    def test_skip_keeps_base(self, head_touch, incoming):
        report = merge_circuits(head_touch, incoming)
        assert isinstance(report, MergeReport)
        assert report.graph.connection("AVAL", "VA1").weight == 10
        assert report.graph.has_connection("RIM", "AVAL")
        assert report.stats["neurons_added"] == 1
        assert report.stats["neurons_skipped"] == 2
        assert report.stats["connections_added"] == 1
        assert report.stats["connections_skipped"] == 1
        assert [c.type for c in report.conflicts] == [
            "duplicate_neuron", "duplicate_neuron", "duplicate_connection"]

    def test_replace_takes_incoming(self, head_touch, incoming):
        report = merge_circuits(head_touch, incoming, strategy="replace")
        assert report.graph.connection("AVAL", "VA1").weight == 3
        assert report.stats["connections_replaced"] == 1

    def test_reverse_gap_junction_clashes(self, incoming):
        other = NeuronGraph.from_palette(["AVAL", "RIM"])
        other.add_connection("AVAL", "RIM", GAP, 6)
        report = merge_circuits(incoming, other, strategy="replace")
        assert report.graph.has_connection("AVAL", "RIM")
        assert not report.graph.has_connection("RIM", "AVAL")
        assert report.stats["connections_replaced"] == 1

    def test_gap_junction_replaces_both_directions(self):
        base = NeuronGraph.from_palette(["AVAL", "RIM"])
        base.add_connection("AVAL", "RIM", EXC, 5)
        base.add_connection("RIM", "AVAL", EXC, 7)
        other = NeuronGraph.from_palette(["AVAL", "RIM"])
        other.add_connection("AVAL", "RIM", GAP, 6)
        report = merge_circuits(base, other, strategy="replace")
        assert [c.pair for c in report.graph.connections] == [("AVAL", "RIM")]
        assert report.graph.connection("AVAL", "RIM").kind is GAP
        assert report.stats["connections_replaced"] == 1
        assert [c.type for c in report.conflicts].count("duplicate_connection") == 2

    def test_gap_junction_skipped_against_both_directions(self):
        base = NeuronGraph.from_palette(["AVAL", "RIM"])
        base.add_connection("AVAL", "RIM", EXC, 5)
        base.add_connection("RIM", "AVAL", EXC, 7)
        other = NeuronGraph.from_palette(["AVAL", "RIM"])
        other.add_connection("RIM", "AVAL", GAP, 6)
        report = merge_circuits(base, other)
        assert report.graph.connections == base.connections
        assert report.stats["connections_skipped"] == 1

    def test_inputs_untouched(self, head_touch, incoming):
        before = (head_touch.revision, incoming.revision)
        merge_circuits(head_touch, incoming)
        assert (head_touch.revision, incoming.revision) == before

    def test_unknown_strategy(self, head_touch, incoming):
        with pytest.raises(ValueError):
            merge_circuits(head_touch, incoming, strategy="union")
