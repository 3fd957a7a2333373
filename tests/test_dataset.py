"""Tests for circuit and reference datasets."""

import json

import pytest

from wormlab.bench import (
    Dataset, LocalDataset, CuratedDataset, LOADERS,
    evaluate_datasets, ftype_of,
)
from wormlab.connectome.reference import reference_dataset


TAIL_TOUCH = {
    "neurons": [{"id": "PLML"}, {"id": "AVBL"}],
    "connections": [{"from": "PLML", "to": "AVBL",
                     "kind": "chemical_excitatory", "weight": 6}],
}


class TestProvenance:
    def test_reference_is_curated(self):
        defn = reference_dataset().define()
        assert defn["class"] == "CuratedDataset"
        assert defn["author"] == "wormlab curators"
        assert defn["source"].startswith("OpenWorm")
        assert defn["version"] is None

    def test_reference_version_after_reading(self):
        ds = reference_dataset()
        assert ds.value["version"] == "openworm-reduced-1"
        assert ds.define()["version"] == "openworm-reduced-1"

    def test_saved_circuit_records_origin(self, tmp_path):
        path = tmp_path / "tail.json"
        defn = LocalDataset(name="tail", ftype="json", origin=str(path),
                            description="Learner circuit").define()
        assert defn["origin"] == str(path)
        assert defn["description"] == "Learner circuit"

    def test_description_defaults(self):
        assert Dataset(name="tail", ftype="json").define()["description"] == "Not provided"

    @pytest.mark.parametrize("path, ftype", [
        ("circuits/tail.JSON", "json"),
        ("reference.yaml", "yaml"),
        ("reference.yml", "yml"),
    ])
    def test_ftype_of(self, path, ftype):
        assert ftype_of(path) == ftype


class TestReadWrite:
    @pytest.mark.parametrize("name", ["tail.json", "tail.yaml", "tail.yml"])
    def test_circuit_file(self, tmp_path, name):
        path = tmp_path / "saved" / name
        ds = LocalDataset(name="tail", ftype=ftype_of(path), origin=path)
        ds.save(TAIL_TOUCH, path)
        assert path.exists()
        assert ds.value == TAIL_TOUCH

    def test_json_is_readable_text(self, tmp_path):
        path = tmp_path / "tail.json"
        Dataset(name="tail", ftype="json").save(TAIL_TOUCH, path)
        assert json.loads(path.read_text()) == TAIL_TOUCH

    def test_value_is_cached(self, tmp_path):
        path = tmp_path / "tail.json"
        path.write_text(json.dumps(TAIL_TOUCH))
        ds = LocalDataset(name="tail", ftype="json", origin=path)
        first = ds.value
        path.unlink()
        assert ds.value is first

    def test_tables_are_not_a_dataset_format(self, tmp_path):
        assert "csv" not in LOADERS
        ds = Dataset(name="edges", ftype="csv")
        with pytest.raises(ValueError, match="csv"):
            ds.load(tmp_path / "edges.csv")
        with pytest.raises(ValueError):
            ds.save({}, tmp_path / "edges.csv")

    def test_missing_file(self, tmp_path):
        ds = LocalDataset(name="gone", ftype="yaml", origin=tmp_path / "gone.yaml")
        with pytest.raises(FileNotFoundError):
            ds.value

    def test_nothing_to_read(self):
        ds = Dataset(name="blank", ftype="json")
        assert not ds.loaded
        with pytest.raises(RuntimeError):
            ds.value

    def test_with_data(self):
        ds = Dataset(name="draft", ftype="json").with_data(TAIL_TOUCH)
        assert ds.loaded
        assert ds.value is TAIL_TOUCH


class TestEvaluateDatasets:
    @staticmethod
    @evaluate_datasets
    def count_connections(data, extra=None):
        """Connections in a circuit document."""
        n = len(data["connections"])
        return n + (len(extra["connections"]) if extra else 0)

    def test_dataset_argument(self):
        ds = Dataset(name="tail", ftype="json").with_data(TAIL_TOUCH)
        assert self.count_connections(ds) == 1

    def test_plain_dict_passes_through(self):
        assert self.count_connections(TAIL_TOUCH) == 1

    def test_keyword_dataset(self):
        extra = Dataset(name="more", ftype="json").with_data(TAIL_TOUCH)
        assert self.count_connections(TAIL_TOUCH, extra=extra) == 2

    def test_keeps_metadata(self):
        assert self.count_connections.__name__ == "count_connections"
        assert self.count_connections.__doc__ == "Connections in a circuit document."
