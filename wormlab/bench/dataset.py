"""Provenance-carrying datasets for circuit and reference files.

Two kinds of file pass through wormlab: learner circuits that the editor
saves and reopens, and the curated reference connectome that ships with
the package. Both are JSON or YAML documents. A Dataset pairs such a
document with its name and format and, for curated data, with who
assembled it and from which literature, so a validation report can say
which reference it was scored against.

Reading is lazy: `Dataset.value` loads on first access and caches.
Functions decorated with @evaluate_datasets take either a Dataset or the
plain dict it would load to.
"""

import functools
import json
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Callable

import yaml

from wormlab.utils import get_logger

LOG = get_logger("bench.dataset")


# ---------------------------------------------------------------------------
# Readers and writers, by file type
# ---------------------------------------------------------------------------

def _read_json(path):
    with open(path, "r") as f:
        return json.load(f)


def _read_yaml(path):
    with open(path, "r") as f:
        return yaml.safe_load(f)


def _write_json(data, path):
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")


def _write_yaml(data, path):
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)


LOADERS = {"json": _read_json, "yaml": _read_yaml, "yml": _read_yaml}
SAVIORS = {"json": _write_json, "yaml": _write_yaml, "yml": _write_yaml}


def ftype_of(path):
    """Format key for a path, from its extension ("tail.JSON" → "json")."""
    return Path(path).suffix.lstrip(".").lower()


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------

@dataclass
class Dataset:
    """A named circuit or reference document in a known format.

    Parameters
    ----------
    name : str
        Name shown in logs and provenance records.
    ftype : str
        Format key: "json", "yaml" or "yml".
    loader : callable, optional
        path → data. Defaults to the reader for `ftype`.
    savior : callable, optional
        (data, path) → None. Defaults to the writer for `ftype`.
    description : str, optional
    """

    name: str
    ftype: str
    loader: Callable = None
    savior: Callable = None
    description: str = None

    def __post_init__(self):
        self.loader = self.loader or LOADERS.get(self.ftype)
        self.savior = self.savior or SAVIORS.get(self.ftype)

    def define(self):
        """Provenance record: what this dataset is and how it is read."""
        return {
            "class": type(self).__qualname__,
            "name": self.name,
            "ftype": self.ftype,
            "description": self.description or "Not provided",
        }

    @property
    def loaded(self):
        """Whether data is held in memory."""
        return hasattr(self, "_value")

    def load(self, path):
        """Read `path` and cache the result as this dataset's value."""
        if self.loader is None:
            raise ValueError(
                f"Cannot read {self.ftype!r} files for dataset '{self.name}'; "
                f"known formats are {sorted(LOADERS)}")
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"No file for dataset '{self.name}' at {path}")
        LOG.info("Reading %s from %s", self.name, path)
        self._value = self.loader(path)
        self._path = path
        return self._value

    def save(self, data, path):
        """Write `data` to `path`, creating parent directories."""
        if self.savior is None:
            raise ValueError(
                f"Cannot write {self.ftype!r} files for dataset '{self.name}'; "
                f"known formats are {sorted(SAVIORS)}")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        LOG.info("Writing %s to %s", self.name, path)
        return self.savior(data, path)

    @property
    def value(self):
        """The data, read from disc on first access."""
        if self.loaded:
            return self._value
        path = getattr(self, "_path", None)
        if path is None:
            raise RuntimeError(
                f"Dataset '{self.name}' holds no data and has no file to read; "
                "attach data with with_data() or give it an origin")
        return self.load(path)

    def with_data(self, data):
        """Hold `data` in memory in place of a file. Returns self."""
        self._value = data
        return self


@dataclass
class LocalDataset(Dataset):
    """A dataset backed by a file on disc, such as a saved circuit.

    Parameters
    ----------
    origin : Path or str
        The file. `value` reads from here.
    """

    origin: Any = None

    def __post_init__(self):
        if self.origin is not None:
            self.origin = Path(self.origin)
            self._path = self.origin
        super().__post_init__()

    def define(self):
        definition = super().define()
        definition["origin"] = str(self.origin) if self.origin is not None else None
        return definition


@dataclass
class CuratedDataset(LocalDataset):
    """Reference data assembled from the literature.

    Once loaded, `define()` also reports the document's own "version"
    field, so scores can be traced to the reference release they used.

    Parameters
    ----------
    author : str
        Who curated it.
    source : str
        Papers or databases it was drawn from.
    """

    author: str = None
    source: str = None

    def define(self):
        definition = super().define()
        definition["author"] = self.author
        definition["source"] = self.source
        data = self._value if self.loaded else None
        definition["version"] = data.get("version") if isinstance(data, dict) else None
        return definition


# ---------------------------------------------------------------------------
# @evaluate_datasets
# ---------------------------------------------------------------------------

def evaluate_datasets(method):
    """Replace every Dataset argument of `method` with its `.value`."""

    def _unwrap(arg):
        return arg.value if isinstance(arg, Dataset) else arg

    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        return method(*(_unwrap(a) for a in args),
                      **{k: _unwrap(v) for k, v in kwargs.items()})

    return wrapper
