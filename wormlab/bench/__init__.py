"""bench — JSON/YAML datasets for saved circuits and the reference connectome.

A Dataset knows its format and where it came from, and reads itself
lazily. @evaluate_datasets lets loaders take a Dataset or a plain dict.
"""

from .dataset import (
    Dataset,
    LocalDataset,
    CuratedDataset,
    LOADERS,
    SAVIORS,
    evaluate_datasets,
    ftype_of,
)
