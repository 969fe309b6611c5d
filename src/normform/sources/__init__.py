"""Dataset and work-file loading."""

from normform.sources.loader import (
    StageWork,
    load_dataset,
    load_datasets,
    load_work,
    parse_dataset,
    parse_work,
    read_document,
)

__all__ = [
    "StageWork",
    "load_dataset",
    "load_datasets",
    "load_work",
    "parse_dataset",
    "parse_work",
    "read_document",
]
