"""Loading of dataset documents and learner work files.

Datasets are JSON or YAML documents with the raw data and one reference
solution per normalization stage. Work files map stage names ("1NF",
"2NF", "3NF") to the learner's table definitions.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from normform.core.logging import get_logger
from normform.core.models import Result
from normform.schema.models import Dataset, NormalForm, TableDefinition

logger = get_logger(__name__)

DOCUMENT_SUFFIXES = (".json", ".yaml", ".yml")
PLACEHOLDER_DATASET_ID = "dataset-id"
DIFFICULTY_ORDER = {"easy": 1, "medium": 2, "hard": 3}

StageWork = dict[NormalForm, list[TableDefinition]]

_work_adapter: TypeAdapter[StageWork] = TypeAdapter(StageWork)


def read_document(path: Path) -> Result[Any]:
    """Read a JSON or YAML document.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        Result containing the parsed document
    """
    if not path.exists():
        return Result.fail(f"File not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except json.JSONDecodeError as e:
        return Result.fail(f"Failed to parse JSON in {path}: {e}")
    except yaml.YAMLError as e:
        return Result.fail(f"Failed to parse YAML in {path}: {e}")
    except OSError as e:
        return Result.fail(f"Failed to read {path}: {e}")

    if data is None:
        return Result.fail(f"File is empty: {path}")

    return Result.ok(data)


def _describe_validation_error(error: ValidationError, source_name: str) -> str:
    details = []
    for item in error.errors():
        location = " -> ".join(str(loc) for loc in item["loc"])
        details.append(f"{location}: {item['msg']}")
    return f"Validation errors in {source_name}:\n" + "\n".join(details)


def parse_dataset(data: Any, source_name: str = "unknown") -> Result[Dataset]:
    """Parse a raw document into a Dataset."""
    if not isinstance(data, dict):
        return Result.fail(f"Dataset document must be a mapping: {source_name}")

    try:
        return Result.ok(Dataset.model_validate(data))
    except ValidationError as e:
        return Result.fail(_describe_validation_error(e, source_name))


def load_dataset(path: str | Path) -> Result[Dataset]:
    """Load a dataset document from a path.

    Examples:
        >>> result = load_dataset("datasets/flights.json")
        >>> if result.success:
        ...     dataset = result.unwrap()
    """
    path = Path(path)
    document = read_document(path)
    if not document.success:
        return Result.fail(document.error or "Unknown error reading dataset")

    return parse_dataset(document.unwrap(), source_name=str(path))


def _sort_key(dataset: Dataset) -> tuple[int, str]:
    return (DIFFICULTY_ORDER.get(dataset.difficulty, 99), dataset.title)


def load_datasets(directory: str | Path) -> list[Dataset]:
    """Load every dataset document in a directory.

    Template files and the placeholder dataset id are skipped, as are
    documents that fail to load (logged as warnings). Datasets are sorted by
    difficulty, then title.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("datasets_directory_missing", path=str(directory))
        return []

    datasets: list[Dataset] = []
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in DOCUMENT_SUFFIXES or path.stem == "template":
            continue

        result = load_dataset(path)
        if not result.success:
            logger.warning("dataset_load_failed", path=str(path), error=result.error)
            continue

        dataset = result.unwrap()
        if dataset.id == PLACEHOLDER_DATASET_ID:
            continue
        datasets.append(dataset)

    datasets.sort(key=_sort_key)
    logger.debug("datasets_loaded", path=str(directory), count=len(datasets))
    return datasets


def parse_work(data: Any, source_name: str = "unknown") -> Result[StageWork]:
    """Parse a raw document into per-stage table lists."""
    if not isinstance(data, dict):
        return Result.fail(f"Work document must map stage names to tables: {source_name}")

    try:
        return Result.ok(_work_adapter.validate_python(data))
    except ValidationError as e:
        return Result.fail(_describe_validation_error(e, source_name))


def load_work(path: str | Path) -> Result[StageWork]:
    """Load a learner work file."""
    path = Path(path)
    document = read_document(path)
    if not document.success:
        return Result.fail(document.error or "Unknown error reading work file")

    return parse_work(document.unwrap(), source_name=str(path))
