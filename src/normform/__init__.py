"""Normform.

Preview generation and schema validation for database normalization
exercises (1NF -> 2NF -> 3NF).
"""

__version__ = "0.1.0"

from normform.core.models import Result
from normform.generation import (
    MappingStats,
    generate_table_data,
    get_available_source_columns,
    get_mapped_columns,
    get_mapping_stats,
)
from normform.schema import (
    ColumnMapping,
    ColumnRole,
    Dataset,
    MappingType,
    NormalForm,
    RawDataset,
    TableDefinition,
)
from normform.validation import ValidationReport, validate_solution

__all__ = [
    "ColumnMapping",
    "ColumnRole",
    "Dataset",
    "MappingStats",
    "MappingType",
    "NormalForm",
    "RawDataset",
    "Result",
    "TableDefinition",
    "ValidationReport",
    "__version__",
    "generate_table_data",
    "get_available_source_columns",
    "get_mapped_columns",
    "get_mapping_stats",
    "validate_solution",
]
