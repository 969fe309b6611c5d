"""Data model shared by the generator, the validator and the host."""

from normform.schema.models import (
    NORMAL_FORMS,
    ColumnMapping,
    ColumnRole,
    Dataset,
    FormSolution,
    GeneratedRow,
    MappingType,
    NormalForm,
    RawDataset,
    SolutionColumn,
    SolutionTable,
    TableDefinition,
)

__all__ = [
    # Enums
    "ColumnRole",
    "MappingType",
    "NormalForm",
    "NORMAL_FORMS",
    # Tables
    "ColumnMapping",
    "TableDefinition",
    "SolutionColumn",
    "SolutionTable",
    "GeneratedRow",
    # Documents
    "RawDataset",
    "FormSolution",
    "Dataset",
]
