"""Schema validation against reference solutions."""

from normform.validation.models import (
    TableValidation,
    TableValidationDetail,
    ValidationReport,
)
from normform.validation.validator import (
    DEFAULT_MISSING_TABLE_TOLERANCE,
    validate_column_mapping,
    validate_solution,
    validate_table,
)

__all__ = [
    # Main entry point
    "validate_solution",
    # Components
    "validate_table",
    "validate_column_mapping",
    "DEFAULT_MISSING_TABLE_TOLERANCE",
    # Models
    "ValidationReport",
    "TableValidation",
    "TableValidationDetail",
]
