"""Name resolution for tables, columns and qualified source references."""

from normform.naming.resolver import (
    column_names_match,
    find_matching_column,
    normalize_name,
    source_cols_match,
    split_reference,
    tables_match,
    tokenize,
)

__all__ = [
    "normalize_name",
    "tokenize",
    "split_reference",
    "tables_match",
    "column_names_match",
    "find_matching_column",
    "source_cols_match",
]
