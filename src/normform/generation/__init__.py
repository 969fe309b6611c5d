"""Table data generation and mapping coverage.

Materializes preview rows for user tables, either from the raw dataset
(1NF) or from the regenerated tables of the preceding stage (2NF, 3NF).
"""

from normform.generation.generator import (
    build_upstream_index,
    generate_from_previous_form,
    generate_from_raw,
    generate_table_data,
)
from normform.generation.rows import dedupe_on, dedupe_rows, is_blank, key_positions
from normform.generation.stats import (
    MappingStats,
    describe_mapping,
    get_available_source_columns,
    get_direct_mapped_columns,
    get_mapped_columns,
    get_mapping_stats,
    is_column_mapped,
)
from normform.generation.upstream import UpstreamIndex, UpstreamTable

__all__ = [
    # Main entry points
    "generate_table_data",
    "generate_from_raw",
    "generate_from_previous_form",
    # Components
    "build_upstream_index",
    "UpstreamIndex",
    "UpstreamTable",
    "is_blank",
    "dedupe_rows",
    "dedupe_on",
    "key_positions",
    # Mapping coverage
    "MappingStats",
    "get_mapped_columns",
    "get_mapping_stats",
    "get_available_source_columns",
    "get_direct_mapped_columns",
    "describe_mapping",
    "is_column_mapped",
]
