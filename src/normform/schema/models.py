"""Schema models for datasets, user tables and reference solutions.

Documents authored for the hosting application use camelCase keys
(``mappingType``, ``sourceCols``, ``rawData`` ...). Every model accepts
both the alias and the Python field name.
"""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ColumnRole(str, Enum):
    """Key role of a column within its table."""

    PK = "PK"
    FK = "FK"
    ATTRIBUTE = "attribute"


class MappingType(str, Enum):
    """How a column's values are derived from its sources.

    - direct: copy the single source value
    - consolidate: unpivot several source columns into separate rows
    - metadata: use the source column's name instead of its value
    """

    DIRECT = "direct"
    CONSOLIDATE = "consolidate"
    METADATA = "metadata"


class NormalForm(str, Enum):
    """Normalization stage, in exercise order."""

    FIRST = "1NF"
    SECOND = "2NF"
    THIRD = "3NF"


NORMAL_FORMS: tuple[NormalForm, ...] = (NormalForm.FIRST, NormalForm.SECOND, NormalForm.THIRD)

# Positional cell values aligned with a table's columns
GeneratedRow = list[Any]


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")


class ColumnMapping(_Document):
    """A column of a user-authored table and where its values come from."""

    name: str
    type: ColumnRole = ColumnRole.ATTRIBUTE
    mapping_type: MappingType | None = Field(default=None, alias="mappingType")
    source_cols: list[str] = Field(default_factory=list, alias="sourceCols")
    foreign_key_table: str | None = Field(default=None, alias="foreignKeyTable")

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("type", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> ColumnRole:
        if isinstance(value, ColumnRole):
            return value
        text = str(value or "").strip().upper()
        if text == "PK":
            return ColumnRole.PK
        if text == "FK":
            return ColumnRole.FK
        return ColumnRole.ATTRIBUTE

    @field_validator("mapping_type", mode="before")
    @classmethod
    def _parse_mapping_type(cls, value: Any) -> MappingType | None:
        if value is None or isinstance(value, MappingType):
            return value
        try:
            return MappingType(str(value).strip().lower())
        except ValueError:
            return None

    @field_validator("source_cols", mode="before")
    @classmethod
    def _parse_sources(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list | tuple):
            return []
        return [str(v) for v in value if v is not None and str(v) != ""]

    @property
    def is_complete(self) -> bool:
        """Whether the column has a mapping kind and at least one source."""
        return self.mapping_type is not None and len(self.source_cols) > 0

    @property
    def is_primary_key(self) -> bool:
        return self.type is ColumnRole.PK

    @property
    def is_foreign_key(self) -> bool:
        return self.type is ColumnRole.FK


class TableDefinition(_Document):
    """A table authored by the learner for one normalization stage.

    Only saved tables are materialized as sources for later stages.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    columns: list[ColumnMapping] = Field(default_factory=list)
    saved: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(uuid4()) if value is None else str(value)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("columns", mode="before")
    @classmethod
    def _coerce_columns(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @property
    def is_previewable(self) -> bool:
        """Whether row data can be generated for this table.

        A table needs at least one column and every column needs a mapping
        kind plus a source before a preview is produced.
        """
        return bool(self.columns) and all(col.is_complete for col in self.columns)


# Reference solutions share the user-table shape
SolutionColumn = ColumnMapping
SolutionTable = TableDefinition


class RawDataset(_Document):
    """Unnormalized source data: ordered columns and positional rows."""

    columns: list[str] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)
    table_name: str = Field(default="", alias="tableName")

    def column_index(self) -> dict[str, int]:
        """Map each column name to its first position."""
        index: dict[str, int] = {}
        for position, name in enumerate(self.columns):
            index.setdefault(name, position)
        return index


class FormSolution(_Document):
    """Reference solution for one normalization stage."""

    tables: list[SolutionTable] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)


class Dataset(_Document):
    """A normalization exercise: raw data plus one solution per stage."""

    id: str
    title: str = ""
    difficulty: str = ""
    description: str = ""
    raw_data: RawDataset = Field(alias="rawData")
    solutions: dict[NormalForm, FormSolution] = Field(default_factory=dict)

    def solution_for(self, form: NormalForm) -> FormSolution | None:
        """Get the reference solution for a stage, if the dataset has one."""
        return self.solutions.get(form)
