"""Pydantic models for schema validation reports."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TableValidation(BaseModel):
    """Column-level comparison of one user table against one solution table."""

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


class TableValidationDetail(BaseModel):
    """Per-table diagnostics, kept complete (not deduplicated) for display."""

    table_name: str
    is_valid: bool
    matched_solution_table: str | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ValidationReport(BaseModel):
    """Result of comparing a user schema with a reference solution.

    Errors flip ``is_valid``; warnings (extra columns) are informational.
    """

    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    table_details: list[TableValidationDetail] = Field(default_factory=list)
