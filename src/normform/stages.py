"""Normalization stage workflow.

Stages run 1NF -> 2NF -> 3NF. Each stage builds on the saved tables of the
stage before it, and a stage becomes available once the previous one has
been completed (validated successfully).
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, field

from normform.core.logging import get_logger
from normform.generation.generator import generate_table_data
from normform.schema.models import (
    NORMAL_FORMS,
    FormSolution,
    GeneratedRow,
    NormalForm,
    RawDataset,
    TableDefinition,
)
from normform.validation.models import ValidationReport
from normform.validation.validator import DEFAULT_MISSING_TABLE_TOLERANCE, validate_solution

logger = get_logger(__name__)


@dataclass
class StageSources:
    """Upstream tables feeding a stage's previews."""

    previous: list[TableDefinition] = field(default_factory=list)
    previous_previous: list[TableDefinition] = field(default_factory=list)


def previous_form(form: NormalForm) -> NormalForm | None:
    position = NORMAL_FORMS.index(form)
    return NORMAL_FORMS[position - 1] if position > 0 else None


def next_form(form: NormalForm) -> NormalForm | None:
    position = NORMAL_FORMS.index(form)
    return NORMAL_FORMS[position + 1] if position + 1 < len(NORMAL_FORMS) else None


def can_access_form(form: NormalForm, completed: Collection[NormalForm]) -> bool:
    """1NF is always open; later stages need the previous stage completed."""
    before = previous_form(form)
    return before is None or before in completed


def _usable(tables: Sequence[TableDefinition] | None) -> list[TableDefinition]:
    return [table for table in tables or [] if table.saved and table.columns]


def stage_sources(
    form: NormalForm, work: Mapping[NormalForm, Sequence[TableDefinition]]
) -> StageSources:
    """Saved, non-empty tables of the one or two stages preceding ``form``."""
    before = previous_form(form)
    if before is None:
        return StageSources()

    two_before = previous_form(before)
    return StageSources(
        previous=_usable(work.get(before)),
        previous_previous=_usable(work.get(two_before)) if two_before else [],
    )


def preview_stage(
    form: NormalForm,
    work: Mapping[NormalForm, Sequence[TableDefinition]],
    raw_data: RawDataset,
) -> dict[str, list[GeneratedRow]]:
    """Generate previews for every saved, previewable table of a stage.

    Returns:
        Rows keyed by table id
    """
    sources = stage_sources(form, work)
    previews: dict[str, list[GeneratedRow]] = {}
    for table in work.get(form) or []:
        if not table.saved or not table.is_previewable:
            continue
        previews[table.id] = generate_table_data(
            table, raw_data, sources.previous, sources.previous_previous
        )
    return previews


def check_answer(
    user_tables: Sequence[TableDefinition],
    solution: FormSolution,
    *,
    missing_table_tolerance: int = DEFAULT_MISSING_TABLE_TOLERANCE,
) -> ValidationReport:
    """Validate a stage, refusing while any table is still being edited."""
    unsaved = [table for table in user_tables if not table.saved]
    if unsaved:
        logger.info("answer_check_refused", unsaved=len(unsaved))
        return ValidationReport(
            is_valid=False,
            errors=[
                "Please save all tables before checking your answer. "
                f"{len(unsaved)} table(s) need to be saved."
            ],
        )

    return validate_solution(
        user_tables, solution.tables, missing_table_tolerance=missing_table_tolerance
    )


def resume_form(
    work: Mapping[NormalForm, Sequence[TableDefinition]],
    completed: Collection[NormalForm],
) -> NormalForm:
    """Most advanced accessible stage with saved tables, else 1NF."""
    for form in reversed(NORMAL_FORMS):
        if can_access_form(form, completed) and _usable(work.get(form)):
            return form
    return NormalForm.FIRST
