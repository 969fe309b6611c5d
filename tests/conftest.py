"""Shared pytest fixtures for all tests.

The flights dataset used throughout:

    FLIGHT_NO  ORIGIN  DEST  PILOT_ID  PILOT_NAME  CREW1  CREW2
    F1         BER     LHR   P1        Ann         Bob    Cid
    F2         LHR     JFK   P2        Dan         Eve
    F3         BER     JFK   P1        Ann         Cid    Bob
"""

from typing import Any

import pytest

from normform.core.config import get_settings
from normform.core.logging import configure_logging
from normform.schema.models import (
    ColumnMapping,
    Dataset,
    NormalForm,
    RawDataset,
    TableDefinition,
)


def col(
    name: str,
    mapping_type: str | None = "direct",
    sources: list[str] | None = None,
    role: str = "attribute",
) -> ColumnMapping:
    """Build a column; sources default to the column's own name."""
    return ColumnMapping(
        name=name,
        type=role,
        mapping_type=mapping_type,
        source_cols=[name] if sources is None else sources,
    )


def table(name: str, *columns: ColumnMapping, saved: bool = True) -> TableDefinition:
    return TableDefinition(id=name.lower(), name=name, columns=list(columns), saved=saved)


@pytest.fixture(autouse=True)
def quiet_settings(monkeypatch, tmp_path):
    """Keep CLI runs at WARNING and never read a developer's .env."""
    monkeypatch.setenv("NORMFORM_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("NORMFORM_LOG_FORMAT", "console")
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    configure_logging(log_level="WARNING")


@pytest.fixture
def raw_flights() -> RawDataset:
    return RawDataset(
        columns=["FLIGHT_NO", "ORIGIN", "DEST", "PILOT_ID", "PILOT_NAME", "CREW1", "CREW2"],
        rows=[
            ["F1", "BER", "LHR", "P1", "Ann", "Bob", "Cid"],
            ["F2", "LHR", "JFK", "P2", "Dan", "Eve", ""],
            ["F3", "BER", "JFK", "P1", "Ann", "Cid", "Bob"],
        ],
        table_name="FLIGHTS",
    )


@pytest.fixture
def first_form_tables() -> list[TableDefinition]:
    """One wide 1NF table with the crew unpivoted into rows."""
    return [
        table(
            "FLIGHT_CREW",
            col("FLIGHT_NO", role="PK"),
            col("ORIGIN"),
            col("DEST"),
            col("PILOT_ID"),
            col("PILOT_NAME"),
            col("CREW_MEMBER", "consolidate", ["CREW1", "CREW2"], role="PK"),
        )
    ]


@pytest.fixture
def second_form_tables() -> list[TableDefinition]:
    return [
        table(
            "FLIGHT",
            col("FLIGHT_NO", sources=["FLIGHT_CREW.FLIGHT_NO"], role="PK"),
            col("ORIGIN", sources=["FLIGHT_CREW.ORIGIN"]),
            col("DEST", sources=["FLIGHT_CREW.DEST"]),
            col("PILOT_ID", sources=["FLIGHT_CREW.PILOT_ID"]),
            col("PILOT_NAME", sources=["FLIGHT_CREW.PILOT_NAME"]),
        ),
        table(
            "FLIGHT_ASSIGNMENT",
            col("FLIGHT_NO", sources=["FLIGHT_CREW.FLIGHT_NO"], role="FK"),
            col("CREW_MEMBER", sources=["FLIGHT_CREW.CREW_MEMBER"], role="PK"),
        ),
    ]


@pytest.fixture
def third_form_tables() -> list[TableDefinition]:
    return [
        table(
            "FLIGHT",
            col("FLIGHT_NO", sources=["FLIGHT.FLIGHT_NO"], role="PK"),
            col("ORIGIN", sources=["FLIGHT.ORIGIN"]),
            col("DEST", sources=["FLIGHT.DEST"]),
            col("PILOT_ID", sources=["FLIGHT.PILOT_ID"], role="FK"),
        ),
        table(
            "PILOT",
            col("PILOT_ID", sources=["FLIGHT.PILOT_ID"], role="PK"),
            col("PILOT_NAME", sources=["FLIGHT.PILOT_NAME"]),
        ),
        table(
            "FLIGHT_ASSIGNMENT",
            col("FLIGHT_NO", sources=["FLIGHT_ASSIGNMENT.FLIGHT_NO"], role="FK"),
            col("CREW_MEMBER", sources=["FLIGHT_ASSIGNMENT.CREW_MEMBER"], role="PK"),
        ),
    ]


@pytest.fixture
def work(first_form_tables, second_form_tables, third_form_tables) -> dict:
    return {
        NormalForm.FIRST: first_form_tables,
        NormalForm.SECOND: second_form_tables,
        NormalForm.THIRD: third_form_tables,
    }


def _dump(tables: list[TableDefinition]) -> list[dict[str, Any]]:
    return [t.model_dump(mode="json", by_alias=True) for t in tables]


@pytest.fixture
def flights_document(
    raw_flights, first_form_tables, second_form_tables, third_form_tables
) -> dict[str, Any]:
    """Dataset document in the camelCase layout authors write."""
    return {
        "id": "flights",
        "title": "Flight Crews",
        "difficulty": "medium",
        "description": "Flights with their pilot and cabin crew",
        "rawData": raw_flights.model_dump(mode="json", by_alias=True),
        "solutions": {
            "1NF": {"tables": _dump(first_form_tables), "hints": ["Unpivot the crew"]},
            "2NF": {"tables": _dump(second_form_tables)},
            "3NF": {"tables": _dump(third_form_tables)},
        },
    }


@pytest.fixture
def flights_dataset(flights_document) -> Dataset:
    return Dataset.model_validate(flights_document)


@pytest.fixture
def work_document(work) -> dict[str, Any]:
    return {form.value: _dump(tables) for form, tables in work.items()}


@pytest.fixture
def make_column():
    """Factory for columns: ``make_column(name, mapping_type, sources, role)``."""
    return col


@pytest.fixture
def make_table():
    """Factory for saved tables: ``make_table(name, *columns, saved=True)``."""
    return table
