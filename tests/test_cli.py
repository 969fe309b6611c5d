"""Tests for the normform CLI."""

import json

import pytest
from typer.testing import CliRunner

from normform.cli import app

runner = CliRunner()


@pytest.fixture
def dataset_path(tmp_path, flights_document):
    path = tmp_path / "flights.json"
    path.write_text(json.dumps(flights_document), encoding="utf-8")
    return path


@pytest.fixture
def work_path(tmp_path, work_document):
    path = tmp_path / "work.json"
    path.write_text(json.dumps(work_document), encoding="utf-8")
    return path


class TestDatasetsCommand:
    """Tests for `normform datasets`."""

    def test_lists_datasets(self, tmp_path, dataset_path):
        result = runner.invoke(app, ["datasets", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "flights" in result.output
        assert "Flight Crews" in result.output

    def test_defaults_to_configured_directory(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NORMFORM_DATASETS_PATH", str(tmp_path / "none"))

        result = runner.invoke(app, ["datasets"])

        assert result.exit_code == 0
        assert "No datasets found" in result.output


class TestPreviewCommand:
    """Tests for `normform preview`."""

    def test_preview_second_form(self, dataset_path, work_path):
        result = runner.invoke(
            app, ["preview", str(dataset_path), str(work_path), "--form", "2NF"]
        )

        assert result.exit_code == 0, result.output
        assert "FLIGHT_ASSIGNMENT" in result.output
        assert "3 of 3 rows" in result.output
        assert "5 of 5 rows" in result.output

    def test_limit_and_table_filter(self, dataset_path, work_path):
        result = runner.invoke(
            app,
            [
                "preview",
                str(dataset_path),
                str(work_path),
                "--form",
                "1NF",
                "--table",
                "flight crew",
                "--limit",
                "2",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "2 of 5 rows" in result.output

    def test_unreadable_dataset(self, tmp_path, work_path):
        broken = tmp_path / "broken.json"
        broken.write_text("{", encoding="utf-8")

        result = runner.invoke(app, ["preview", str(broken), str(work_path)])

        assert result.exit_code == 1
        assert "Failed to parse JSON" in result.output


class TestCheckCommand:
    """Tests for `normform check`."""

    def test_correct_solution(self, dataset_path, work_path):
        result = runner.invoke(app, ["check", str(dataset_path), str(work_path), "-f", "3NF"])

        assert result.exit_code == 0, result.output
        assert "3NF solution is correct" in result.output

    def test_incorrect_solution(self, tmp_path, dataset_path, work_document):
        work_document["2NF"] = work_document["2NF"][:1]
        path = tmp_path / "partial.json"
        path.write_text(json.dumps(work_document), encoding="utf-8")

        result = runner.invoke(app, ["check", str(dataset_path), str(path), "--form", "2NF"])

        assert result.exit_code == 1
        assert "Missing table: FLIGHT_ASSIGNMENT" in result.output

    def test_unsaved_tables(self, tmp_path, dataset_path, work_document):
        work_document["1NF"][0]["saved"] = False
        path = tmp_path / "draft.json"
        path.write_text(json.dumps(work_document), encoding="utf-8")

        result = runner.invoke(app, ["check", str(dataset_path), str(path)])

        assert result.exit_code == 1
        assert "Please save all tables" in result.output


class TestStatsCommand:
    """Tests for `normform stats`."""

    def test_first_form_coverage(self, dataset_path, work_path):
        result = runner.invoke(app, ["stats", str(dataset_path), str(work_path)])

        assert result.exit_code == 0, result.output
        assert "7 of 7 columns mapped (100%)" in result.output

    def test_later_form_lists_upstream_columns(self, dataset_path, work_path):
        result = runner.invoke(app, ["stats", str(dataset_path), str(work_path), "-f", "2NF"])

        assert result.exit_code == 0, result.output
        assert "FLIGHT_CREW.CREW_MEMBER" in result.output


class TestQualifyCommand:
    """Tests for `normform qualify`."""

    def test_dry_run_leaves_file_alone(self, dataset_path):
        before = dataset_path.read_text(encoding="utf-8")

        result = runner.invoke(app, ["qualify", str(dataset_path)])

        assert result.exit_code == 0, result.output
        assert "would be updated" in result.output
        assert dataset_path.read_text(encoding="utf-8") == before

    def test_write_updates_file(self, dataset_path):
        result = runner.invoke(app, ["qualify", str(dataset_path), "--write"])

        assert result.exit_code == 0, result.output
        document = json.loads(dataset_path.read_text(encoding="utf-8"))
        third = document["solutions"]["3NF"]["tables"][0]
        assert third["columns"][0]["sourceCols"] == [
            "FLIGHT.FLIGHT_NO",
            "FLIGHT_ASSIGNMENT.FLIGHT_NO",
        ]

        again = runner.invoke(app, ["qualify", str(dataset_path)])
        assert "already qualified" in again.output

    def test_write_keeps_authored_keys_only(self, tmp_path, flights_document):
        for solution in flights_document["solutions"].values():
            for table in solution["tables"]:
                del table["id"]
                del table["saved"]
        path = tmp_path / "authored.json"
        path.write_text(json.dumps(flights_document), encoding="utf-8")

        result = runner.invoke(app, ["qualify", str(path), "--write"])

        assert result.exit_code == 0, result.output
        document = json.loads(path.read_text(encoding="utf-8"))
        tables = [t for s in document["solutions"].values() for t in s["tables"]]
        assert all("id" not in t and "saved" not in t for t in tables)
        assert document["solutions"]["1NF"]["hints"] == ["Unpivot the crew"]
