"""Tests for dataset and work file loading."""

import json

import pytest
import yaml

from normform.schema.models import ColumnRole, MappingType, NormalForm
from normform.sources.loader import (
    load_dataset,
    load_datasets,
    load_work,
    parse_dataset,
    read_document,
)


def _write_json(path, document):
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestReadDocument:
    """Tests for reading JSON and YAML documents."""

    def test_missing_file(self, tmp_path):
        result = read_document(tmp_path / "missing.json")

        assert not result.success
        assert "File not found" in result.error

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        result = read_document(path)

        assert not result.success
        assert "File is empty" in result.error

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        result = read_document(path)

        assert not result.success
        assert "Failed to parse JSON" in result.error

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed", encoding="utf-8")

        result = read_document(path)

        assert not result.success
        assert "Failed to parse YAML" in result.error


class TestLoadDataset:
    """Tests for loading a single dataset."""

    def test_json_dataset_with_aliases(self, tmp_path, flights_document):
        path = _write_json(tmp_path / "flights.json", flights_document)

        result = load_dataset(path)

        assert result.success, result.error
        dataset = result.unwrap()
        assert dataset.id == "flights"
        assert dataset.raw_data.columns[0] == "FLIGHT_NO"
        first = dataset.solution_for(NormalForm.FIRST)
        crew = first.tables[0].columns[-1]
        assert crew.mapping_type is MappingType.CONSOLIDATE
        assert crew.type is ColumnRole.PK
        assert crew.source_cols == ["CREW1", "CREW2"]
        assert first.hints == ["Unpivot the crew"]

    def test_yaml_dataset(self, tmp_path, flights_document):
        path = tmp_path / "flights.yaml"
        path.write_text(yaml.safe_dump(flights_document), encoding="utf-8")

        result = load_dataset(path)

        assert result.success, result.error
        assert result.unwrap().solution_for(NormalForm.THIRD) is not None

    def test_lenient_column_fields(self):
        document = {
            "id": "people",
            "rawData": {"columns": ["ID"], "rows": [["1"]]},
            "solutions": {
                "1NF": {
                    "tables": [
                        {
                            "id": None,
                            "name": "PERSON",
                            "columns": [
                                {
                                    "name": "ID",
                                    "type": "pk",
                                    "mappingType": "Direct",
                                    "sourceCols": "ID",
                                },
                                {"name": "NOTE", "type": "", "mappingType": "copy"},
                            ],
                        }
                    ]
                }
            },
        }

        dataset = parse_dataset(document).unwrap()

        table = dataset.solution_for(NormalForm.FIRST).tables[0]
        key, note = table.columns
        assert table.id
        assert key.type is ColumnRole.PK
        assert key.mapping_type is MappingType.DIRECT
        assert key.source_cols == ["ID"]
        assert note.type is ColumnRole.ATTRIBUTE
        assert note.mapping_type is None
        assert not table.is_previewable

    def test_missing_raw_data_is_reported(self):
        result = parse_dataset({"id": "broken"}, source_name="broken.json")

        assert not result.success
        assert "Validation errors in broken.json" in result.error
        assert "rawData" in result.error

    def test_document_must_be_a_mapping(self):
        result = parse_dataset(["not", "a", "mapping"])

        assert not result.success
        assert "must be a mapping" in result.error


class TestLoadDatasets:
    """Tests for loading a directory of datasets."""

    def test_skips_templates_placeholders_and_broken_files(self, tmp_path, flights_document):
        _write_json(tmp_path / "flights.json", flights_document)
        _write_json(tmp_path / "template.json", {**flights_document, "id": "template"})
        _write_json(tmp_path / "placeholder.json", {**flights_document, "id": "dataset-id"})
        (tmp_path / "broken.json").write_text("{", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        datasets = load_datasets(tmp_path)

        assert [d.id for d in datasets] == ["flights"]

    def test_sorted_by_difficulty_then_title(self, tmp_path, flights_document):
        for name, title, difficulty in [
            ("b", "Banking", "hard"),
            ("a", "Airline", "medium"),
            ("c", "Courses", "easy"),
            ("d", "Archive", "medium"),
            ("e", "Unrated", ""),
        ]:
            document = {**flights_document, "id": name, "title": title, "difficulty": difficulty}
            _write_json(tmp_path / f"{name}.json", document)

        datasets = load_datasets(tmp_path)

        assert [d.title for d in datasets] == ["Courses", "Airline", "Archive", "Banking", "Unrated"]

    def test_missing_directory(self, tmp_path):
        assert load_datasets(tmp_path / "nope") == []


class TestLoadWork:
    """Tests for learner work files."""

    def test_stage_keys_map_to_tables(self, tmp_path, work_document):
        path = _write_json(tmp_path / "work.json", work_document)

        work = load_work(path).unwrap()

        assert set(work) == {NormalForm.FIRST, NormalForm.SECOND, NormalForm.THIRD}
        assert [t.name for t in work[NormalForm.SECOND]] == ["FLIGHT", "FLIGHT_ASSIGNMENT"]
        assert all(t.saved for t in work[NormalForm.SECOND])

    @pytest.mark.parametrize("document", [{"4NF": []}, ["1NF"]])
    def test_invalid_work(self, tmp_path, document):
        path = _write_json(tmp_path / "work.json", document)

        assert not load_work(path).success
