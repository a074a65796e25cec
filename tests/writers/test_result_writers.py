"""Tests for the CSV, JSON and SQLite result sinks."""

from __future__ import annotations

import csv
import json
import sqlite3
from pathlib import Path
from typing import List

import pytest

from testmine.build_system import BuildSystem
from testmine.models import (
    Lang,
    ModuleInfo,
    ProjectInfo,
    SourceClassInfo,
    SourceMethodInfo,
    TestClassInfo,
    TestFramework,
    TestMethodInfo,
)
from testmine.writers import (
    CompositeResultWriter,
    CsvResultWriter,
    DBResultWriter,
    JsonResultWriter,
    OutputType,
    create_result_writer,
    output_file,
)
from testmine.writers.csv_writer import read_csv_records
from testmine.writers.db_writer import read_sqlite_records
from testmine.writers.json_writer import read_json_records
from testmine.writers.records import CSV_COLUMNS, test_method_to_dict as to_record


def _records() -> List[TestMethodInfo]:
    project = ProjectInfo("demo", BuildSystem.MAVEN, "https://github.com/acme/demo")
    core = ModuleInfo("core", project)
    api = ModuleInfo("api", project)
    calculator = SourceClassInfo("Calculator", "io.demo", core, Lang.JAVA)
    add = SourceMethodInfo("add", "{\n    return a + b;\n}", calculator)
    mapped = TestClassInfo(
        "CalculatorTest", "io.demo", project, core, Lang.JAVA, TestFramework.JUNIT4, calculator
    )
    unmapped = TestClassInfo("SmokeTest", "io.demo.api", project, api, Lang.KOTLIN, TestFramework.JUNIT5)
    return [
        TestMethodInfo(
            "testAdd",
            '{\n    assertEquals(3, calc.add(1, 2), "sum, \\"quoted\\"");\n}',
            "/** Adds. */",
            "testAdd",
            False,
            False,
            mapped,
            add,
        ),
        TestMethodInfo("testAddAgain", "{ calc.add(2, 2); }", "", "again", True, False, mapped, add),
        TestMethodInfo("smoke", "{ }", "// smoke", "smoke", False, True, unmapped),
    ]


def _write(writer_type, path: Path, records: List[TestMethodInfo]) -> None:  # type: ignore[no-untyped-def]
    with writer_type(path) as writer:
        writer.write_test_methods(records)


@pytest.mark.parametrize(
    ("writer_type", "reader", "filename"),
    [
        (CsvResultWriter, read_csv_records, "results.csv"),
        (JsonResultWriter, read_json_records, "results.json"),
        (DBResultWriter, read_sqlite_records, "results.db"),
    ],
)
def test_writers_preserve_records(writer_type, reader, filename, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    records = _records()
    path = tmp_path / filename

    _write(writer_type, path, records)

    assert reader(path) == [to_record(record) for record in records]


def test_csv_header_and_cells(tmp_path: Path) -> None:
    path = tmp_path / "results.csv"

    _write(CsvResultWriter, path, _records())

    with path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == CSV_COLUMNS
    header = rows[0]
    second = dict(zip(header, rows[2]))
    third = dict(zip(header, rows[3]))
    assert second["isParametrised"] == "true"
    assert second["classInfo.testFramework"] == "JUNIT4"
    assert second["sourceMethod.sourceClass.language"] == "JAVA"
    assert third["isDisabled"] == "true"
    assert third["sourceMethod.name"] == ""
    assert third["classInfo.sourceClass.name"] == ""


def test_json_layout(tmp_path: Path) -> None:
    path = tmp_path / "results.json"

    _write(JsonResultWriter, path, _records())

    text = path.read_text(encoding="utf-8")
    lines = text.split("\n")
    assert lines[0] == "["
    assert lines[-1] == "]"
    assert len(lines) == 5
    assert json.loads(lines[1].rstrip(","))["classInfo"]["moduleInfo"]["projectInfo"]["buildSystem"] == "MAVEN"
    assert json.loads(lines[3])["sourceMethod"] is None


def test_empty_json_output_is_an_empty_array(tmp_path: Path) -> None:
    path = tmp_path / "results.json"

    JsonResultWriter(path).close()

    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_sqlite_stores_shared_entities_once(tmp_path: Path) -> None:
    path = tmp_path / "results.db"

    with DBResultWriter(path, batch_size=2) as writer:
        for record in _records():
            writer.write_test_method(record)

    connection = sqlite3.connect(str(path))
    try:
        counts = {
            table: connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for table in (
                "projects",
                "modules",
                "source_classes",
                "test_classes",
                "source_methods",
                "test_methods",
            )
        }
        unmapped = connection.execute(
            "SELECT source_method FROM test_methods WHERE name = 'smoke'"
        ).fetchone()
    finally:
        connection.close()

    assert counts == {
        "projects": 1,
        "modules": 2,
        "source_classes": 1,
        "test_classes": 2,
        "source_methods": 2,
        "test_methods": 3,
    }
    assert unmapped == (None,)


def _project_records(name: str, count: int) -> List[TestMethodInfo]:
    project = ProjectInfo(name, BuildSystem.GRADLE)
    module = ModuleInfo(name, project)
    source_class = SourceClassInfo("Service", "io.demo", module, Lang.JAVA)
    test_class = TestClassInfo(
        "ServiceTest", "io.demo", project, module, Lang.JAVA, TestFramework.JUNIT5, source_class
    )
    return [
        TestMethodInfo(
            f"test{index}",
            "{ }",
            "",
            "",
            False,
            False,
            test_class,
            SourceMethodInfo("run", "{ }", source_class),
        )
        for index in range(count)
    ]


def test_sqlite_id_cache_only_holds_the_current_project(tmp_path: Path) -> None:
    path = tmp_path / "results.db"

    with DBResultWriter(path, batch_size=7) as writer:
        for index in range(10):
            writer.write_test_methods(_project_records(f"project{index}", 20))
        sizes = {table: len(cache) for table, cache in writer._recorded.items()}

    assert sizes == {"projects": 1, "modules": 1, "source_classes": 1, "test_classes": 1}
    records = read_sqlite_records(path)
    assert len(records) == 200
    assert {record["classInfo"]["projectInfo"]["name"] for record in records} == {
        f"project{index}" for index in range(10)
    }
    assert all(record["sourceMethod"]["name"] == "run" for record in records)


def test_single_format_writes_to_the_given_file(tmp_path: Path) -> None:
    path = tmp_path / "out" / "tests.csv"

    writer = create_result_writer([OutputType.CSV], path)
    writer.close()

    assert isinstance(writer, CsvResultWriter)
    assert path.is_file()


def test_multiple_formats_write_into_a_directory(tmp_path: Path) -> None:
    out = tmp_path / "out"

    with create_result_writer([OutputType.CSV, OutputType.JSON, OutputType.SQLITE], out) as writer:
        writer.write_test_methods(_records())

    assert isinstance(writer, CompositeResultWriter)
    assert sorted(path.name for path in out.iterdir()) == ["results.csv", "results.db", "results.json"]
    assert len(read_json_records(output_file(OutputType.JSON, out))) == 3
    assert len(read_csv_records(out / "results.csv")) == 3
    assert len(read_sqlite_records(out / "results.db")) == 3


def test_single_format_with_directory_path(tmp_path: Path) -> None:
    writer = create_result_writer([OutputType.SQLITE], tmp_path)
    writer.close()

    assert (tmp_path / "results.db").is_file()


def test_no_formats_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        create_result_writer([], tmp_path)


def test_output_type_suffixes() -> None:
    assert [output_type.suffix for output_type in OutputType] == ["csv", "json", "db"]
    assert OutputType("sqlite") is OutputType.SQLITE
