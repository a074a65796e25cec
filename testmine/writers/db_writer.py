"""Relational sink backed by SQLite.

Each distinct project, module, source class and test class is inserted once;
later records of the same project reuse the stored row id. The id caches are
dropped whenever a record of another project arrives, so memory stays bounded
by the largest project. Source methods are inserted per record. Records are
buffered and flushed in batches, one transaction per batch.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..logging import get_logger
from ..models import (
    ModuleInfo,
    ProjectInfo,
    SourceClassInfo,
    SourceMethodInfo,
    TestClassInfo,
    TestMethodInfo,
)
from .base import ResultWriter
from .records import Record

BATCH_SIZE = 100

_SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    build_system TEXT NOT NULL,
    path TEXT NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS modules (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    project INTEGER NOT NULL REFERENCES projects(id)
);
CREATE TABLE IF NOT EXISTS source_classes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    package TEXT NOT NULL,
    language TEXT NOT NULL,
    module INTEGER NOT NULL REFERENCES modules(id)
);
CREATE TABLE IF NOT EXISTS test_classes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    package TEXT NOT NULL,
    language TEXT NOT NULL,
    test_framework TEXT NOT NULL,
    project INTEGER NOT NULL REFERENCES projects(id),
    module INTEGER NOT NULL REFERENCES modules(id),
    source_class INTEGER REFERENCES source_classes(id)
);
CREATE TABLE IF NOT EXISTS source_methods (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    body TEXT NOT NULL,
    source_class INTEGER NOT NULL REFERENCES source_classes(id)
);
CREATE TABLE IF NOT EXISTS test_methods (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    body TEXT NOT NULL,
    comment TEXT NOT NULL,
    display_name TEXT NOT NULL,
    is_parametrised INTEGER NOT NULL,
    is_disabled INTEGER NOT NULL,
    test_class INTEGER NOT NULL REFERENCES test_classes(id),
    source_method INTEGER REFERENCES source_methods(id)
);
"""


class DBResultWriter(ResultWriter):
    def __init__(self, path: Path, *, batch_size: int = BATCH_SIZE) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.batch_size = batch_size
        self.logger = get_logger("writers.sqlite")
        # Created on the caller's thread, written from the sink thread.
        self._connection = sqlite3.connect(str(self.path), check_same_thread=False)
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._connection.executescript(_SCHEMA)
        self._connection.commit()
        self._batch: List[TestMethodInfo] = []
        self._recorded: Dict[str, Dict[int, int]] = {
            "projects": {},
            "modules": {},
            "source_classes": {},
            "test_classes": {},
        }
        self._current_project: Optional[int] = None
        self._closed = False

    def write_test_method(self, method: TestMethodInfo) -> None:
        self._batch.append(method)
        if len(self._batch) >= self.batch_size:
            self._flush()

    def write_test_methods(self, methods) -> None:  # type: ignore[no-untyped-def]
        for method in methods:
            self.write_test_method(method)
        self._flush()

    def close(self) -> None:
        if self._closed:
            return
        self._flush()
        self._connection.close()
        self._closed = True
        self._recorded.clear()

    def _flush(self) -> None:
        if not self._batch:
            return
        batch, self._batch = self._batch, []
        try:
            with self._connection:
                cursor = self._connection.cursor()
                for method in batch:
                    self._insert_test_method(cursor, method)
        except sqlite3.Error:
            # Rolled back; cached ids may point at rows that no longer exist.
            self._forget_recorded()
            raise
        self.logger.debug("Stored %d test methods in %s", len(batch), self.path)

    def _insert_if_new(
        self, table: str, entity_id: int, insert: Callable[[], Optional[int]]
    ) -> int:
        cache = self._recorded[table]
        row_id = cache.get(entity_id)
        if row_id is None:
            row_id = insert()
            if row_id is None:
                raise sqlite3.DatabaseError(f"Insert into {table} returned no row id")
            cache[entity_id] = row_id
        return row_id

    def _project_id(self, cursor: sqlite3.Cursor, project: ProjectInfo) -> int:
        def insert() -> Optional[int]:
            cursor.execute(
                "INSERT INTO projects (name, build_system, path) VALUES (?, ?, ?)",
                (project.name, project.build_system.name, project.path),
            )
            return cursor.lastrowid

        return self._insert_if_new("projects", project.id, insert)

    def _module_id(self, cursor: sqlite3.Cursor, module: ModuleInfo) -> int:
        def insert() -> Optional[int]:
            cursor.execute(
                "INSERT INTO modules (name, project) VALUES (?, ?)",
                (module.name, self._project_id(cursor, module.project)),
            )
            return cursor.lastrowid

        return self._insert_if_new("modules", module.id, insert)

    def _source_class_id(self, cursor: sqlite3.Cursor, source_class: SourceClassInfo) -> int:
        def insert() -> Optional[int]:
            cursor.execute(
                "INSERT INTO source_classes (name, package, language, module) VALUES (?, ?, ?, ?)",
                (
                    source_class.name,
                    source_class.package,
                    source_class.language.name,
                    self._module_id(cursor, source_class.module),
                ),
            )
            return cursor.lastrowid

        return self._insert_if_new("source_classes", source_class.id, insert)

    def _test_class_id(self, cursor: sqlite3.Cursor, test_class: TestClassInfo) -> int:
        def insert() -> Optional[int]:
            source_class_id = (
                self._source_class_id(cursor, test_class.source_class)
                if test_class.source_class is not None
                else None
            )
            cursor.execute(
                "INSERT INTO test_classes "
                "(name, package, language, test_framework, project, module, source_class) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    test_class.name,
                    test_class.package,
                    test_class.language.name,
                    test_class.framework.name,
                    self._project_id(cursor, test_class.project),
                    self._module_id(cursor, test_class.module),
                    source_class_id,
                ),
            )
            return cursor.lastrowid

        return self._insert_if_new("test_classes", test_class.id, insert)

    def _source_method_id(self, cursor: sqlite3.Cursor, source_method: SourceMethodInfo) -> int:
        cursor.execute(
            "INSERT INTO source_methods (name, body, source_class) VALUES (?, ?, ?)",
            (
                source_method.name,
                source_method.body,
                self._source_class_id(cursor, source_method.source_class),
            ),
        )
        if cursor.lastrowid is None:
            raise sqlite3.DatabaseError("Insert into source_methods returned no row id")
        return cursor.lastrowid

    def _enter_project(self, project: ProjectInfo) -> None:
        if project.id != self._current_project:
            self._forget_recorded()
            self._current_project = project.id

    def _forget_recorded(self) -> None:
        for cache in self._recorded.values():
            cache.clear()
        self._current_project = None

    def _insert_test_method(self, cursor: sqlite3.Cursor, method: TestMethodInfo) -> None:
        self._enter_project(method.test_class.project)
        test_class_id = self._test_class_id(cursor, method.test_class)
        source_method_id = (
            self._source_method_id(cursor, method.source_method)
            if method.source_method is not None
            else None
        )
        cursor.execute(
            "INSERT INTO test_methods "
            "(name, body, comment, display_name, is_parametrised, is_disabled, test_class, source_method) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                method.name,
                method.body,
                method.comment,
                method.display_name,
                int(method.is_parametrised),
                int(method.is_disabled),
                test_class_id,
                source_method_id,
            ),
        )


def _project_record(row: sqlite3.Row, prefix: str) -> Record:
    return {"name": row[f"{prefix}_name"], "buildSystem": row[f"{prefix}_build_system"]}


def read_sqlite_records(path: Path) -> List[Record]:
    """Rebuild nested records, shaped like the JSON output, from a database."""
    connection = sqlite3.connect(str(path))
    connection.row_factory = sqlite3.Row
    try:
        source_classes = _read_source_classes(connection)
        rows = connection.execute(
            """
            SELECT tm.name, tm.body, tm.comment, tm.display_name, tm.is_parametrised,
                   tm.is_disabled, tc.name AS class_name, tc.package AS class_package,
                   tc.language AS class_language, tc.test_framework, tc.source_class,
                   p.name AS p_name, p.build_system AS p_build_system,
                   m.name AS m_name, mp.name AS mp_name, mp.build_system AS mp_build_system,
                   sm.name AS sm_name, sm.body AS sm_body, sm.source_class AS sm_source_class
            FROM test_methods tm
            JOIN test_classes tc ON tc.id = tm.test_class
            JOIN projects p ON p.id = tc.project
            JOIN modules m ON m.id = tc.module
            JOIN projects mp ON mp.id = m.project
            LEFT JOIN source_methods sm ON sm.id = tm.source_method
            ORDER BY tm.id
            """
        ).fetchall()
    finally:
        connection.close()

    records: List[Record] = []
    for row in rows:
        source_method = None
        if row["sm_name"] is not None:
            source_method = {
                "name": row["sm_name"],
                "body": row["sm_body"],
                "sourceClass": source_classes.get(row["sm_source_class"]),
            }
        records.append(
            {
                "name": row["name"],
                "body": row["body"],
                "comment": row["comment"],
                "displayName": row["display_name"],
                "isParametrised": bool(row["is_parametrised"]),
                "isDisabled": bool(row["is_disabled"]),
                "classInfo": {
                    "name": row["class_name"],
                    "package": row["class_package"],
                    "projectInfo": _project_record(row, "p"),
                    "moduleInfo": {"name": row["m_name"], "projectInfo": _project_record(row, "mp")},
                    "language": row["class_language"],
                    "testFramework": row["test_framework"],
                    "sourceClass": source_classes.get(row["source_class"]),
                },
                "sourceMethod": source_method,
            }
        )
    return records


def _read_source_classes(connection: sqlite3.Connection) -> Dict[int, Record]:
    rows = connection.execute(
        """
        SELECT sc.id, sc.name, sc.package, sc.language, m.name AS m_name,
               p.name AS p_name, p.build_system AS p_build_system
        FROM source_classes sc
        JOIN modules m ON m.id = sc.module
        JOIN projects p ON p.id = m.project
        """
    ).fetchall()
    return {
        row["id"]: {
            "name": row["name"],
            "package": row["package"],
            "moduleInfo": {"name": row["m_name"], "projectInfo": _project_record(row, "p")},
            "language": row["language"],
        }
        for row in rows
    }


__all__ = ["BATCH_SIZE", "DBResultWriter", "read_sqlite_records"]
