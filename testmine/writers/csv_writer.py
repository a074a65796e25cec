"""Delimited-text sink: one flattened row per test method."""

from __future__ import annotations

import csv
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from ..models import TestMethodInfo
from .base import ResultWriter
from .records import CSV_COLUMNS, Record, flatten, test_method_to_dict, unflatten

_BOOLEAN_COLUMNS = ("isParametrised", "isDisabled")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.name
    return str(value)


class CsvResultWriter(ResultWriter):
    """Writes a header row followed by one RFC-4180 quoted row per record."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("w", encoding="utf-8", newline="")
        self._writer = csv.DictWriter(self._handle, fieldnames=CSV_COLUMNS)
        self._writer.writeheader()

    def write_test_method(self, method: TestMethodInfo) -> None:
        row = {key: _cell(value) for key, value in flatten(test_method_to_dict(method)).items()}
        self._writer.writerow(row)

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()


def read_csv_records(path: Path) -> List[Record]:
    """Read rows back as nested records with booleans restored."""
    records: List[Record] = []
    with Path(path).open("r", encoding="utf-8", newline="") as handle:
        for row in csv.DictReader(handle):
            flat: Dict[str, Any] = dict(row)
            for column in _BOOLEAN_COLUMNS:
                flat[column] = flat.get(column) == "true"
            records.append(unflatten(flat))
    return records


__all__ = ["CsvResultWriter", "read_csv_records"]
