"""Structured-document sink: a JSON array streamed one element at a time."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from ..models import TestMethodInfo
from .base import ResultWriter
from .records import Record, test_method_to_dict


class JsonResultWriter(ResultWriter):
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("w", encoding="utf-8")
        self._handle.write("[\n")
        self._first = True

    def write_test_method(self, method: TestMethodInfo) -> None:
        if not self._first:
            self._handle.write(",\n")
        self._first = False
        json.dump(test_method_to_dict(method), self._handle, ensure_ascii=False, separators=(",", ":"))

    def close(self) -> None:
        if self._handle.closed:
            return
        self._handle.write("\n]" if not self._first else "]")
        self._handle.close()


def read_json_records(path: Path) -> List[Record]:
    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle)


__all__ = ["JsonResultWriter", "read_json_records"]
