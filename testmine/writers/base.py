"""Result sink contract shared by every output format."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable

from ..models import TestMethodInfo


class OutputType(Enum):
    """Supported output formats and the suffix of the file each one writes."""

    CSV = ("csv", "csv")
    JSON = ("json", "json")
    SQLITE = ("sqlite", "db")

    def __new__(cls, value: str, suffix: str) -> "OutputType":
        member = object.__new__(cls)
        member._value_ = value
        member.suffix = suffix
        return member


class ResultWriter(ABC):
    """Consumes extracted test-method records; used from a single thread."""

    @abstractmethod
    def write_test_method(self, method: TestMethodInfo) -> None:
        """Persist one record."""

    def write_test_methods(self, methods: Iterable[TestMethodInfo]) -> None:
        for method in methods:
            self.write_test_method(method)

    @abstractmethod
    def close(self) -> None:
        """Flush buffered records and release the underlying resource."""

    def __enter__(self) -> "ResultWriter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["OutputType", "ResultWriter"]
