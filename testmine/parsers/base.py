"""Language-neutral views over parsed test and source declarations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from ..models import Lang, SourceClassAndLocation

_OBJECT_METHODS = frozenset({"equals", "hashCode", "toString"})


class MethodMeta(ABC):
    """Read-only view of one declared method or function."""

    name: str
    parameter_count: int
    body: str
    comment: str
    is_public: bool

    @abstractmethod
    def has_annotation(self, name: str) -> bool:
        """Return True when the method carries the annotation with this simple name."""

    @abstractmethod
    def get_annotation_value(self, name: str, key: Optional[str] = None) -> Optional[str]:
        """Return the annotation argument (``value`` when ``key`` is None) or None."""

    @abstractmethod
    def method_calls(self) -> Sequence[Tuple[str, int]]:
        """Return ``(callee name, argument count)`` for every call, in source order."""

    def has_method_call(self, method: "MethodMeta") -> bool:
        return any(
            name == method.name and arg_count == method.parameter_count
            for name, arg_count in self.method_calls()
        )

    def find_last_method_call(
        self, methods_by_name: Mapping[str, Sequence["MethodMeta"]]
    ) -> Optional["MethodMeta"]:
        last: Optional[MethodMeta] = None
        for name, arg_count in self.method_calls():
            if name in _OBJECT_METHODS:
                continue
            for candidate in methods_by_name.get(name, ()):
                if candidate.parameter_count == arg_count:
                    last = candidate
                    break
        return last

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, parameters={self.parameter_count})"


class ClassMeta(ABC):
    """Read-only view of one parsed class declaration."""

    name: str
    package_name: str
    language: Lang

    @property
    @abstractmethod
    def methods(self) -> List[MethodMeta]:
        """Methods declared in the class."""

    @abstractmethod
    def has_class_usage(self, candidate: SourceClassAndLocation) -> bool:
        """Return True when the declaration references the candidate class."""

    @abstractmethod
    def has_annotation(self, name: str) -> bool:
        """Return True when the class carries the annotation with this simple name."""

    @abstractmethod
    def get_annotation_value(self, name: str, key: Optional[str] = None) -> Optional[str]:
        """Return the class annotation argument or None."""


class MetaFactory(ABC):
    """Parser front-end for one language."""

    language: Lang

    @abstractmethod
    def parse_classes(self, file: Path, content: str) -> List[ClassMeta]:
        """Return the top-level classes of ``content``; ``[]`` when unparseable."""

    @abstractmethod
    def parse_methods(self, file: Path) -> List[MethodMeta]:
        """Return every method declared in ``file``; ``[]`` when unreadable."""


def read_source(file: Path) -> str:
    return Path(file).read_text(encoding="utf-8", errors="replace")


def group_by_name(methods: Iterable[MethodMeta]) -> dict[str, List[MethodMeta]]:
    grouped: dict[str, List[MethodMeta]] = {}
    for method in methods:
        grouped.setdefault(method.name, []).append(method)
    return grouped


__all__ = ["ClassMeta", "MetaFactory", "MethodMeta", "group_by_name", "read_source"]
