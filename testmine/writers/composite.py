"""Fan-out sink used when several output formats are requested."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ..models import TestMethodInfo
from .base import ResultWriter


class CompositeResultWriter(ResultWriter):
    def __init__(self, delegates: Sequence[ResultWriter]) -> None:
        self.delegates: List[ResultWriter] = list(delegates)

    def write_test_method(self, method: TestMethodInfo) -> None:
        for delegate in self.delegates:
            delegate.write_test_method(method)

    def write_test_methods(self, methods: Iterable[TestMethodInfo]) -> None:
        batch = list(methods)
        for delegate in self.delegates:
            delegate.write_test_methods(batch)

    def close(self) -> None:
        errors: List[BaseException] = []
        for delegate in self.delegates:
            try:
                delegate.close()
            except Exception as exc:
                errors.append(exc)
        if errors:
            raise errors[0]


__all__ = ["CompositeResultWriter"]
