"""Heuristics mapping a test method to the production method it exercises."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import Lang, SourceClassAndLocation, SourceClassInfo, SourceMethodInfo
from ..parsers import get_meta_factory
from ..parsers.base import MethodMeta, group_by_name


class MethodMatchStrategy(Enum):
    """Which call inside the test body identifies the production method."""

    LAST_CALL = "last_call"
    NAME_MATCH = "name_match"


def expected_source_method_name(test_method_name: str) -> str:
    """``testParseHeader`` -> ``parseHeader``."""
    name = test_method_name[len("test") :] if test_method_name.startswith("test") else test_method_name
    return name[:1].lower() + name[1:]


class SourceMethodMapper:
    """Chooses a production method among the methods declared in the source file."""

    def __init__(self, strategy: MethodMatchStrategy = MethodMatchStrategy.LAST_CALL) -> None:
        self.strategy = strategy

    def find_source_method(
        self,
        test_method: MethodMeta,
        source_class: SourceClassInfo,
        candidates: Sequence[MethodMeta],
    ) -> Optional[SourceMethodInfo]:
        if self.strategy is MethodMatchStrategy.NAME_MATCH:
            match = self._match_by_expected_name(test_method, candidates)
        else:
            match = test_method.find_last_method_call(group_by_name(candidates))
        if match is None:
            return None
        return SourceMethodInfo(match.name, match.body, source_class)

    @staticmethod
    def _match_by_expected_name(
        test_method: MethodMeta, candidates: Sequence[MethodMeta]
    ) -> Optional[MethodMeta]:
        expected = expected_source_method_name(test_method.name)
        invoked = [
            candidate
            for candidate in candidates
            if candidate.name and candidate.name in expected and test_method.has_method_call(candidate)
        ]
        return invoked[0] if len(invoked) == 1 else None


class DelegatingMethodMapper:
    """Parses the resolved source file with its language front-end, then matches.

    Parsed candidates are cached per source file for the lifetime of the mapper,
    which covers one test class.
    """

    def __init__(self, strategy: MethodMatchStrategy = MethodMatchStrategy.LAST_CALL) -> None:
        self._mapper = SourceMethodMapper(strategy)
        self._candidates: Dict[str, List[MethodMeta]] = {}
        self.logger = get_logger("mappers.method_mapper")

    @property
    def strategy(self) -> MethodMatchStrategy:
        return self._mapper.strategy

    def candidates_for(self, location: SourceClassAndLocation) -> List[MethodMeta]:
        key = str(location.file)
        candidates = self._candidates.get(key)
        if candidates is None:
            language = Lang.from_path(location.file)
            candidates = get_meta_factory(language).parse_methods(location.file)
            self.logger.debug("Parsed %d candidate methods in %s", len(candidates), location.file)
            self._candidates[key] = candidates
        return candidates

    def find_source_method(
        self, test_method: MethodMeta, location: SourceClassAndLocation
    ) -> Optional[SourceMethodInfo]:
        return self._mapper.find_source_method(
            test_method, location.source_class, self.candidates_for(location)
        )


__all__ = [
    "DelegatingMethodMapper",
    "MethodMatchStrategy",
    "SourceMethodMapper",
    "expected_source_method_name",
]
