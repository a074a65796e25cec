"""Heuristics mapping a test class to the production class it exercises.

1. Strip one common test suffix (``Test``, ``ITCase``, ...) or, failing that, one
   prefix from the test class name and look the result up in the project index.
   A single candidate that the test actually uses wins immediately.
2. Otherwise split the name into camel-case tokens and try every contiguous
   token run, longest first, collecting each candidate the test uses.
3. Prefer a collected candidate from the test's own package, else the first one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from ..models import Lang, ModuleInfo, SourceClassAndLocation, SourceClassInfo
from ..parsers.base import ClassMeta
from .packages import PackageNameResolver, RegexPackageNameResolver

TEST_SUFFIXES = ("Test", "Tests", "TestCase", "IT", "ITCase")
TEST_PREFIXES = ("Test", "IT")

ClassIndex = Mapping[str, Sequence[Tuple[Path, ModuleInfo]]]


def remove_single_test_suffix_or_prefix(class_name: str) -> str:
    """Remove at most one test suffix, or one test prefix when no suffix matched."""
    for suffix in TEST_SUFFIXES:
        if class_name.endswith(suffix):
            return class_name[: -len(suffix)]
    for prefix in TEST_PREFIXES:
        if class_name.startswith(prefix):
            return class_name[len(prefix) :]
    return class_name


def split_by_tokens_camel_case(class_name: str) -> List[int]:
    """Return the lengths of the camel-case tokens of ``class_name``."""
    lengths: List[int] = []
    begin = 0
    for index in range(1, len(class_name)):
        if class_name[index].isupper():
            lengths.append(index - begin)
            begin = index
    lengths.append(len(class_name) - begin)
    return lengths


def generate_token_combinations(
    class_name: str,
    min_tokens_resolver: Optional[Callable[[List[int]], int]] = None,
) -> List[str]:
    """Return every contiguous token run of ``class_name``, longest first.

    Runs shorter than the resolver's minimum token count are skipped; names of
    equal length keep their generation order.
    """
    tokens = split_by_tokens_camel_case(class_name)
    min_tokens = min_tokens_resolver(tokens) if min_tokens_resolver else 1
    if min_tokens <= 0:
        raise ValueError("min_tokens must be higher than zero")

    result: List[str] = []
    head_chars = 0
    for head_tokens in range(len(tokens) - min_tokens + 1):
        without_head = class_name[head_chars:]
        tail_chars = 0
        for index in range(len(tokens) - 1, head_tokens + min_tokens - 2, -1):
            result.append(without_head[: len(without_head) - tail_chars])
            tail_chars += tokens[index]
        head_chars += tokens[head_tokens]
    result.sort(key=len, reverse=True)
    return result


class ClassMapper:
    """Maps test classes of one module to production classes anywhere in the project."""

    def __init__(
        self,
        module: ModuleInfo,
        class_name_to_sources: ClassIndex,
        package_name_resolver: Optional[PackageNameResolver] = None,
    ) -> None:
        self.module = module
        self._index = class_name_to_sources
        self._resolve_package = package_name_resolver or RegexPackageNameResolver()

    def find_source_class(self, class_meta: ClassMeta) -> Optional[SourceClassAndLocation]:
        primary = remove_single_test_suffix_or_prefix(class_meta.name)
        if not primary:
            return None

        candidates: List[SourceClassAndLocation] = []
        self._collect_candidates(primary, class_meta, candidates)
        if len(candidates) == 1:
            return candidates[0]

        for name in generate_token_combinations(primary):
            if name != primary:
                self._collect_candidates(name, class_meta, candidates)

        for candidate in candidates:
            if candidate.source_class.package == class_meta.package_name:
                return candidate
        return candidates[0] if candidates else None

    def _collect_candidates(
        self,
        class_name: str,
        class_meta: ClassMeta,
        sink: List[SourceClassAndLocation],
    ) -> None:
        for file, module in self._index.get(class_name, ()):
            candidate = self._create_candidate(class_name, file, module, class_meta)
            if candidate is not None and class_meta.has_class_usage(candidate):
                sink.append(candidate)

    def _create_candidate(
        self, class_name: str, file: Path, module: ModuleInfo, class_meta: ClassMeta
    ) -> Optional[SourceClassAndLocation]:
        try:
            language = Lang.from_path(file)
        except ValueError:
            return None
        if _is_in_package_dir(file, class_meta.package_name):
            package = class_meta.package_name
        else:
            package = self._resolve_package(file)
        return SourceClassAndLocation(
            SourceClassInfo(class_name, package, module, language), Path(file)
        )


def _is_in_package_dir(file: Path, package_name: str) -> bool:
    if not package_name:
        return False
    segments = package_name.split(".")
    parents = Path(file).parent.parts
    return list(parents[-len(segments) :]) == segments


__all__ = [
    "ClassIndex",
    "ClassMapper",
    "TEST_PREFIXES",
    "TEST_SUFFIXES",
    "generate_token_combinations",
    "remove_single_test_suffix_or_prefix",
    "split_by_tokens_camel_case",
]
