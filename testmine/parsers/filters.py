"""Cheap textual checks run before a test file is fully parsed."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..build_system import BuildSystem
from ..models import Lang, TestFramework


class TestFileFilter:
    """Keeps files that live under a conventional test-source directory."""

    __test__ = False

    def __init__(self, separator: str = os.sep) -> None:
        self._maven_prefix = f"src{separator}test{separator}"
        escaped = re.escape(separator)
        # src/test/, src/commonTest/, src/integrationTest/, ...
        self._gradle_pattern = re.compile(f"src{escaped}[^{escaped}tT]*[Tt]est{escaped}")

    def find_files_in_test_dir(
        self,
        language: Lang,
        build_system: BuildSystem,
        files: Sequence[Path],
        *,
        allow_prefilter: bool = True,
    ) -> List[Path]:
        result: List[Path] = []
        for file in files:
            path = str(file)
            if not path.endswith(language.suffix):
                continue
            if allow_prefilter and build_system is BuildSystem.GRADLE:
                if not self._gradle_pattern.search(path):
                    continue
            elif allow_prefilter and build_system is BuildSystem.MAVEN:
                if self._maven_prefix not in path:
                    continue
            result.append(file)
        return result


_DEFAULT_FILTER = TestFileFilter()


def find_files_in_test_dir(
    language: Lang,
    build_system: BuildSystem,
    files: Sequence[Path],
    *,
    allow_prefilter: bool = True,
) -> List[Path]:
    """Filter ``files`` using the platform path separator."""
    return _DEFAULT_FILTER.find_files_in_test_dir(
        language, build_system, files, allow_prefilter=allow_prefilter
    )


def _matches_at(content: str, index: int, target: str) -> bool:
    return index >= 0 and content.startswith(target, index + len("junit"))


def detect_test_framework(content: str) -> Optional[TestFramework]:
    """Guess the test framework of a source file from its raw text.

    Files without the literal ``Test`` are rejected outright. The variant of
    JUnit is decided from the characters right after the first ``junit``.
    """
    if "Test" not in content:
        return None
    junit_index = content.find("junit")
    if _matches_at(content, junit_index, ".jupiter"):
        return TestFramework.JUNIT5
    if _matches_at(content, junit_index, ".framework"):
        return TestFramework.JUNIT3
    if junit_index >= 0:
        return TestFramework.JUNIT4
    if "testng" in content:
        return TestFramework.TESTNG
    if "kotlin.test" in content:
        return TestFramework.KOTLIN_TEST
    return None


__all__ = ["TestFileFilter", "detect_test_framework", "find_files_in_test_dir"]
