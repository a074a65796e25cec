"""Core data models shared across testmine components."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .build_system import BuildSystem


class _IdSequence:
    """Process-wide, thread-safe id counter for one entity kind."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)

    def __call__(self) -> int:
        with self._lock:
            return next(self._counter)


_PROJECT_IDS = _IdSequence()
_MODULE_IDS = _IdSequence()
_SOURCE_CLASS_IDS = _IdSequence()
_SOURCE_METHOD_IDS = _IdSequence()
_TEST_CLASS_IDS = _IdSequence()
_TEST_METHOD_IDS = _IdSequence()


class Lang(Enum):
    """Source languages with a parser front-end."""

    JAVA = ("java", "Java")
    KOTLIN = ("kt", "Kotlin")

    def __init__(self, extension: str, display_name: str) -> None:
        self.extension = extension
        self.display_name = display_name

    @property
    def suffix(self) -> str:
        return f".{self.extension}"

    @classmethod
    def from_extension(cls, extension: str) -> "Lang":
        normalized = extension.lower().lstrip(".")
        for lang in cls:
            if lang.extension == normalized:
                return lang
        raise ValueError(f"Unsupported source extension: {extension!r}")

    @classmethod
    def from_path(cls, path: Path) -> "Lang":
        return cls.from_extension(Path(path).suffix)


class TestFramework(Enum):
    """Test frameworks recognised by the content pre-filter."""

    __test__ = False

    JUNIT3 = "junit3"
    JUNIT4 = "junit4"
    JUNIT5 = "junit5"
    TESTNG = "testng"
    KOTLIN_TEST = "kotlin.test"


@dataclass(frozen=True)
class Project:
    """Identity of a project locator: ``author/name`` for remote repositories."""

    author: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.author}/{self.name}" if self.author else self.name

    @classmethod
    def from_locator(cls, locator: str) -> "Project":
        """Derive the project identity from a repository URL or a local path."""
        locator = locator.strip()
        if "://" in locator:
            segments = [segment for segment in urlparse(locator).path.split("/") if segment]
        else:
            segments = [segment for segment in Path(locator).expanduser().resolve().parts if segment]
            return cls("", segments[-1] if segments else "")

        name = segments[-1] if segments else ""
        if name.endswith(".git"):
            name = name[: -len(".git")]
        author = segments[-2] if len(segments) > 1 else ""
        return cls(author, name)


@dataclass(frozen=True)
class ProjectInfo:
    """A processed project and its build system."""

    name: str
    build_system: BuildSystem
    path: str = ""
    id: int = field(default_factory=_PROJECT_IDS)


@dataclass(frozen=True)
class ModuleInfo:
    """A named, independently source-rooted part of a project."""

    name: str
    project: ProjectInfo
    id: int = field(default_factory=_MODULE_IDS)


@dataclass(frozen=True)
class SourceClassInfo:
    """Production class resolved for a test class."""

    name: str
    package: str
    module: ModuleInfo
    language: Lang
    id: int = field(default_factory=_SOURCE_CLASS_IDS)

    @property
    def fqcn(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name


@dataclass(frozen=True)
class SourceMethodInfo:
    """Production method resolved for a test method."""

    name: str
    body: str
    source_class: SourceClassInfo
    id: int = field(default_factory=_SOURCE_METHOD_IDS)


@dataclass(frozen=True)
class TestClassInfo:
    """A parsed test class and its mapped production class, if any."""

    __test__ = False

    name: str
    package: str
    project: ProjectInfo
    module: ModuleInfo
    language: Lang
    framework: TestFramework
    source_class: Optional[SourceClassInfo] = None
    id: int = field(default_factory=_TEST_CLASS_IDS)


@dataclass(frozen=True)
class TestMethodInfo:
    """One emitted record: a test method and its mapped production method."""

    __test__ = False

    name: str
    body: str
    comment: str
    display_name: str
    is_parametrised: bool
    is_disabled: bool
    test_class: TestClassInfo
    source_method: Optional[SourceMethodInfo] = None
    id: int = field(default_factory=_TEST_METHOD_IDS)


@dataclass(frozen=True)
class SourceClassAndLocation:
    """Result of class resolution: the class and the file backing it."""

    source_class: SourceClassInfo
    file: Path


__all__ = [
    "Lang",
    "ModuleInfo",
    "Project",
    "ProjectInfo",
    "SourceClassAndLocation",
    "SourceClassInfo",
    "SourceMethodInfo",
    "TestClassInfo",
    "TestFramework",
    "TestMethodInfo",
]
