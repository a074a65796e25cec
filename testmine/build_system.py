"""Build system detection and module discovery for JVM projects."""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Set

from .logging import get_logger

_LOGGER = get_logger("build_system")

_GRADLE_BUILD_FILES = ("build.gradle", "build.gradle.kts")
_GRADLE_SETTINGS_FILES = ("settings.gradle", "settings.gradle.kts")

# include 'a', "b"  |  include("a",\n "b")  |  include ':a:b'
_GRADLE_INCLUDE = re.compile(r"""\binclude\b\s*\(?((?:\s*["'][^"'\n]+["']\s*,?)+)""")
_QUOTED = re.compile(r"""["']([^"'\n]+)["']""")
_GRADLE_LINE_COMMENT = re.compile(r"^\s*//.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)

_MAVEN_MODULE = re.compile(r"(?<=<module>)[^<]*(?=</module>)")
_XML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)


class BuildSystem(Enum):
    """Closed set of build tools a project can be laid out with."""

    GRADLE = "gradle"
    MAVEN = "maven"
    ANT = "ant"
    OTHER = "other"

    @property
    def supports_test_dir_filtering(self) -> bool:
        """True when the tool keeps test sources under a dedicated directory."""
        return self in (BuildSystem.GRADLE, BuildSystem.MAVEN)

    def get_project_modules(self, project_dir: Path | str) -> Dict[str, Path]:
        """Return ``module path -> directory`` for every declared module.

        Keys are module paths relative to the project root using ``/``. When the
        manifest is missing or declares nothing, the whole project is one module
        named after its directory.
        """
        root = Path(project_dir)
        modules: Dict[str, Path] = {}
        if self is BuildSystem.GRADLE:
            modules = _gradle_modules(root)
        elif self is BuildSystem.MAVEN:
            modules = _maven_modules(root, root, set())

        if not modules:
            if self.supports_test_dir_filtering:
                _LOGGER.info(
                    "No %s modules declared in %s; treating project root as a single module",
                    self.name,
                    root,
                )
            return {root.name: root}
        return modules


def detect_build_system(project_dir: Path | str) -> BuildSystem:
    """Classify a project root by its well-known manifest files."""
    root = Path(project_dir)
    if any((root / name).is_file() for name in _GRADLE_BUILD_FILES + _GRADLE_SETTINGS_FILES):
        return BuildSystem.GRADLE
    if (root / "pom.xml").is_file():
        return BuildSystem.MAVEN
    if (root / "build.xml").is_file():
        return BuildSystem.ANT
    return BuildSystem.OTHER


def _read_manifest(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        _LOGGER.debug("Cannot read manifest %s: %s", path, exc)
        return None


def _module_key(root: Path, module_dir: Path) -> str:
    return Path(os.path.relpath(module_dir, root)).as_posix()


def _gradle_modules(root: Path) -> Dict[str, Path]:
    text = None
    for name in _GRADLE_SETTINGS_FILES:
        candidate = root / name
        if candidate.is_file():
            text = _read_manifest(candidate)
            break
    if not text:
        return {}

    text = _BLOCK_COMMENT.sub("", _GRADLE_LINE_COMMENT.sub("", text))
    modules: Dict[str, Path] = {}
    for statement in _GRADLE_INCLUDE.finditer(text):
        for declared in _QUOTED.findall(statement.group(1)):
            segments = [segment for segment in declared.strip().split(":") if segment]
            if not segments:
                continue
            module_dir = root.joinpath(*segments)
            modules[_module_key(root, module_dir)] = module_dir
    return modules


def _maven_modules(root: Path, base: Path, visited: Set[Path]) -> Dict[str, Path]:
    pom = base / "pom.xml"
    if not pom.is_file():
        return {}
    marker = pom.resolve()
    if marker in visited:
        return {}
    visited.add(marker)

    text = _read_manifest(pom)
    if not text:
        return {}

    modules: Dict[str, Path] = {}
    for declared in _MAVEN_MODULE.findall(_XML_COMMENT.sub("", text)):
        declared = declared.strip()
        if not declared:
            continue
        module_dir = Path(os.path.normpath(base / declared))
        nested = _maven_modules(root, module_dir, visited)
        if nested:
            modules.update(nested)
        else:
            modules[_module_key(root, module_dir)] = module_dir
    return modules


__all__ = ["BuildSystem", "detect_build_system"]
