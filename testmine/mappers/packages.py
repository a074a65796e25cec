"""Package name extraction for candidate source files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable

from ..logging import get_logger

_LOGGER = get_logger("mappers.packages")

_PACKAGE_DECLARATION = re.compile(r"^\s*package\s+([^;\s]+)", re.MULTILINE)

PackageNameResolver = Callable[[Path], str]


class RegexPackageNameResolver:
    """Reads the ``package`` declaration of a Java or Kotlin file with a regex."""

    def __call__(self, file: Path) -> str:
        try:
            text = Path(file).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            _LOGGER.debug("Cannot read %s for package name: %s", file, exc)
            return ""
        return self.extract_package_name(text)

    @staticmethod
    def extract_package_name(text: str) -> str:
        match = _PACKAGE_DECLARATION.search(text)
        return match.group(1) if match else ""


__all__ = ["PackageNameResolver", "RegexPackageNameResolver"]
