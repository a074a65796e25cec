from __future__ import annotations

from pathlib import Path

import pytest

from testmine.build_system import BuildSystem
from testmine.models import ModuleInfo, ProjectInfo
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def gradle_module() -> ModuleInfo:
    """A module of a Gradle project, the layout most fixtures use."""
    return ModuleInfo("repo", ProjectInfo("repo", BuildSystem.GRADLE))
