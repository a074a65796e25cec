"""Tests for testmine.build_system."""

from __future__ import annotations

from pathlib import Path

import pytest

from testmine.build_system import BuildSystem, detect_build_system
from tests._fixtures.repo_builder import RepoBuilder


def _pom(name: str, modules: list[str]) -> str:
    declared = "".join(f"<module>{module}</module>" for module in modules)
    modules_block = f"<modules>{declared}</modules>" if modules else ""
    return f"""
        <?xml version="1.0" encoding="UTF-8"?>
        <project xmlns="http://maven.apache.org/POM/4.0.0">
          <modelVersion>4.0.0</modelVersion>
          <artifactId>{name}</artifactId>
          <packaging>pom</packaging>
          {modules_block}
        </project>
    """


def test_gradle_modules_from_settings(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "settings.gradle": """
                rootProject.name = "prj-root"

                include "project:projectj"
                include "project:core"
                include(":project:server")
                include 'project:prj1', 'project:prj2'
                include("project:prj3",
                    "project:prj4"
                )
            """,
        }
    )
    root = repo_builder.path()

    modules = BuildSystem.GRADLE.get_project_modules(root)

    assert list(modules.items()) == [
        ("project/projectj", root / "project" / "projectj"),
        ("project/core", root / "project" / "core"),
        ("project/server", root / "project" / "server"),
        ("project/prj1", root / "project" / "prj1"),
        ("project/prj2", root / "project" / "prj2"),
        ("project/prj3", root / "project" / "prj3"),
        ("project/prj4", root / "project" / "prj4"),
    ]


def test_gradle_kts_settings_ignore_commented_includes(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "settings.gradle.kts": """
                include("app")
                // include("legacy")
                /* include("old") */
            """,
        }
    )
    root = repo_builder.path()

    assert BuildSystem.GRADLE.get_project_modules(root) == {"app": root / "app"}


def test_maven_modules(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"pom.xml": _pom("test-parent", ["android", "maven-plugin"])})
    root = repo_builder.path()

    assert list(BuildSystem.MAVEN.get_project_modules(root).items()) == [
        ("android", root / "android"),
        ("maven-plugin", root / "maven-plugin"),
    ]


def test_maven_nested_modules_replace_their_parent(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "pom.xml": _pom("grandparent", ["parent", "shared"]),
            "parent/pom.xml": _pom("parent", ["child1", "child2"]),
        }
    )
    root = repo_builder.path()

    assert list(BuildSystem.MAVEN.get_project_modules(root).items()) == [
        ("parent/child1", root / "parent" / "child1"),
        ("parent/child2", root / "parent" / "child2"),
        ("shared", root / "shared"),
    ]


@pytest.mark.parametrize("build_system", list(BuildSystem))
def test_missing_manifest_falls_back_to_project_root(
    tmp_path: Path, build_system: BuildSystem
) -> None:
    project = tmp_path / "single"
    project.mkdir()

    assert build_system.get_project_modules(project) == {"single": project}


def test_manifest_without_modules_falls_back_to_project_root(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"pom.xml": _pom("lonely", [])})
    root = repo_builder.path()

    assert BuildSystem.MAVEN.get_project_modules(root) == {"repo": root}


@pytest.mark.parametrize(
    ("manifest", "expected"),
    [
        ("build.gradle", BuildSystem.GRADLE),
        ("build.gradle.kts", BuildSystem.GRADLE),
        ("settings.gradle", BuildSystem.GRADLE),
        ("pom.xml", BuildSystem.MAVEN),
        ("build.xml", BuildSystem.ANT),
        ("README.md", BuildSystem.OTHER),
    ],
)
def test_detect_build_system(tmp_path: Path, manifest: str, expected: BuildSystem) -> None:
    (tmp_path / manifest).write_text("", encoding="utf-8")

    assert detect_build_system(tmp_path) is expected


def test_gradle_wins_over_maven(tmp_path: Path) -> None:
    (tmp_path / "pom.xml").write_text("", encoding="utf-8")
    (tmp_path / "build.gradle").write_text("", encoding="utf-8")

    assert detect_build_system(tmp_path) is BuildSystem.GRADLE


def test_test_dir_filtering_capability() -> None:
    assert BuildSystem.GRADLE.supports_test_dir_filtering
    assert BuildSystem.MAVEN.supports_test_dir_filtering
    assert not BuildSystem.ANT.supports_test_dir_filtering
    assert not BuildSystem.OTHER.supports_test_dir_filtering
