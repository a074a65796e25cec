"""Tests for test-class to source-class resolution."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from testmine.build_system import BuildSystem
from testmine.mappers.class_mapper import (
    ClassMapper,
    generate_token_combinations,
    remove_single_test_suffix_or_prefix,
    split_by_tokens_camel_case,
)
from testmine.models import Lang, ModuleInfo, ProjectInfo, SourceClassAndLocation
from testmine.parsers.base import ClassMeta, MethodMeta

MODULE = ModuleInfo("test", ProjectInfo("test", BuildSystem.OTHER, "/tmp/test"))


class StubClassMeta(ClassMeta):
    """Class view whose usage check is supplied by the test."""

    def __init__(
        self,
        name: str,
        package_name: str,
        uses: Callable[[SourceClassAndLocation], bool],
    ) -> None:
        self.name = name
        self.package_name = package_name
        self.language = Lang.JAVA
        self._uses = uses

    @property
    def methods(self) -> List[MethodMeta]:
        return []

    def has_class_usage(self, candidate: SourceClassAndLocation) -> bool:
        return self._uses(candidate)

    def has_annotation(self, name: str) -> bool:
        return False

    def get_annotation_value(self, name: str, key: Optional[str] = None) -> Optional[str]:
        return None


def path_based_package(file: Path) -> str:
    return Path(file).parent.as_posix().removeprefix("src/").replace("/", ".")


def _entities(*packages: str) -> dict:
    return {
        "Entity": [
            (Path("src/io/test") / package / "Entity.java" if package else Path("src/io/test/Entity.java"), MODULE)
            for package in packages
        ]
    }


def _assert_located(
    result: Optional[SourceClassAndLocation], name: str, package: str, file: Path
) -> None:
    assert result is not None
    assert result.source_class.name == name
    assert result.source_class.package == package
    assert result.source_class.module is MODULE
    assert result.source_class.language is Lang.JAVA
    assert result.file == file


@pytest.mark.parametrize(
    ("class_name", "expected"),
    [
        ("ImplTest", "Impl"),
        ("ImplTests", "Impl"),
        ("ImplTestCase", "Impl"),
        ("ImplIT", "Impl"),
        ("ImplITCase", "Impl"),
        ("ImplITTest", "ImplIT"),
        ("TestImpl", "Impl"),
        ("ITImpl", "Impl"),
        ("TestImplIT", "TestImpl"),
        ("Impl", "Impl"),
    ],
)
def test_remove_single_test_suffix_or_prefix(class_name: str, expected: str) -> None:
    assert remove_single_test_suffix_or_prefix(class_name) == expected


def test_split_by_tokens_camel_case() -> None:
    assert split_by_tokens_camel_case("PersistenceAnnotationBeanPostProcessor") == [11, 10, 4, 4, 9]


def test_generate_all_token_combinations() -> None:
    assert generate_token_combinations("PersistenceAnnotationBeanPostProcessor") == [
        "PersistenceAnnotationBeanPostProcessor",
        "PersistenceAnnotationBeanPost",
        "AnnotationBeanPostProcessor",
        "PersistenceAnnotationBean",
        "PersistenceAnnotation",
        "AnnotationBeanPost",
        "BeanPostProcessor",
        "AnnotationBean",
        "PostProcessor",
        "Persistence",
        "Annotation",
        "Processor",
        "BeanPost",
        "Bean",
        "Post",
    ]


def test_generate_token_combinations_with_three_or_more_tokens() -> None:
    assert generate_token_combinations("PersistenceAnnotationBeanPostProcessor", lambda _: 3) == [
        "PersistenceAnnotationBeanPostProcessor",
        "PersistenceAnnotationBeanPost",
        "AnnotationBeanPostProcessor",
        "PersistenceAnnotationBean",
        "AnnotationBeanPost",
        "BeanPostProcessor",
    ]


def test_generate_token_combinations_rejects_non_positive_minimum() -> None:
    with pytest.raises(ValueError):
        generate_token_combinations("EntityService", lambda _: 0)


def test_single_source_in_same_package_is_located() -> None:
    entity = Path("src/io/test/Entity.java")
    mapper = ClassMapper(MODULE, {"Entity": [(entity, MODULE)]}, lambda _: "io.test")

    result = mapper.find_source_class(StubClassMeta("EntityTest", "io.test", lambda _: True))

    _assert_located(result, "Entity", "io.test", entity)


def test_same_package_wins_when_all_same_name_classes_are_used() -> None:
    mapper = ClassMapper(MODULE, _entities("", "dto", "model"), path_based_package)

    result = mapper.find_source_class(StubClassMeta("EntityTest", "io.test", lambda _: True))

    _assert_located(result, "Entity", "io.test", Path("src/io/test/Entity.java"))


def test_only_used_class_is_chosen_even_outside_test_package() -> None:
    expected = Path("src/io/test/model/Entity.java")
    mapper = ClassMapper(MODULE, _entities("", "dto", "model"), path_based_package)

    result = mapper.find_source_class(
        StubClassMeta("EntityTest", "io.test", lambda candidate: candidate.file == expected)
    )

    _assert_located(result, "Entity", "io.test.model", expected)


def test_class_named_after_a_token_of_the_test_name_is_chosen() -> None:
    expected = Path("src/io/test/model/Entity.java")
    mapper = ClassMapper(MODULE, {"Entity": [(expected, MODULE)]}, path_based_package)

    result = mapper.find_source_class(
        StubClassMeta("SerializingEntityAsJsonTest", "io.test", lambda candidate: candidate.file == expected)
    )

    _assert_located(result, "Entity", "io.test.model", expected)


def test_longer_token_combination_is_preferred() -> None:
    service = Path("src/io/test/EntityService.java")
    entity = Path("src/io/test/Entity.java")
    index = {"EntityService": [(service, MODULE)], "Entity": [(entity, MODULE)]}
    mapper = ClassMapper(MODULE, index, path_based_package)

    result = mapper.find_source_class(StubClassMeta("EntityServiceCachingTest", "io.other", lambda _: True))

    _assert_located(result, "EntityService", "io.test", service)


def test_unused_candidates_are_never_returned() -> None:
    mapper = ClassMapper(MODULE, _entities("", "dto"), path_based_package)

    assert mapper.find_source_class(StubClassMeta("EntityTest", "io.test", lambda _: False)) is None


def test_test_named_only_by_marker_maps_to_nothing() -> None:
    mapper = ClassMapper(MODULE, _entities(""), path_based_package)

    assert mapper.find_source_class(StubClassMeta("Test", "io.test", lambda _: True)) is None
