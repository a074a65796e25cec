"""Tests for the tree-sitter Java front-end."""

from __future__ import annotations

from pathlib import Path

from testmine.models import Lang, ModuleInfo, SourceClassAndLocation, SourceClassInfo
from testmine.parsers import get_meta_factory
from testmine.parsers.base import group_by_name
from testmine.parsers.java import JavaMetaFactory

COMMENTED_TEST = """package project;

import org.junit.Test;

import static org.junit.Assert.assertEquals;

public class CommentJavaTest {
    // This is a first line of comments
    // This is a second line of comments
    @Test
    public void testSlashComment() {
        assertEquals(1, 1);
    }

    /*
     This is a multiline comment
     */
    @Test
    public void testMultiLineComment() {
        assertEquals(1, 1);
    }

    /**
     This is Javadoc comment
     */
    @Test
    public void testJavadocComment() {
        assertEquals(1, 1);
    }

    @Test
    public void testWithoutComment() {
        assertEquals(1, 1);
    }
}
"""


def _parse(content: str, file: str = "src/test/java/project/SampleTest.java"):
    classes = JavaMetaFactory().parse_classes(Path(file), content)
    assert classes
    return classes


def _candidate(module: ModuleInfo, name: str, package: str) -> SourceClassAndLocation:
    return SourceClassAndLocation(
        SourceClassInfo(name, package, module, Lang.JAVA),
        Path(f"src/main/java/{package.replace('.', '/')}/{name}.java"),
    )


def test_factory_is_selected_by_language() -> None:
    assert isinstance(get_meta_factory(Lang.JAVA), JavaMetaFactory)


def test_class_view_exposes_name_package_and_methods() -> None:
    (test_class,) = _parse(COMMENTED_TEST)

    assert test_class.name == "CommentJavaTest"
    assert test_class.package_name == "project"
    assert [method.name for method in test_class.methods] == [
        "testSlashComment",
        "testMultiLineComment",
        "testJavadocComment",
        "testWithoutComment",
    ]


def test_method_body_and_comments() -> None:
    (test_class,) = _parse(COMMENTED_TEST)
    methods = {method.name: method for method in test_class.methods}

    assert methods["testSlashComment"].comment == (
        "// This is a first line of comments\n// This is a second line of comments"
    )
    assert methods["testMultiLineComment"].comment == "/*\n     This is a multiline comment\n     */"
    assert methods["testJavadocComment"].comment == "/**\n     This is Javadoc comment\n     */"
    assert methods["testWithoutComment"].comment == ""
    assert methods["testSlashComment"].body == "{\n        assertEquals(1, 1);\n    }"
    assert methods["testSlashComment"].parameter_count == 0
    assert methods["testSlashComment"].is_public


def test_annotations_and_values() -> None:
    (test_class,) = _parse(
        """
package project;

import org.junit.Test;
import org.junit.runner.RunWith;
import org.junit.runners.Parameterized;

@RunWith(Parameterized.class)
class ParameterizedJavaTest {
    @Test(description = "described", enabled = false)
    @org.junit.jupiter.api.DisplayName("Test with DisplayName")
    void testAnnotated(int value) {
    }
}
""".lstrip()
    )
    (method,) = test_class.methods

    assert test_class.has_annotation("RunWith")
    assert test_class.get_annotation_value("RunWith") == "Parameterized.class"
    assert method.has_annotation("Test")
    assert method.has_annotation("DisplayName")
    assert not method.has_annotation("Disabled")
    assert method.get_annotation_value("DisplayName") == "Test with DisplayName"
    assert method.get_annotation_value("Test", "description") == "described"
    assert method.get_annotation_value("Test", "enabled") == "false"
    assert method.get_annotation_value("Test") is None
    assert method.parameter_count == 1
    assert not method.is_public


def test_method_calls_in_source_order() -> None:
    (test_class,) = _parse(
        """
package io.test;

class ServiceTest {
    @Test
    void testSave() {
        Service service = new Service();
        service.prepare();
        service.save("a", 1);
        assertEquals(service.toString(), "x");
    }
}
""".lstrip()
    )
    (method,) = test_class.methods

    assert list(method.method_calls()) == [
        ("prepare", 0),
        ("save", 2),
        ("assertEquals", 2),
        ("toString", 0),
    ]


def test_last_method_call_skips_object_methods(tmp_path: Path) -> None:
    source = tmp_path / "Service.java"
    source.write_text(
        """
package io.test;

public class Service {
    public void prepare() {}
    public boolean save(String key, int value) { return true; }
    public boolean save(String key) { return true; }
    public String toString() { return "service"; }
}
""".lstrip(),
        encoding="utf-8",
    )
    candidates = JavaMetaFactory().parse_methods(source)
    (test_class,) = _parse(
        """
class ServiceTest {
    void testSave() {
        service.prepare();
        service.save("a", 1);
        service.toString();
    }
}
"""
    )
    (method,) = test_class.methods

    last = method.find_last_method_call(group_by_name(candidates))

    assert [candidate.name for candidate in candidates] == ["prepare", "save", "save", "toString"]
    assert last is not None
    assert last.name == "save"
    assert last.parameter_count == 2


def test_usage_in_same_package_needs_no_import(gradle_module: ModuleInfo) -> None:
    (test_class,) = _parse(
        """
package io.test;

class EntityTest {
    void testCreate() {
        Entity entity = new Entity();
    }
}
"""
    )

    assert test_class.has_class_usage(_candidate(gradle_module, "Entity", "io.test"))
    assert not test_class.has_class_usage(_candidate(gradle_module, "Other", "io.test"))


def test_usage_from_other_package_requires_import(gradle_module: ModuleInfo) -> None:
    without_import = """
package io.test;

class EntityTest {
    void testCreate() {
        Entity entity = new Entity();
    }
}
"""
    with_import = """
package io.test;

import io.test.model.Entity;

class EntityTest {
    void testCreate() {
        Entity entity = new Entity();
    }
}
"""
    candidate = _candidate(gradle_module, "Entity", "io.test.model")

    assert not _parse(without_import)[0].has_class_usage(candidate)
    assert _parse(with_import)[0].has_class_usage(candidate)


def test_static_method_receiver_counts_as_usage(gradle_module: ModuleInfo) -> None:
    (test_class,) = _parse(
        """
package io.test;

class StringsTest {
    void testJoin() {
        Strings.join("a", "b");
    }
}
"""
    )

    assert test_class.has_class_usage(_candidate(gradle_module, "Strings", "io.test"))


def test_fully_qualified_usage_without_import(gradle_module: ModuleInfo) -> None:
    (test_class,) = _parse(
        """
package io.test;

class EntityTest {
    void testCreate() {
        Object entity = new io.test.model.Entity();
    }
}
"""
    )

    assert test_class.has_class_usage(_candidate(gradle_module, "Entity", "io.test.model"))
    assert not test_class.has_class_usage(_candidate(gradle_module, "Entity", "io.test.dto"))


def test_multi_type_file_needs_declaration_usage_after_import(gradle_module: ModuleInfo) -> None:
    content = """
package io.test;

import io.test.model.Entity;

class EntityTest {
    void testNothing() {
    }
}

class EntityHelper {
}
"""
    test_class = _parse(content)[0]

    assert not test_class.has_class_usage(_candidate(gradle_module, "Entity", "io.test.model"))


def test_unparseable_input_yields_partial_or_empty_result() -> None:
    assert JavaMetaFactory().parse_classes(Path("Broken.java"), "") == []
    assert JavaMetaFactory().parse_methods(Path("does/not/exist/Missing.java")) == []
