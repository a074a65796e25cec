"""Java front-end built on the tree-sitter Java grammar."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import Lang, SourceClassAndLocation
from .base import ClassMeta, MetaFactory, MethodMeta, read_source
from .tree_sitter import (
    COMMENT_TYPES,
    first_child_of_type,
    iter_descendants,
    leading_comment,
    node_text,
    parse_source,
    unquote,
)

_LOGGER = get_logger("parsers.java")

_TYPE_DECLARATIONS = frozenset(
    {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
        "annotation_type_declaration",
    }
)
_ANNOTATION_TYPES = frozenset({"annotation", "marker_annotation"})
_NAME_TYPES = ("identifier", "scoped_identifier")


@dataclass(frozen=True)
class _Import:
    name: str
    is_static: bool
    is_asterisk: bool

    @property
    def qualifier(self) -> str:
        return self.name.rpartition(".")[0]


class _CompilationUnit:
    """Parsed file state shared by the class and method views."""

    def __init__(self, file: Path, source: str) -> None:
        self.file = file
        self.source_bytes = source.encode("utf-8")
        tree = parse_source(Lang.JAVA, self.source_bytes)
        self.root = tree.root_node
        if self.root.has_error:
            _LOGGER.debug("Syntax errors while parsing %s; using partial tree", file)
        self.package_name = ""
        self.imports: List[_Import] = []
        self.type_count = 0
        for child in self.root.named_children:
            if child.type == "package_declaration":
                self.package_name = self.text(first_child_of_type(child, _NAME_TYPES))
            elif child.type == "import_declaration":
                self.imports.append(self._parse_import(child))
            elif child.type in _TYPE_DECLARATIONS:
                self.type_count += 1

    def text(self, node) -> str:  # type: ignore[no-untyped-def]
        return node_text(node, self.source_bytes)

    def _parse_import(self, node) -> _Import:  # type: ignore[no-untyped-def]
        is_static = any(child.type == "static" for child in node.children)
        is_asterisk = any(child.type == "asterisk" for child in node.children)
        return _Import(self.text(first_child_of_type(node, _NAME_TYPES)), is_static, is_asterisk)


class _Annotated:
    """Annotation lookup over a declaration's ``modifiers`` node."""

    _unit: _CompilationUnit
    _node: object

    def _annotations(self) -> list:
        modifiers = first_child_of_type(self._node, ("modifiers",))
        if modifiers is None:
            return []
        return [child for child in modifiers.named_children if child.type in _ANNOTATION_TYPES]

    def _find_annotation(self, name: str):  # type: ignore[no-untyped-def]
        for annotation in self._annotations():
            full_name = self._unit.text(annotation.child_by_field_name("name"))
            if full_name.rpartition(".")[2] == name:
                return annotation
        return None

    def has_annotation(self, name: str) -> bool:
        return self._find_annotation(name) is not None

    def get_annotation_value(self, name: str, key: Optional[str] = None) -> Optional[str]:
        annotation = self._find_annotation(name)
        if annotation is None:
            return None
        arguments = annotation.child_by_field_name("arguments")
        if arguments is None:
            return None
        values = [child for child in arguments.named_children if child.type not in COMMENT_TYPES]
        pairs = [child for child in values if child.type == "element_value_pair"]
        if key is None and values and not pairs:
            return unquote(self._unit.text(values[0]))
        wanted = key or "value"
        for pair in pairs:
            if self._unit.text(pair.child_by_field_name("key")) == wanted:
                return unquote(self._unit.text(pair.child_by_field_name("value")))
        return None


class JavaMethodMeta(_Annotated, MethodMeta):
    """View over a ``method_declaration`` node."""

    def __init__(self, unit: _CompilationUnit, node) -> None:  # type: ignore[no-untyped-def]
        self._unit = unit
        self._node = node
        self.name = unit.text(node.child_by_field_name("name"))
        parameters = node.child_by_field_name("parameters")
        self.parameter_count = (
            sum(
                1
                for child in parameters.named_children
                if child.type in ("formal_parameter", "spread_parameter")
            )
            if parameters is not None
            else 0
        )
        self._calls: Optional[List[Tuple[str, int]]] = None

    @property
    def body(self) -> str:
        return self._unit.text(self._node.child_by_field_name("body"))

    @property
    def comment(self) -> str:
        return leading_comment(self._node, self._unit.source_bytes)

    @property
    def is_public(self) -> bool:
        modifiers = first_child_of_type(self._node, ("modifiers",))
        return modifiers is not None and any(child.type == "public" for child in modifiers.children)

    def method_calls(self) -> Sequence[Tuple[str, int]]:
        if self._calls is None:
            calls: List[Tuple[str, int]] = []
            body = self._node.child_by_field_name("body")
            if body is not None:
                for node in iter_descendants(body):
                    if node.type != "method_invocation":
                        continue
                    arguments = node.child_by_field_name("arguments")
                    arg_count = (
                        sum(1 for arg in arguments.named_children if arg.type not in COMMENT_TYPES)
                        if arguments is not None
                        else 0
                    )
                    calls.append((self._unit.text(node.child_by_field_name("name")), arg_count))
            self._calls = calls
        return self._calls


class JavaClassMeta(_Annotated, ClassMeta):
    """View over a top-level ``class_declaration`` node."""

    language = Lang.JAVA

    def __init__(self, unit: _CompilationUnit, node) -> None:  # type: ignore[no-untyped-def]
        self._unit = unit
        self._node = node
        self.name = unit.text(node.child_by_field_name("name"))
        self.package_name = unit.package_name

    @property
    def methods(self) -> List[MethodMeta]:
        return [
            JavaMethodMeta(self._unit, node)
            for node in iter_descendants(self._node)
            if node.type == "method_declaration"
        ]

    def has_class_usage(self, candidate: SourceClassAndLocation) -> bool:
        source_class = candidate.source_class
        require_package = False
        if self.package_name != source_class.package:
            require_package = True
            fqcn = source_class.fqcn
            for imported in self._unit.imports:
                if imported.is_static:
                    # import static a.b.Source.* / import static a.b.Source.member
                    matched = fqcn == (imported.name if imported.is_asterisk else imported.qualifier)
                elif not imported.is_asterisk:
                    matched = fqcn == imported.name
                else:
                    # import a.b.*
                    matched = False
                    if imported.name == source_class.package:
                        require_package = False
                if matched:
                    if self._unit.type_count == 1:
                        return True
                    require_package = False

        for node in iter_descendants(self._node):
            if node.type == "object_creation_expression":
                if self._matches_type(node.child_by_field_name("type"), source_class, require_package):
                    return True
            elif node.type == "method_invocation":
                receiver = node.child_by_field_name("object")
                if receiver is not None and self._matches_receiver(receiver, source_class, require_package):
                    return True
        return False

    def _matches_type(self, type_node, source_class, require_package: bool) -> bool:  # type: ignore[no-untyped-def]
        if type_node is None:
            return False
        if type_node.type == "generic_type" and type_node.named_children:
            type_node = type_node.named_children[0]
        scope, _, name = self._unit.text(type_node).rpartition(".")
        return name == source_class.name and (not require_package or scope == source_class.package)

    def _matches_receiver(self, receiver, source_class, require_package: bool) -> bool:  # type: ignore[no-untyped-def]
        if receiver.type == "field_access":
            name = self._unit.text(receiver.child_by_field_name("field"))
            scope = self._unit.text(receiver.child_by_field_name("object"))
            return name == source_class.name and (not require_package or scope == source_class.package)
        if receiver.type == "identifier" and not require_package:
            return self._unit.text(receiver) == source_class.name
        return False


class JavaMetaFactory(MetaFactory):
    """Builds Java class and method views from source files."""

    language = Lang.JAVA

    def parse_classes(self, file: Path, content: str) -> List[ClassMeta]:
        try:
            unit = _CompilationUnit(file, content)
        except (ValueError, UnicodeError) as exc:
            _LOGGER.debug("Failed to parse %s: %s", file, exc)
            return []
        return [
            JavaClassMeta(unit, child)
            for child in unit.root.named_children
            if child.type == "class_declaration"
        ]

    def parse_methods(self, file: Path) -> List[MethodMeta]:
        try:
            unit = _CompilationUnit(file, read_source(file))
        except (OSError, ValueError, UnicodeError) as exc:
            _LOGGER.debug("Failed to parse %s: %s", file, exc)
            return []
        return [
            JavaMethodMeta(unit, node)
            for node in iter_descendants(unit.root)
            if node.type == "method_declaration"
        ]


__all__ = ["JavaClassMeta", "JavaMetaFactory", "JavaMethodMeta"]
