"""Kotlin front-end built on the tree-sitter Kotlin grammar."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import Lang, SourceClassAndLocation
from .base import ClassMeta, MetaFactory, MethodMeta, read_source
from .tree_sitter import (
    first_child_of_type,
    iter_descendants,
    leading_comment,
    node_text,
    parse_source,
    unquote,
)

_LOGGER = get_logger("parsers.kotlin")

_CLASS_TYPES = frozenset({"class_declaration", "object_declaration"})
_CLASS_NAME_TYPES = ("type_identifier", "simple_identifier", "identifier")
_FUNCTION_NAME_TYPES = ("simple_identifier", "identifier")
_PARAMETER_TYPES = frozenset({"parameter", "function_value_parameter"})
_IMPORT_TYPES = frozenset({"import_header", "import_declaration", "import"})
_REFERENCE_TYPES = frozenset({"simple_identifier", "type_identifier", "identifier"})
_QUALIFIER_TYPES = frozenset(
    {"navigation_expression", "navigation_suffix", "user_type", "simple_user_type"}
)

_PACKAGE = re.compile(r"package\s+([\w.`]+)")
_IMPORT = re.compile(r"import\s+([\w.`]+?)(\.\*)?(?:\s+as\s+\w+)?\s*;?\s*$")
_ANNOTATION_NAME = re.compile(r"@(?:\w+:)?([\w.]+)")
_NAMED_ARGUMENT = re.compile(r"^\s*(\w+)\s*=(?!=)\s*(.*)$", re.DOTALL)


@dataclass(frozen=True)
class _Import:
    name: str
    is_wildcard: bool

    @property
    def qualifier(self) -> str:
        return self.name.rpartition(".")[0]


class _KotlinFile:
    """Parsed file state shared by the class and function views."""

    def __init__(self, file: Path, source: str) -> None:
        self.file = file
        self.source_bytes = source.encode("utf-8")
        tree = parse_source(Lang.KOTLIN, self.source_bytes)
        self.root = tree.root_node
        if self.root.has_error:
            _LOGGER.debug("Syntax errors while parsing %s; using partial tree", file)
        self.package_name = ""
        self.imports: List[_Import] = []
        for node in iter_descendants(self.root):
            if node.type in _CLASS_TYPES:
                break
            if node.type == "package_header":
                match = _PACKAGE.search(self.text(node))
                if match:
                    self.package_name = match.group(1).replace("`", "")
            elif node.type in _IMPORT_TYPES and node.is_named:
                match = _IMPORT.search(self.text(node).strip())
                if match:
                    self.imports.append(_Import(match.group(1).replace("`", ""), bool(match.group(2))))
        self.classes = [child for child in self.root.named_children if child.type in _CLASS_TYPES]

    def text(self, node) -> str:  # type: ignore[no-untyped-def]
        return node_text(node, self.source_bytes)


class _Annotated:
    """Annotation lookup over a declaration's ``modifiers`` node."""

    _file: _KotlinFile
    _node: object

    def _find_annotation(self, name: str):  # type: ignore[no-untyped-def]
        modifiers = first_child_of_type(self._node, ("modifiers",))
        if modifiers is None:
            return None
        for annotation in iter_descendants(modifiers):
            if annotation.type != "annotation":
                continue
            match = _ANNOTATION_NAME.match(self._file.text(annotation).strip())
            if match and match.group(1).rpartition(".")[2] == name:
                return annotation
        return None

    def has_annotation(self, name: str) -> bool:
        return self._find_annotation(name) is not None

    def get_annotation_value(self, name: str, key: Optional[str] = None) -> Optional[str]:
        annotation = self._find_annotation(name)
        if annotation is None:
            return None
        arguments = next(
            (node for node in iter_descendants(annotation) if node.type == "value_arguments"), None
        )
        if arguments is None:
            return None
        for argument in arguments.named_children:
            if argument.type != "value_argument":
                continue
            text = self._file.text(argument)
            named = _NAMED_ARGUMENT.match(text)
            argument_name = named.group(1) if named else None
            if key is None and argument_name in (None, "value"):
                return unquote(named.group(2) if named else text)
            if key is not None and argument_name == key:
                return unquote(named.group(2))
        return None


class KotlinMethodMeta(_Annotated, MethodMeta):
    """View over a ``function_declaration`` node."""

    def __init__(self, kotlin_file: _KotlinFile, node) -> None:  # type: ignore[no-untyped-def]
        self._file = kotlin_file
        self._node = node
        self.name = kotlin_file.text(first_child_of_type(node, _FUNCTION_NAME_TYPES))
        parameters = first_child_of_type(node, ("function_value_parameters",))
        self.parameter_count = (
            sum(1 for child in parameters.named_children if child.type in _PARAMETER_TYPES)
            if parameters is not None
            else 0
        )
        self._calls: Optional[List[Tuple[str, int]]] = None

    def _body_node(self):  # type: ignore[no-untyped-def]
        return first_child_of_type(self._node, ("function_body", "block"))

    @property
    def body(self) -> str:
        text = self._file.text(self._body_node()).strip()
        if text.startswith("="):
            text = text[1:].strip()
        return text

    @property
    def comment(self) -> str:
        return leading_comment(self._node, self._file.source_bytes)

    @property
    def is_public(self) -> bool:
        modifiers = first_child_of_type(self._node, ("modifiers",))
        if modifiers is None:
            return True
        for node in iter_descendants(modifiers):
            if node.type == "visibility_modifier":
                return self._file.text(node).strip() == "public"
        return True

    def method_calls(self) -> Sequence[Tuple[str, int]]:
        if self._calls is None:
            calls: List[Tuple[str, int]] = []
            body = self._body_node()
            if body is not None:
                for node in iter_descendants(body):
                    if node.type == "call_expression" and node.named_children:
                        calls.append((self._callee_name(node), self._argument_count(node)))
            self._calls = calls
        return self._calls

    def _callee_name(self, call) -> str:  # type: ignore[no-untyped-def]
        callee = self._file.text(call.named_children[0])
        return re.split(r"\??\.", callee)[-1].strip()

    @staticmethod
    def _argument_count(call) -> int:  # type: ignore[no-untyped-def]
        suffix = first_child_of_type(call, ("call_suffix",)) or call
        count = 0
        for child in suffix.named_children:
            if child.type == "value_arguments":
                count += sum(1 for arg in child.named_children if arg.type == "value_argument")
            elif child.type in ("annotated_lambda", "lambda_literal"):
                count += 1
        return count


class KotlinClassMeta(_Annotated, ClassMeta):
    """View over a top-level ``class_declaration`` or ``object_declaration``."""

    language = Lang.KOTLIN

    def __init__(self, kotlin_file: _KotlinFile, node) -> None:  # type: ignore[no-untyped-def]
        self._file = kotlin_file
        self._node = node
        self.name = kotlin_file.text(first_child_of_type(node, _CLASS_NAME_TYPES))
        self.package_name = kotlin_file.package_name

    @property
    def methods(self) -> List[MethodMeta]:
        body = first_child_of_type(self._node, ("class_body", "enum_class_body"))
        if body is None:
            return []
        return [
            KotlinMethodMeta(self._file, child)
            for child in body.named_children
            if child.type == "function_declaration"
        ]

    def has_class_usage(self, candidate: SourceClassAndLocation) -> bool:
        source_class = candidate.source_class
        fqcn = source_class.fqcn
        require_package = False
        if self.package_name != source_class.package:
            require_package = True
            for imported in self._file.imports:
                if imported.is_wildcard:
                    # import a.b.Source.* / import a.b.*
                    matched = imported.name == fqcn
                    if imported.name == source_class.package:
                        require_package = False
                else:
                    # import a.b.Source / import a.b.Source.member
                    matched = fqcn in (imported.name, imported.qualifier)
                if matched:
                    if len(self._file.classes) == 1:
                        return True
                    require_package = False

        for node in iter_descendants(self._node):
            if node.type not in _REFERENCE_TYPES or self._file.text(node) != source_class.name:
                continue
            if not require_package or self._is_qualified(node, fqcn):
                return True
        return False

    def _is_qualified(self, node, fqcn: str) -> bool:  # type: ignore[no-untyped-def]
        parent = node.parent
        while parent is not None and parent.type in _QUALIFIER_TYPES:
            if self._file.text(parent).startswith(fqcn):
                return True
            parent = parent.parent
        return False


class KotlinMetaFactory(MetaFactory):
    """Builds Kotlin class and function views from source files."""

    language = Lang.KOTLIN

    def parse_classes(self, file: Path, content: str) -> List[ClassMeta]:
        try:
            kotlin_file = _KotlinFile(file, content)
        except (ValueError, UnicodeError) as exc:
            _LOGGER.debug("Failed to parse %s: %s", file, exc)
            return []
        return [KotlinClassMeta(kotlin_file, node) for node in kotlin_file.classes]

    def parse_methods(self, file: Path) -> List[MethodMeta]:
        try:
            kotlin_file = _KotlinFile(file, read_source(file))
        except (OSError, ValueError, UnicodeError) as exc:
            _LOGGER.debug("Failed to parse %s: %s", file, exc)
            return []
        return [
            KotlinMethodMeta(kotlin_file, node)
            for node in iter_descendants(kotlin_file.root)
            if node.type == "function_declaration"
        ]


__all__ = ["KotlinClassMeta", "KotlinMetaFactory", "KotlinMethodMeta"]
