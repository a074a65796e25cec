"""Plain-dict views of the entity graph used by the text output formats."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..models import (
    ModuleInfo,
    ProjectInfo,
    SourceClassInfo,
    SourceMethodInfo,
    TestClassInfo,
    TestMethodInfo,
)

Record = Dict[str, Any]


def project_to_dict(project: ProjectInfo) -> Record:
    return {"name": project.name, "buildSystem": project.build_system.name}


def module_to_dict(module: ModuleInfo) -> Record:
    return {"name": module.name, "projectInfo": project_to_dict(module.project)}


def source_class_to_dict(source_class: Optional[SourceClassInfo]) -> Optional[Record]:
    if source_class is None:
        return None
    return {
        "name": source_class.name,
        "package": source_class.package,
        "moduleInfo": module_to_dict(source_class.module),
        "language": source_class.language.name,
    }


def source_method_to_dict(source_method: Optional[SourceMethodInfo]) -> Optional[Record]:
    if source_method is None:
        return None
    return {
        "name": source_method.name,
        "body": source_method.body,
        "sourceClass": source_class_to_dict(source_method.source_class),
    }


def test_class_to_dict(test_class: TestClassInfo) -> Record:
    return {
        "name": test_class.name,
        "package": test_class.package,
        "projectInfo": project_to_dict(test_class.project),
        "moduleInfo": module_to_dict(test_class.module),
        "language": test_class.language.name,
        "testFramework": test_class.framework.name,
        "sourceClass": source_class_to_dict(test_class.source_class),
    }


def test_method_to_dict(method: TestMethodInfo) -> Record:
    """Nested representation of one record; absent references become ``None``."""
    return {
        "name": method.name,
        "body": method.body,
        "comment": method.comment,
        "displayName": method.display_name,
        "isParametrised": method.is_parametrised,
        "isDisabled": method.is_disabled,
        "classInfo": test_class_to_dict(method.test_class),
        "sourceMethod": source_method_to_dict(method.source_method),
    }


def _module_columns(prefix: str) -> List[str]:
    return [
        f"{prefix}.name",
        f"{prefix}.projectInfo.name",
        f"{prefix}.projectInfo.buildSystem",
    ]


def _source_class_columns(prefix: str) -> List[str]:
    return [
        f"{prefix}.name",
        f"{prefix}.package",
        *_module_columns(f"{prefix}.moduleInfo"),
        f"{prefix}.language",
    ]


CSV_COLUMNS: List[str] = [
    "name",
    "body",
    "comment",
    "displayName",
    "isParametrised",
    "isDisabled",
    "classInfo.name",
    "classInfo.package",
    "classInfo.projectInfo.name",
    "classInfo.projectInfo.buildSystem",
    *_module_columns("classInfo.moduleInfo"),
    "classInfo.language",
    "classInfo.testFramework",
    *_source_class_columns("classInfo.sourceClass"),
    "sourceMethod.name",
    "sourceMethod.body",
    *_source_class_columns("sourceMethod.sourceClass"),
]


_NESTED_KEYS = frozenset({"classInfo.sourceClass", "sourceMethod", "sourceMethod.sourceClass"})


def flatten(record: Optional[Record], prefix: str = "") -> Dict[str, Any]:
    """Flatten nested dicts into dotted keys; ``None`` leaves no keys behind."""
    flat: Dict[str, Any] = {}
    if record is None:
        return flat
    for key, value in record.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) or (value is None and name in _NESTED_KEYS):
            flat.update(flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


def unflatten(flat: Dict[str, Any]) -> Record:
    """Inverse of :func:`flatten`; groups whose cells are all empty become ``None``."""
    nested: Record = {}
    for key, value in flat.items():
        target = nested
        *parents, leaf = key.split(".")
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = value
    return _collapse_empty(nested)


def _collapse_empty(record: Record) -> Record:
    for key, value in record.items():
        if isinstance(value, dict):
            collapsed = _collapse_empty(value)
            record[key] = None if _all_empty(collapsed) else collapsed
    return record


def _all_empty(value: Any) -> bool:
    if isinstance(value, dict):
        return all(_all_empty(item) for item in value.values())
    return value is None or value == ""


__all__ = [
    "CSV_COLUMNS",
    "Record",
    "flatten",
    "test_method_to_dict",
    "unflatten",
]
