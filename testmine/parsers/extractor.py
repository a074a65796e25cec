"""Extracts test-method records from the test sources of one module."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..logging import get_logger
from ..mappers.class_mapper import ClassIndex, ClassMapper
from ..mappers.method_mapper import DelegatingMethodMapper, MethodMatchStrategy
from ..models import Lang, ModuleInfo, TestClassInfo, TestFramework, TestMethodInfo
from . import get_meta_factory
from .base import ClassMeta, MethodMeta
from .filters import detect_test_framework, find_files_in_test_dir

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

PROGRESS_PERIOD = 100


class _ProgressLogger:
    def __init__(self, logger: LoggerLike, total: int, message: str) -> None:
        self._logger = logger
        self._total = total
        self._message = message
        self._count = 0
        self._lock = threading.Lock()

    def visit(self) -> None:
        with self._lock:
            self._count += 1
            count = self._count
        if count % PROGRESS_PERIOD == 0 or count == self._total:
            self._logger.info(self._message, count, self._total)


class JvmTestsParser:
    """Runs classification, parsing and resolution for one language of one module."""

    def __init__(
        self,
        module: ModuleInfo,
        class_name_to_sources: ClassIndex,
        language: Lang,
        method_strategy: MethodMatchStrategy = MethodMatchStrategy.LAST_CALL,
        *,
        logger: Optional[LoggerLike] = None,
        path: Optional[Path] = None,
        allow_prefilter: bool = True,
    ) -> None:
        self.module = module
        self.language = language
        self.method_strategy = method_strategy
        self.path = path
        self.allow_prefilter = allow_prefilter
        self.logger = logger or get_logger("parsers.extractor")
        self._class_mapper = ClassMapper(module, class_name_to_sources)
        self._meta_factory = get_meta_factory(language)

    def process(self, files: Sequence[Path]) -> List[TestMethodInfo]:
        display = self.language.display_name
        location = self.path or self.module.name
        build_system = self.module.project.build_system
        self.logger.info("Start processing %s files in module: %s.", display, location)

        count = sum(1 for file in files if str(file).endswith(self.language.suffix))
        self.logger.info("Found: %d %s files.", count, display)

        test_files = find_files_in_test_dir(
            self.language, build_system, files, allow_prefilter=self.allow_prefilter
        )
        hint = (
            " in test dir"
            if self.allow_prefilter and build_system.supports_test_dir_filtering
            else ""
        )
        self.logger.info("Found: %d %s classes%s.", len(test_files), display, hint)

        progress = _ProgressLogger(
            self.logger, len(test_files), f"Parsed %d/%d {display} test files{hint}."
        )
        records: List[TestMethodInfo] = []
        for file in test_files:
            parsed = self._try_parse(file)
            progress.visit()
            if parsed is None:
                continue
            framework, classes = parsed
            for class_meta in classes:
                records.extend(self.parse_test_methods(class_meta, framework))

        self.logger.info(
            "Finished processing %s files in module: %s. Found %d test methods.",
            display,
            location,
            len(records),
        )
        return records

    def _try_parse(self, file: Path) -> Optional[Tuple[TestFramework, List[ClassMeta]]]:
        try:
            content = Path(file).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            self.logger.warning("Skipping unreadable file %s: %s", file, exc)
            return None
        framework = detect_test_framework(content)
        if framework is None:
            return None
        classes = self._meta_factory.parse_classes(Path(file), content)
        if not classes:
            return None
        return framework, classes

    def parse_test_methods(
        self, class_meta: ClassMeta, framework: TestFramework
    ) -> List[TestMethodInfo]:
        location = self._class_mapper.find_source_class(class_meta)
        test_class = TestClassInfo(
            name=class_meta.name,
            package=class_meta.package_name,
            project=self.module.project,
            module=self.module,
            language=self.language,
            framework=framework,
            source_class=location.source_class if location else None,
        )
        class_parametrised = is_class_parametrised(class_meta, framework)
        class_disabled = is_class_disabled(class_meta, framework)
        method_mapper = DelegatingMethodMapper(self.method_strategy)

        records: List[TestMethodInfo] = []
        for method in class_meta.methods:
            if not is_test_method(method, class_meta, framework):
                continue
            source_method = (
                method_mapper.find_source_method(method, location) if location else None
            )
            records.append(
                TestMethodInfo(
                    name=method.name,
                    body=method.body,
                    comment=method.comment,
                    display_name=get_display_name(method, framework),
                    is_parametrised=is_test_parametrised(method, framework, class_parametrised),
                    is_disabled=is_test_disabled(method, framework, class_disabled),
                    test_class=test_class,
                    source_method=source_method,
                )
            )
        self.logger.debug(
            "Parsed %d %s test methods in test class %s.",
            len(records),
            self.language.display_name,
            class_meta.name,
        )
        return records


def is_test_method(method: MethodMeta, class_meta: ClassMeta, framework: TestFramework) -> bool:
    if framework is TestFramework.JUNIT3:
        return method.name.startswith("test")
    if framework is TestFramework.JUNIT5:
        return method.has_annotation("Test") or method.has_annotation("ParameterizedTest")
    if framework is TestFramework.TESTNG:
        return method.has_annotation("Test") or (
            class_meta.has_annotation("Test")
            and method.is_public
            and not method.has_annotation("DataProvider")
        )
    return method.has_annotation("Test")


def get_display_name(method: MethodMeta, framework: TestFramework) -> str:
    display_name = method.get_annotation_value("DisplayName")
    if display_name is None and framework is TestFramework.TESTNG:
        display_name = method.get_annotation_value("Test", "description")
    return display_name or ""


def is_class_parametrised(class_meta: ClassMeta, framework: TestFramework) -> bool:
    if framework is not TestFramework.JUNIT4:
        return False
    runner = class_meta.get_annotation_value("RunWith")
    if runner is None:
        return False
    runner = runner.replace("::", ".")
    if runner.endswith(".class"):
        runner = runner[: -len(".class")]
    return runner.rpartition(".")[2] == "Parameterized"


def is_test_parametrised(
    method: MethodMeta, framework: TestFramework, class_parametrised: bool
) -> bool:
    if framework is TestFramework.JUNIT5:
        return method.has_annotation("ParameterizedTest")
    if framework is TestFramework.JUNIT4:
        return (
            class_parametrised
            or method.has_annotation("Parameters")
            or method.has_annotation("UseDataProvider")
        )
    if framework is TestFramework.TESTNG:
        return (
            method.has_annotation("Parameters")
            or method.get_annotation_value("Test", "dataProvider") is not None
        )
    return False


def is_class_disabled(class_meta: ClassMeta, framework: TestFramework) -> bool:
    if framework is TestFramework.JUNIT5:
        return class_meta.has_annotation("Disabled")
    if framework is TestFramework.TESTNG:
        return class_meta.get_annotation_value("Test", "enabled") == "false"
    if framework in (TestFramework.JUNIT4, TestFramework.KOTLIN_TEST):
        return class_meta.has_annotation("Ignore")
    return False


def is_test_disabled(method: MethodMeta, framework: TestFramework, class_disabled: bool) -> bool:
    if framework is TestFramework.JUNIT5:
        return class_disabled or method.has_annotation("Disabled")
    if framework is TestFramework.TESTNG:
        return method.get_annotation_value("Test", "enabled") == "false" or (
            class_disabled and not method.has_annotation("Test")
        )
    if framework in (TestFramework.JUNIT4, TestFramework.KOTLIN_TEST):
        return class_disabled or method.has_annotation("Ignore")
    return False


__all__ = [
    "JvmTestsParser",
    "get_display_name",
    "is_class_disabled",
    "is_class_parametrised",
    "is_test_disabled",
    "is_test_method",
    "is_test_parametrised",
]
