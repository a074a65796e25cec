"""Per-project pipeline: fetch, detect, index, parse and resolve."""

from __future__ import annotations

import os
import shutil
from concurrent.futures import Future
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .build_system import detect_build_system
from .executor import TaskExecutor
from .git.fetcher import GitFetcher
from .logging import ProjectLogAdapter, get_logger
from .mappers.method_mapper import MethodMatchStrategy
from .models import Lang, ModuleInfo, Project, ProjectInfo, TestMethodInfo
from .parsers.extractor import JvmTestsParser

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".gradle",
    ".mvn",
    "node_modules",
}

REMOTE_PREFIX = "https://"

ClassIndex = Dict[str, List[Tuple[Path, ModuleInfo]]]


def iter_source_files(
    root: Path, extensions: Iterable[str], exclude_dirs: Iterable[str] = ()
) -> Iterator[Path]:
    """Yield files under ``root`` with one of ``extensions``, in a stable order."""
    suffixes = {f".{extension.lstrip('.')}" for extension in extensions}
    excluded = _EXCLUDED_DIRS | set(exclude_dirs)
    for current_root, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in sorted(filenames):
            path = Path(current_root) / filename
            if path.suffix in suffixes and path.is_file():
                yield path


def is_remote(locator: str) -> bool:
    return locator.startswith(REMOTE_PREFIX)


class ProjectScanner:
    """Schedules one project's fetch and processing on the executor's pools."""

    def __init__(
        self,
        executor: TaskExecutor,
        repo_storage: Path = Path("repos"),
        *,
        cleanup: bool = False,
        fetcher: Optional[GitFetcher] = None,
        languages: Sequence[Lang] = tuple(Lang),
        method_strategy: MethodMatchStrategy = MethodMatchStrategy.LAST_CALL,
        exclude_dirs: Sequence[str] = (),
        test_dir_filter: bool = True,
    ) -> None:
        self.executor = executor
        self.repo_storage = Path(repo_storage)
        self.cleanup = cleanup
        self.fetcher = fetcher or GitFetcher(self.repo_storage)
        self.languages = tuple(languages)
        self.method_strategy = method_strategy
        self.exclude_dirs = tuple(exclude_dirs)
        self.test_dir_filter = test_dir_filter
        self.logger = get_logger("scanner")

    def scan_project(self, locator: str) -> Optional["Future[List[TestMethodInfo]]"]:
        """Schedule ``locator`` and return a handle to its records.

        Returns None when the locator is skipped. The handle fails when the
        fetch or the processing fails.
        """
        locator = locator.strip()
        if not locator:
            return None
        try:
            project = Project.from_locator(locator)
            directory = None if is_remote(locator) else Path(locator).expanduser()
        except (ValueError, RuntimeError) as exc:
            # malformed URL or unknown ~user
            self.logger.warning("Could not extract project by URL/path: %s (%s)", locator, exc)
            return None
        if directory is None:
            return self._scan_remote(locator, project)

        if directory.is_file():
            self.logger.warning("Path to project must be a directory, but file provided: %s", locator)
            return None
        if not directory.is_dir():
            self.logger.warning("Directory doesn't exist: %s", locator)
            return None
        return self.executor.run_computation_task(
            lambda: self.process_project(directory, project, locator, delete_after_processing=False)
        )

    def _scan_remote(
        self, locator: str, project: Project
    ) -> Optional["Future[List[TestMethodInfo]]"]:
        if not project.name:
            self.logger.warning("Could not extract project by URL: %s", locator)
            return None

        result: "Future[List[TestMethodInfo]]" = Future()
        log = ProjectLogAdapter(get_logger("scanner.fetch"), f"{project.full_name}.downloader")

        def on_fetched(fetch: "Future[Path]") -> None:
            error = fetch.exception()
            if error is not None:
                log.error("Failed to fetch %s: %s", locator, error)
                result.set_exception(error)
                return
            try:
                processing = self.executor.run_computation_task(
                    lambda: self.process_project(
                        fetch.result(), project, locator, delete_after_processing=self.cleanup
                    )
                )
            except RuntimeError as exc:
                result.set_exception(exc)
                return
            processing.add_done_callback(lambda done: _copy_outcome(done, result))

        fetch = self.executor.run_downloading_task(lambda: self.fetcher.fetch(locator, project))
        fetch.add_done_callback(on_fetched)
        return result

    def process_project(
        self,
        path: Path,
        project: Project,
        locator: str,
        *,
        delete_after_processing: bool,
    ) -> List[TestMethodInfo]:
        log = ProjectLogAdapter(get_logger("scanner.processor"), f"{project.full_name}.processor")
        try:
            build_system = detect_build_system(path)
            project_info = ProjectInfo(project.name, build_system, locator)
            log.info("Detected %s build system", build_system.name)

            extensions = [language.extension for language in self.languages]
            index: ClassIndex = {}
            modules: List[Tuple[ModuleInfo, Path, List[Path]]] = []
            for module_name, module_path in build_system.get_project_modules(path).items():
                module = ModuleInfo(module_name, project_info)
                files = list(iter_source_files(module_path, extensions, self.exclude_dirs))
                for file in files:
                    index.setdefault(file.stem, []).append((file, module))
                modules.append((module, module_path, files))

            records: List[TestMethodInfo] = []
            for module, module_path, files in modules:
                for language in self.languages:
                    parser = JvmTestsParser(
                        module,
                        index,
                        language,
                        self.method_strategy,
                        logger=log,
                        path=module_path,
                        allow_prefilter=self.test_dir_filter,
                    )
                    records.extend(parser.process(files))
            log.info("Extracted %d test methods", len(records))
            return records
        except Exception:
            log.exception("Failed to process project %s", locator)
            raise
        finally:
            if delete_after_processing:
                log.info("Deleting %s", path)
                try:
                    shutil.rmtree(path)
                except OSError as exc:
                    log.warning("%s not fully deleted: %s", path, exc)


def _copy_outcome(source: "Future[List[TestMethodInfo]]", target: "Future[List[TestMethodInfo]]") -> None:
    error = source.exception()
    if error is not None:
        target.set_exception(error)
    else:
        target.set_result(source.result())


__all__ = ["ProjectScanner", "is_remote", "iter_source_files"]
