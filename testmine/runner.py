"""Batch driver: dispatches project locators and drains results in input order."""

from __future__ import annotations

import queue
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .executor import TaskExecutor
from .logging import ProjectLogAdapter, get_logger
from .models import Project, TestMethodInfo
from .scanner import ProjectScanner
from .writers.base import ResultWriter

_PendingResult = Tuple[str, "Future[List[TestMethodInfo]]"]
_DONE = None


@dataclass
class RunSummary:
    """Counters reported at the end of a run."""

    scheduled: int = 0
    skipped: int = 0
    succeeded: int = 0
    failed: int = 0
    test_methods: int = 0


def read_locators(projects_file: Path) -> Iterator[str]:
    """Yield the non-blank lines of a projects file in file order."""
    with Path(projects_file).open("r", encoding="utf-8") as handle:
        for line in handle:
            locator = line.strip()
            if locator:
                yield locator


class Runner:
    """Feeds the scanner and hands each project's records to the writer.

    Handles are queued in input order and awaited strictly in that order on
    the single-threaded sink pool, so the writer sees one project at a time.
    """

    def __init__(self, scanner: ProjectScanner, executor: TaskExecutor, writer: ResultWriter) -> None:
        self.scanner = scanner
        self.executor = executor
        self.writer = writer
        self.logger = get_logger("runner")

    def run(self, projects_file: Path) -> RunSummary:
        self.logger.info("Start processing projects in %s...", projects_file)
        return self.run_locators(read_locators(projects_file))

    def run_locators(self, locators: Iterable[str]) -> RunSummary:
        summary = RunSummary()
        pending: "queue.Queue[Optional[_PendingResult]]" = queue.Queue()
        drain = self.executor.run_result_saving_task(lambda: self._drain(pending, summary))
        try:
            for locator in locators:
                future = self.scanner.scan_project(locator)
                if future is None:
                    summary.skipped += 1
                    continue
                summary.scheduled += 1
                pending.put((locator, future))
        finally:
            pending.put(_DONE)
        drain.result()
        self.logger.info(
            "Finished processing projects: %d succeeded, %d failed, %d skipped, %d test methods.",
            summary.succeeded,
            summary.failed,
            summary.skipped,
            summary.test_methods,
        )
        return summary

    def _drain(self, pending: "queue.Queue[Optional[_PendingResult]]", summary: RunSummary) -> None:
        while True:
            item = pending.get()
            if item is _DONE:
                return
            locator, future = item
            log = ProjectLogAdapter(self.logger, f"{Project.from_locator(locator).full_name}.resultWriter")
            try:
                records = future.result()
            except Exception as exc:
                summary.failed += 1
                log.warning("No results for %s: %s", locator, exc)
                continue
            summary.succeeded += 1
            if records:
                self.writer.write_test_methods(records)
                summary.test_methods += len(records)
            log.info("Stored %d test methods", len(records))


__all__ = ["RunSummary", "Runner", "read_locators"]
