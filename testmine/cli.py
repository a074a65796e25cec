"""CLI entrypoint for testmine."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, TestMineConfig, load_config, parse_output_formats
from .executor import TaskExecutor
from .logging import configure_logging
from .mappers.method_mapper import MethodMatchStrategy
from .runner import Runner
from .scanner import ProjectScanner
from .writers import create_result_writer


def _thread_count(value: str) -> int:
    try:
        count = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid thread count: {value!r}") from exc
    if count < 0:
        raise argparse.ArgumentTypeError("thread count must be non-negative")
    return count


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="testmine",
        description="Mine JVM repositories for test methods and the production code they exercise.",
    )
    parser.add_argument(
        "--projects",
        required=True,
        type=Path,
        help="File with one project locator per line (local directory or https:// URL).",
    )
    parser.add_argument(
        "--output-format",
        dest="output_formats",
        action="append",
        default=[],
        help="Comma-separated output formats: csv, json, sqlite. May be repeated.",
    )
    parser.add_argument(
        "--output-path",
        type=Path,
        default=None,
        help="Output file (single format) or directory (one results.<suffix> per format).",
    )
    parser.add_argument(
        "--repo-storage",
        type=Path,
        default=None,
        help="Directory remote repositories are cloned into (defaults to ./repos).",
    )
    parser.add_argument(
        "--io-threads",
        type=_thread_count,
        default=None,
        help="Threads used for cloning repositories. Use 0 for the shared pool.",
    )
    parser.add_argument(
        "--cpu-threads",
        type=_thread_count,
        default=None,
        help="Threads used for processing projects (defaults to cores - 1). Use 0 for the shared pool.",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        default=None,
        help="Delete cloned repositories after processing.",
    )
    parser.add_argument(
        "--method-strategy",
        choices=[strategy.value for strategy in MethodMatchStrategy],
        default=None,
        help="How a test method is matched to a production method.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .testmine.yml or the directory containing it.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    return parser


def _merge_config(args: argparse.Namespace, config: TestMineConfig) -> TestMineConfig:
    if args.output_formats:
        config.output.formats = parse_output_formats(args.output_formats)
    if args.output_path is not None:
        config.output.path = args.output_path
    if args.repo_storage is not None:
        config.repo_storage = args.repo_storage
    if args.io_threads is not None:
        config.executor.io_threads = args.io_threads
    if args.cpu_threads is not None:
        config.executor.cpu_threads = args.cpu_threads
    if args.cleanup is not None:
        config.cleanup = args.cleanup
    if args.method_strategy is not None:
        config.mapping.method_strategy = MethodMatchStrategy(args.method_strategy)
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for testmine."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = _merge_config(args, load_config(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if not config.output.formats:
        parser.exit(1, "At least one output format is required (--output-format).\n")
    if config.output.path is None:
        parser.exit(1, "An output path is required (--output-path).\n")
    if not args.projects.is_file():
        parser.exit(1, f"Projects file not found: {args.projects}\n")

    executor = TaskExecutor(config.executor.io_threads, config.executor.cpu_threads)
    scanner = ProjectScanner(
        executor,
        config.repo_storage,
        cleanup=config.cleanup,
        method_strategy=config.mapping.method_strategy,
        exclude_dirs=config.scan.exclude_dirs,
        test_dir_filter=config.scan.test_dir_filter,
    )
    try:
        with executor, create_result_writer(config.output.formats, config.output.path) as writer:
            summary = Runner(scanner, executor, writer).run(args.projects)
    except OSError as exc:
        parser.exit(1, f"testmine failed: {exc}\nRun with --verbose for more details.\n")

    print(
        f"Processed {summary.scheduled} projects: {summary.succeeded} succeeded, "
        f"{summary.failed} failed, {summary.skipped} skipped; "
        f"{summary.test_methods} test methods written."
    )


if __name__ == "__main__":
    main(sys.argv[1:])
