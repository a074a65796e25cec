"""Configuration loading for testmine (.testmine.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .mappers.method_mapper import MethodMatchStrategy
from .writers.base import OutputType

CONFIG_FILENAME = ".testmine.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or holds invalid values."""


@dataclass
class ExecutorConfig:
    """Worker pool sizes; ``0`` selects the shared pool, ``None`` the default size."""

    io_threads: int = 1
    cpu_threads: Optional[int] = None


@dataclass
class OutputConfig:
    """Result sink formats and destination."""

    formats: List[OutputType] = field(default_factory=list)
    path: Optional[Path] = None


@dataclass
class MappingConfig:
    """Resolution engine switches."""

    method_strategy: MethodMatchStrategy = MethodMatchStrategy.LAST_CALL


@dataclass
class ScanConfig:
    """File discovery settings."""

    exclude_dirs: List[str] = field(default_factory=list)
    test_dir_filter: bool = True


@dataclass
class TestMineConfig:
    """Represents the settings defined in .testmine.yml."""

    __test__ = False

    root: Path
    repo_storage: Path = Path("repos")
    cleanup: bool = False
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)


def load_config(config_path: Path) -> TestMineConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return TestMineConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    config = TestMineConfig(root=root)

    repo_storage = _as_str(data.get("repo_storage"))
    if repo_storage:
        config.repo_storage = root / repo_storage
    cleanup = _as_bool(data.get("cleanup"))
    if cleanup is not None:
        config.cleanup = cleanup

    executor_data = _as_dict(data.get("executor"))
    if executor_data:
        io_threads = _as_thread_count(executor_data.get("io_threads"), "executor.io_threads")
        if io_threads is not None:
            config.executor.io_threads = io_threads
        config.executor.cpu_threads = _as_thread_count(
            executor_data.get("cpu_threads"), "executor.cpu_threads"
        )

    output_data = _as_dict(data.get("output"))
    if output_data:
        config.output.formats = parse_output_formats(_as_str_list(output_data.get("formats")))
        output_path = _as_str(output_data.get("path"))
        config.output.path = root / output_path if output_path else None

    mapping_data = _as_dict(data.get("mapping"))
    strategy = _as_str(mapping_data.get("method_strategy")) if mapping_data else None
    if strategy:
        try:
            config.mapping.method_strategy = MethodMatchStrategy(strategy)
        except ValueError as exc:
            choices = ", ".join(item.value for item in MethodMatchStrategy)
            raise ConfigError(
                f"Unknown mapping.method_strategy '{strategy}' (expected one of: {choices})"
            ) from exc

    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        config.scan.exclude_dirs = _as_str_list(scan_data.get("exclude_dirs"))
        test_dir_filter = _as_bool(scan_data.get("test_dir_filter"))
        if test_dir_filter is not None:
            config.scan.test_dir_filter = test_dir_filter

    return config


def parse_output_formats(values: Sequence[str]) -> List[OutputType]:
    """Convert format names (``csv``, ``json``, ``sqlite``) to output types."""
    formats: List[OutputType] = []
    for value in values:
        for item in str(value).split(","):
            name = item.strip().lower()
            if not name:
                continue
            try:
                output_type = OutputType(name)
            except ValueError as exc:
                choices = ", ".join(item.value for item in OutputType)
                raise ConfigError(
                    f"Unsupported output format '{name}' (expected one of: {choices})"
                ) from exc
            if output_type not in formats:
                formats.append(output_type)
    return formats


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_thread_count(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    count = _as_int(value)
    if count is None or count < 0:
        raise ConfigError(f"{key} must be a non-negative integer, got {value!r}")
    return count


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ExecutorConfig",
    "MappingConfig",
    "OutputConfig",
    "ScanConfig",
    "TestMineConfig",
    "load_config",
    "parse_output_formats",
]
