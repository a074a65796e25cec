"""Logging utilities for testmine runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping

_LOGGER_NAME = "testmine"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the testmine hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ProjectLogAdapter(logging.LoggerAdapter):
    """Attach the project correlation tag to every record logged through it."""

    def __init__(self, logger: logging.Logger, project: str) -> None:
        super().__init__(logger, {"project": project})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


class _ProjectContextFilter(logging.Filter):
    """Render the optional ``project`` field so every handler can format it."""

    def filter(self, record: logging.LogRecord) -> bool:
        project = getattr(record, "project", None)
        record.project_tag = f"[{project}] " if project else ""
        return True


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the testmine logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    context_filter = _ProjectContextFilter()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(context_filter)
    stream_handler.setFormatter(
        logging.Formatter("[testmine] %(levelname)s %(project_tag)s%(message)s")
    )
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(context_filter)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(project_tag)s%(message)s"
            )
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["ProjectLogAdapter", "configure_logging", "get_logger"]
