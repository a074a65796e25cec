"""Result sinks and the factory selecting them from output formats."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence, Type

from .base import OutputType, ResultWriter
from .composite import CompositeResultWriter
from .csv_writer import CsvResultWriter
from .db_writer import DBResultWriter
from .json_writer import JsonResultWriter

RESULTS_BASENAME = "results"

_WRITERS: Dict[OutputType, Type[ResultWriter]] = {
    OutputType.CSV: CsvResultWriter,
    OutputType.JSON: JsonResultWriter,
    OutputType.SQLITE: DBResultWriter,
}


def output_file(output_type: OutputType, output_dir: Path) -> Path:
    return Path(output_dir) / f"{RESULTS_BASENAME}.{output_type.suffix}"


def create_result_writer(formats: Sequence[OutputType], output_path: Path) -> ResultWriter:
    """Build the sink for ``formats``.

    A single format with a path that is not an existing directory writes to
    that file. Otherwise ``output_path`` is a directory holding one
    ``results.<suffix>`` file per format.
    """
    if not formats:
        raise ValueError("At least one output format is required")
    output_path = Path(output_path)
    if len(formats) == 1 and not output_path.is_dir() and output_path.suffix:
        return _WRITERS[formats[0]](output_path)

    writers = [_WRITERS[output_type](output_file(output_type, output_path)) for output_type in formats]
    return writers[0] if len(writers) == 1 else CompositeResultWriter(writers)


__all__ = [
    "CompositeResultWriter",
    "CsvResultWriter",
    "DBResultWriter",
    "JsonResultWriter",
    "OutputType",
    "ResultWriter",
    "create_result_writer",
    "output_file",
]
