"""Export format detection and compressed output handling."""

from __future__ import annotations

import bz2
import gzip
from enum import Enum
from pathlib import Path
from typing import IO, Union


class ExportFormat(str, Enum):
    """Supported dump formats."""

    JSON = "json"
    JSONL = "jsonl"
    CSV = "csv"

    def __str__(self) -> str:
        return self.value


def detect_format(path: Union[str, Path]) -> ExportFormat:
    """Infer the export format from *path*.

    ``.jsonl`` is checked before ``.json`` so ``dump.jsonl.gz`` is JSON lines.

    Raises:
        ValueError: If the path names none of the supported formats.
    """
    name = Path(path).name.lower()
    if ".jsonl" in name:
        return ExportFormat.JSONL
    if ".csv" in name:
        return ExportFormat.CSV
    if ".json" in name:
        return ExportFormat.JSON
    raise ValueError(
        f"unknown format for {str(path)!r}. please choose from csv, json, jsonl format"
    )


def open_output(path: Union[str, Path]) -> IO[str]:
    """Open *path* for text writing, compressing by ``.gz``/``.bz2`` suffix.

    Parent directories are created as needed.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".gz":
        return gzip.open(path, "wt", encoding="utf-8", newline="")
    if suffix == ".bz2":
        return bz2.open(path, "wt", encoding="utf-8", newline="")
    return path.open("w", encoding="utf-8", newline="")
