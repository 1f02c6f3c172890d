"""Dataset exporters (JSON, JSONL, CSV)."""

from __future__ import annotations

from pathlib import Path

from asninfo.core.models import DatasetSnapshot
from asninfo.reporting.base import ExportFormat, detect_format
from asninfo.reporting.csv_report import CSVReporter
from asninfo.reporting.json_report import JSONReporter

__all__ = ["CSVReporter", "ExportFormat", "JSONReporter", "detect_format", "export_snapshot"]


def export_snapshot(
    snapshot: DatasetSnapshot,
    output_path: str,
    simplified: bool = False,
) -> Path:
    """Write *snapshot* to *output_path* in the format named by its extension.

    Raises:
        ValueError: If the extension is not a supported format.
    """
    fmt = detect_format(output_path)
    if fmt is ExportFormat.CSV:
        return CSVReporter().generate(snapshot, output_path)
    return JSONReporter(lines=fmt is ExportFormat.JSONL).generate(
        snapshot, output_path, simplified=simplified
    )
