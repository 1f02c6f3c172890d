"""JSON and JSON-lines export for ASNINFO datasets."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from asninfo.core.models import DatasetSnapshot
from asninfo.reporting.base import open_output


def serialize_records(snapshot: DatasetSnapshot, simplified: bool) -> List[Dict[str, Any]]:
    """Convert all records to JSON-ready dicts in ascending ASN order.

    Args:
        snapshot: Dataset to serialise.
        simplified: Use the flat ``asn,as_name,org_id,...`` shape instead of
                    the full nested record.

    Returns:
        List of plain dicts.
    """
    if simplified:
        return [r.simplified().model_dump(mode="json") for r in snapshot.sorted_records()]
    return [r.with_country_name().model_dump(mode="json") for r in snapshot.sorted_records()]


class JSONReporter:
    """Serialise a dataset snapshot to a JSON array or JSON lines."""

    def __init__(self, lines: bool = False) -> None:
        """Initialise the reporter.

        Args:
            lines: Write one JSON object per line instead of a single array.
        """
        self.lines = lines

    def generate(
        self,
        snapshot: DatasetSnapshot,
        output_path: str,
        simplified: bool = False,
    ) -> Path:
        """Write *snapshot* to *output_path*.

        Args:
            snapshot: Dataset to export.
            output_path: Destination file path (``.gz``/``.bz2`` compress).
            simplified: Export the flat record shape.

        Returns:
            Path to the generated file.
        """
        path = Path(output_path)
        values = serialize_records(snapshot, simplified)
        with open_output(path) as fh:
            if self.lines:
                for value in values:
                    fh.write(json.dumps(value, ensure_ascii=False))
                    fh.write("\n")
            else:
                fh.write(json.dumps(values, ensure_ascii=False))
                fh.write("\n")
        return path
