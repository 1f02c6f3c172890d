"""CSV export for ASNINFO datasets.

CSV always uses the simplified schema, whatever mode the snapshot was built in.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import List

from asninfo.core.models import DatasetSnapshot
from asninfo.reporting.base import open_output

_FIELDNAMES: List[str] = [
    "asn",
    "as_name",
    "org_id",
    "org_name",
    "country_code",
    "country_name",
    "data_source",
]


class CSVReporter:
    """Serialise a dataset snapshot to a CSV file."""

    def generate(self, snapshot: DatasetSnapshot, output_path: str) -> Path:
        """Write *snapshot* as CSV to *output_path*.

        Columns: asn, as_name, org_id, org_name, country_code, country_name,
        data_source. Text columns are quoted; double quotes are stripped from
        AS and organisation names.

        Args:
            snapshot: Dataset to export.
            output_path: Destination file path (``.gz``/``.bz2`` compress).

        Returns:
            Path to the generated file.
        """
        path = Path(output_path)
        with open_output(path) as fh:
            fh.write(",".join(_FIELDNAMES) + "\n")
            writer = csv.writer(fh, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
            for record in snapshot.sorted_records():
                row = record.simplified()
                writer.writerow([
                    row.asn,
                    row.as_name.replace('"', ""),
                    row.org_id,
                    row.org_name.replace('"', ""),
                    row.country_code,
                    row.country_name,
                    row.data_source,
                ])
        return path
