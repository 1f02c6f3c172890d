"""Tests for asninfo.reporting."""

from __future__ import annotations

import bz2
import csv
import gzip
import json
from pathlib import Path

import pytest

from asninfo.core.models import As2Org, AsnRecord, DatasetMode, DatasetSnapshot
from asninfo.reporting import (
    CSVReporter,
    ExportFormat,
    JSONReporter,
    detect_format,
    export_snapshot,
)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("asninfo.jsonl", ExportFormat.JSONL),
        ("out/asninfo.jsonl.gz", ExportFormat.JSONL),
        ("asninfo.csv", ExportFormat.CSV),
        ("asninfo.csv.bz2", ExportFormat.CSV),
        ("asninfo.json", ExportFormat.JSON),
        ("ASNINFO.JSON.GZ", ExportFormat.JSON),
    ],
)
def test_detect_format(path: str, expected: ExportFormat) -> None:
    assert detect_format(path) is expected


def test_detect_format_unknown() -> None:
    with pytest.raises(ValueError, match="unknown format"):
        detect_format("asninfo.txt")


def test_json_report_full(sample_snapshot: DatasetSnapshot, tmp_path: Path) -> None:
    """JSON output is a single array of full records in ascending ASN order."""
    out = tmp_path / "asninfo.json"
    JSONReporter().generate(sample_snapshot, str(out))
    data = json.loads(out.read_text())
    assert [r["asn"] for r in data] == [3333, 13335, 15169]
    assert data[1]["as2org"]["org_id"] == "CLOUD14-ARIN"
    assert data[0]["hegemony"] is None


def test_jsonl_report_simplified(sample_snapshot: DatasetSnapshot, tmp_path: Path) -> None:
    """JSONL output holds one flat record per line."""
    out = tmp_path / "asninfo.jsonl"
    JSONReporter(lines=True).generate(sample_snapshot, str(out), simplified=True)
    lines = out.read_text().splitlines()
    assert len(lines) == 3
    first = json.loads(lines[0])
    assert set(first) == {
        "asn", "as_name", "org_id", "org_name", "country_code", "country_name", "data_source",
    }
    assert first["asn"] == 3333


def test_json_report_gzip(sample_snapshot: DatasetSnapshot, tmp_path: Path) -> None:
    """A .gz suffix compresses the output."""
    out = tmp_path / "nested" / "asninfo.jsonl.gz"
    JSONReporter(lines=True).generate(sample_snapshot, str(out))
    with gzip.open(out, "rt", encoding="utf-8") as fh:
        assert len(fh.read().splitlines()) == 3


def test_csv_report(tmp_path: Path) -> None:
    """CSV uses the flat schema, quotes text columns and strips embedded quotes."""
    snapshot = DatasetSnapshot.build(
        [
            AsnRecord(
                asn=64496,
                name='EXAMPLE "NET"',
                country_code="US",
                as2org=As2Org(org_id="EX-1", org_name='Example "Org", Inc.', country="US"),
            ),
            AsnRecord(asn=64500, name="OTHER", country_code="NL"),
        ],
        DatasetMode.FULL,
    )
    out = tmp_path / "asninfo.csv"
    CSVReporter().generate(snapshot, str(out))

    lines = out.read_text().splitlines()
    assert lines[0] == "asn,as_name,org_id,org_name,country_code,country_name,data_source"
    assert lines[1] == '64496,"EXAMPLE NET","EX-1","Example Org, Inc.","US","United States",""'

    rows = list(csv.DictReader(out.read_text().splitlines()))
    assert rows[1]["country_name"] == "The Netherlands"
    assert rows[1]["org_id"] == ""


def test_export_snapshot_dispatch(sample_snapshot: DatasetSnapshot, tmp_path: Path) -> None:
    """export_snapshot picks the writer from the extension."""
    out = export_snapshot(sample_snapshot, str(tmp_path / "asninfo.csv.bz2"))
    with bz2.open(out, "rt", encoding="utf-8") as fh:
        assert fh.readline().startswith("asn,as_name")

    out = export_snapshot(sample_snapshot, str(tmp_path / "asninfo.json"), simplified=True)
    data = json.loads(out.read_text())
    assert "as2org" not in data[0]
    assert data[1]["org_name"] == "Cloudflare, Inc."
