"""Tests for asninfo.cli."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer
from typer.testing import CliRunner

from asninfo.cli import app, main
from asninfo.core.errors import FetchError, HeartbeatError, UploadError
from asninfo.core.models import DatasetMode, DatasetSnapshot

runner = CliRunner()

_ENV_VARS = (
    "ASNINFO_MAX_ASNS",
    "ASNINFO_UPLOAD_PATH",
    "ASNINFO_HEARTBEAT_URL",
    "AWS_REGION",
    "AWS_ENDPOINT",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
)


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every command in an empty directory with no upload settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def adapter(sample_snapshot: DatasetSnapshot):
    """Patch the CLI's ProviderAdapter to return the sample snapshot."""
    with patch("asninfo.cli.ProviderAdapter") as adapter_cls:
        adapter_cls.return_value.fetch = AsyncMock(return_value=sample_snapshot)
        yield adapter_cls.return_value


def _set_upload_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASNINFO_UPLOAD_PATH", "r2://spaces/asninfo.jsonl")
    monkeypatch.setenv("AWS_REGION", "auto")
    monkeypatch.setenv("AWS_ENDPOINT", "https://example.r2.cloudflarestorage.com")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "key")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")


def test_app_is_typer_instance() -> None:
    """The CLI app object should be a Typer instance."""
    assert isinstance(app, typer.Typer)


def test_main_is_callable() -> None:
    """The main() entry point should be callable."""
    assert callable(main)


def test_version_command() -> None:
    """The version command should exit cleanly and display version info."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "ASNINFO" in result.output


def test_config_command(monkeypatch: pytest.MonkeyPatch) -> None:
    """The config command prints the effective configuration with secrets masked."""
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "topsecret")
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0
    assert "refresh_secs" in result.output
    assert "topsecret" not in result.output


def test_sources_command() -> None:
    result = runner.invoke(app, ["sources"])
    assert result.exit_code == 0
    assert "asnames" in result.output


def test_serve_help() -> None:
    result = runner.invoke(app, ["serve", "--help"])
    assert result.exit_code == 0
    assert "--bind" in result.output


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


def test_generate_default_path(adapter: MagicMock, tmp_path: Path) -> None:
    """Without a path the dataset is written to ./asninfo.jsonl in full mode."""
    result = runner.invoke(app, ["generate"])
    assert result.exit_code == 0, result.output
    adapter.fetch.assert_awaited_once_with(DatasetMode.FULL)
    lines = (tmp_path / "asninfo.jsonl").read_text().splitlines()
    assert [json.loads(line)["asn"] for line in lines] == [3333, 13335, 15169]


def test_generate_csv_implies_simplified(adapter: MagicMock, tmp_path: Path) -> None:
    result = runner.invoke(app, ["generate", "dump.csv"])
    assert result.exit_code == 0, result.output
    adapter.fetch.assert_awaited_once_with(DatasetMode.SIMPLIFIED)
    assert (tmp_path / "dump.csv").read_text().startswith("asn,as_name,org_id")


def test_generate_simplified_flag(adapter: MagicMock, tmp_path: Path) -> None:
    result = runner.invoke(app, ["generate", "dump.json", "--simplified"])
    assert result.exit_code == 0, result.output
    data = json.loads((tmp_path / "dump.json").read_text())
    assert "as_name" in data[0]


def test_generate_unknown_format(adapter: MagicMock) -> None:
    result = runner.invoke(app, ["generate", "dump.xml"])
    assert result.exit_code == 1
    adapter.fetch.assert_not_awaited()


def test_generate_load_failure(adapter: MagicMock) -> None:
    adapter.fetch.side_effect = FetchError("asnames", "unreachable")
    result = runner.invoke(app, ["generate"])
    assert result.exit_code == 1


def test_generate_upload_missing_credentials(adapter: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
    """An upload path without S3 credentials exits 3 before fetching."""
    monkeypatch.setenv("ASNINFO_UPLOAD_PATH", "s3://bucket/asninfo.jsonl")
    result = runner.invoke(app, ["generate"])
    assert result.exit_code == 3
    adapter.fetch.assert_not_awaited()


def test_generate_uploads_and_sends_heartbeat(adapter: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
    _set_upload_env(monkeypatch)
    monkeypatch.setenv("ASNINFO_HEARTBEAT_URL", "https://heartbeat.example/ping")
    with patch("asninfo.integrations.upload.upload_file") as upload, patch(
        "asninfo.integrations.upload.send_heartbeat", new_callable=AsyncMock
    ) as heartbeat:
        result = runner.invoke(app, ["generate"])
    assert result.exit_code == 0, result.output
    upload.assert_called_once()
    assert upload.call_args.args[1] == "r2://spaces/asninfo.jsonl"
    heartbeat.assert_awaited_once_with("https://heartbeat.example/ping")


def test_generate_upload_failure(adapter: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
    _set_upload_env(monkeypatch)
    monkeypatch.setenv("ASNINFO_HEARTBEAT_URL", "https://heartbeat.example/ping")
    with patch(
        "asninfo.integrations.upload.upload_file", side_effect=UploadError("denied")
    ), patch("asninfo.integrations.upload.send_heartbeat", new_callable=AsyncMock) as heartbeat:
        result = runner.invoke(app, ["generate"])
    assert result.exit_code == 5
    heartbeat.assert_not_awaited()


def test_generate_heartbeat_failure(adapter: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
    _set_upload_env(monkeypatch)
    monkeypatch.setenv("ASNINFO_HEARTBEAT_URL", "https://heartbeat.example/ping")
    with patch("asninfo.integrations.upload.upload_file"), patch(
        "asninfo.integrations.upload.send_heartbeat",
        new_callable=AsyncMock,
        side_effect=HeartbeatError("500"),
    ):
        result = runner.invoke(app, ["generate"])
    assert result.exit_code == 4


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def test_serve_passes_overrides() -> None:
    with patch("asninfo.api.server.run_server") as run_server:
        result = runner.invoke(
            app, ["serve", "--bind", "127.0.0.1:3000", "--refresh-secs", "7200", "--simplified"]
        )
    assert result.exit_code == 0, result.output
    server = run_server.call_args.args[0]
    assert (server.host, server.port) == ("127.0.0.1", 3000)
    assert server.refresh_secs == 7200
    assert server.simplified is True


def test_serve_invalid_bind() -> None:
    with patch("asninfo.api.server.run_server") as run_server:
        result = runner.invoke(app, ["serve", "--bind", "localhost"])
    assert result.exit_code == 6
    run_server.assert_not_called()


def test_serve_cold_start_failure() -> None:
    with patch("asninfo.api.server.run_server", side_effect=FetchError("as2org", "timeout")):
        result = runner.invoke(app, ["serve"])
    assert result.exit_code == 1


def test_serve_bind_failure() -> None:
    with patch("asninfo.api.server.run_server", side_effect=OSError(98, "Address already in use")):
        result = runner.invoke(app, ["serve"])
    assert result.exit_code == 6


# ---------------------------------------------------------------------------
# invalid configuration
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("args", [["config"], ["sources"], ["generate"], ["serve"]])
def test_invalid_env_override_exits_cleanly(args: list, monkeypatch: pytest.MonkeyPatch) -> None:
    """A malformed override is reported as a configuration error, not a traceback."""
    monkeypatch.setenv("ASNINFO__SERVER__CORS_ORIGINS", "*")
    with patch("asninfo.cli.err_console") as err, patch("asninfo.api.server.run_server") as run_server:
        result = runner.invoke(app, args)

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    message = err.print.call_args[0][0]
    assert "Configuration error" in message
    assert "server.cors_origins" in message
    run_server.assert_not_called()


def test_invalid_yaml_exits_cleanly(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("server: [port\n")
    with patch("asninfo.cli.err_console") as err:
        result = runner.invoke(app, ["config", "--config", str(path)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid YAML" in err.print.call_args[0][0]
