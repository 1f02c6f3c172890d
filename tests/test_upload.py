"""Tests for asninfo.integrations.upload."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from botocore.exceptions import EndpointConnectionError

from asninfo.core.config import S3Config
from asninfo.core.errors import CredentialsError, HeartbeatError, UploadError
from asninfo.integrations.upload import (
    UploadTarget,
    parse_upload_path,
    s3_env_check,
    send_heartbeat,
    upload_file,
)

S3 = S3Config(
    region="auto",
    endpoint="https://account.r2.cloudflarestorage.com",
    access_key_id="key",
    secret_access_key="secret",
)


def test_parse_upload_path() -> None:
    assert parse_upload_path("s3://bucket/dumps/asninfo.jsonl") == UploadTarget(
        "s3", "bucket", "dumps/asninfo.jsonl"
    )
    target = parse_upload_path("r2://spaces/asninfo.csv")
    assert target.bucket == "spaces"
    assert str(target) == "r2://spaces/asninfo.csv"


@pytest.mark.parametrize("path", ["gs://bucket/key", "bucket/key", "s3://bucket", "s3:///key"])
def test_parse_upload_path_invalid(path: str) -> None:
    with pytest.raises(UploadError):
        parse_upload_path(path)


def test_s3_env_check_lists_missing() -> None:
    with pytest.raises(CredentialsError) as exc_info:
        s3_env_check(S3Config(region="auto"))
    message = str(exc_info.value)
    assert "AWS_ENDPOINT" in message
    assert "AWS_SECRET_ACCESS_KEY" in message
    assert "AWS_REGION" not in message
    assert exc_info.value.exit_code == 3


def test_s3_env_check_complete() -> None:
    s3_env_check(S3)


def test_upload_file(tmp_path: Path) -> None:
    """The file is uploaded to the parsed bucket/key with the configured endpoint."""
    local = tmp_path / "asninfo.jsonl"
    local.write_text("{}\n")
    client = MagicMock()
    with patch("asninfo.integrations.upload.boto3.client", return_value=client) as factory:
        target = upload_file(local, "r2://spaces/asninfo.jsonl", S3)

    factory.assert_called_once_with(
        "s3",
        region_name="auto",
        endpoint_url="https://account.r2.cloudflarestorage.com",
        aws_access_key_id="key",
        aws_secret_access_key="secret",
    )
    client.upload_file.assert_called_once_with(str(local), "spaces", "asninfo.jsonl")
    assert target.key == "asninfo.jsonl"


def test_upload_file_failure(tmp_path: Path) -> None:
    client = MagicMock()
    client.upload_file.side_effect = EndpointConnectionError(endpoint_url="https://example.test")
    with patch("asninfo.integrations.upload.boto3.client", return_value=client):
        with pytest.raises(UploadError) as exc_info:
            upload_file(tmp_path / "x.jsonl", "s3://bucket/x.jsonl", S3)
    assert exc_info.value.exit_code == 5


def test_upload_file_requires_credentials(tmp_path: Path) -> None:
    with patch("asninfo.integrations.upload.boto3.client") as factory:
        with pytest.raises(CredentialsError):
            upload_file(tmp_path / "x.jsonl", "s3://bucket/x.jsonl", S3Config())
    factory.assert_not_called()


def _client_returning(get: AsyncMock) -> MagicMock:
    http = MagicMock()
    http.get = get
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=http)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


@pytest.mark.asyncio
async def test_send_heartbeat_ok() -> None:
    get = AsyncMock(return_value={"status": 200, "headers": {}, "content": b"", "url": "u"})
    with patch("asninfo.integrations.upload.AsyncHTTPClient", return_value=_client_returning(get)):
        await send_heartbeat("https://heartbeat.example/ping")
    get.assert_awaited_once_with("https://heartbeat.example/ping")


@pytest.mark.asyncio
async def test_send_heartbeat_bad_status() -> None:
    get = AsyncMock(return_value={"status": 500, "headers": {}, "content": b"", "url": "u"})
    with patch("asninfo.integrations.upload.AsyncHTTPClient", return_value=_client_returning(get)):
        with pytest.raises(HeartbeatError) as exc_info:
            await send_heartbeat("https://heartbeat.example/ping")
    assert exc_info.value.exit_code == 4


@pytest.mark.asyncio
async def test_send_heartbeat_connection_error() -> None:
    get = AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))
    with patch("asninfo.integrations.upload.AsyncHTTPClient", return_value=_client_returning(get)):
        with pytest.raises(HeartbeatError):
            await send_heartbeat("https://heartbeat.example/ping")
