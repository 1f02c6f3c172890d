"""Object storage upload (AWS S3 / Cloudflare R2) and completion heartbeat."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, NamedTuple, Union

import aiohttp
import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from asninfo.core.config import S3Config
from asninfo.core.errors import CredentialsError, HeartbeatError, UploadError
from asninfo.utils.http_client import AsyncHTTPClient
from asninfo.utils.logger import get_logger

logger = get_logger(__name__)

_SCHEMES = ("s3", "r2")

# Environment variable names reported when credentials are missing.
_ENV_NAMES = {
    "region": "AWS_REGION",
    "endpoint": "AWS_ENDPOINT",
    "access_key_id": "AWS_ACCESS_KEY_ID",
    "secret_access_key": "AWS_SECRET_ACCESS_KEY",
}


class UploadTarget(NamedTuple):
    """Destination of an upload parsed from ``s3://bucket/key``."""

    scheme: str
    bucket: str
    key: str

    def __str__(self) -> str:
        return f"{self.scheme}://{self.bucket}/{self.key}"


def parse_upload_path(upload_path: str) -> UploadTarget:
    """Split an ``s3://`` or ``r2://`` URL into scheme, bucket and key.

    Raises:
        UploadError: If the scheme is unsupported or bucket/key are missing.
    """
    scheme, sep, rest = upload_path.partition("://")
    scheme = scheme.lower()
    if not sep or scheme not in _SCHEMES:
        raise UploadError(f"unsupported upload path {upload_path!r}, expected s3:// or r2://")
    bucket, _, key = rest.partition("/")
    if not bucket or not key:
        raise UploadError(f"upload path {upload_path!r} must include a bucket and an object key")
    return UploadTarget(scheme, bucket, key)


def s3_env_check(s3: S3Config) -> None:
    """Ensure every credential needed for an upload is configured.

    Raises:
        CredentialsError: Listing the environment variables that are unset.
    """
    missing: List[str] = [
        env for field, env in _ENV_NAMES.items() if not getattr(s3, field)
    ]
    if missing:
        raise CredentialsError(
            "missing S3 credentials, set: " + ", ".join(missing)
        )


def upload_file(local_path: Union[str, Path], upload_path: str, s3: S3Config) -> UploadTarget:
    """Upload *local_path* to *upload_path* with boto3.

    Args:
        local_path: File to upload.
        upload_path: ``s3://bucket/key`` or ``r2://bucket/key``.
        s3: Region, endpoint and credentials.

    Returns:
        The parsed upload target.

    Raises:
        CredentialsError: If credentials are incomplete.
        UploadError: If the path is invalid or the upload fails.
    """
    s3_env_check(s3)
    target = parse_upload_path(upload_path)
    client = boto3.client(
        "s3",
        region_name=s3.region,
        endpoint_url=s3.endpoint,
        aws_access_key_id=s3.access_key_id,
        aws_secret_access_key=s3.secret_access_key,
    )
    logger.info("Uploading %s to %s", local_path, target)
    try:
        client.upload_file(str(local_path), target.bucket, target.key)
    except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
        raise UploadError(f"failed to upload {local_path} to {target}: {exc}") from exc
    logger.info("Upload to %s finished", target)
    return target


async def send_heartbeat(url: str, timeout: int = 10) -> None:
    """Send a GET request to the heartbeat *url*.

    Raises:
        HeartbeatError: On a connection error or a non-2xx response.
    """
    try:
        async with AsyncHTTPClient(timeout=timeout, retries=2) as http:
            resp = await http.get(url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise HeartbeatError(f"heartbeat to {url} failed: {exc}") from exc
    if not 200 <= resp["status"] < 300:
        raise HeartbeatError(f"heartbeat to {url} returned HTTP {resp['status']}")
    logger.info("Heartbeat sent")
