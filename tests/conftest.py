"""Shared pytest fixtures for the ASNINFO test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from asninfo.core.config import Config
from asninfo.core.models import (
    As2Org,
    AsnRecord,
    DatasetMode,
    DatasetSnapshot,
    Hegemony,
    PeeringDb,
)
from asninfo.core.store import SnapshotStore

SNAPSHOT_TIME = datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)


class FakeHTTP:
    """Serves canned bodies keyed by URL in place of :class:`AsyncHTTPClient`."""

    def __init__(self, bodies: Dict[str, object]) -> None:
        self.bodies = bodies
        self.requested: List[str] = []

    def _lookup(self, url: str) -> object:
        self.requested.append(url)
        body = self.bodies[url]
        if isinstance(body, Exception):
            raise body
        return body

    async def get_text(self, url: str, **kwargs: object) -> str:
        return self._lookup(url)  # type: ignore[return-value]

    async def get_json(self, url: str, **kwargs: object) -> object:
        return self._lookup(url)


@pytest.fixture
def sample_config() -> Config:
    """Return a default Config instance with no external dependencies."""
    return Config()


@pytest.fixture
def cloudflare() -> AsnRecord:
    """Full record for AS13335."""
    return AsnRecord(
        asn=13335,
        name="CLOUDFLARENET",
        country_code="US",
        country_name="United States",
        as2org=As2Org(
            org_id="CLOUD14-ARIN",
            org_name="Cloudflare, Inc.",
            name="CLOUDFLARENET",
            country="US",
        ),
        hegemony=Hegemony(asn=13335, ipv4=0.002, ipv6=0.004),
        peeringdb=PeeringDb(asn=13335, name="Cloudflare", website="https://www.cloudflare.com"),
    )


@pytest.fixture
def sample_records(cloudflare: AsnRecord) -> List[AsnRecord]:
    """A small set of records: one full, two without auxiliary data."""
    return [
        AsnRecord(asn=15169, name="GOOGLE", country_code="US", country_name="United States"),
        cloudflare,
        AsnRecord(asn=3333, name="RIPE-NCC-AS", country_code="NL", country_name="The Netherlands"),
    ]


@pytest.fixture
def sample_snapshot(sample_records: List[AsnRecord]) -> DatasetSnapshot:
    """Full-mode snapshot with a fixed timestamp."""
    return DatasetSnapshot.build(sample_records, DatasetMode.FULL, updated_at=SNAPSHOT_TIME)


@pytest.fixture
def store(sample_snapshot: DatasetSnapshot) -> SnapshotStore:
    """Store serving :func:`sample_snapshot`."""
    return SnapshotStore(sample_snapshot)


@pytest.fixture
def mock_provider(sample_snapshot: DatasetSnapshot) -> MagicMock:
    """Return a MagicMock provider whose ``fetch`` yields the sample snapshot."""
    provider = MagicMock()
    provider.fetch = AsyncMock(return_value=sample_snapshot)
    return provider


@pytest.fixture
def make_http() -> Callable[[Dict[str, object]], FakeHTTP]:
    """Factory for fake HTTP clients serving canned bodies by URL."""
    return FakeHTTP
