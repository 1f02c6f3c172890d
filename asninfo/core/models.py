"""Dataset model for ASNINFO.

:class:`AsnRecord` is the merged, per-ASN view built from every upstream
source. A :class:`DatasetSnapshot` is an immutable, point-in-time mapping of
ASN to record; it is never edited in place, only superseded by the next one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from asninfo.core.countries import country_name
from asninfo.utils.helpers import MAX_ASN


class DatasetMode(str, Enum):
    """Which upstream datasets a snapshot was built from."""

    FULL = "full"
    SIMPLIFIED = "simplified"


# ---------------------------------------------------------------------------
# Nested source records
# ---------------------------------------------------------------------------


class As2Org(BaseModel):
    """Organisation mapping for an ASN (CAIDA AS2Org).

    Attributes:
        org_id: Registry organisation handle.
        org_name: Organisation display name.
        name: AS name as recorded by the organisation dataset.
        country: Organisation country code.
    """

    model_config = ConfigDict(frozen=True)

    org_id: str = ""
    org_name: str = ""
    name: str = ""
    country: str = ""


class Hegemony(BaseModel):
    """Global AS hegemony scores (IHR), one per address family."""

    model_config = ConfigDict(frozen=True)

    asn: int
    ipv4: float = Field(default=0.0, ge=0.0, le=1.0)
    ipv6: float = Field(default=0.0, ge=0.0, le=1.0)


class PeeringDb(BaseModel):
    """Network entry from PeeringDB."""

    model_config = ConfigDict(frozen=True)

    asn: int
    name: Optional[str] = None
    aka: Optional[str] = None
    name_long: Optional[str] = None
    website: Optional[str] = None
    irr_as_set: Optional[str] = None


class Population(BaseModel):
    """Estimated user population served by an ASN (APNIC)."""

    model_config = ConfigDict(frozen=True)

    user_count: int = 0
    sample_count: int = 0
    percent_global: float = 0.0
    percent_country: float = 0.0


# ---------------------------------------------------------------------------
# Merged record
# ---------------------------------------------------------------------------


class SimplifiedRecord(BaseModel):
    """Flat record shape used by CSV exports and legacy API responses."""

    asn: int
    as_name: str = ""
    org_id: str = ""
    org_name: str = ""
    country_code: str = ""
    country_name: str = ""
    data_source: str = ""


class AsnRecord(BaseModel):
    """Merged metadata for a single Autonomous System.

    ``hegemony``, ``peeringdb`` and ``population`` are ``None`` whenever the
    corresponding source did not provide data, and always ``None`` in a
    simplified dataset.
    """

    model_config = ConfigDict(frozen=True)

    asn: int = Field(..., ge=0, le=MAX_ASN)
    name: str = ""
    country_code: str = ""
    country_name: str = ""
    as2org: Optional[As2Org] = None
    hegemony: Optional[Hegemony] = None
    peeringdb: Optional[PeeringDb] = None
    population: Optional[Population] = None

    @property
    def has_auxiliary(self) -> bool:
        """``True`` if any full-mode-only field is populated."""
        return any(
            v is not None for v in (self.hegemony, self.peeringdb, self.population)
        )

    def without_auxiliary(self) -> "AsnRecord":
        """Return a copy with hegemony, PeeringDB and population cleared."""
        if not self.has_auxiliary:
            return self
        return self.model_copy(
            update={"hegemony": None, "peeringdb": None, "population": None}
        )

    def with_country_name(self) -> "AsnRecord":
        """Return a copy whose ``country_name`` is derived from the country table."""
        name = country_name(self.country_code)
        if name == self.country_name:
            return self
        return self.model_copy(update={"country_name": name})

    def simplified(self) -> SimplifiedRecord:
        """Project this record onto the flat :class:`SimplifiedRecord` shape."""
        org_id = self.as2org.org_id if self.as2org else ""
        org_name = self.as2org.org_name if self.as2org else ""
        return SimplifiedRecord(
            asn=self.asn,
            as_name=self.name,
            org_id=org_id,
            org_name=org_name,
            country_code=self.country_code,
            country_name=self.country_name or country_name(self.country_code),
            data_source="",
        )


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


def utcnow() -> datetime:
    """Return timezone-aware current UTC time."""
    return datetime.now(tz=timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render *value* as RFC 3339 UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


@dataclass(frozen=True)
class DatasetSnapshot:
    """Immutable mapping of ASN to :class:`AsnRecord`.

    Attributes:
        records: Read-only mapping keyed by ASN.
        mode: Dataset mode the records were built in.
        updated_at: When the snapshot was successfully built.
    """

    records: Mapping[int, AsnRecord]
    mode: DatasetMode = DatasetMode.FULL
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        mode = DatasetMode(self.mode)
        frozen = {}
        for asn, record in self.records.items():
            if asn != record.asn:
                raise ValueError(f"record for AS{record.asn} stored under key {asn}")
            if mode is DatasetMode.SIMPLIFIED:
                record = record.without_auxiliary()
            frozen[asn] = record
        object.__setattr__(self, "records", MappingProxyType(frozen))
        object.__setattr__(self, "mode", mode)

    @classmethod
    def build(
        cls,
        records: Iterable[AsnRecord],
        mode: DatasetMode,
        updated_at: Optional[datetime] = None,
    ) -> "DatasetSnapshot":
        """Create a snapshot from an iterable of records (last one wins per ASN)."""
        return cls(
            records={r.asn: r for r in records},
            mode=mode,
            updated_at=updated_at or utcnow(),
        )

    @classmethod
    def empty(cls, mode: DatasetMode = DatasetMode.FULL) -> "DatasetSnapshot":
        """Placeholder snapshot with no records."""
        return cls(records={}, mode=mode)

    @property
    def updated_at_str(self) -> str:
        return format_timestamp(self.updated_at)

    def get(self, asn: int) -> Optional[AsnRecord]:
        return self.records.get(asn)

    def sorted_records(self) -> List[AsnRecord]:
        """All records in ascending ASN order."""
        return [self.records[asn] for asn in sorted(self.records)]

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, asn: object) -> bool:
        return asn in self.records

    def __iter__(self) -> Iterator[AsnRecord]:
        return iter(self.sorted_records())
