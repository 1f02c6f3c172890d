"""Stateless ASN lookup over the committed snapshot.

A lookup resolves against whatever snapshot the store holds at call time
and never triggers a fetch. The structured and legacy response shapes are
two presentations of the same :class:`LookupResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from asninfo.core.errors import ValidationError
from asninfo.core.models import AsnRecord, DatasetSnapshot
from asninfo.core.store import SnapshotStore

DEFAULT_MAX_ASNS = 100


@dataclass(frozen=True)
class LookupResult:
    """Records found for one request, in ascending ASN order."""

    records: List[AsnRecord]
    snapshot: DatasetSnapshot

    @property
    def count(self) -> int:
        return len(self.records)

    def structured(self) -> Dict[str, Any]:
        """Wrap the records with count, snapshot timestamp, and pagination fields."""
        return {
            "data": [r.model_dump(mode="json") for r in self.records],
            "count": self.count,
            "updatedAt": self.snapshot.updated_at_str,
            "page": 1,
            "page_size": self.count,
        }

    def legacy(self) -> List[Dict[str, Any]]:
        """Bare list of flat records, the shape earlier consumers expect."""
        return [r.simplified().model_dump(mode="json") for r in self.records]

    def render(self, legacy: bool = False) -> Any:
        return self.legacy() if legacy else self.structured()


class LookupService:
    """Answers bounded ASN lookups from a :class:`SnapshotStore`.

    Args:
        store: Store holding the snapshot to query.
        max_asns: Maximum number of ASNs accepted per request.
    """

    def __init__(self, store: SnapshotStore, max_asns: int = DEFAULT_MAX_ASNS) -> None:
        if max_asns < 1:
            raise ValueError("max_asns must be at least 1")
        self._store = store
        self.max_asns = max_asns

    def validate(self, asns: Sequence[int]) -> None:
        """Reject empty or oversized requests.

        The limit applies to the request as sent, duplicates included.

        Raises:
            ValidationError: 400 for an empty request, 413 when over the limit.
        """
        if not asns:
            raise ValidationError("no ASNs provided", status_code=400)
        if len(asns) > self.max_asns:
            raise ValidationError(
                f"payload too large, max ASNs per request is {self.max_asns}",
                status_code=413,
            )

    def find(self, asns: Sequence[int]) -> LookupResult:
        """Resolve *asns* against the current snapshot.

        ASNs missing from the snapshot are omitted; duplicates collapse into
        one entry. ``country_name`` is re-derived from the country table.

        Raises:
            ValidationError: See :meth:`validate`.
        """
        self.validate(asns)
        snapshot = self._store.get()
        found: List[AsnRecord] = []
        for asn in sorted(set(asns)):
            record = snapshot.get(asn)
            if record is not None:
                found.append(record.with_country_name())
        return LookupResult(records=found, snapshot=snapshot)

    def lookup(self, asns: Sequence[int], legacy: bool = False) -> Any:
        """Look up *asns* and render the requested response shape.

        Args:
            asns: Requested ASNs, in any order, possibly with duplicates.
            legacy: Return a bare list of flat records instead of the wrapper.

        Returns:
            Structured ``dict`` or legacy ``list``.

        Raises:
            ValidationError: If the request is empty or exceeds ``max_asns``.
        """
        return self.find(asns).render(legacy=legacy)

    def health(self) -> Dict[str, str]:
        """Process status and the current snapshot timestamp."""
        return {"status": "ok", "updatedAt": self._store.get().updated_at_str}
