"""Provider adapter: fetches every upstream source and merges a snapshot.

The two primary sources (AS names and AS2Org) must succeed or the whole fetch
fails with :class:`~asninfo.core.errors.FetchError`. Auxiliary sources
(hegemony, PeeringDB, population) are only consulted in full mode; a failure
there is logged and leaves just that field absent on every record.

No retries happen here: the HTTP client is built with ``retries=0`` and the
retry policy belongs to the caller (see
:class:`~asninfo.core.refresher.BackgroundRefresher`).
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from asninfo.core.config import SourcesConfig
from asninfo.core.countries import country_name
from asninfo.core.errors import FetchError
from asninfo.core.models import AsnRecord, DatasetMode, DatasetSnapshot
from asninfo.providers.sources import (
    As2OrgSource,
    AsNamesSource,
    DatasetSource,
    HegemonySource,
    PeeringDbSource,
    PopulationSource,
)
from asninfo.utils.http_client import AsyncHTTPClient
from asninfo.utils.logger import get_logger

logger = get_logger(__name__)


def merge_records(
    asnames: Dict[int, Any],
    as2org: Dict[int, Any],
    hegemony: Optional[Dict[int, Any]] = None,
    peeringdb: Optional[Dict[int, Any]] = None,
    population: Optional[Dict[int, Any]] = None,
) -> List[AsnRecord]:
    """Join per-source mappings into one :class:`AsnRecord` per ASN.

    Every ASN known to either primary source gets a record. Name and country
    come from the AS names registry and fall back to the AS2Org entry.

    Args:
        asnames: ASN → :class:`~asninfo.providers.sources.asnames.AsName`.
        as2org: ASN → :class:`~asninfo.core.models.As2Org`.
        hegemony: ASN → Hegemony, or ``None`` when not loaded.
        peeringdb: ASN → PeeringDb, or ``None`` when not loaded.
        population: ASN → Population, or ``None`` when not loaded.

    Returns:
        Records in ascending ASN order.
    """
    hegemony = hegemony or {}
    peeringdb = peeringdb or {}
    population = population or {}

    records: List[AsnRecord] = []
    for asn in sorted(set(asnames) | set(as2org)):
        names = asnames.get(asn)
        org = as2org.get(asn)
        name = names.name if names else ""
        country = names.country if names else ""
        if org is not None:
            name = name or org.name
            country = country or org.country
        records.append(
            AsnRecord(
                asn=asn,
                name=name,
                country_code=country,
                country_name=country_name(country),
                as2org=org,
                hegemony=hegemony.get(asn),
                peeringdb=peeringdb.get(asn),
                population=population.get(asn),
            )
        )
    return records


class ProviderAdapter:
    """Builds :class:`DatasetSnapshot` objects from the configured upstream sources.

    Example::

        adapter = ProviderAdapter(load_config().sources)
        snapshot = await adapter.fetch(DatasetMode.FULL)
    """

    def __init__(
        self,
        sources: Optional[SourcesConfig] = None,
        http: Optional[AsyncHTTPClient] = None,
    ) -> None:
        """Initialise the adapter.

        Args:
            sources: Upstream URLs and timeouts. Defaults to :class:`SourcesConfig`.
            http: HTTP client to use; one is created per fetch when omitted.
        """
        self._sources = sources or SourcesConfig()
        self._http = http

    def _build_sources(self, http: AsyncHTTPClient, mode: DatasetMode) -> Dict[str, DatasetSource]:
        cfg = self._sources
        built: Dict[str, DatasetSource] = {
            "asnames": AsNamesSource(http, cfg.asnames_url),
            "as2org": As2OrgSource(http, cfg.as2org_url),
        }
        if mode is DatasetMode.FULL:
            built["hegemony"] = HegemonySource(
                http, cfg.hegemony_ipv4_url, cfg.hegemony_ipv6_url
            )
            built["peeringdb"] = PeeringDbSource(
                http, cfg.peeringdb_url, api_key=cfg.peeringdb_api_key
            )
            built["population"] = PopulationSource(http, cfg.population_url)
        return built

    async def fetch(self, mode: DatasetMode = DatasetMode.FULL) -> DatasetSnapshot:
        """Download all sources for *mode* and merge them into a new snapshot.

        Args:
            mode: ``FULL`` loads every source; ``SIMPLIFIED`` skips the auxiliary ones.

        Returns:
            A freshly built, immutable snapshot.

        Raises:
            FetchError: If a primary source cannot be loaded.
        """
        mode = DatasetMode(mode)
        if self._http is not None:
            return await self._fetch_with(self._http, mode)
        async with AsyncHTTPClient(timeout=self._sources.timeout, retries=0) as http:
            return await self._fetch_with(http, mode)

    async def _fetch_with(self, http: AsyncHTTPClient, mode: DatasetMode) -> DatasetSnapshot:
        sources = self._build_sources(http, mode)
        names = list(sources)
        results = await asyncio.gather(
            *(sources[n].fetch() for n in names), return_exceptions=True
        )

        loaded: Dict[str, Optional[Dict[int, Any]]] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if sources[name].required:
                    if isinstance(result, FetchError):
                        raise result
                    raise FetchError(name, str(result)) from result
                logger.warning("Skipping %s data: %s", name, result)
                loaded[name] = None
            else:
                loaded[name] = result

        records = await asyncio.to_thread(
            merge_records,
            loaded["asnames"] or {},
            loaded["as2org"] or {},
            loaded.get("hegemony"),
            loaded.get("peeringdb"),
            loaded.get("population"),
        )
        snapshot = DatasetSnapshot.build(records, mode)
        logger.info(
            "Built %s snapshot with %d ASNs at %s",
            mode.value,
            len(snapshot),
            snapshot.updated_at_str,
        )
        return snapshot
