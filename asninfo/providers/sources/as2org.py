"""CAIDA AS Organizations dataset (``as-org2info.jsonl``)."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Tuple
from urllib.parse import urljoin

from asninfo.core.models import As2Org
from asninfo.providers.sources.base import DatasetSource
from asninfo.utils.helpers import parse_asn

_DATASET_RE = re.compile(r"(\d{8})\.as-org2info\.jsonl(?:\.gz)?")


def find_latest_dataset(index_html: str, base_url: str) -> str:
    """Pick the newest ``YYYYMMDD.as-org2info.jsonl.gz`` file from a directory listing.

    Args:
        index_html: Body of the CAIDA directory index page.
        base_url: URL of that index, used to resolve the relative link.

    Returns:
        Absolute URL of the newest dataset file.

    Raises:
        ValueError: If the listing contains no dataset files.
    """
    matches = {m.group(0): m.group(1) for m in _DATASET_RE.finditer(index_html)}
    if not matches:
        raise ValueError("no as-org2info files found in directory listing")
    # Prefer the compressed file when both variants share a date.
    newest = max(matches, key=lambda f: (matches[f], f.endswith(".gz")))
    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, newest)


class As2OrgSource(DatasetSource):
    """ASN → organisation mapping.

    ``url`` may be a dataset file or the directory that holds them; in the
    latter case the most recent file is discovered from the listing.
    """

    name = "as2org"
    description = "AS to organisation mapping from CAIDA"
    required = True

    async def download(self) -> str:
        url = self.url
        if not _DATASET_RE.search(url.rsplit("/", 1)[-1]):
            index = await self._http.get_text(url)
            url = find_latest_dataset(index, url)
            self.logger.info("Using AS2Org dataset %s", url)
        return await self._http.get_text(url)

    def parse(self, payload: str) -> Dict[int, As2Org]:
        """Parse JSON-lines ``ASN`` and ``Organization`` entries and join them."""
        orgs: Dict[str, Tuple[str, str]] = {}
        asns: Dict[int, Tuple[str, str]] = {}
        for line in payload.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            entry: Dict[str, Any] = json.loads(line)
            kind = entry.get("type")
            org_id = entry.get("organizationId") or ""
            if kind == "Organization":
                orgs[org_id] = (entry.get("name") or "", entry.get("country") or "")
            elif kind == "ASN":
                asn = parse_asn(str(entry.get("asn", "")))
                if asn is not None:
                    asns[asn] = (entry.get("name") or "", org_id)

        result: Dict[int, As2Org] = {}
        for asn, (as_name, org_id) in asns.items():
            org_name, country = orgs.get(org_id, ("", ""))
            result[asn] = As2Org(
                org_id=org_id,
                org_name=org_name,
                name=as_name,
                country=country.upper(),
            )
        return result
