"""IHR global AS hegemony scores for IPv4 and IPv6."""

from __future__ import annotations

import asyncio
import csv
import io
import math
from typing import Dict, Tuple

from asninfo.core.models import Hegemony
from asninfo.providers.sources.base import DatasetSource
from asninfo.utils.http_client import AsyncHTTPClient
from asninfo.utils.helpers import parse_asn


def parse_hegemony_csv(text: str) -> Dict[int, float]:
    """Parse an ``asn,hege`` CSV into ASN → score, clamped to [0, 1].

    Rows whose score is not a finite number are skipped.
    """
    scores: Dict[int, float] = {}
    reader = csv.DictReader(io.StringIO(text))
    for row in reader:
        asn = parse_asn(row.get("asn") or "")
        if asn is None:
            continue
        try:
            value = float(row.get("hege") or 0.0)
        except ValueError:
            continue
        if not math.isfinite(value):
            continue
        scores[asn] = min(max(value, 0.0), 1.0)
    return scores


class HegemonySource(DatasetSource):
    """Merges the IPv4 and IPv6 hegemony files; a family missing for an ASN scores 0."""

    name = "hegemony"
    description = "Global AS hegemony from the Internet Health Report"

    def __init__(self, http: AsyncHTTPClient, ipv4_url: str, ipv6_url: str) -> None:
        super().__init__(http, ipv4_url)
        self.ipv6_url = ipv6_url

    async def download(self) -> Tuple[str, str]:
        ipv4, ipv6 = await asyncio.gather(
            self._http.get_text(self.url),
            self._http.get_text(self.ipv6_url),
        )
        return ipv4, ipv6

    def parse(self, payload: Tuple[str, str]) -> Dict[int, Hegemony]:
        ipv4 = parse_hegemony_csv(payload[0])
        ipv6 = parse_hegemony_csv(payload[1])
        return {
            asn: Hegemony(asn=asn, ipv4=ipv4.get(asn, 0.0), ipv6=ipv6.get(asn, 0.0))
            for asn in set(ipv4) | set(ipv6)
        }
