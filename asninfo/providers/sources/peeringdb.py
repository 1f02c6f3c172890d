"""PeeringDB network records."""

from __future__ import annotations

from typing import Any, Dict, Optional

from asninfo.core.models import PeeringDb
from asninfo.providers.sources.base import DatasetSource
from asninfo.utils.http_client import AsyncHTTPClient


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class PeeringDbSource(DatasetSource):
    """Reads ``/api/net``; an API key lifts the anonymous rate limit."""

    name = "peeringdb"
    description = "Network records from PeeringDB"

    def __init__(self, http: AsyncHTTPClient, url: str, api_key: str = "") -> None:
        super().__init__(http, url)
        self._api_key = api_key

    async def download(self) -> Any:
        headers: Dict[str, str] = {}
        if self._api_key:
            headers["Authorization"] = f"Api-Key {self._api_key}"
        return await self._http.get_json(self.url, headers=headers)

    def parse(self, payload: Dict[str, Any]) -> Dict[int, PeeringDb]:
        result: Dict[int, PeeringDb] = {}
        for net in payload.get("data", []):
            asn = net.get("asn")
            if not isinstance(asn, int) or asn < 0:
                continue
            result[asn] = PeeringDb(
                asn=asn,
                name=_optional_str(net.get("name")),
                aka=_optional_str(net.get("aka")),
                name_long=_optional_str(net.get("name_long")),
                website=_optional_str(net.get("website")),
                irr_as_set=_optional_str(net.get("irr_as_set")),
            )
        return result
