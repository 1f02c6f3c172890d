"""APNIC per-ASN user population estimates."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Tuple

from asninfo.core.models import Population
from asninfo.providers.sources.base import DatasetSource
from asninfo.utils.helpers import parse_asn


def _entries(payload: Any) -> Iterable[Tuple[Any, Dict[str, Any]]]:
    """Yield ``(asn, fields)`` pairs from either supported payload layout.

    Accepts ``{"datasets": {"<asn>": {...}}}``, a bare ``{"<asn>": {...}}``
    object, or a list of objects carrying their own ``asn`` key.
    """
    if isinstance(payload, dict):
        payload = payload.get("datasets", payload)
    if isinstance(payload, dict):
        yield from payload.items()
    elif isinstance(payload, list):
        for item in payload:
            if isinstance(item, dict):
                yield item.get("asn"), item


class PopulationSource(DatasetSource):
    name = "population"
    description = "Estimated user population per ASN from APNIC"

    def parse(self, payload: str) -> Dict[int, Population]:
        result: Dict[int, Population] = {}
        for key, fields in _entries(json.loads(payload)):
            asn = parse_asn(str(key))
            if asn is None or not isinstance(fields, dict):
                continue
            result[asn] = Population(
                user_count=int(fields.get("user_count") or 0),
                sample_count=int(fields.get("sample_count") or 0),
                percent_global=float(fields.get("percent_global") or 0.0),
                percent_country=float(fields.get("percent_country") or 0.0),
            )
        return result
