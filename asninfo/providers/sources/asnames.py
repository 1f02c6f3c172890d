"""RIPE NCC ``asn.txt``: AS names and registration countries."""

from __future__ import annotations

from typing import Dict, NamedTuple

from asninfo.providers.sources.base import DatasetSource
from asninfo.utils.helpers import parse_asn


class AsName(NamedTuple):
    name: str
    country: str


class AsNamesSource(DatasetSource):
    """Primary AS registry: one ``"<asn> <NAME>, <CC>"`` line per ASN."""

    name = "asnames"
    description = "AS names and countries from RIPE NCC asn.txt"
    required = True

    def parse(self, payload: str) -> Dict[int, AsName]:
        """Parse the ``asn.txt`` body.

        Lines look like ``13335 CLOUDFLARENET, US``. The country is whatever
        follows the last comma; names without a comma get an empty country.
        """
        result: Dict[int, AsName] = {}
        for line in payload.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            token, _, rest = line.partition(" ")
            asn = parse_asn(token)
            if asn is None:
                continue
            name, sep, country = rest.rpartition(",")
            if not sep:
                name, country = rest, ""
            country = country.strip()
            if len(country) != 2:
                name, country = rest, ""
            result[asn] = AsName(name=name.strip(), country=country.upper())
        return result
