"""Upstream dataset sources.

Each source downloads one dataset and parses it into a mapping keyed by ASN.
"""

from asninfo.providers.sources.as2org import As2OrgSource
from asninfo.providers.sources.asnames import AsNamesSource
from asninfo.providers.sources.base import DatasetSource
from asninfo.providers.sources.hegemony import HegemonySource
from asninfo.providers.sources.peeringdb import PeeringDbSource
from asninfo.providers.sources.population import PopulationSource

__all__ = [
    "As2OrgSource",
    "AsNamesSource",
    "DatasetSource",
    "HegemonySource",
    "PeeringDbSource",
    "PopulationSource",
]
