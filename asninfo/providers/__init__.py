"""Upstream ASN data providers and the adapter that merges them into snapshots."""

from asninfo.providers.adapter import ProviderAdapter

__all__ = ["ProviderAdapter"]
