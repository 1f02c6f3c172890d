"""ASNINFO: merged Autonomous System metadata with dataset export, upload and a lookup API."""

__version__ = "0.4.0"
__all__ = ["__version__"]
