"""Utility functions for ASNINFO.

Helpers for parsing ASNs and bind addresses.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

MAX_ASN = 2**32 - 1


def parse_asn(token: str) -> Optional[int]:
    """Parse a single ASN token such as ``"13335"`` or ``"AS13335"``.

    Args:
        token: Raw token; surrounding whitespace is ignored.

    Returns:
        The ASN as an integer, or ``None`` if *token* is not a valid 32-bit ASN.
    """
    value = token.strip()
    if value[:2].lower() == "as":
        value = value[2:]
    if not (value.isascii() and value.isdigit()):
        return None
    asn = int(value)
    if asn > MAX_ASN:
        return None
    return asn


def parse_asn_list(raw: Optional[str]) -> List[int]:
    """Parse a comma-separated ASN list, skipping tokens that are not ASNs.

    Args:
        raw: Value of the ``asns`` query parameter, e.g. ``"13335,15169"``.

    Returns:
        Parsed ASNs in input order (duplicates preserved).
    """
    if not raw:
        return []
    result: List[int] = []
    for token in raw.split(","):
        asn = parse_asn(token)
        if asn is not None:
            result.append(asn)
    return result


def parse_bind(bind: str) -> Tuple[str, int]:
    """Split a ``host:port`` bind address.

    IPv6 hosts may be bracketed, e.g. ``[::]:8080``.

    Raises:
        ValueError: If the port is missing or outside 1-65535.
    """
    host, sep, port_str = bind.strip().rpartition(":")
    if not sep or not host or not port_str.isdigit():
        raise ValueError(f"invalid bind address {bind!r}, expected host:port")
    port = int(port_str)
    if not 0 < port < 65536:
        raise ValueError(f"invalid port {port} in bind address {bind!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port
