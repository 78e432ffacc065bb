"""Client address resolution: forwarded headers, peer fallback, normalization."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from ipaddress import IPv6Address, ip_address

from starlette.requests import HTTPConnection

_IPV4_MAPPED_MARKER = "::ffff:"

_IPV4_FORMAT = re.compile(r"^\d{1,3}(\.\d{1,3}){3}(:\d*)?$")
_IPV6_FORMAT = re.compile(r"^[0-9a-f:.]*:[0-9a-f:.]*$", re.IGNORECASE)


def _is_v6_format(ip: str) -> bool:
    return bool(_IPV6_FORMAT.match(ip)) and not _IPV4_FORMAT.match(ip)


def _is_v4_format(ip: str) -> bool:
    return bool(_IPV4_FORMAT.match(ip))


def normalize_ip(ip: str) -> str:
    """Canonicalize a single candidate address.

    ``::ffff:127.0.0.1`` becomes ``127.0.0.1`` and ``127.0.0.1:54321``
    becomes ``127.0.0.1``.  Anything else is returned unchanged.
    """
    if _is_v6_format(ip):
        lowered = ip.lower()
        tail = ""
        if _IPV4_MAPPED_MARKER in lowered:
            tail = ip[lowered.index(_IPV4_MAPPED_MARKER) + len(_IPV4_MAPPED_MARKER):]
        if _is_v4_format(tail):
            ip = tail
        else:
            # Hex and expanded forms such as ::ffff:7f00:1 or 0:0:0:0:0:ffff:7f00:1
            try:
                addr = ip_address(ip)
            except ValueError:
                addr = None
            if isinstance(addr, IPv6Address) and addr.ipv4_mapped:
                ip = str(addr.ipv4_mapped)

    if _is_v4_format(ip) and ":" in ip:
        ip = ip.split(":", 1)[0]

    return ip


def _first_header_value(headers: Mapping[str, str], allowed_headers: Iterable[str]) -> str:
    for header in allowed_headers:
        value = headers.get(header)
        if value:
            return value
    return ""


def resolve_client_ips(
    headers: Mapping[str, str],
    remote_addr: str | None,
    allowed_headers: Iterable[str] = (),
) -> list[str]:
    """Return the normalized candidate addresses for a request.

    The first header in *allowed_headers* with a non-empty value wins and is
    split on ``,`` as-is.  When no header matches, *remote_addr* is the only
    candidate.  With neither, the result is empty.
    """
    header_value = _first_header_value(headers, allowed_headers)
    if header_value:
        candidates = header_value.split(",")
    elif remote_addr:
        candidates = [remote_addr]
    else:
        return []

    return [normalize_ip(candidate) for candidate in candidates]


def get_client_ips(conn: HTTPConnection, allowed_headers: Iterable[str] = ()) -> list[str]:
    """Resolve candidate addresses from a Starlette request or websocket."""
    remote_addr = conn.client.host if conn.client else None
    return resolve_client_ips(conn.headers, remote_addr, allowed_headers)
