from __future__ import annotations

import ipaddress
import re
import socket
from urllib.parse import urlparse, urlunparse


def normalize_job_url(raw_url: str) -> tuple[str, str]:
    value = (raw_url or "").strip()
    if not value:
        raise ValueError("Job URL is required.")
    if "://" in value and not re.match(r"^https?://", value, flags=re.IGNORECASE):
        raise ValueError("Only http/https job URLs are supported.")
    if not re.match(r"^https?://", value, flags=re.IGNORECASE):
        value = f"https://{value}"
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError("Only http/https job URLs are supported.")
    hostname = (parsed.hostname or "").lower().strip()
    if not parsed.netloc or not hostname:
        raise ValueError("Invalid job URL.")
    normalized = urlunparse(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path or "/",
            "",
            parsed.query,
            "",
        )
    )
    return normalized, hostname


def _is_restricted(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return bool(
        address.is_private or address.is_loopback or address.is_link_local or address.is_reserved
    )


def host_is_private_or_local(hostname: str) -> bool:
    host = (hostname or "").strip().lower().strip("[]")
    if host in {"localhost", "127.0.0.1", "::1"} or host.endswith(".local"):
        return True
    try:
        return _is_restricted(ipaddress.ip_address(host))
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(host, None)
    except OSError:
        # Unresolvable hosts fail later at fetch time.
        return False
    for _family, _socktype, _proto, _canon, sockaddr in infos:
        try:
            if _is_restricted(ipaddress.ip_address(sockaddr[0])):
                return True
        except ValueError:
            continue
    return False
