"""
Target validation: a scan only starts against a hostname or IP that
resolves, so a typo fails fast instead of producing an all-closed result.
"""

import ipaddress
import socket
from typing import List

from core.errors import ScanConfigError


def _resolve_host(host: str) -> List[str]:
    try:
        infos = socket.getaddrinfo(host, None)
        return list({info[4][0] for info in infos})
    except (socket.gaierror, UnicodeError):
        return []


def resolve_target(target: str) -> List[str]:
    """
    Return the addresses behind target or raise ScanConfigError.
    IP literals are accepted without a lookup.
    """
    target = target.strip()
    if not target:
        raise ScanConfigError("empty target")
    try:
        return [str(ipaddress.ip_address(target))]
    except ValueError:
        pass
    addrs = _resolve_host(target)
    if not addrs:
        raise ScanConfigError(f"could not resolve target {target!r}")
    return addrs


def split_targets(*specs: str) -> List[str]:
    """Merge --target / --targets style values, dropping blanks and repeats."""
    seen = {}
    for spec in specs:
        if not spec:
            continue
        for part in spec.split(","):
            t = part.strip()
            if t:
                seen.setdefault(t, None)
    return list(seen)

