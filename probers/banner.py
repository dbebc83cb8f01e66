"""
Banner capture from an already-open TCP connection.

HTTP ports get a HEAD request first and report the Server header when one
comes back; everything else is read as-is. grab_banner never raises and
never blocks longer than its read deadline.
"""

import socket
import time
from typing import Iterable, Optional

from core.config import settings

HTTP_HEAD = b"HEAD / HTTP/1.0\r\n\r\n"


def _read_all(sock: socket.socket, read_timeout: float, idle_timeout: float, max_bytes: int) -> bytes:
    deadline = time.monotonic() + read_timeout
    chunks = []
    size = 0
    wait = read_timeout
    while size < max_bytes:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        sock.settimeout(min(wait, remaining))
        try:
            data = sock.recv(min(1024, max_bytes - size))
        except (socket.timeout, OSError):
            break
        if not data:
            break
        chunks.append(data)
        size += len(data)
        # keep reading only while the peer keeps talking
        wait = idle_timeout
    return b"".join(chunks)


def server_header(text: str) -> Optional[str]:
    for line in text.splitlines():
        if line.lower().startswith("server:"):
            return line[len("server:"):].strip()
    return None


def grab_banner(
    sock: socket.socket,
    port: int,
    read_timeout: Optional[float] = None,
    idle_timeout: Optional[float] = None,
    max_bytes: Optional[int] = None,
    http_ports: Optional[Iterable[int]] = None,
) -> str:
    read_timeout = settings.banner_read_timeout_s if read_timeout is None else read_timeout
    idle_timeout = settings.banner_idle_timeout_s if idle_timeout is None else idle_timeout
    max_bytes = settings.banner_max_bytes if max_bytes is None else max_bytes
    is_http = port in set(settings.http_banner_ports if http_ports is None else http_ports)

    try:
        if is_http:
            sock.sendall(HTTP_HEAD)
        data = _read_all(sock, read_timeout, idle_timeout, max_bytes)
    except (socket.timeout, OSError):
        return ""

    text = data.decode(errors="ignore").strip()
    if is_http:
        server = server_header(text)
        if server is not None:
            return server
    return text
