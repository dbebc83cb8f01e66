"""
TCP connect probing using plain connect() without crafting raw packets.
tcp_connect is a single attempt; probe_port wraps it with exponential
backoff retries and banner capture for one port.
"""

import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from core.errors import ConnectError
from probers.banner import grab_banner

log = logging.getLogger(__name__)

OPEN = "open"
CLOSED = "closed"
SKIPPED = "skipped"


@dataclass(frozen=True)
class PortOutcome:
    port: int
    status: str
    banner: str = ""
    attempts: int = 0

    @property
    def is_open(self) -> bool:
        return self.status == OPEN

    @classmethod
    def closed(cls, port: int, attempts: int = 0) -> "PortOutcome":
        return cls(port=port, status=CLOSED, attempts=attempts)

    @classmethod
    def skipped(cls, port: int) -> "PortOutcome":
        return cls(port=port, status=SKIPPED)


def tcp_connect(target: str, port: int, timeout: float) -> socket.socket:
    try:
        return socket.create_connection((target, port), timeout=timeout)
    except OSError as exc:
        raise ConnectError(target, port, exc) from exc


def _safe_banner(grabber: Callable[[socket.socket, int], str], sock: socket.socket, port: int) -> str:
    try:
        return grabber(sock, port) or ""
    except Exception:  # noqa: BLE001
        log.debug("banner grab on port %s raised, keeping empty banner", port, exc_info=True)
        return ""


def _stopped(stop_event: Optional[threading.Event]) -> bool:
    return stop_event is not None and stop_event.is_set()


def probe_port(
    target: str,
    port: int,
    timeout: float,
    max_retries: int,
    backoff_base: float = 1.0,
    connector: Callable[[str, int, float], socket.socket] = tcp_connect,
    grabber: Callable[[socket.socket, int], str] = grab_banner,
    sleep: Callable[[float], object] = time.sleep,
    stop_event: Optional[threading.Event] = None,
) -> PortOutcome:
    attempts = 0
    for attempt in range(max_retries):
        attempts += 1
        try:
            sock = connector(target, port, timeout)
        except ConnectError as exc:
            log.debug("attempt %d/%d: %s", attempts, max_retries, exc)
        else:
            try:
                banner = _safe_banner(grabber, sock, port)
            finally:
                sock.close()
            return PortOutcome(port=port, status=OPEN, banner=banner, attempts=attempts)

        if attempt + 1 < max_retries:
            if _stopped(stop_event):
                break
            sleep(backoff_base * (2 ** attempt))
            if _stopped(stop_event):
                break
    return PortOutcome.closed(port, attempts=attempts)
