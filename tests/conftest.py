import socket
import threading

import pytest

from core.errors import ConnectError


class LoopbackServer:
    """TCP listener on 127.0.0.1 that writes `banner` to each client and hangs up."""

    def __init__(self, banner: bytes = b""):
        self.banner = banner
        self.accepted = 0
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(64)
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self.sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            self.accepted += 1
            with conn:
                if self.banner:
                    conn.sendall(self.banner)

    def close(self):
        self._stop.set()
        self._thread.join(2)
        self.sock.close()


class FakeConn:
    def __init__(self, port: int):
        self.port = port
        self.closed = False

    def close(self):
        self.closed = True


class FakeNetwork:
    """Connector stand-in: ports in `open_ports` accept, everything else refuses."""

    def __init__(self, open_ports=()):
        self.open_ports = set(open_ports)
        self.calls = []
        self.conns = []
        self._lock = threading.Lock()

    def connect(self, target, port, timeout):
        with self._lock:
            self.calls.append(port)
        if port in self.open_ports:
            conn = FakeConn(port)
            with self._lock:
                self.conns.append(conn)
            return conn
        raise ConnectError(target, port, ConnectionRefusedError(111, "Connection refused"))

    @staticmethod
    def grab(conn, port):
        return f"banner-{conn.port}"


@pytest.fixture
def loopback():
    servers = []

    def _start(banner: bytes = b"") -> LoopbackServer:
        srv = LoopbackServer(banner)
        servers.append(srv)
        return srv

    yield _start
    for srv in servers:
        srv.close()


@pytest.fixture
def closed_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def fake_network():
    return FakeNetwork


@pytest.fixture
def no_sleep():
    slept = []
    return slept, slept.append
