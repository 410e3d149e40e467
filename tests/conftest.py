"""Shared pytest fixtures for the tcpwait tests.

Network tests use real loopback sockets on ports picked by the OS, so they
never depend on external hosts.
"""

import logging
import socket
import threading
import time
from pathlib import Path
from typing import Callable, Generator, List, Optional

import pytest

from tcpwait.config import AppConfig

LOOPBACK = "127.0.0.1"


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Application config fixture writing log files to a temporary directory."""
    return AppConfig(log_directory=tmp_path, log_level="INFO")


@pytest.fixture(autouse=True)
def _reset_root_logging() -> Generator[None, None, None]:
    """Drop handlers installed by a test so later tests start clean."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


def _free_address() -> str:
    """Return a loopback ``ip:port`` nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((LOOPBACK, 0))
        return f"{LOOPBACK}:{sock.getsockname()[1]}"


@pytest.fixture
def free_address() -> Callable[[], str]:
    return _free_address


class Listeners:
    """Start loopback listeners, optionally after a delay; all closed at teardown."""

    def __init__(self) -> None:
        self._sockets: List[socket.socket] = []
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self.accepted = 0

    def _bind(self, address: Optional[str]) -> socket.socket:
        host, port = LOOPBACK, 0
        if address:
            host, port_text = address.rsplit(":", 1)
            port = int(port_text)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(16)
        sock.settimeout(0.2)
        with self._lock:
            self._sockets.append(sock)
        return sock

    def _accept_loop(self, sock: socket.socket) -> None:
        while True:
            try:
                conn, _ = sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with self._lock:
                self.accepted += 1
            conn.close()

    def start(self, address: Optional[str] = None) -> str:
        """Listen now and return the bound ``ip:port``."""
        sock = self._bind(address)
        thread = threading.Thread(target=self._accept_loop, args=(sock,), daemon=True)
        thread.start()
        self._threads.append(thread)
        bound_host, bound_port = sock.getsockname()[:2]
        return f"{bound_host}:{bound_port}"

    def start_after(self, delay: float, address: str) -> None:
        """Start listening on ``address`` once ``delay`` seconds have passed."""

        def later() -> None:
            time.sleep(delay)
            self.start(address)

        thread = threading.Thread(target=later, daemon=True)
        thread.start()
        self._threads.append(thread)

    def close(self) -> None:
        with self._lock:
            sockets, self._sockets = self._sockets, []
        for sock in sockets:
            sock.close()


@pytest.fixture
def listeners() -> Generator[Listeners, None, None]:
    pool = Listeners()
    yield pool
    pool.close()
