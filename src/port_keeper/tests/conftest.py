"""
Shared fixtures for Port Keeper tests
"""
import socket
import time

import pytest

from port_keeper.lib.ports.base import CollectingListener
from port_keeper.lib.utils import wildcard_socket


def get_free_port() -> int:
    """Ask the OS for a port that is free right now"""
    s, host = wildcard_socket()
    with s:
        s.bind((host, 0))
        return s.getsockname()[1]


def occupy_port(port: int) -> socket.socket:
    """Bind and listen on a port the way another service would"""
    sock, host = wildcard_socket()
    sock.bind((host, port))
    sock.listen(1)
    return sock


class BrokenListener(CollectingListener):
    """Records events, then raises for one event type like a closed stdout would"""

    def __init__(self, failing_type):
        super().__init__()
        self.failing_type = failing_type

    def notify(self, event):
        super().notify(event)
        if event.type is self.failing_type:
            raise BrokenPipeError(32, "Broken pipe")


def wait_until(predicate, timeout: float = 5.0, step: float = 0.01) -> bool:
    """Poll predicate until it returns True or the timeout expires"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(step)
    return predicate()


@pytest.fixture
def free_port():
    """A currently unused port"""
    return get_free_port()


@pytest.fixture
def busy_port():
    """A port held by another socket for the duration of the test"""
    sock = occupy_port(0)
    try:
        yield sock.getsockname()[1], sock
    finally:
        sock.close()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep developer environment variables out of the tests"""
    for name in ("PORT_KEEPER_CONFIG", "PORT_KEEPER_PORTS", "PORT_KEEPER_PORTS_EXCLUDE"):
        monkeypatch.delenv(name, raising=False)
