import socket

import pytest

from p2pchat.protocol.connection import Connection
from tests.helpers import CountingSocket


@pytest.fixture
def connection_pair():
    a, b = socket.socketpair()
    left, right = CountingSocket(a), CountingSocket(b)
    yield Connection(left, "left"), Connection(right, "right")
    for sock in (left, right):
        if sock.fileno() != -1:
            sock.close()


@pytest.fixture
def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]
