import socket
import threading

from p2pchat.log import get_logger
from p2pchat.peer.addresses import local_ipv4_addresses
from p2pchat.protocol.connection import Connection
from p2pchat.protocol.errors import AcceptFailed, BindFailed

logger = get_logger(__name__)


class Listener:
    """
    Waits for exactly one inbound peer.

    Use as a context manager: leaving the block closes the listening socket
    and removes the discovery records this listener published.
    """

    def __init__(self, config, store=None, addresses=None):
        self.config = config
        self.store = store
        self.sock = None
        self.port = config.port
        self.addresses = addresses
        self.published = []

    def open(self):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.config.address, self.config.port))
            sock.listen(1)
        except OSError as e:
            sock.close()
            raise BindFailed(f"Could not listen on port {self.config.port}", e) from e
        self.sock = sock
        self.port = sock.getsockname()[1]
        logger.debug(f"Listening on port {self.port}")

        if self.addresses is None:
            self.addresses = local_ipv4_addresses()
        if self.store is not None:
            self.published = self.store.publish_all(self.addresses, self.port)
        return self

    def accept(self, stop=None):
        """Block until a peer connects or `stop` is set; returns a Connection."""
        if self.sock is None:
            raise AcceptFailed("Listener is not open")
        stop = stop or threading.Event()
        self.sock.settimeout(self.config.poll_interval)
        while not stop.is_set():
            try:
                conn, addr = self.sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                raise AcceptFailed("Failed while waiting for a peer", e) from e
            logger.debug(f"Accepted connection from {addr}")
            conn.setblocking(True)
            # one peer only; the listening socket is not reused
            self._close_socket()
            return Connection(conn, addr, read_timeout=self.config.poll_interval)
        raise AcceptFailed("Stopped before a peer connected")

    def _close_socket(self):
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def close(self):
        self._close_socket()
        if self.store is not None and self.published:
            self.store.clear_own(self.published)
            self.published = []

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
