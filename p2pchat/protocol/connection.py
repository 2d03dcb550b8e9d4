import socket

from p2pchat.log import get_logger
from p2pchat.protocol.line_handler import LineReader, LineWriter

logger = get_logger(__name__)

WRITE_TIMEOUT = 5.0


class Connection:
    """An open TCP stream with its line reader and writer."""

    def __init__(self, sock, peer_address, read_timeout=0.05, write_timeout=WRITE_TIMEOUT):
        self.sock = sock
        self.peer_address = peer_address
        # bounds sendall; reads are bounded by select in the reader
        self.sock.settimeout(write_timeout)
        self.reader = LineReader(sock, read_timeout)
        self.writer = LineWriter(sock)
        self.closed = False

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.reader.close()
        self.writer.close()
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already reset by the peer
            pass
        self.sock.close()
        logger.debug(f"Closed connection with {self.peer_address}")
