import select

BUFFER_SIZE = 4096
ENCODING = "utf-8"


def send_line(sock, text):
    """
    Encode a line of text and send it over a socket, ending with a newline.
    """
    message = text + '\n'  # newline as delimiter
    sock.sendall(message.encode(ENCODING))


class LineReader:
    """
    Receive newline-delimited text from a socket without blocking for longer
    than `timeout` seconds per attempt.
    """

    def __init__(self, sock, timeout=0.05):
        self.sock = sock
        self.timeout = timeout
        self.buffer = b""
        self.eof = False
        self.closed = False

    def read_line(self):
        """
        Return the next line (without its terminator), or None when no
        complete line arrived within the timeout.
        Raises ConnectionError once the peer has closed the stream.
        """
        if self.closed:
            raise ConnectionError("Reader already closed.")
        while b'\n' not in self.buffer:
            if self.eof:
                if self.buffer:
                    # Peer closed mid-line; hand over what it did send
                    rest, self.buffer = self.buffer, b""
                    return self._decode(rest)
                raise ConnectionError("Socket closed while receiving data.")
            readable, _, _ = select.select([self.sock], [], [], self.timeout)
            if not readable:
                return None
            chunk = self.sock.recv(BUFFER_SIZE)
            if not chunk:
                self.eof = True
                continue
            self.buffer += chunk

        raw, self.buffer = self.buffer.split(b'\n', 1)
        return self._decode(raw)

    def _decode(self, raw):
        if raw.endswith(b'\r'):
            raw = raw[:-1]
        return raw.decode(ENCODING, errors="replace")

    def close(self):
        self.buffer = b""
        self.closed = True


class LineWriter:
    def __init__(self, sock):
        self.sock = sock
        self.closed = False

    def write_line(self, text):
        if self.closed:
            raise ConnectionError("Writer already closed.")
        send_line(self.sock, text)

    def close(self):
        self.closed = True
