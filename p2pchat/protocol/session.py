"""
Bidirectional message loop over an established Connection.

A receive thread and an input thread push events into one queue; the
dispatcher on the calling thread consumes them, writes outbound lines and
decides when the session ends. Only the dispatcher writes to the socket, and
only the dispatcher closes it, after the receive thread has stopped.
"""
import enum
import queue
import threading
from dataclasses import dataclass
from typing import Optional

from p2pchat.log import get_logger

logger = get_logger(__name__)

SENTINELS = ("/quit", "/exit")
QUIT = "/quit"
MAX_POLL_INTERVAL = 0.1

# event kinds produced by the two activities
RECEIVED = "received"
PEER_LOST = "peer_lost"
TYPED = "typed"
INPUT_CLOSED = "input_closed"
INPUT_FAILED = "input_failed"


class Direction(enum.Enum):
    SENT = "sent"
    RECEIVED = "received"


class EndReason(enum.Enum):
    LOCAL_QUIT = "local_quit"
    REMOTE_QUIT = "remote_quit"
    CONNECTION_LOST = "connection_lost"
    INPUT_ERROR = "input_error"
    INTERRUPTED = "interrupted"


@dataclass
class SessionResult:
    ended_by: EndReason
    error: Optional[BaseException] = None


def is_sentinel(line):
    return line.strip() in SENTINELS


class ChatSession:
    def __init__(self, connection, read_input, presenter=None, events=None,
                 stop=None, poll_interval=0.05):
        if not 0 < poll_interval <= MAX_POLL_INTERVAL:
            raise ValueError(f"poll_interval must be in (0, {MAX_POLL_INTERVAL}]")
        self.connection = connection
        self.read_input = read_input
        self.presenter = presenter
        self.events = events
        self.stop = stop or threading.Event()
        self.poll_interval = poll_interval
        self._queue = queue.Queue()
        self._done = threading.Event()
        self._receiver = None
        self._input = None

    def run(self) -> SessionResult:
        self._record("connect", peer=str(self.connection.peer_address))
        self._receiver = threading.Thread(target=self._receive_loop, name="chat-receive", daemon=True)
        self._input = threading.Thread(target=self._input_loop, name="chat-input", daemon=True)
        try:
            self._receiver.start()
            self._input.start()
            result = self._dispatch()
        finally:
            self._shutdown()
        logger.debug(f"Session ended: {result.ended_by.value}")
        self._record("disconnect", reason=result.ended_by.value,
                     error=repr(result.error) if result.error else None)
        return result

    def _dispatch(self):
        while True:
            if self.stop.is_set():
                return SessionResult(EndReason.INTERRUPTED)
            try:
                kind, payload = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            if kind == RECEIVED:
                if is_sentinel(payload):
                    return SessionResult(EndReason.REMOTE_QUIT)
                if payload.strip():
                    self._show(Direction.RECEIVED, payload)
            elif kind == PEER_LOST:
                self._record("error", stage="receive", error=repr(payload))
                return SessionResult(EndReason.CONNECTION_LOST, payload)
            elif kind == TYPED:
                if self.stop.is_set():
                    return SessionResult(EndReason.INTERRUPTED)
                if is_sentinel(payload):
                    return self._send_quit(payload.strip())
                if not payload.strip():
                    continue
                try:
                    self.connection.writer.write_line(payload)
                except OSError as e:
                    logger.warning(f"Failed to send message: {e}")
                    self._record("error", stage="send", error=repr(e))
                    return SessionResult(EndReason.CONNECTION_LOST, e)
                self._show(Direction.SENT, payload)
            elif kind == INPUT_CLOSED:
                logger.debug("Local input closed; quitting")
                return self._send_quit(QUIT)
            elif kind == INPUT_FAILED:
                self._record("error", stage="input", error=repr(payload))
                return SessionResult(EndReason.INPUT_ERROR, payload)

    def _send_quit(self, sentinel):
        # best effort: the peer sees a lost connection if this never arrives
        try:
            self.connection.writer.write_line(sentinel)
        except OSError as e:
            logger.warning(f"Could not deliver {sentinel} to peer: {e}")
        return SessionResult(EndReason.LOCAL_QUIT)

    def _receive_loop(self):
        reader = self.connection.reader
        while not self._done.is_set():
            try:
                line = reader.read_line()
            except (OSError, ValueError) as e:
                if not self._done.is_set():
                    self._queue.put((PEER_LOST, e))
                return
            if line is None:
                continue
            self._queue.put((RECEIVED, line))
            if is_sentinel(line):
                return

    def _input_loop(self):
        while not self._done.is_set():
            try:
                line = self.read_input()
            except EOFError:
                line = None
            except Exception as e:
                self._queue.put((INPUT_FAILED, e))
                return
            if line is None:
                self._queue.put((INPUT_CLOSED, None))
                return
            self._queue.put((TYPED, line.rstrip("\r\n")))

    def _shutdown(self):
        self._done.set()
        if self._receiver is not None and self._receiver.is_alive():
            self._receiver.join(timeout=self.poll_interval * 20)
        # the input thread may sit in a blocking read; it is a daemon and is left behind
        self.connection.close()

    def _show(self, direction, text):
        self._record("send" if direction is Direction.SENT else "receive", text=text)
        if self.presenter is None:
            return
        try:
            self.presenter.show_message(direction, text)
        except Exception as e:
            logger.debug(f"Presenter failed: {e}")

    def _record(self, kind, **details):
        if self.events is None:
            return
        try:
            self.events.record(kind, **details)
        except Exception as e:
            logger.debug(f"Event log failed: {e}")
