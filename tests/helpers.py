import queue
import threading


class CountingSocket:
    """Socket wrapper that counts close() calls."""

    def __init__(self, sock):
        self._sock = sock
        self.close_count = 0

    def close(self):
        self.close_count += 1
        self._sock.close()

    def __getattr__(self, name):
        return getattr(self._sock, name)


class ScriptedInput:
    """Stands in for the keyboard: lines are fed from the test."""

    def __init__(self, *lines):
        self.lines = queue.Queue()
        for line in lines:
            self.feed(line)

    def feed(self, line):
        self.lines.put(line)

    def close(self):
        self.lines.put(None)

    def __call__(self):
        return self.lines.get()


class RecordingPresenter:
    def __init__(self):
        self.messages = []
        self._changed = threading.Condition()

    def show_message(self, direction, text):
        with self._changed:
            self.messages.append((direction, text))
            self._changed.notify_all()

    def wait_for(self, count, timeout=2.0):
        with self._changed:
            return self._changed.wait_for(lambda: len(self.messages) >= count, timeout)

    def texts(self, direction):
        return [text for d, text in self.messages if d is direction]


class SessionRunner:
    """Runs ChatSession.run() on a thread and keeps the result."""

    def __init__(self, session):
        self.session = session
        self.result = None
        self.thread = threading.Thread(target=self._run, daemon=True)

    def _run(self):
        self.result = self.session.run()

    def start(self):
        self.thread.start()
        return self

    def wait(self, timeout=5.0):
        self.thread.join(timeout)
        assert not self.thread.is_alive(), "session did not end"
        return self.result


