"""
Structured session events (connect, disconnect, send, receive, error),
written as JSON lines to a size-rotated log file.
"""
import json
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

from p2pchat.log import get_logger

logger = get_logger(__name__)

EVENTS_LOGGER = "p2pchat.events"


class EventLog:
    def __init__(self, log_file=None, max_bytes=1024 * 1024, backups=3, role=None):
        self.role = role
        self.handler = None
        self.events_logger = logging.getLogger(EVENTS_LOGGER)
        self.events_logger.setLevel(logging.INFO)
        self.events_logger.propagate = False
        if log_file:
            self.handler = RotatingFileHandler(log_file, maxBytes=max_bytes,
                                               backupCount=backups, encoding="utf-8")
            self.handler.setFormatter(logging.Formatter('%(message)s'))
            self.events_logger.addHandler(self.handler)

    def record(self, event, **details):
        # never let diagnostics break the session
        try:
            entry = {"time": datetime.now().isoformat(), "event": event}
            if self.role:
                entry["role"] = self.role
            entry.update({key: value for key, value in details.items() if value is not None})
            line = json.dumps(entry, default=str)
            if self.handler is None:
                logger.debug(line)
            else:
                self.events_logger.info(line)
        except Exception as e:
            logger.debug(f"Dropped {event} event: {e}")

    def close(self):
        if self.handler is not None:
            self.events_logger.removeHandler(self.handler)
            self.handler.close()
            self.handler = None
