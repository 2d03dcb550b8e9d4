"""
File-based discovery store.

Each listener writes one file per reachable IPv4 address into a shared
directory; the file is named after the address and holds the port number.
There is no locking: concurrent writers for the same address simply leave the
last written port behind.
"""
import os
import re
from dataclasses import dataclass
from typing import Optional

from p2pchat.log import get_logger
from p2pchat.protocol.errors import DiscoveryUnavailable

logger = get_logger(__name__)

ADDRESS_PATTERN = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


@dataclass(frozen=True)
class DiscoveryRecord:
    address: str
    port: int
    modified: float = 0.0


class DiscoveryStore:
    def __init__(self, path):
        self.path = path

    def publish(self, address: str, port: int) -> bool:
        if not ADDRESS_PATTERN.match(address):
            raise ValueError(f"Not a dotted-quad IPv4 address: {address!r}")
        try:
            self._write(address, port)
        except DiscoveryUnavailable as e:
            logger.warning(f"{e} ({e.cause}); continuing without discovery")
            return False
        logger.debug(f"Published {address}:{port} to {self.path}")
        return True

    def publish_all(self, addresses, port):
        return [address for address in addresses if self.publish(address, port)]

    def _write(self, address, port):
        try:
            os.makedirs(self.path, exist_ok=True)
            with open(os.path.join(self.path, address), "w", encoding="ascii") as f:
                f.write(str(port))
        except OSError as e:
            raise DiscoveryUnavailable(f"Cannot write discovery record to {self.path}", e) from e

    def find_latest(self) -> Optional[DiscoveryRecord]:
        try:
            records = self._records()
        except DiscoveryUnavailable as e:
            logger.debug(f"{e}: {e.cause}")
            return None
        if not records:
            return None
        return max(records, key=lambda record: record.modified)

    def _records(self):
        try:
            names = os.listdir(self.path)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise DiscoveryUnavailable(f"Cannot read discovery directory {self.path}", e) from e

        records = []
        for name in names:
            if not ADDRESS_PATTERN.match(name):
                continue
            record = self._read(name)
            if record is not None:
                records.append(record)
        return records

    def _read(self, name):
        file_path = os.path.join(self.path, name)
        try:
            with open(file_path, "r", encoding="ascii") as f:
                content = f.read().strip()
            modified = os.path.getmtime(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable discovery record {file_path}: {e}")
            return None
        if not content.isdigit() or not 1 <= int(content) <= 65535:
            logger.debug(f"Skipping malformed discovery record {file_path}: {content!r}")
            return None
        return DiscoveryRecord(name, int(content), modified)

    def clear_own(self, addresses):
        for address in addresses:
            try:
                os.remove(os.path.join(self.path, address))
                logger.debug(f"Removed discovery record for {address}")
            except OSError as e:
                logger.debug(f"Could not remove discovery record for {address}: {e}")
