import socket

from p2pchat.config import DEFAULT_PORT
from p2pchat.log import get_logger
from p2pchat.protocol.connection import Connection
from p2pchat.protocol.errors import ConnectFailed, MissingServerAddress

logger = get_logger(__name__)


def resolve_target(config, store=None, confirm=None):
    """
    Pick the (address, port) to connect to.

    An explicit address always wins; a discovery record only fills in the port
    when the configured one was left at its default. A discovery record alone
    is used after `confirm(record)` accepts it.
    """
    record = store.find_latest() if store is not None else None
    if record is not None:
        logger.debug(f"Latest discovery record: {record.address}:{record.port}")

    if config.address:
        port = config.port
        if record is not None and config.port == DEFAULT_PORT:
            port = record.port
        return config.address, port

    if record is not None and confirm is not None and confirm(record):
        return record.address, record.port

    raise MissingServerAddress("No server address given and none accepted from discovery")


def connect(address, port, timeout=5.0, poll_interval=0.05):
    logger.debug(f"Connecting to {address}:{port} (timeout {timeout}s)")
    try:
        sock = socket.create_connection((address, port), timeout=timeout)
    except OSError as e:
        # refused, unreachable and timed out all land here with their cause
        raise ConnectFailed(f"Could not connect to {address}:{port}", e) from e
    return Connection(sock, (address, port), read_timeout=poll_interval)


def connect_to_peer(config, store=None, confirm=None):
    address, port = resolve_target(config, store, confirm)
    return connect(address, port, config.connect_timeout, config.poll_interval)
