import enum
import os
import tempfile
from dataclasses import dataclass
from typing import Optional

import yaml

DEFAULT_PORT = 12345
DEFAULT_DISCOVERY_PATH = os.path.join(tempfile.gettempdir(), "p2pchat-discovery")

DEFAULTS = {
    "port": DEFAULT_PORT,
    "discovery_path": DEFAULT_DISCOVERY_PATH,
    "connect_timeout": 5.0,
    "poll_interval": 0.05,
    "log_file": None,
    "log_max_bytes": 1024 * 1024,
    "log_backups": 3,
}


class Role(enum.Enum):
    LISTENER = "listener"
    CONNECTOR = "connector"


@dataclass(frozen=True)
class SessionConfig:
    role: Role
    address: str
    port: int = DEFAULT_PORT
    discovery_path: Optional[str] = DEFAULT_DISCOVERY_PATH
    connect_timeout: float = 5.0
    poll_interval: float = 0.05

    def __post_init__(self):
        if not isinstance(self.port, int) or not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port!r}")
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if not 0 < self.poll_interval <= 0.1:
            raise ValueError("poll_interval must be greater than 0 and at most 0.1 seconds")


def load_config(path=None):
    """Read an optional YAML file and merge it over DEFAULTS."""
    config = dict(DEFAULTS)
    if path is None or not os.path.exists(path):
        return config
    with open(path, "r", encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Malformed config file {path}: {e}") from e
    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    unknown = set(loaded) - set(DEFAULTS)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")
    config.update(loaded)
    return config


def listener_config(settings, port=None, discovery_path=None):
    return SessionConfig(
        role=Role.LISTENER,
        address="",
        port=port if port is not None else settings["port"],
        discovery_path=discovery_path or settings["discovery_path"],
        connect_timeout=settings["connect_timeout"],
        poll_interval=settings["poll_interval"],
    )


def connector_config(settings, address=None, port=None, discovery_path=None):
    return SessionConfig(
        role=Role.CONNECTOR,
        address=address or "",
        port=port if port is not None else settings["port"],
        discovery_path=discovery_path or settings["discovery_path"],
        connect_timeout=settings["connect_timeout"],
        poll_interval=settings["poll_interval"],
    )
