#main.py  ==  two-peer LAN chat
           #↳ listen: publishes its addresses, waits for one peer
           #↳ connect: finds the listener (argument or discovery), connects
           #↳ both: chat until /quit, /exit, disconnect or Ctrl-C
import argparse
import logging
import signal
import sys
import threading

from p2pchat import __version__
from p2pchat.config import Role, connector_config, listener_config, load_config
from p2pchat.diagnostics import EventLog
from p2pchat.log import get_logger, set_console_level
from p2pchat.peer.connector import connect_to_peer
from p2pchat.peer.discovery import DiscoveryStore
from p2pchat.peer.listener import Listener
from p2pchat.protocol.errors import SetupError
from p2pchat.protocol.session import ChatSession
from p2pchat.ui.console import ChatConsole

logger = get_logger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="p2pchat", description="Chat with one peer over TCP on your LAN")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default="config.yaml", help="YAML config file (default: config.yaml if present)")
    parser.add_argument("--log-file", help="write session events to this file (rotated by size)")
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    listen = sub.add_parser("listen", help="wait for a peer to connect")
    listen.add_argument("-p", "--port", type=int, help="port to listen on (default: 12345)")
    listen.add_argument("-d", "--discovery-path", help="directory to publish this server's address to")

    connect = sub.add_parser("connect", help="connect to a listening peer")
    connect.add_argument("address", nargs="?", help="listener's IPv4 address (default: from discovery)")
    connect.add_argument("-p", "--port", type=int, help="listener's port (default: 12345)")
    connect.add_argument("-d", "--discovery-path", help="directory to look for published servers in")
    return parser.parse_args(argv)


def build_config(args, settings):
    if args.command == "listen":
        return listener_config(settings, args.port, args.discovery_path)
    return connector_config(settings, args.address, args.port, args.discovery_path)


def chat(connection, config, ui, events, stop):
    host, port = connection.peer_address[:2]
    ui.status(f"Connected to {host}:{port}. Type /quit or /exit to leave.")
    session = ChatSession(connection, ui.read_line, presenter=ui, events=events,
                          stop=stop, poll_interval=config.poll_interval)
    result = session.run()
    ui.show_result(result)
    return 0


def run(config, ui, events, stop):
    store = DiscoveryStore(config.discovery_path) if config.discovery_path else None
    try:
        if config.role is Role.LISTENER:
            # leaving the block removes this listener's discovery records
            with Listener(config, store) as listener:
                ui.status(f"Listening on port {listener.port}")
                ui.show_addresses(listener.addresses, listener.port)
                ui.info("Waiting for a peer to connect (Ctrl-C to cancel)...")
                connection = listener.accept(stop)
                return chat(connection, config, ui, events, stop)

        connection = connect_to_peer(config, store, ui.confirm_record)
        return chat(connection, config, ui, events, stop)
    except SetupError as e:
        logger.debug(f"Setup failed: {e!r}")
        events.record("error", stage="setup", error=e.describe())
        ui.error(e.describe())
        return 1


def main(argv=None, ui=None):
    args = parse_args(argv)
    if args.verbose:
        set_console_level(logging.DEBUG)
    ui = ui or ChatConsole()
    try:
        settings = load_config(args.config)
        config = build_config(args, settings)
    except ValueError as e:
        ui.error(str(e))
        return 1

    events = EventLog(args.log_file or settings["log_file"], settings["log_max_bytes"],
                      settings["log_backups"], role=config.role.value)
    stop = threading.Event()

    def interrupt(signum, frame):
        # a second Ctrl-C breaks out of blocking prompts
        if stop.is_set():
            raise KeyboardInterrupt
        stop.set()

    previous = signal.signal(signal.SIGINT, interrupt)
    try:
        return run(config, ui, events, stop)
    except KeyboardInterrupt:
        ui.error("Interrupted")
        return 1
    except Exception as e:
        logger.exception("Fatal error")
        events.record("error", stage="fatal", error=repr(e))
        ui.error(f"Fatal error: {e}")
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)
        events.close()


if __name__ == "__main__":
    sys.exit(main())
