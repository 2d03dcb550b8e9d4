import sys

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from p2pchat.protocol.session import Direction, EndReason

END_MESSAGES = {
    EndReason.LOCAL_QUIT: "You left the chat.",
    EndReason.REMOTE_QUIT: "Peer left the chat.",
    EndReason.CONNECTION_LOST: "Connection to peer was lost.",
    EndReason.INPUT_ERROR: "Could not read your input; chat closed.",
    EndReason.INTERRUPTED: "Chat interrupted.",
}


class ChatConsole:
    """Terminal presentation: colored chat lines and status messages."""

    def __init__(self, console=None, stdin=None):
        self.console = console or Console(highlight=False)
        self.stdin = stdin or sys.stdin

    def show_message(self, direction, text):
        if direction is Direction.SENT:
            self.console.print(f"[bold green]You:[/] {escape(text)}")
        else:
            self.console.print(f"[bold cyan]Peer:[/] {escape(text)}")

    def status(self, text):
        self.console.print(f"[✓] {escape(text)}", style="green")

    def info(self, text):
        self.console.print(escape(text), style="dim")

    def warn(self, text):
        self.console.print(f"[!] {escape(text)}", style="yellow")

    def error(self, text):
        self.console.print(f"[✗] {escape(text)}", style="bold red")

    def show_addresses(self, addresses, port):
        if not addresses:
            self.warn(f"No LAN address found; peers on this host can use 127.0.0.1:{port}")
            return
        self.info("Peers can connect to:")
        for address in addresses:
            self.info(f"  {address}:{port}")

    def confirm_record(self, record):
        return Confirm.ask(f"Found a chat server at {record.address}:{record.port}. Connect?",
                           console=self.console, default=True, stream=self.stdin)

    def read_line(self):
        """Next line typed by the user, or None at end of input."""
        line = self.stdin.readline()
        if not line:
            return None
        return line

    def show_result(self, result):
        message = END_MESSAGES[result.ended_by]
        if result.error is not None:
            message = f"{message} ({result.error})"
        if result.ended_by in (EndReason.LOCAL_QUIT, EndReason.REMOTE_QUIT):
            self.status(message)
        else:
            self.warn(message)
