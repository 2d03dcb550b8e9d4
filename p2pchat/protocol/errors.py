"""Custom exceptions & error messaging."""


class ChatError(Exception):
    """Base class for every error raised by p2pchat."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause


class SetupError(ChatError):
    """Connection could not be established; fatal to the process."""

    hint = ""

    def describe(self):
        text = str(self)
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        if self.hint:
            text = f"{text}\n{self.hint}"
        return text


class BindFailed(SetupError):
    hint = "Is another program already using this port? Try a different --port."


class AcceptFailed(SetupError):
    hint = "No peer connected. Start the listener again and retry."


class ConnectFailed(SetupError):
    hint = ("Check that the address is correct, that the listener is running, "
            "and that no firewall blocks the port.")


class MissingServerAddress(SetupError):
    hint = ("Pass the listener's address (p2pchat connect <address>) or point "
            "--discovery-path at the directory the listener publishes to.")


class DiscoveryUnavailable(ChatError):
    """The discovery directory could not be used. Never fatal."""
