"""Exceptions raised by the client, one class per failure kind."""

from __future__ import annotations


class YeelightError(RuntimeError):
    """Base class for every failure surfaced by the client."""


class ConnectError(YeelightError):
    def __init__(self, address: tuple[str, int], message: str):
        super().__init__(f"Could not connect to {address[0]}:{address[1]}: {message}")
        self.address = address


class SessionError(YeelightError):
    kind = "session_error"
    fatal = True

    def __init__(self, message: str, request_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.request_id = request_id


class TransportFailure(SessionError):
    kind = "transport_failure"


class ConnectionClosed(SessionError):
    kind = "connection_closed"


class ProtocolCorruption(SessionError):
    kind = "protocol_corruption"

    def __init__(self, message: str, request_id: int | None = None, raw_line: bytes = b""):
        super().__init__(message, request_id)
        self.raw_line = raw_line


class CommandRejected(SessionError):
    """The device answered the outstanding request with an error."""

    kind = "command_rejected"
    fatal = False

    def __init__(self, message: str, request_id: int | None = None, code: int | None = None):
        super().__init__(message, request_id)
        self.code = code


class SessionBroken(SessionError):
    kind = "session_broken"


class SessionBusy(RuntimeError):
    """Raised when a command is issued while another is still in flight."""
