"""Client for the Yeelight LAN control protocol."""

from .commands import Command, Light
from .connection import Session, connect
from .errors import (
    CommandRejected,
    ConnectError,
    ConnectionClosed,
    ProtocolCorruption,
    SessionBroken,
    SessionBusy,
    SessionError,
    TransportFailure,
    YeelightError,
)
from .protocol import ErrorReply, OpaqueMessage, Reply

__all__ = [
    "Command",
    "CommandRejected",
    "ConnectError",
    "ConnectionClosed",
    "ErrorReply",
    "Light",
    "OpaqueMessage",
    "ProtocolCorruption",
    "Reply",
    "Session",
    "SessionBroken",
    "SessionBusy",
    "SessionError",
    "TransportFailure",
    "YeelightError",
    "connect",
]
