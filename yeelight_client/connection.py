"""Synchronous request/reply session over one persistent device socket."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Any, Iterable

from .commands import Command
from .errors import (
    CommandRejected,
    ConnectError,
    ConnectionClosed,
    ProtocolCorruption,
    SessionBroken,
    SessionBusy,
    SessionError,
    TransportFailure,
)
from .protocol import DecodeError, ErrorReply, OpaqueMessage, Reply, decode_line, encode_command


logger = logging.getLogger(__name__)

DEFAULT_PORT = 55443
MAX_LINE_BYTES = 64 * 1024


def parse_address(address: str | tuple[str, int], default_port: int = DEFAULT_PORT) -> tuple[str, int]:
    if isinstance(address, tuple):
        host, port = address
        return str(host), int(port)
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, default_port
    try:
        return host, int(port)
    except ValueError as exc:
        raise ValueError(f"Invalid port in address: {address!r}") from exc


class Session:
    """Owns one device socket and its request id sequence.

    Only one command may be in flight at a time. After any fatal error the
    socket is closed and the session refuses further commands; open a new one.
    """

    def __init__(
        self,
        sock: socket.socket,
        address: tuple[str, int] | None = None,
        *,
        read_timeout: float | None = None,
    ):
        self._sock: socket.socket | None = sock
        self.address = address
        self.read_timeout = read_timeout
        self._next_id = 0
        self._buffer = bytearray()
        self._in_flight = threading.Lock()
        self._broken = False
        self._sock.settimeout(read_timeout)

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        timeout: float | None = None,
        read_timeout: float | None = None,
    ) -> "Session":
        address = (host, port)
        try:
            sock = socket.create_connection(address, timeout=timeout)
        except OSError as exc:
            raise ConnectError(address, str(exc) or exc.__class__.__name__) from exc
        logger.info("Connected to %s:%s", host, port)
        return cls(sock, address, read_timeout=read_timeout)

    @property
    def next_id(self) -> int:
        return self._next_id

    @property
    def broken(self) -> bool:
        return self._broken

    @property
    def closed(self) -> bool:
        return self._sock is None

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.info("Closed connection to %s", self._peer)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send(self, method: str, params: Iterable[Any] = ()) -> Reply:
        return self.execute(Command(method, tuple(params)))

    def execute(self, command: Command) -> Reply:
        if self._broken or self._sock is None:
            raise SessionBroken("Session is no longer usable; open a new one")
        if not self._in_flight.acquire(blocking=False):
            raise SessionBusy("Another command is already in flight on this session")
        try:
            request_id = self._next_id
            self._next_id += 1
            try:
                return self._round_trip(request_id, command)
            except SessionError as exc:
                if exc.fatal:
                    logger.warning("Session to %s failed (%s): %s", self._peer, exc.kind, exc.message)
                    self._broken = True
                    self.close()
                raise
        finally:
            self._in_flight.release()

    @property
    def _peer(self) -> str:
        if self.address is None:
            return "device"
        return f"{self.address[0]}:{self.address[1]}"

    def _round_trip(self, request_id: int, command: Command) -> Reply:
        packet = encode_command(request_id, command)
        logger.debug("Sending %r to %s", packet, self._peer)
        try:
            self._sock.sendall(packet)
        except OSError as exc:
            raise TransportFailure(f"Write failed: {exc}", request_id) from exc

        while True:
            raw = self._read_line(request_id)
            logger.debug("Received %r from %s", raw, self._peer)
            try:
                message = decode_line(raw)
            except DecodeError as exc:
                raise ProtocolCorruption(str(exc), request_id, exc.raw_line) from exc

            if isinstance(message, OpaqueMessage):
                logger.debug("Skipping unsolicited %s message", message.method or "device")
                continue
            if message.id != request_id:
                logger.debug("Skipping reply for id %s while waiting for %s", message.id, request_id)
                continue
            if isinstance(message, ErrorReply):
                raise CommandRejected(
                    f"Device rejected {command.method}: {message.message}",
                    request_id,
                    message.code,
                )
            return message

    def _read_line(self, request_id: int) -> bytes:
        while True:
            newline = self._buffer.find(b"\n")
            if newline != -1:
                line = bytes(self._buffer[: newline + 1])
                del self._buffer[: newline + 1]
                return line
            if len(self._buffer) > MAX_LINE_BYTES:
                raise ProtocolCorruption(
                    f"Device line exceeds {MAX_LINE_BYTES} bytes without a terminator",
                    request_id,
                    bytes(self._buffer[:64]),
                )

            try:
                chunk = self._sock.recv(4096)
            except socket.timeout as exc:
                raise TransportFailure(f"No reply within {self.read_timeout}s", request_id) from exc
            except OSError as exc:
                raise TransportFailure(f"Read failed: {exc}", request_id) from exc
            if not chunk:
                raise ConnectionClosed("Connection closed by device", request_id)
            self._buffer.extend(chunk)


def connect(
    address: str | tuple[str, int],
    *,
    timeout: float | None = None,
    read_timeout: float | None = None,
) -> Session:
    host, port = parse_address(address)
    return Session.connect(host, port, timeout=timeout, read_timeout=read_timeout)
