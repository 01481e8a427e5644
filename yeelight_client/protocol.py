"""Wire codec for the Yeelight LAN control protocol.

Every message in either direction is one JSON object terminated by ``\\r\\n``.
This module does no I/O and performs no range checks on parameter values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Sequence

from .values import ColorTemperature, Effect, Hsv, Rgb, TransitionDuration


LINE_TERMINATOR = b"\r\n"


class ProtocolError(RuntimeError):
    """Raised when device messages are malformed."""


class DecodeError(ProtocolError):
    """Raised when an inbound line is not parseable JSON at all."""

    def __init__(self, message: str, raw_line: bytes):
        super().__init__(message)
        self.raw_line = raw_line


@dataclass(frozen=True)
class Envelope:
    id: int
    method: str
    params: tuple[Any, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "method": self.method, "params": list(self.params)}


@dataclass(frozen=True)
class Reply:
    id: int
    result: tuple[str, ...]


@dataclass(frozen=True)
class ErrorReply:
    id: int
    code: int | None
    message: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class OpaqueMessage:
    """Valid JSON that is not a reply, e.g. a ``props`` notification."""

    payload: Any

    @property
    def method(self) -> str | None:
        if isinstance(self.payload, dict) and isinstance(self.payload.get("method"), str):
            return self.payload["method"]
        return None


def encode_envelope(envelope: Envelope) -> bytes:
    return json.dumps(envelope.as_dict(), separators=(",", ":")).encode() + LINE_TERMINATOR


def encode_command(request_id: int, command) -> bytes:
    """Encode a ``Command`` (anything with ``method`` and ``params``) under ``request_id``."""
    return encode_envelope(Envelope(request_id, command.method, tuple(command.params)))


def transition_params(values: Sequence[Any], effect: Effect, duration: TransitionDuration) -> list[Any]:
    params = list(values)
    params.append(Effect(effect).value)
    params.append(duration.milliseconds)
    return params


def color_params(color: Rgb | ColorTemperature | Hsv) -> tuple[str, list[int]]:
    """Return the method suffix and leading parameters for a colour."""
    if isinstance(color, Rgb):
        return "rgb", [color.packed]
    if isinstance(color, ColorTemperature):
        return "ct_abx", [color.kelvin] * 3
    if isinstance(color, Hsv):
        return "hsv", [color.hue, color.saturation]
    raise TypeError(f"Unsupported colour: {color!r}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def decode_line(raw_line: bytes) -> Reply | ErrorReply | OpaqueMessage:
    """Decode one line read from the device.

    Syntactically valid JSON within the parser's nesting limit never raises:
    anything that is not a reply comes back as ``OpaqueMessage``. ``DecodeError``
    is raised when the bytes cannot be parsed at all, or nest deeper than that.
    """
    line = raw_line
    if line.endswith(b"\n"):
        line = line[:-1]
    if line.endswith(b"\r"):
        line = line[:-1]

    try:
        decoded = line.decode()
        if not decoded.strip():
            raise DecodeError("Empty device message", raw_line)
        message = json.loads(decoded)
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Device message is not UTF-8: {exc}", raw_line) from exc
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid device JSON: {exc}", raw_line) from exc
    except RecursionError as exc:
        raise DecodeError("Device JSON is nested too deeply to decode", raw_line) from exc

    if not isinstance(message, dict) or not _is_int(message.get("id")):
        return OpaqueMessage(message)

    result = message.get("result")
    if isinstance(result, list) and all(isinstance(item, str) for item in result):
        return Reply(message["id"], tuple(result))

    if "error" in message:
        error = message["error"]
        if isinstance(error, dict):
            code = error.get("code")
            return ErrorReply(
                message["id"],
                code if _is_int(code) else None,
                str(error.get("message", "Unknown device error")),
                raw=message,
            )
        return ErrorReply(message["id"], None, str(error), raw=message)

    return OpaqueMessage(message)
