"""Range-checked values accepted by the command builders.

Constructing any of these raises ``ValueError`` for out-of-range input, so a
value that exists is always safe to put on the wire.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


def _check_int(name: str, value: int, minimum: int | None = None, maximum: int | None = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{name}' must be an integer")
    if minimum is not None and value < minimum:
        raise ValueError(f"'{name}' must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValueError(f"'{name}' must be <= {maximum}")


class Effect(str, Enum):
    SUDDEN = "sudden"
    SMOOTH = "smooth"


class FlowAction(IntEnum):
    RECOVER = 0
    STAY = 1
    TURN_OFF = 2


class FlowMode(IntEnum):
    COLOR = 1
    COLOR_TEMPERATURE = 2
    SLEEP = 7


class CronType(IntEnum):
    TURN_OFF = 0


class AdjustAction(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    CIRCLE = "circle"


class AdjustProp(str, Enum):
    BRIGHT = "bright"
    CT = "ct"
    COLOR = "color"


class Prop(str, Enum):
    """Property names understood by ``get_prop``."""

    POWER = "power"
    BRIGHT = "bright"
    CT = "ct"
    RGB = "rgb"
    HUE = "hue"
    SAT = "sat"
    COLOR_MODE = "color_mode"
    FLOWING = "flowing"
    DELAYOFF = "delayoff"
    FLOW_PARAMS = "flow_params"
    MUSIC_ON = "music_on"
    NAME = "name"
    BG_POWER = "bg_power"
    BG_FLOWING = "bg_flowing"
    BG_FLOW_PARAMS = "bg_flow_params"
    BG_CT = "bg_ct"
    BG_LMODE = "bg_lmode"
    BG_BRIGHT = "bg_bright"
    BG_RGB = "bg_rgb"
    BG_HUE = "bg_hue"
    BG_SAT = "bg_sat"
    NL_BR = "nl_br"
    ACTIVE_MODE = "active_mode"


@dataclass(frozen=True)
class Brightness:
    value: int

    def __post_init__(self) -> None:
        _check_int("brightness", self.value, 0, 100)


@dataclass(frozen=True)
class Percentage:
    """Relative change used by the ``adjust_*`` commands."""

    value: int

    def __post_init__(self) -> None:
        _check_int("percentage", self.value, -100, 100)


@dataclass(frozen=True)
class TransitionDuration:
    milliseconds: int

    def __post_init__(self) -> None:
        _check_int("duration", self.milliseconds, 0)


@dataclass(frozen=True)
class Delay:
    minutes: int

    def __post_init__(self) -> None:
        _check_int("delay", self.minutes, 1)


@dataclass(frozen=True)
class Rgb:
    red: int
    green: int
    blue: int

    def __post_init__(self) -> None:
        _check_int("red", self.red, 0, 255)
        _check_int("green", self.green, 0, 255)
        _check_int("blue", self.blue, 0, 255)

    @property
    def packed(self) -> int:
        return self.red * 65536 + self.green * 256 + self.blue

    @classmethod
    def from_packed(cls, packed: int) -> "Rgb":
        _check_int("rgb", packed, 0, 0xFFFFFF)
        return cls((packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF)


@dataclass(frozen=True)
class ColorTemperature:
    kelvin: int

    def __post_init__(self) -> None:
        _check_int("color temperature", self.kelvin, 1700, 6500)


@dataclass(frozen=True)
class Hsv:
    hue: int
    saturation: int

    def __post_init__(self) -> None:
        _check_int("hue", self.hue, 0, 359)
        _check_int("saturation", self.saturation, 0, 100)


@dataclass(frozen=True)
class FlowExpression:
    """One step of a colour flow. A missing ``value`` makes it a sleep step."""

    duration: TransitionDuration
    value: Rgb | ColorTemperature | None = None
    brightness: Brightness | None = None

    def __post_init__(self) -> None:
        if isinstance(self.value, Hsv):
            raise ValueError("HSV colours cannot be used in a flow")
        if self.duration.milliseconds < 50:
            raise ValueError("'duration' of a flow step must be >= 50")

    @property
    def mode(self) -> FlowMode:
        if self.value is None:
            return FlowMode.SLEEP
        if isinstance(self.value, Rgb):
            return FlowMode.COLOR
        return FlowMode.COLOR_TEMPERATURE

    def as_tuple(self) -> tuple[int, int, int, int]:
        if self.value is None:
            value = 0
        elif isinstance(self.value, Rgb):
            value = self.value.packed
        else:
            value = self.value.kelvin
        # -1 keeps the current brightness
        brightness = self.brightness.value if self.brightness is not None else -1
        return (self.duration.milliseconds, int(self.mode), value, brightness)
