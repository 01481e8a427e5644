"""Command builders for the device's method families.

Each builder turns already-validated values into a ``Command``. Nothing here
touches the network; ``Light`` pairs the builders with a ``Session``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

from .protocol import Reply, color_params, transition_params
from .values import (
    AdjustAction,
    AdjustProp,
    Brightness,
    ColorTemperature,
    CronType,
    Delay,
    Effect,
    FlowAction,
    FlowExpression,
    Hsv,
    Percentage,
    Prop,
    Rgb,
    TransitionDuration,
)

if TYPE_CHECKING:
    from .connection import Session


@dataclass(frozen=True)
class Command:
    method: str
    params: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if not self.method:
            raise ValueError("'method' cannot be empty")
        object.__setattr__(self, "params", tuple(self.params))


def _method(name: str, background: bool) -> str:
    return f"bg_{name}" if background else name


def get_prop(*props: Prop | str) -> Command:
    if not props:
        raise ValueError("At least one property is required")
    return Command("get_prop", tuple(Prop(p).value if isinstance(p, Prop) else str(p) for p in props))


def set_color(
    color: Rgb | ColorTemperature | Hsv,
    effect: Effect = Effect.SMOOTH,
    duration: TransitionDuration = TransitionDuration(500),
    *,
    background: bool = False,
) -> Command:
    suffix, values = color_params(color)
    return Command(_method(f"set_{suffix}", background), tuple(transition_params(values, effect, duration)))


def set_bright(
    brightness: Brightness,
    effect: Effect = Effect.SMOOTH,
    duration: TransitionDuration = TransitionDuration(500),
    *,
    background: bool = False,
) -> Command:
    return Command(
        _method("set_bright", background),
        tuple(transition_params([brightness.value], effect, duration)),
    )


def set_power(
    on: bool,
    effect: Effect = Effect.SMOOTH,
    duration: TransitionDuration = TransitionDuration(500),
    *,
    background: bool = False,
) -> Command:
    params = transition_params(["on" if on else "off"], effect, duration)
    return Command(_method("set_power", background), tuple(params))


def toggle(*, background: bool = False) -> Command:
    return Command(_method("toggle", background))


def dev_toggle() -> Command:
    return Command("dev_toggle")


def set_default(*, background: bool = False) -> Command:
    return Command(_method("set_default", background))


def start_flow(
    expressions: Sequence[FlowExpression],
    action: FlowAction = FlowAction.RECOVER,
    count: int = 0,
    *,
    background: bool = False,
) -> Command:
    """Start a colour flow; ``count`` 0 repeats forever."""
    if not expressions:
        raise ValueError("A flow needs at least one expression")
    if count < 0:
        raise ValueError("'count' must be >= 0")
    flow = ",".join(str(part) for expr in expressions for part in expr.as_tuple())
    return Command(_method("start_cf", background), (count, int(action), flow))


def stop_flow(*, background: bool = False) -> Command:
    return Command(_method("stop_cf", background))


def set_scene(
    scene: Rgb | ColorTemperature | Hsv | Sequence[FlowExpression] | Delay,
    brightness: Brightness | None = None,
    *,
    action: FlowAction = FlowAction.RECOVER,
    count: int = 0,
    background: bool = False,
) -> Command:
    """Jump straight to a state, even when the light is off."""
    method = _method("set_scene", background)
    if isinstance(scene, Delay):
        if brightness is None:
            raise ValueError("An auto_delay_off scene needs a brightness")
        return Command(method, ("auto_delay_off", brightness.value, scene.minutes))
    if isinstance(scene, (Rgb, ColorTemperature, Hsv)):
        if brightness is None:
            raise ValueError("A colour scene needs a brightness")
        if isinstance(scene, Rgb):
            return Command(method, ("color", scene.packed, brightness.value))
        if isinstance(scene, ColorTemperature):
            return Command(method, ("ct", scene.kelvin, brightness.value))
        return Command(method, ("hsv", scene.hue, scene.saturation, brightness.value))
    flow = start_flow(scene, action, count)
    return Command(method, ("cf",) + flow.params)


def cron_add(delay: Delay, cron_type: CronType = CronType.TURN_OFF) -> Command:
    return Command("cron_add", (int(cron_type), delay.minutes))


def cron_get(cron_type: CronType = CronType.TURN_OFF) -> Command:
    return Command("cron_get", (int(cron_type),))


def cron_del(cron_type: CronType = CronType.TURN_OFF) -> Command:
    return Command("cron_del", (int(cron_type),))


def set_adjust(action: AdjustAction, prop: AdjustProp, *, background: bool = False) -> Command:
    action = AdjustAction(action)
    prop = AdjustProp(prop)
    if prop is AdjustProp.COLOR and action is not AdjustAction.CIRCLE:
        raise ValueError("Colour can only be adjusted with 'circle'")
    return Command(_method("set_adjust", background), (action.value, prop.value))


def _adjust(name: str, percentage: Percentage, duration: TransitionDuration, background: bool) -> Command:
    return Command(_method(name, background), (percentage.value, duration.milliseconds))


def adjust_bright(percentage: Percentage, duration: TransitionDuration = TransitionDuration(500), *, background: bool = False) -> Command:
    return _adjust("adjust_bright", percentage, duration, background)


def adjust_ct(percentage: Percentage, duration: TransitionDuration = TransitionDuration(500), *, background: bool = False) -> Command:
    return _adjust("adjust_ct", percentage, duration, background)


def adjust_color(percentage: Percentage, duration: TransitionDuration = TransitionDuration(500), *, background: bool = False) -> Command:
    return _adjust("adjust_color", percentage, duration, background)


def set_music(host: str, port: int) -> Command:
    if not host:
        raise ValueError("'host' cannot be empty")
    if not 0 < port < 65536:
        raise ValueError("'port' must be between 1 and 65535")
    return Command("set_music", (1, host, port))


def stop_music() -> Command:
    return Command("set_music", (0,))


def set_name(name: str) -> Command:
    return Command("set_name", (name,))


class Light:
    """Convenience wrapper that builds commands and sends them on a session."""

    def __init__(self, session: "Session"):
        self.session = session

    def send(self, command: Command) -> Reply:
        return self.session.execute(command)

    def get_prop(self, *props: Prop | str) -> dict[str, str]:
        command = get_prop(*props)
        reply = self.send(command)
        return dict(zip(command.params, reply.result))

    def set_color(self, color, effect=Effect.SMOOTH, duration=TransitionDuration(500), *, background=False) -> Reply:
        return self.send(set_color(color, effect, duration, background=background))

    def set_bright(self, brightness, effect=Effect.SMOOTH, duration=TransitionDuration(500), *, background=False) -> Reply:
        return self.send(set_bright(brightness, effect, duration, background=background))

    def set_power(self, on, effect=Effect.SMOOTH, duration=TransitionDuration(500), *, background=False) -> Reply:
        return self.send(set_power(on, effect, duration, background=background))

    def turn_on(self, **kwargs) -> Reply:
        return self.set_power(True, **kwargs)

    def turn_off(self, **kwargs) -> Reply:
        return self.set_power(False, **kwargs)

    def toggle(self, *, background=False) -> Reply:
        return self.send(toggle(background=background))

    def dev_toggle(self) -> Reply:
        return self.send(dev_toggle())

    def set_default(self, *, background=False) -> Reply:
        return self.send(set_default(background=background))

    def start_flow(self, expressions, action=FlowAction.RECOVER, count=0, *, background=False) -> Reply:
        return self.send(start_flow(expressions, action, count, background=background))

    def stop_flow(self, *, background=False) -> Reply:
        return self.send(stop_flow(background=background))

    def set_scene(self, scene, brightness=None, **kwargs) -> Reply:
        return self.send(set_scene(scene, brightness, **kwargs))

    def cron_add(self, delay, cron_type=CronType.TURN_OFF) -> Reply:
        return self.send(cron_add(delay, cron_type))

    def cron_get(self, cron_type=CronType.TURN_OFF) -> Reply:
        return self.send(cron_get(cron_type))

    def cron_del(self, cron_type=CronType.TURN_OFF) -> Reply:
        return self.send(cron_del(cron_type))

    def set_adjust(self, action, prop, *, background=False) -> Reply:
        return self.send(set_adjust(action, prop, background=background))

    def adjust_bright(self, percentage, duration=TransitionDuration(500), *, background=False) -> Reply:
        return self.send(adjust_bright(percentage, duration, background=background))

    def adjust_ct(self, percentage, duration=TransitionDuration(500), *, background=False) -> Reply:
        return self.send(adjust_ct(percentage, duration, background=background))

    def adjust_color(self, percentage, duration=TransitionDuration(500), *, background=False) -> Reply:
        return self.send(adjust_color(percentage, duration, background=background))

    def set_music(self, host: str, port: int) -> Reply:
        return self.send(set_music(host, port))

    def stop_music(self) -> Reply:
        return self.send(stop_music())

    def set_name(self, name: str) -> Reply:
        return self.send(set_name(name))
