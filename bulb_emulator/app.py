import logging
import socketserver
import threading
from dataclasses import dataclass, field
from typing import Any

from .config import EmulatorConfig
from .protocol import RequestError, error_message, parse_request_line, props_notification, result_message


logger = logging.getLogger(__name__)

EFFECTS = {"sudden", "smooth"}
# properties read from the background light when prefixed with "bg_"
BG_PROPS = {"power", "flowing", "flow_params", "ct", "bright", "rgb", "hue", "sat"}


def _int_param(params: list[Any], index: int, *, minimum: int, maximum: int) -> int:
    try:
        value = params[index]
    except IndexError as exc:
        raise RequestError(-1, "invalid params") from exc
    if not isinstance(value, int) or isinstance(value, bool) or not minimum <= value <= maximum:
        raise RequestError(-1, "invalid params")
    return value


def _check_transition(params: list[Any], index: int) -> None:
    if len(params) < index + 2:
        raise RequestError(-1, "invalid params")
    if params[index] not in EFFECTS:
        raise RequestError(-1, "invalid params")
    _int_param(params, index + 1, minimum=0, maximum=2**31)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass
class LightState:
    power: str = "on"
    bright: int = 100
    ct: int = 4000
    rgb: int = 0xFFFFFF
    hue: int = 0
    sat: int = 0
    color_mode: int = 2
    flowing: int = 0
    flow_params: str = ""


@dataclass
class BulbState:
    name: str = ""
    main: LightState = field(default_factory=LightState)
    bg: LightState = field(default_factory=LightState)
    delayoff: int = 0
    music_on: int = 0
    nl_br: int = 0
    active_mode: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def read(self, prop: str) -> str:
        if prop.startswith("bg_") and prop[3:] in BG_PROPS:
            return str(getattr(self.bg, prop[3:]))
        if prop == "bg_lmode":
            return str(self.bg.color_mode)
        if hasattr(self.main, prop):
            return str(getattr(self.main, prop))
        if prop in {"name", "delayoff", "music_on", "nl_br", "active_mode"}:
            return str(getattr(self, prop))
        return ""


class BulbRequestHandler(socketserver.StreamRequestHandler):
    server: "BulbTCPServer"

    def setup(self) -> None:
        super().setup()
        self.write_lock = threading.Lock()

    def handle(self) -> None:
        if not self.server.register(self):
            logger.info("Rejecting %s: connection limit reached", self.client_address)
            return
        try:
            while True:
                raw = self.rfile.readline()
                if not raw:
                    return
                request_id = None
                try:
                    request = parse_request_line(raw)
                    request_id = request["id"]
                    result, changes = self.server.dispatch(request["method"], request["params"])
                    self.send(result_message(request_id, result))
                    if changes:
                        self.server.notify(changes)
                except RequestError as exc:
                    self.send(error_message(exc.code, exc.message, request_id if request_id is not None else exc.request_id))
                except Exception as exc:  # noqa: BLE001
                    logger.exception("Failed to handle request from %s", self.client_address)
                    self.send(error_message(-1, str(exc), request_id))
        finally:
            self.server.unregister(self)

    def send(self, packet: bytes) -> None:
        with self.write_lock:
            self.wfile.write(packet)
            self.wfile.flush()


class BulbTCPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, config: EmulatorConfig):
        self.config = config
        self.state = BulbState(name=config.name)
        self.clients: set[BulbRequestHandler] = set()
        self.clients_lock = threading.Lock()
        super().__init__((config.host, config.port), BulbRequestHandler)

    def register(self, handler: BulbRequestHandler) -> bool:
        with self.clients_lock:
            if len(self.clients) >= self.config.max_connections:
                return False
            self.clients.add(handler)
            return True

    def unregister(self, handler: BulbRequestHandler) -> None:
        with self.clients_lock:
            self.clients.discard(handler)

    def notify(self, changes: dict[str, Any]) -> None:
        if not self.config.notify:
            return
        packet = props_notification(changes)
        with self.clients_lock:
            clients = list(self.clients)
        for client in clients:
            try:
                client.send(packet)
            except (OSError, ValueError):
                logger.debug("Dropping notification for %s", client.client_address)

    def dispatch(self, method: str, params: list[Any]) -> tuple[list[str], dict[str, Any]]:
        """Apply one method; returns the result list and the changed properties."""
        with self.state.lock:
            if method == "get_prop":
                return [self.state.read(str(p)) for p in params], {}
            if method == "set_name":
                if len(params) != 1 or not isinstance(params[0], str):
                    raise RequestError(-1, "invalid params")
                self.state.name = params[0]
                return ["ok"], {"name": params[0]}
            if method == "dev_toggle":
                power = "off" if self.state.main.power == "on" else "on"
                self.state.main.power = power
                self.state.bg.power = power
                return ["ok"], {"power": power, "bg_power": power}
            if method in {"cron_add", "cron_get", "cron_del"}:
                return self._cron(method, params)
            if method == "set_music":
                return self._music(params)

            background = method.startswith("bg_")
            light = self.state.bg if background else self.state.main
            base = method[3:] if background else method
            prefix = "bg_" if background else ""
            result, changes = self._light_method(light, base, params)
            return result, {f"{prefix}{key}": value for key, value in changes.items()}

    def _light_method(self, light: LightState, method: str, params: list[Any]) -> tuple[list[str], dict[str, Any]]:
        if method == "set_rgb":
            rgb = _int_param(params, 0, minimum=0, maximum=0xFFFFFF)
            _check_transition(params, 1)
            light.rgb, light.color_mode = rgb, 1
            return ["ok"], {"rgb": rgb, "color_mode": 1}
        if method == "set_ct_abx":
            ct = _int_param(params, 0, minimum=1700, maximum=6500)
            _check_transition(params, 1)
            light.ct, light.color_mode = ct, 2
            return ["ok"], {"ct": ct, "color_mode": 2}
        if method == "set_hsv":
            hue = _int_param(params, 0, minimum=0, maximum=359)
            sat = _int_param(params, 1, minimum=0, maximum=100)
            _check_transition(params, 2)
            light.hue, light.sat, light.color_mode = hue, sat, 3
            return ["ok"], {"hue": hue, "sat": sat, "color_mode": 3}
        if method == "set_bright":
            bright = _int_param(params, 0, minimum=0, maximum=100)
            _check_transition(params, 1)
            light.bright = bright
            return ["ok"], {"bright": bright}
        if method == "set_power":
            if not params or params[0] not in {"on", "off"}:
                raise RequestError(-1, "invalid params")
            _check_transition(params, 1)
            light.power = params[0]
            return ["ok"], {"power": params[0]}
        if method == "toggle":
            light.power = "off" if light.power == "on" else "on"
            return ["ok"], {"power": light.power}
        if method == "set_default":
            return ["ok"], {}
        if method == "start_cf":
            _int_param(params, 0, minimum=0, maximum=2**31)
            _int_param(params, 1, minimum=0, maximum=2)
            if len(params) != 3 or not isinstance(params[2], str) or len(params[2].split(",")) % 4:
                raise RequestError(-1, "invalid params")
            light.flowing, light.flow_params = 1, params[2]
            return ["ok"], {"flowing": 1}
        if method == "stop_cf":
            light.flowing = 0
            return ["ok"], {"flowing": 0}
        if method == "set_scene":
            return self._scene(light, params)
        if method == "set_adjust":
            return self._adjust(light, params)
        if method in {"adjust_bright", "adjust_ct", "adjust_color"}:
            percentage = _int_param(params, 0, minimum=-100, maximum=100)
            _int_param(params, 1, minimum=0, maximum=2**31)
            if method == "adjust_bright":
                light.bright = _clamp(light.bright + percentage, 1, 100)
                return ["ok"], {"bright": light.bright}
            if method == "adjust_ct":
                light.ct = _clamp(light.ct + (6500 - 1700) * percentage // 100, 1700, 6500)
                return ["ok"], {"ct": light.ct}
            light.hue = (light.hue + percentage * 359 // 100) % 360
            return ["ok"], {"hue": light.hue}
        raise RequestError(-1, "method not supported")

    def _scene(self, light: LightState, params: list[Any]) -> tuple[list[str], dict[str, Any]]:
        kind = params[0] if params else None
        if kind == "color":
            light.rgb = _int_param(params, 1, minimum=0, maximum=0xFFFFFF)
            light.bright = _int_param(params, 2, minimum=0, maximum=100)
            light.color_mode = 1
        elif kind == "ct":
            light.ct = _int_param(params, 1, minimum=1700, maximum=6500)
            light.bright = _int_param(params, 2, minimum=0, maximum=100)
            light.color_mode = 2
        elif kind == "hsv":
            light.hue = _int_param(params, 1, minimum=0, maximum=359)
            light.sat = _int_param(params, 2, minimum=0, maximum=100)
            light.bright = _int_param(params, 3, minimum=0, maximum=100)
            light.color_mode = 3
        elif kind == "cf":
            self._light_method(light, "start_cf", params[1:])
        elif kind == "auto_delay_off":
            light.bright = _int_param(params, 1, minimum=0, maximum=100)
            self.state.delayoff = _int_param(params, 2, minimum=1, maximum=2**31)
        else:
            raise RequestError(-1, "invalid params")
        light.power = "on"
        return ["ok"], {"power": "on", "bright": light.bright}

    def _adjust(self, light: LightState, params: list[Any]) -> tuple[list[str], dict[str, Any]]:
        if len(params) != 2:
            raise RequestError(-1, "invalid params")
        action, prop = params
        step = {"increase": 10, "decrease": -10}.get(action)
        if prop == "bright" and step is not None:
            light.bright = _clamp(light.bright + step, 1, 100)
            return ["ok"], {"bright": light.bright}
        if prop == "ct" and step is not None:
            light.ct = _clamp(light.ct + step * 50, 1700, 6500)
            return ["ok"], {"ct": light.ct}
        if action == "circle" and prop in {"bright", "ct"}:
            if prop == "bright":
                light.bright = light.bright + 10 if light.bright <= 90 else 1
                return ["ok"], {"bright": light.bright}
            light.ct = light.ct + 500 if light.ct + 500 <= 6500 else 1700
            return ["ok"], {"ct": light.ct}
        if action == "circle" and prop == "color":
            light.hue = (light.hue + 30) % 360
            light.color_mode = 3
            return ["ok"], {"hue": light.hue, "color_mode": 3}
        raise RequestError(-1, "invalid params")

    def _cron(self, method: str, params: list[Any]) -> tuple[list[str], dict[str, Any]]:
        _int_param(params, 0, minimum=0, maximum=0)
        if method == "cron_add":
            self.state.delayoff = _int_param(params, 1, minimum=1, maximum=2**31)
            return ["ok"], {"delayoff": self.state.delayoff}
        if method == "cron_get":
            return [str(self.state.delayoff)], {}
        self.state.delayoff = 0
        return ["ok"], {"delayoff": 0}

    def _music(self, params: list[Any]) -> tuple[list[str], dict[str, Any]]:
        action = _int_param(params, 0, minimum=0, maximum=1)
        if action == 1:
            if len(params) != 3 or not isinstance(params[1], str):
                raise RequestError(-1, "invalid params")
            _int_param(params, 2, minimum=1, maximum=65535)
        self.state.music_on = action
        return ["ok"], {"music_on": action}


def run_server(config: EmulatorConfig) -> None:
    server = BulbTCPServer(config)
    logger.info("Emulated light listening on %s:%s", config.host, config.port)
    with server:
        server.serve_forever()
