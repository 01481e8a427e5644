#!/usr/bin/env python3
"""Command-line tool for sending single commands to a light."""

from __future__ import annotations

import argparse
import json
import logging

from . import commands
from .config import ClientConfig
from .connection import Session
from .errors import YeelightError
from .values import Brightness, ColorTemperature, Effect, Hsv, Rgb, TransitionDuration


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Yeelight LAN control client")
    parser.add_argument("--host", default=ClientConfig.host)
    parser.add_argument("--port", type=int, default=ClientConfig.port)
    parser.add_argument("--timeout", type=float, default=ClientConfig.connect_timeout, help="connect timeout in seconds")
    parser.add_argument("--read-timeout", type=float, default=None, help="give up waiting for a reply after this many seconds")
    parser.add_argument("--effect", choices=[e.value for e in Effect], default=ClientConfig.effect.value)
    parser.add_argument("--duration", type=int, default=ClientConfig.duration_ms, help="transition duration in ms")
    parser.add_argument("--background", action="store_true", help="target the background light")
    parser.add_argument("-v", "--verbose", action="count", default=0)

    sub = parser.add_subparsers(dest="command", required=True)

    rgb = sub.add_parser("rgb", help="set an RGB colour")
    rgb.add_argument("red", type=int)
    rgb.add_argument("green", type=int)
    rgb.add_argument("blue", type=int)

    ct = sub.add_parser("ct", help="set a colour temperature")
    ct.add_argument("kelvin", type=int)

    hsv = sub.add_parser("hsv", help="set hue and saturation")
    hsv.add_argument("hue", type=int)
    hsv.add_argument("saturation", type=int)

    bright = sub.add_parser("bright", help="set brightness")
    bright.add_argument("brightness", type=int)

    power = sub.add_parser("power", help="switch on or off")
    power.add_argument("state", choices=["on", "off"])

    sub.add_parser("toggle", help="toggle power")

    props = sub.add_parser("props", help="read properties")
    props.add_argument("names", nargs="+")

    raw = sub.add_parser("raw", help="send any method with JSON params")
    raw.add_argument("method")
    raw.add_argument("params", nargs="?", default="[]", help="JSON array")
    return parser


def build_command(args: argparse.Namespace) -> commands.Command:
    effect = Effect(args.effect)
    duration = TransitionDuration(args.duration)
    bg = args.background

    if args.command == "rgb":
        return commands.set_color(Rgb(args.red, args.green, args.blue), effect, duration, background=bg)
    if args.command == "ct":
        return commands.set_color(ColorTemperature(args.kelvin), effect, duration, background=bg)
    if args.command == "hsv":
        return commands.set_color(Hsv(args.hue, args.saturation), effect, duration, background=bg)
    if args.command == "bright":
        return commands.set_bright(Brightness(args.brightness), effect, duration, background=bg)
    if args.command == "power":
        return commands.set_power(args.state == "on", effect, duration, background=bg)
    if args.command == "toggle":
        return commands.toggle(background=bg)
    if args.command == "props":
        return commands.get_prop(*args.names)
    if args.command == "raw":
        params = json.loads(args.params)
        if not isinstance(params, list):
            raise ValueError("Raw params must be a JSON array")
        return commands.Command(args.method, tuple(params))
    raise ValueError(f"Unknown command: {args.command}")


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=_log_level(args.verbose), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        command = build_command(args)
    except ValueError as exc:
        parser.error(str(exc))

    config = ClientConfig(
        host=args.host,
        port=args.port,
        connect_timeout=args.timeout,
        read_timeout=args.read_timeout,
        effect=Effect(args.effect),
        duration_ms=args.duration,
    )
    try:
        with Session.connect(
            config.host,
            config.port,
            timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        ) as session:
            reply = session.execute(command)
    except YeelightError as exc:
        parser.exit(1, f"error: {exc}\n")

    if args.command == "props":
        print(json.dumps(dict(zip(command.params, reply.result)), indent=2))
    else:
        print(json.dumps(list(reply.result)))


if __name__ == "__main__":
    main()
