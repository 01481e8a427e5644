import argparse
import logging

from .app import run_server
from .config import EmulatorConfig


def main() -> None:
    parser = argparse.ArgumentParser(description="Emulated Yeelight light")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=55443)
    parser.add_argument("--name", default="")
    parser.add_argument("--max-connections", type=int, default=4)
    parser.add_argument("--no-notify", action="store_true", help="do not send props notifications")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = EmulatorConfig(
        host=args.host,
        port=args.port,
        name=args.name,
        notify=not args.no_notify,
        max_connections=args.max_connections,
    )
    run_server(config)


if __name__ == "__main__":
    main()
