"""Local stand-in for a light, speaking the device side of the protocol."""

from .app import BulbState, BulbTCPServer, run_server
from .config import EmulatorConfig

__all__ = ["BulbState", "BulbTCPServer", "EmulatorConfig", "run_server"]
