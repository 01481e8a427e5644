from dataclasses import dataclass


@dataclass(frozen=True)
class EmulatorConfig:
    host: str = "0.0.0.0"
    port: int = 55443
    name: str = ""
    notify: bool = True
    max_connections: int = 4
