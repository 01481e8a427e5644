from dataclasses import dataclass

from .values import Effect


@dataclass(frozen=True)
class ClientConfig:
    host: str = "127.0.0.1"
    port: int = 55443
    connect_timeout: float | None = 5.0
    read_timeout: float | None = None
    effect: Effect = Effect.SMOOTH
    duration_ms: int = 500
