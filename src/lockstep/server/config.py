"""Configuration for the room server."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

ENV_PREFIX = "LOCKSTEP_"


@dataclass
class ServerConfig:
    """Configuration for the lockstep room server."""

    host: str = "127.0.0.1"
    """Interface to listen on."""

    port: int = 3001
    """TCP port to listen on."""

    buffer_size: int = 100
    """Outbound frames buffered per connection before new ones are dropped."""

    log_level: str = "INFO"
    """Root logging level."""

    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    """Origins allowed to call the HTTP endpoints from a browser."""

    operation_timeout: float | None = None
    """Seconds before an inbound operation is cancelled. None disables it."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServerConfig":
        """Build a config from ``LOCKSTEP_*`` variables.

        ``PORT`` is honoured when ``LOCKSTEP_PORT`` is not set.
        """
        env = os.environ if environ is None else environ
        config = cls()

        if host := env.get(f"{ENV_PREFIX}HOST"):
            config.host = host
        port = env.get(f"{ENV_PREFIX}PORT") or env.get("PORT")
        if port:
            config.port = int(port)
        if buffer_size := env.get(f"{ENV_PREFIX}BUFFER_SIZE"):
            config.buffer_size = int(buffer_size)
        if log_level := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
            config.log_level = log_level.upper()
        if origins := env.get(f"{ENV_PREFIX}CORS_ORIGINS"):
            config.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
        if operation_timeout := env.get(f"{ENV_PREFIX}OPERATION_TIMEOUT"):
            config.operation_timeout = float(operation_timeout)

        return config
