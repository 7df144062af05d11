"""Runtime configuration, read once at startup."""

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_REPO_URL = "https://fsnebula.org/storage/repo.json"
DEFAULT_BIND = "127.0.0.1"
DEFAULT_PORT = 3200


class ConfigError(Exception):
    """Raised when a configuration value is invalid."""

    pass


def _parse_bind(value: str) -> str:
    octets = value.split(".")
    if len(octets) != 4:
        raise ConfigError("Invalid BIND env variable.")
    for octet in octets:
        if not (octet.isascii() and octet.isdigit()) or int(octet) > 255:
            raise ConfigError("Invalid BIND env variable.")
    return ".".join(str(int(octet)) for octet in octets)


def _parse_port(value: str) -> int:
    if not (value.isascii() and value.isdigit()) or not 0 < int(value) <= 65535:
        raise ConfigError("Invalid PORT env variable.")
    return int(value)


@dataclass(frozen=True)
class WebConfig:
    """Address the web UI listens on."""

    bind: str = DEFAULT_BIND
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "WebConfig":
        """Build from the BIND and PORT environment variables."""
        env = os.environ if environ is None else environ
        bind = _parse_bind(env["BIND"]) if "BIND" in env else DEFAULT_BIND
        port = _parse_port(env["PORT"]) if "PORT" in env else DEFAULT_PORT
        return cls(bind=bind, port=port)

    @property
    def url(self) -> str:
        return f"http://{self.bind}:{self.port}"
