from __future__ import annotations

import os
import shutil
import socket
from dataclasses import dataclass, field, replace


DEFAULT_PREFIX = "containers.docker"


class ConfigurationError(RuntimeError):
    """Raised when it is unsafe to start a reconciliation pass."""


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(x.strip() for x in raw.split(",") if x.strip())


@dataclass(frozen=True)
class Settings:
    # DNS
    prefix: str = field(default_factory=lambda: os.getenv("DNSPROV_PREFIX", DEFAULT_PREFIX))
    hostname: str | None = field(default_factory=lambda: os.getenv("DNSPROV_HOSTNAME") or None)
    inheritance: bool = field(default_factory=lambda: _env_bool("DNSPROV_INHERITANCE", False))
    nameservers: tuple[str, ...] = field(default_factory=lambda: _env_list("DNSPROV_NAMESERVERS"))
    dns_timeout_s: float = field(default_factory=lambda: _env_float("DNSPROV_DNS_TIMEOUT_S", 5.0))

    # Container runtime
    docker_cmd: str = field(default_factory=lambda: os.getenv("DNSPROV_DOCKER_CMD", "docker"))
    docker_timeout_s: float = field(default_factory=lambda: _env_float("DNSPROV_DOCKER_TIMEOUT_S", 120.0))

    # Behaviour
    log_level: str = field(default_factory=lambda: os.getenv("DNSPROV_LOG_LEVEL", "info"))
    dry_run: bool = field(default_factory=lambda: _env_bool("DNSPROV_DRY_RUN", False))

    def resolved(self) -> "Settings":
        """Return a copy with the hostname filled in and normalised.

        Falls back to the system hostname when none was configured.
        """
        hostname = self.hostname
        if not hostname:
            try:
                hostname = socket.gethostname()
            except OSError as e:
                raise ConfigurationError(f"Could not determine system hostname: {e}") from e
        hostname = hostname.strip().rstrip(".")
        if not hostname:
            raise ConfigurationError("Hostname is empty; pass --hostname.")
        if not self.prefix.strip("."):
            raise ConfigurationError("DNS prefix must not be empty.")
        return replace(self, hostname=hostname, prefix=self.prefix.strip("."))


def require_executable(cmd: str) -> str:
    """Return the absolute path of the runtime executable or raise ConfigurationError."""
    path = shutil.which(cmd)
    if path is None:
        raise ConfigurationError(f"Supplied docker command {cmd!r} is not executable in the current environment.")
    return path
