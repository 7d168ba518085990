"""Configuration parsing for kanata_status."""

import logging
from dataclasses import dataclass
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from kanata_status.errors import ConfigError
from kanata_status.models import ConnectionTarget
from kanata_status.systemd_bus import escape_unit_name

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 10000
DEFAULT_SERVICE_NAME = "kanata.service"

DEFAULT_CONFIG_PATH = Path("~/.config/kanata-status/config.toml").expanduser()


@dataclass(frozen=True)
class StatusConfig:
    """Settings read once at startup."""

    target: ConnectionTarget
    """Where the kanata TCP server listens."""

    service_name: str = DEFAULT_SERVICE_NAME
    """Unit name as it appears in JobRemoved signals."""

    dbus_name: str = escape_unit_name(DEFAULT_SERVICE_NAME)
    """Escaped unit object path suffix used for the ActiveState query."""

    monitor_enabled: bool = True
    """Whether to reconnect automatically when the unit restarts."""


def parse_port(value: object) -> int:
    """Validate a TCP port number.

    Raises:
        ConfigError: If ``value`` is not an integer in 0-65535.
    """
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 65535:
        raise ConfigError(f"port must be an integer between 0 and 65535, got {value!r}")
    return value


def parse_status_config(raw: dict) -> StatusConfig:
    """Build a StatusConfig from parsed TOML, filling defaults."""
    kanata_raw = raw.get("kanata", {})
    systemd_raw = raw.get("systemd", {})

    host = kanata_raw.get("host", DEFAULT_HOST)
    if not isinstance(host, str) or not host:
        raise ConfigError(f"host must be a non-empty string, got {host!r}")
    port = parse_port(kanata_raw.get("port", DEFAULT_PORT))

    service_name = systemd_raw.get("service-name", DEFAULT_SERVICE_NAME)
    if not isinstance(service_name, str) or not service_name:
        raise ConfigError(f"service-name must be a non-empty string, got {service_name!r}")
    dbus_name = systemd_raw.get("dbus-name") or escape_unit_name(service_name)

    return StatusConfig(
        target=ConnectionTarget(host=host, port=port),
        service_name=service_name,
        dbus_name=dbus_name,
        monitor_enabled=bool(systemd_raw.get("enabled", True)),
    )


def load_status_config(path: str | Path) -> StatusConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to TOML config file

    Returns:
        Parsed StatusConfig
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\nRun 'kanata-status' without --config to auto-create a default config."
        )

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    config = parse_status_config(raw)
    logger.debug(f"Loaded config from {path}: kanata {config.target}, unit {config.service_name}")
    return config
