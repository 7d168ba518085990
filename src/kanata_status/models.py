"""Shared data models for kanata_status."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ConnectionTarget:
    """Address of the kanata TCP server."""

    host: str
    """Host name or IP address."""

    port: int
    """TCP port (0-65535)."""

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class LayerEvent:
    """A single layer change reported by kanata."""

    layer_name: str
    """Name of the layer that just became active."""


@dataclass(frozen=True)
class ServiceNotification:
    """The parts of a systemd JobRemoved signal we care about."""

    unit_name: str
    """Unit the job belonged to, e.g. ``kanata.service``."""

    job_result: str
    """Job result: done, canceled, timeout, failed, dependency or skipped."""

    @classmethod
    def from_job_removed(cls, params: tuple) -> "ServiceNotification":
        """Build from the unpacked ``(id, job, unit, result)`` payload."""
        _, _, unit_name, job_result = params
        return cls(unit_name=unit_name, job_result=job_result)


class ServiceState(str, Enum):
    """systemd ActiveState values."""

    ACTIVE = "active"
    RELOADING = "reloading"
    INACTIVE = "inactive"
    FAILED = "failed"
    ACTIVATING = "activating"
    DEACTIVATING = "deactivating"
    MAINTENANCE = "maintenance"
    REFRESHING = "refreshing"


def parse_service_state(value: str) -> ServiceState | str:
    """Map a raw ActiveState string to ServiceState, keeping unknown values as-is."""
    try:
        return ServiceState(value)
    except ValueError:
        return value


@dataclass
class IndicatorState:
    """What the indicator currently shows."""

    visible: bool = False
    text: str = "init..."


class CoordinatorState(Enum):
    """Connection state owned by ReconnectCoordinator."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class WatchOutcome(Enum):
    """How a LayerWatcher read loop ended."""

    CLOSED_BY_PEER = "closed_by_peer"
    ERROR = "error"
    CANCELLED = "cancelled"


DISCONNECTED_TEXT = "disconnected"
"""Indicator text set when the connection goes away."""
