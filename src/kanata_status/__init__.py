"""kanata_status: UI-agnostic kanata layer tracking and reconnect logic."""

__version__ = "0.1.0"

# Models
from kanata_status.models import (
    ConnectionTarget,
    CoordinatorState,
    IndicatorState,
    LayerEvent,
    ServiceNotification,
    ServiceState,
    WatchOutcome,
)

# Errors
from kanata_status.errors import (
    ConfigError,
    ConnectError,
    DecodeError,
    KanataStatusError,
    QueryError,
    ReadError,
    SubscriptionError,
)

# Config
from kanata_status.config import StatusConfig, load_status_config

# Core
from kanata_status.connection import CancelToken, Connection
from kanata_status.coordinator import ReconnectCoordinator
from kanata_status.decoder import StreamDecoder, decode_chunk
from kanata_status.display import DisplayPort, LoggingDisplay, NullDisplay
from kanata_status.layer_watcher import LayerWatcher
from kanata_status.service_monitor import ServiceBus, ServiceStateMonitor

__all__ = [
    "__version__",
    # Models
    "ConnectionTarget",
    "CoordinatorState",
    "IndicatorState",
    "LayerEvent",
    "ServiceNotification",
    "ServiceState",
    "WatchOutcome",
    # Errors
    "KanataStatusError",
    "ConfigError",
    "ConnectError",
    "ReadError",
    "DecodeError",
    "QueryError",
    "SubscriptionError",
    # Config
    "StatusConfig",
    "load_status_config",
    # Core
    "CancelToken",
    "Connection",
    "StreamDecoder",
    "decode_chunk",
    "LayerWatcher",
    "ServiceBus",
    "ServiceStateMonitor",
    "ReconnectCoordinator",
    "DisplayPort",
    "NullDisplay",
    "LoggingDisplay",
]
