"""Exception hierarchy for kanata_status."""


class KanataStatusError(Exception):
    """Base class for all kanata_status errors."""


class ConfigError(KanataStatusError):
    """Configuration file could not be parsed or holds invalid values."""


class ConnectError(KanataStatusError):
    """Opening the socket to kanata failed (refused, unreachable, DNS)."""


class ReadError(KanataStatusError):
    """Reading from an open connection failed.

    ``cancelled`` is True when the read was interrupted by the cancel token
    during teardown, False for any other transport fault.
    """

    def __init__(self, message: str, cancelled: bool = False):
        super().__init__(message)
        self.cancelled = cancelled


class DecodeError(KanataStatusError):
    """A chunk was not a JSON document carrying ``LayerChange.new``."""


class QueryError(KanataStatusError):
    """Querying a unit's ActiveState over D-Bus failed."""


class SubscriptionError(KanataStatusError):
    """The system bus is unavailable, so restart notifications cannot be received."""
