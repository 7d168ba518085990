"""Decode kanata's byte stream into layer events.

kanata writes one JSON document per message with no framing, so each read
chunk is treated as exactly one document. A document split across chunks, or
two documents in one chunk, is reported as a decode error and skipped.
"""

import json
import logging
from collections.abc import AsyncIterator

from kanata_status.connection import CancelToken, Connection
from kanata_status.errors import DecodeError
from kanata_status.models import LayerEvent

logger = logging.getLogger(__name__)


def decode_chunk(chunk: bytes) -> LayerEvent:
    """Parse one chunk into a LayerEvent.

    Raises:
        DecodeError: If the chunk is not UTF-8 JSON with a string ``LayerChange.new``.
    """
    try:
        document = json.loads(chunk.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DecodeError(f"invalid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e}") from e

    if not isinstance(document, dict):
        raise DecodeError("missing LayerChange.new")
    change = document.get("LayerChange")
    layer = change.get("new") if isinstance(change, dict) else None
    if not isinstance(layer, str):
        raise DecodeError("missing LayerChange.new")
    return LayerEvent(layer_name=layer)


class StreamDecoder:
    """Lazy sequence of LayerEvents read from one connection."""

    def __init__(self, connection: Connection, cancel_token: CancelToken):
        self.connection = connection
        self.cancel_token = cancel_token

    async def events(self) -> AsyncIterator[LayerEvent]:
        """Yield events until kanata closes the socket.

        Malformed chunks are logged and skipped. ReadError propagates.
        """
        while True:
            chunk = await self.connection.read_chunk(self.cancel_token)
            if not chunk:
                return
            try:
                event = decode_chunk(chunk)
            except DecodeError as e:
                logger.warning(f"ignore invalid input from kanata {self.connection.target}: {e}")
                continue
            yield event
