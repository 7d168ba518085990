"""Read loop that mirrors kanata's active layer onto a DisplayPort."""

import logging

from kanata_status.connection import CancelToken, Connection
from kanata_status.decoder import StreamDecoder
from kanata_status.display import DisplayPort
from kanata_status.errors import ReadError
from kanata_status.models import DISCONNECTED_TEXT, WatchOutcome

logger = logging.getLogger(__name__)


class LayerWatcher:
    """Consume layer events from one connection until it ends."""

    def __init__(self, connection: Connection, display: DisplayPort, cancel_token: CancelToken):
        self.connection = connection
        self.display = display
        self.cancel_token = cancel_token

    async def run(self) -> WatchOutcome:
        """Run the read loop.

        Returns:
            CLOSED_BY_PEER when kanata closed the socket, ERROR on an unexpected
            read failure, CANCELLED when the cancel token fired. On the first two
            the indicator is hidden and the connection closed before returning.
        """
        target = self.connection.target
        decoder = StreamDecoder(self.connection, self.cancel_token)
        try:
            async for event in decoder.events():
                # text first, then show, so a stale layer never flashes
                self.display.set_layer(event.layer_name)
                self.display.set_visible(True)
        except ReadError as e:
            if e.cancelled:
                # whoever fired the token owns the cleanup
                logger.info(f"async read to kanata {target} is cancelled")
                return WatchOutcome.CANCELLED
            self._hide_and_disconnect()
            logger.error(
                f"hide indicator and close connection because unexpected error happened "
                f"when async reading from kanata {target}: {e}"
            )
            return WatchOutcome.ERROR

        self._hide_and_disconnect()
        logger.info(
            f"hide indicator and close connection because connection has been closed "
            f"by kanata server {target}"
        )
        return WatchOutcome.CLOSED_BY_PEER

    def _hide_and_disconnect(self) -> None:
        self.display.set_visible(False)
        self.display.set_layer(DISCONNECTED_TEXT)
        self.connection.close()
