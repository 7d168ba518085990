"""TCP connection to the kanata server."""

import asyncio
import logging

from kanata_status.errors import ConnectError, ReadError
from kanata_status.models import ConnectionTarget

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024


class CancelToken:
    """One-shot cancellation scope shared by every read of a start/stop cycle."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Trigger the token. Pending and future reads fail as cancelled."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class Connection:
    """Owns one socket to kanata.

    Use ``await Connection.connect(target)`` to open it.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ):
        self.target = target
        self._reader = reader
        self._writer: asyncio.StreamWriter | None = writer
        self._closing: asyncio.StreamWriter | None = None

    @classmethod
    async def connect(cls, target: ConnectionTarget) -> "Connection":
        """Open a TCP connection to ``target``.

        Raises:
            ConnectError: If the socket cannot be opened.
        """
        try:
            reader, writer = await asyncio.open_connection(target.host, target.port)
        except OSError as e:
            raise ConnectError(f"failed to connect to kanata {target}: {e}") from e
        logger.info(f"Connected to kanata {target}")
        return cls(target, reader, writer)

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    async def read_chunk(self, cancel_token: CancelToken) -> bytes:
        """Read up to CHUNK_SIZE bytes.

        Returns ``b""`` when kanata closed the socket; a zero-length read is the
        only close signal the protocol has.

        Raises:
            ReadError: ``cancelled=True`` if the token fired while waiting,
                ``cancelled=False`` for any other transport fault.
        """
        if cancel_token.cancelled:
            raise ReadError(f"read from kanata {self.target} cancelled", cancelled=True)
        if not self.is_open:
            raise ReadError(f"connection to kanata {self.target} is closed")

        read_task = asyncio.ensure_future(self._reader.read(CHUNK_SIZE))
        cancel_task = asyncio.ensure_future(cancel_token.wait())
        try:
            done, _ = await asyncio.wait({read_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not read_task.done():
                read_task.cancel()

        if read_task not in done:
            raise ReadError(f"read from kanata {self.target} cancelled", cancelled=True)
        try:
            return read_task.result()
        except OSError as e:
            raise ReadError(f"failed to read from kanata {self.target}: {e}") from e

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._writer is None:
            return
        writer, self._writer = self._writer, None
        self._closing = writer
        try:
            writer.close()
        except Exception as e:
            logger.warning(f"failed to close connection to kanata {self.target}: {e}")

    async def aclose(self) -> None:
        """Close the socket and wait until the transport is gone."""
        self.close()
        writer, self._closing = self._closing, None
        if writer is None:
            return
        try:
            await writer.wait_closed()
        except Exception as e:
            logger.warning(f"failed to close connection to kanata {self.target}: {e}")
