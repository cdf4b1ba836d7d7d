import asyncio
import contextlib
import logging
from typing import AsyncIterator, Optional, Set

from pyheos.context import Context
from pyheos.io import cancellation
from pyheos.io.errors import ConnectionClosedError
from pyheos.io.io import LOG_LEVEL_IO, IOBase

logger = logging.getLogger(__name__)


class Socket(IOBase):
  """IO for reading/writing to a TCP socket, bounded by a settable deadline.

  The deadline works like a socket deadline: it is an absolute instant on the event loop clock
  that applies to every read and write, including those already waiting on the network when
  the deadline is changed. A read or write still pending when the deadline passes raises
  `TimeoutError`. Setting a deadline in the past therefore makes pending io return immediately.
  """

  def __init__(self, host: str, port: int):
    self._host = host
    self._port = port
    self._reader: Optional[asyncio.StreamReader] = None
    self._writer: Optional[asyncio.StreamWriter] = None
    self._closed = False
    self._deadline: Optional[float] = None
    self._scopes: Set[asyncio.Timeout] = set()
    self._unique_id = f"{self._host}:{self._port}"
    self._read_lock = asyncio.Lock()
    self._write_lock = asyncio.Lock()

  @property
  def host(self) -> str:
    return self._host

  @property
  def port(self) -> int:
    return self._port

  @property
  def closed(self) -> bool:
    return self._closed

  @property
  def deadline(self) -> Optional[float]:
    return self._deadline

  async def setup(self, ctx: Optional[Context] = None):
    """Open the TCP connection. Opening is cancelled when `ctx` is done."""
    if self._closed:
      raise ConnectionClosedError(f"Connection to {self._unique_id} already closed")
    if self._writer is not None:
      raise RuntimeError(f"Connection to {self._unique_id} already open")

    self._reader, self._writer = await cancellation.wait(
      ctx if ctx is not None else Context(),
      asyncio.open_connection(self._host, self._port),
    )
    logger.info("Connected to socket %s", self._unique_id)

  async def stop(self):
    """Close the connection. Pending io returns; closing twice raises `ConnectionClosedError`."""
    if self._closed:
      raise ConnectionClosedError(f"Connection to {self._unique_id} already closed")
    self._closed = True

    writer, self._writer = self._writer, None
    self._reader = None
    if writer is None:
      return

    logger.info("Closing connection to socket %s", self._unique_id)
    writer.close()
    try:
      await writer.wait_closed()
    except OSError as e:
      logger.warning("Error while closing socket connection: %s", e)

  def serialize(self):
    return {
      "host": self._host,
      "port": self._port,
    }

  def set_deadline(self, deadline: Optional[float]) -> None:
    """Set the deadline of every pending and future read and write.

    Args:
      deadline: An instant on the event loop clock, or `None` for no deadline.
    """

    self._check_open()
    self._deadline = deadline
    for scope in list(self._scopes):
      if not scope.expired():
        scope.reschedule(deadline)

  def _check_open(self):
    if self._closed:
      raise ConnectionClosedError(f"Use of closed connection to {self._unique_id}")
    if self._writer is None or self._reader is None:
      raise RuntimeError("forgot to call setup?")

  @contextlib.asynccontextmanager
  async def _deadline_scope(self) -> AsyncIterator[None]:
    async with asyncio.timeout_at(self._deadline) as scope:
      self._scopes.add(scope)
      try:
        yield
      finally:
        self._scopes.discard(scope)

  async def write(self, data: bytes) -> None:
    """Write all of `data` and wait until it is flushed to the transport."""
    self._check_open()
    writer = self._writer
    assert writer is not None

    async with self._write_lock, self._deadline_scope():
      writer.write(data)
      logger.log(LOG_LEVEL_IO, "[%s] write %s", self._unique_id, data)
      await writer.drain()

  async def read(self, num_bytes: int = 4096) -> bytes:
    """Read at most `num_bytes` in a single read. Returns ``b""`` at end of stream."""
    self._check_open()
    reader = self._reader
    assert reader is not None

    async with self._read_lock, self._deadline_scope():
      data = await reader.read(num_bytes)
    logger.log(LOG_LEVEL_IO, "[%s] read %s", self._unique_id, data)
    return data

