import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, ParamSpec, TypeVar

from pyheos.command import Command, Payload, build_request, parse_response, response_complete
from pyheos.config import Config
from pyheos.context import Context
from pyheos.errors import ResponseTooLargeError
from pyheos.io import cancellation
from pyheos.io.errors import ConnectionClosedError
from pyheos.io.socket import Socket
from pyheos.system import System
from pyheos.utils.net import split_host_port

logger = logging.getLogger(__name__)

_P = ParamSpec("_P")
_R = TypeVar("_R", bound=Awaitable[Any])


def need_open(func: Callable[_P, _R]) -> Callable[_P, _R]:
  """Decorator for methods that require the client to be open.

  Raises:
    ConnectionClosedError: If the client was closed.
  """

  @functools.wraps(func)
  async def wrapper(*args, **kwargs):
    assert isinstance(args[0], Client), "The first argument must be a Client."
    self = args[0]

    if self.closed:
      raise ConnectionClosedError("Use of closed client. See `Client.dial`.")
    return await func(*args, **kwargs)

  return wrapper


class Client:
  """A HEOS protocol client for one device.

  Requests and responses share a single connection and are matched by order, so every exchange
  holds a lock from writing the request until the response is decoded. Concurrent queries are
  answered one at a time in the order they acquired the lock.

  Create clients with :meth:`dial`::

    async with await Client.dial("192.168.1.20") as client:
      await client.system.heartbeat()
  """

  def __init__(self, io: Socket, config: Optional[Config] = None):
    """Wrap an io object. The io must be set up before the client is used.

    Args:
      io: The connection to the device.
      config: Connection settings. Defaults to `Config()`.
    """

    self.io = io
    self.config = config if config is not None else Config()
    self.system = System(self)

    self._lock = asyncio.Lock()
    self._read_buffer_size = self.config.connection.read_buffer_size
    # responses to requests that were written by an aborted exchange but never read
    self._unread_responses = 0
    self._closed = False

  @classmethod
  async def dial(
    cls,
    addr: str,
    ctx: Optional[Context] = None,
    config: Optional[Config] = None,
  ) -> "Client":
    """Connect to a device and verify that it speaks HEOS with a heartbeat.

    Args:
      addr: ``host:port``, ``[ipv6]:port`` or just a host, in which case the configured port is
        used.
      ctx: Bounds connecting and the handshake together.
      config: Connection settings. Defaults to `Config()`.

    Raises:
      ValueError: If `addr` cannot be parsed.
      OSError: If the connection cannot be opened.
      ContextError: If `ctx` is cancelled or its deadline passes.
      HEOSError: If the handshake response is not a successful heartbeat.
    """

    config = config if config is not None else Config()
    host, port = split_host_port(addr, default_port=config.connection.port)
    client = cls(io=Socket(host=host, port=port), config=config)
    ctx = client._context(ctx)

    try:
      await client.io.setup(ctx)
      logger.debug("Handshake with %s:%s", host, port)
      await client.system.heartbeat(ctx=ctx)
    except BaseException:
      await client.close()
      raise

    return client

  @property
  def closed(self) -> bool:
    return self._closed

  def _context(self, ctx: Optional[Context]) -> Context:
    if ctx is not None:
      return ctx
    return Context(timeout=self.config.connection.timeout)

  @need_open
  async def query(
    self,
    command: str,
    out: Optional[Payload] = None,
    ctx: Optional[Context] = None,
  ) -> Command:
    """Issue a raw command and wait for its response.

    A failure result reported by the device is not raised; inspect the returned command or call
    :meth:`Command.raise_for_result`.

    Args:
      command: A command path such as ``system/heart_beat`` or ``player/get_volume?pid=1``.
      out: A dict or list that receives the payload of the response.
      ctx: Bounds the exchange. Defaults to a context with the configured timeout.

    Returns:
      The acknowledgement of the device, with the decoded payload.

    Raises:
      InvalidCommandError: If `command` cannot be sent.
      TypeError: If `out` is neither a dict nor a list.
      ConnectionClosedError: If the client or the connection was closed.
      OSError: If the connection fails.
      ContextError: If `ctx` is cancelled or its deadline passes.
      DecodeError: If the response cannot be decoded.
    """

    request = build_request(command)
    if out is not None and not isinstance(out, (dict, list)):
      raise TypeError(f"out must be a dict or a list, not {type(out).__name__}")
    ctx = self._context(ctx)

    async def exchange(io: Socket) -> Command:
      return await self._exchange(io, request, out)

    async with self._lock:
      return await cancellation.do(ctx, self.io, exchange)

  async def _exchange(self, io: Socket, request: bytes, out: Optional[Payload]) -> Command:
    while self._unread_responses > 0:
      await self._discard_response(io)
      self._unread_responses -= 1

    self._unread_responses += 1
    await io.write(request)
    data = await self._read_response(io)
    self._unread_responses -= 1
    return parse_response(data, out)

  async def _read_response(self, io: Socket) -> bytes:
    """Read until `data` holds one complete response, within the read buffer size.

    A response that does not fit stays counted as unread, so the next exchange skips its
    remainder.
    """

    data = b""
    while not response_complete(data):
      if len(data) >= self._read_buffer_size:
        raise ResponseTooLargeError(self._read_buffer_size, data)
      data += await self._read(io, self._read_buffer_size - len(data))
    return data

  async def _discard_response(self, io: Socket):
    """Skip the rest of a response whose request was written by an aborted exchange."""
    while True:
      chunk = await self._read(io, self._read_buffer_size)
      logger.debug("Discarded unread response data %s", chunk)
      if response_complete(chunk):
        return

  async def _read(self, io: Socket, num_bytes: int) -> bytes:
    data = await io.read(num_bytes)
    if data == b"":
      raise ConnectionClosedError("Connection closed by device")
    return data

  async def close(self):
    """Close the connection. Pending queries fail with `ConnectionClosedError`.

    Raises:
      ConnectionClosedError: If the client was already closed.
    """

    if self._closed:
      raise ConnectionClosedError("Client already closed")
    self._closed = True
    await self.io.stop()

  async def __aenter__(self):
    return self

  async def __aexit__(self, exc_type, exc_value, traceback):
    if not self._closed:
      await self.close()
