"""Loopback HEOS device for testing clients without hardware.

Usage::

  device = FakeDevice()
  await device.start()
  client = await Client.dial(device.address)
  ...
  await client.close()
  await device.stop()
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, List, Optional, Set
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

#: Heartbeat response as sent by a real receiver.
HEARTBEAT_RESPONSE = (
  b'{"heos": {"command": "system/heart_beat", "result": "success", "message": ""}}'
)

#: Marker a handler returns to send no response at all.
NO_RESPONSE = object()

Handler = Callable[[str], Any]


class Split:
  """A response sent in several writes, with a short pause after each but the last."""

  def __init__(self, *chunks: bytes, pause: float = 0.02):
    self.chunks = chunks
    self.pause = pause


def echo_command(request: str) -> dict:
  """Acknowledge a request successfully, echoing its command path and query string."""
  parts = urlsplit(request.rstrip("\r\n"))
  return {
    "heos": {
      "command": parts.netloc + parts.path,
      "result": "success",
      "message": parts.query,
    }
  }


class FakeDevice:
  """A TCP server on localhost that answers HEOS requests.

  The first request on every connection is answered with :data:`HEARTBEAT_RESPONSE`, unless
  `answer_handshake` is `False`. Every other request (decoded, including its ``\\r\\n``) is passed
  to `handler`. The handler may be a coroutine function. It returns:

  - :data:`NO_RESPONSE` to not answer,
  - `bytes` to send verbatim,
  - a :class:`Split` to send its chunks one write at a time,
  - anything else to send JSON encoded and followed by a newline.
  """

  def __init__(self, handler: Optional[Handler] = None, answer_handshake: bool = True):
    self.handler: Handler = handler if handler is not None else echo_command
    self.answer_handshake = answer_handshake
    self.requests: List[bytes] = []
    self._server: Optional[asyncio.AbstractServer] = None
    self._writers: Set[asyncio.StreamWriter] = set()
    self._port: Optional[int] = None

  @property
  def port(self) -> int:
    assert self._port is not None, "forgot to call start?"
    return self._port

  @property
  def connections(self) -> int:
    """Number of client connections currently open."""
    return len(self._writers)

  @property
  def address(self) -> str:
    return f"127.0.0.1:{self.port}"

  async def start(self):
    self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
    self._port = self._server.sockets[0].getsockname()[1]

  async def stop(self):
    if self._server is None:
      return
    self._server.close()
    for writer in list(self._writers):
      writer.close()
    await self._server.wait_closed()
    self._server = None

  async def _respond(self, request: bytes, first: bool) -> Any:
    if first and self.answer_handshake:
      return HEARTBEAT_RESPONSE
    response = self.handler(request.decode())
    if inspect.isawaitable(response):
      response = await response
    return response

  async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
    self._writers.add(writer)
    first = True
    try:
      while True:
        try:
          request = await reader.readuntil(b"\r\n")
        except (asyncio.IncompleteReadError, ConnectionError):
          return
        self.requests.append(request)
        response = await self._respond(request, first)
        first = False

        if response is NO_RESPONSE:
          continue
        if not isinstance(response, Split):
          if not isinstance(response, bytes):
            response = json.dumps(response).encode() + b"\n"
          response = Split(response)

        try:
          for i, chunk in enumerate(response.chunks):
            if i > 0:
              await asyncio.sleep(response.pause)
            writer.write(chunk)
            await writer.drain()
        except ConnectionError:
          return
    finally:
      self._writers.discard(writer)
      writer.close()
