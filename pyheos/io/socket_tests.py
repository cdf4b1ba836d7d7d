import asyncio
import unittest

from pyheos.context import Canceled, Context
from pyheos.io.cancellation import DEADLINE_NOW
from pyheos.io.errors import ConnectionClosedError
from pyheos.io.socket import Socket


class SocketTests(unittest.IsolatedAsyncioTestCase):
  """Tests for Socket against a loopback echo server"""

  async def asyncSetUp(self):
    async def echo(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
      try:
        while data := await reader.read(1024):
          if data != b"quiet\r\n":
            writer.write(data)
            await writer.drain()
      except ConnectionError:
        pass
      finally:
        writer.close()

    self.server = await asyncio.start_server(echo, "127.0.0.1", 0)
    self.port = self.server.sockets[0].getsockname()[1]
    self.socket = Socket(host="127.0.0.1", port=self.port)
    await self.socket.setup()

  async def asyncTearDown(self):
    if not self.socket.closed:
      await self.socket.stop()
    self.server.close()
    await self.server.wait_closed()

  async def test_write_read(self):
    await self.socket.write(b"hello\r\n")
    self.assertEqual(await self.socket.read(1024), b"hello\r\n")

  async def test_read_is_bounded(self):
    await self.socket.write(b"0123456789")
    await asyncio.sleep(0.05)
    self.assertEqual(await self.socket.read(4), b"0123")

  async def test_deadline(self):
    self.socket.set_deadline(asyncio.get_running_loop().time() + 0.01)
    with self.assertRaises(TimeoutError):
      await self.socket.read()

  async def test_deadline_now_unblocks_pending_read(self):
    await self.socket.write(b"quiet\r\n")
    read = asyncio.create_task(self.socket.read())
    await asyncio.sleep(0.01)
    self.assertFalse(read.done())

    self.socket.set_deadline(DEADLINE_NOW)
    with self.assertRaises(TimeoutError):
      await asyncio.wait_for(read, timeout=1)

  async def test_clear_deadline(self):
    self.socket.set_deadline(DEADLINE_NOW)
    with self.assertRaises(TimeoutError):
      await self.socket.read()

    self.socket.set_deadline(None)
    self.assertIsNone(self.socket.deadline)
    await self.socket.write(b"again\r\n")
    self.assertEqual(await self.socket.read(), b"again\r\n")

  async def test_stop_twice(self):
    await self.socket.stop()
    self.assertTrue(self.socket.closed)
    with self.assertRaises(ConnectionClosedError):
      await self.socket.stop()

  async def test_use_after_stop(self):
    await self.socket.stop()
    with self.assertRaises(ConnectionClosedError):
      await self.socket.read()
    with self.assertRaises(ConnectionClosedError):
      await self.socket.write(b"x")
    with self.assertRaises(ConnectionClosedError):
      self.socket.set_deadline(None)

  async def test_serialize(self):
    self.assertEqual(self.socket.serialize(), {"host": "127.0.0.1", "port": self.port})


class SocketSetupTests(unittest.IsolatedAsyncioTestCase):
  """Tests for opening sockets"""

  async def test_not_set_up(self):
    socket = Socket(host="127.0.0.1", port=1)
    with self.assertRaises(RuntimeError):
      await socket.read()

  async def test_connection_refused(self):
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()

    with self.assertRaises(OSError):
      await Socket(host="127.0.0.1", port=port).setup()

  async def test_setup_canceled(self):
    ctx = Context()
    ctx.cancel()
    with self.assertRaises(Canceled):
      await Socket(host="127.0.0.1", port=1).setup(ctx)
