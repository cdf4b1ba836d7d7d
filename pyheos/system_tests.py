import unittest
from unittest.mock import AsyncMock, MagicMock

from pyheos.client import Client
from pyheos.command import Command
from pyheos.context import Context
from pyheos.errors import CommandError
from pyheos.system import System


class SystemTests(unittest.IsolatedAsyncioTestCase):
  """Unit tests for System"""

  def setUp(self):
    self.client = MagicMock(spec=Client)
    self.client.query = AsyncMock()
    self.system = System(self.client)

  async def test_heartbeat(self):
    self.client.query.return_value = Command(command="system/heart_beat", result="success")
    ctx = Context()
    await self.system.heartbeat(ctx=ctx)
    self.client.query.assert_awaited_once_with("system/heart_beat", ctx=ctx)

  async def test_heartbeat_failure(self):
    self.client.query.return_value = Command(
      command="system/heart_beat", result="fail", message="eid=13&text=Processing previous command"
    )
    with self.assertRaises(CommandError) as cm:
      await self.system.heartbeat()
    self.assertEqual(cm.exception.eid, 13)
    self.assertEqual(cm.exception.text, "Processing previous command")

  async def test_heartbeat_unknown_result(self):
    self.client.query.return_value = Command(command="system/heart_beat", result="")
    await self.system.heartbeat()
