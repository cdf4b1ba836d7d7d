import asyncio
import time
import unittest
from unittest.mock import patch

from pyheos.context import Canceled, Context, ContextError, DeadlineExceeded, now


class ContextTests(unittest.IsolatedAsyncioTestCase):
  """Tests for pyheos.context"""

  def test_background_context(self):
    ctx = Context()
    self.assertIsNone(ctx.deadline)
    self.assertIsNone(ctx.remaining())
    self.assertIsNone(ctx.err())
    self.assertFalse(ctx.done())

  def test_cancel(self):
    ctx = Context()
    ctx.cancel()
    err = ctx.err()
    self.assertIsInstance(err, Canceled)
    self.assertIsInstance(err, ContextError)
    self.assertEqual(str(err), "context canceled")
    self.assertTrue(ctx.done())

  def test_err_is_fresh_exception(self):
    ctx = Context()
    ctx.cancel()
    self.assertIsNot(ctx.err(), ctx.err())

  def test_deadline_exceeded(self):
    ctx = Context(timeout=1e-9)
    time.sleep(0.001)
    err = ctx.err()
    self.assertIsInstance(err, DeadlineExceeded)
    self.assertIsInstance(err, TimeoutError)
    self.assertEqual(str(err), "context deadline exceeded")
    self.assertEqual(ctx.remaining(), 0.0)

  def test_expired_context_stays_expired_after_cancel(self):
    ctx = Context(deadline=now() - 1)
    ctx.cancel()
    self.assertIsInstance(ctx.err(), DeadlineExceeded)

  def test_canceled_context_stays_canceled_after_deadline(self):
    ctx = Context(timeout=0.05)
    ctx.cancel()
    time.sleep(0.06)
    self.assertIsInstance(ctx.err(), Canceled)

  def test_timeout_and_deadline_exclusive(self):
    with self.assertRaises(ValueError):
      Context(timeout=1, deadline=now() + 1)

  def test_child_inherits_earlier_deadline(self):
    parent = Context(timeout=10)
    child = Context(parent, timeout=100)
    self.assertEqual(child.deadline, parent.deadline)

    child = Context(parent, timeout=1)
    assert child.deadline is not None and parent.deadline is not None
    self.assertLess(child.deadline, parent.deadline)

  def test_parent_cancel_propagates(self):
    parent = Context()
    child = Context(parent)
    grandchild = Context(child)
    parent.cancel()
    self.assertIsInstance(child.err(), Canceled)
    self.assertIsInstance(grandchild.err(), Canceled)

  def test_child_cancel_does_not_propagate_up(self):
    parent = Context()
    child = Context(parent)
    child.cancel()
    self.assertIsNone(parent.err())

  def test_child_of_done_parent(self):
    parent = Context()
    parent.cancel()
    self.assertIsInstance(Context(parent).err(), Canceled)

  def test_with_statement_cancels(self):
    with Context() as ctx:
      self.assertIsNone(ctx.err())
    self.assertIsInstance(ctx.err(), Canceled)

  def test_clock_outside_loop(self):
    self.assertAlmostEqual(now(), time.monotonic(), delta=1)

  async def test_deadline_on_loop_clock(self):
    loop = asyncio.get_running_loop()
    with patch.object(loop, "time", return_value=1000.0):
      ctx = Context(timeout=10)
      self.assertEqual(ctx.deadline, 1010.0)
      self.assertEqual(ctx.remaining(), 10.0)
      self.assertIsNone(ctx.err())

      expired = Context(deadline=999.0)
      self.assertIsInstance(expired.err(), DeadlineExceeded)

  async def test_wait_cancel(self):
    ctx = Context()
    waiter = asyncio.create_task(ctx.wait())
    await asyncio.sleep(0)
    self.assertFalse(waiter.done())
    ctx.cancel()
    await asyncio.wait_for(waiter, timeout=1)

  async def test_wait_deadline(self):
    ctx = Context(timeout=0.01)
    await asyncio.wait_for(ctx.wait(), timeout=1)
    self.assertIsInstance(ctx.err(), DeadlineExceeded)

  async def test_wait_done_returns_immediately(self):
    ctx = Context()
    ctx.cancel()
    await asyncio.wait_for(ctx.wait(), timeout=1)

  async def test_wait_parent_cancel(self):
    parent = Context()
    child = Context(parent)
    waiter = asyncio.create_task(child.wait())
    await asyncio.sleep(0)
    parent.cancel()
    await asyncio.wait_for(waiter, timeout=1)
