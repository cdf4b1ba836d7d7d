"""Attach the cancellation and deadline of a :class:`~pyheos.context.Context` to stream io.

A read or write that is already waiting on the network cannot simply be abandoned: the coroutine
would keep running and could consume bytes after the caller believes the exchange is over. The
functions here race the io against the context, force the io to return when the context is
cancelled, and always wait for the io to actually finish before reporting back.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from pyheos.context import Canceled, Context, ContextError, DeadlineExceeded
from pyheos.io.errors import ConnectionClosedError
from pyheos.io.io import IOBase

logger = logging.getLogger(__name__)

#: An instant earlier than every reading of the event loop clock. Setting it as the deadline of a
#: stream makes pending reads and writes on that stream time out immediately.
DEADLINE_NOW = float("-inf")

T = TypeVar("T")
S = TypeVar("S", bound=IOBase)


async def do(
  ctx: Context,
  stream: S,
  fn: Callable[[S], Awaitable[T]],
  deadline_now: float = DEADLINE_NOW,
) -> T:
  """Run ``fn(stream)`` with the cancellation and deadline of `ctx` attached to `stream`.

  The deadline of `ctx` (or no deadline) is applied to `stream` first. If `ctx` is cancelled while
  `fn` is running, `deadline_now` is set on `stream` to force the pending io to return. If the
  deadline of `ctx` passes, the deadline already on `stream` unblocks `fn` by itself. In both cases
  `fn` is awaited to completion and its outcome discarded before the context error is raised.

  The deadline of `stream` is left modified; every call sets its own.

  Args:
    ctx: The context bounding the operation.
    stream: The stream `fn` operates on.
    fn: The io to run, typically a write followed by a read.
    deadline_now: A deadline that is already in the past.

  Returns:
    The result of `fn` if it finished before `ctx` was done.

  Raises:
    Canceled: If `ctx` was cancelled, including before any io was attempted.
    DeadlineExceeded: If the deadline of `ctx` passed.
    Exception: Whatever `fn` raised, unmodified.
  """

  err = ctx.err()
  if err is not None:
    raise err

  stream.set_deadline(ctx.deadline)

  def abort(canceled: bool):
    if canceled:
      # a closed stream has already released its pending io
      with contextlib.suppress(ConnectionClosedError):
        stream.set_deadline(deadline_now)

  return await _race(ctx, asyncio.ensure_future(fn(stream)), abort)


async def wait(ctx: Context, aw: Awaitable[T]) -> T:
  """Await `aw`, cancelling it when `ctx` is cancelled or its deadline passes.

  For io that has no stream to set a deadline on yet, such as opening a connection.

  Raises:
    Canceled: If `ctx` was cancelled.
    DeadlineExceeded: If the deadline of `ctx` passed.
  """

  err = ctx.err()
  if err is not None:
    if asyncio.iscoroutine(aw):
      aw.close()
    raise err

  task = asyncio.ensure_future(aw)

  def abort(_: bool):
    task.cancel()

  return await _race(ctx, task, abort)


async def _race(ctx: Context, task: "asyncio.Future[T]", abort: Callable[[bool], None]) -> T:
  """Wait for `task` or `ctx`, whichever is first.

  `abort` must make `task` finish soon. It is called with `True` when the context was cancelled
  (or the awaiting task itself was cancelled) and with `False` when the deadline passed.
  """

  done_waiter = asyncio.ensure_future(ctx.wait())
  try:
    await asyncio.wait({task, done_waiter}, return_when=asyncio.FIRST_COMPLETED)
  except asyncio.CancelledError:
    logger.debug("Awaiting task cancelled, draining pending io")
    try:
      abort(True)
    finally:
      await _drain(task)
    raise
  finally:
    done_waiter.cancel()

  if not task.done():
    err = ctx.err()
    assert err is not None, "context wait returned before the context was done"
    try:
      abort(isinstance(err, Canceled))
    finally:
      await _drain(task)
    raise err

  try:
    return task.result()
  except Exception as exc:
    err = _context_error(ctx, exc)
    if err is None:
      raise
    raise err from None


def _context_error(ctx: Context, exc: Exception) -> Optional[ContextError]:
  err = ctx.err()
  if err is not None:
    return err
  # The stream deadline equals the context deadline; its timer may fire a hair before the
  # context reports being expired.
  if isinstance(exc, TimeoutError) and ctx.deadline is not None:
    return DeadlineExceeded()
  return None


async def _drain(task: "asyncio.Future[T]"):
  """Wait for `task` to finish and discard its outcome."""
  await asyncio.wait({task})
  if not task.cancelled():
    task.exception()
