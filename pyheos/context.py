"""Cancellable, time-bounded operation contexts.

Every network operation in pyheos accepts a :class:`Context`. A context carries an optional
deadline and can be cancelled explicitly with :meth:`Context.cancel`. A context derived from a
parent is cancelled together with its parent, and its deadline is never later than the parent's.

Deadlines are expressed on the clock of the running event loop (``loop.time()``), the clock
asyncio timeouts compare against. Outside a running loop ``time.monotonic()`` is used, which is
the clock of the default event loop.

Example::

  with Context(timeout=5) as ctx:
    await client.system.heartbeat(ctx=ctx)
"""

import asyncio
import time
import weakref
from typing import Optional, Set, Type


def now() -> float:
  """The current time on the clock deadlines are expressed in."""
  try:
    return asyncio.get_running_loop().time()
  except RuntimeError:
    return time.monotonic()


class ContextError(Exception):
  """Base class for the errors reported by a context that is done."""


class Canceled(ContextError):
  """The context was cancelled explicitly."""

  def __init__(self):
    super().__init__("context canceled")


class DeadlineExceeded(ContextError, TimeoutError):
  """The deadline of the context passed."""

  def __init__(self):
    super().__init__("context deadline exceeded")


class Context:
  """A cancellation signal combined with an optional deadline.

  Contexts are meant to be used from the thread running the event loop; :meth:`cancel` is not
  thread-safe.
  """

  def __init__(
    self,
    parent: Optional["Context"] = None,
    timeout: Optional[float] = None,
    deadline: Optional[float] = None,
  ):
    """Create a context.

    Args:
      parent: The context to derive from. If it is cancelled, so is this context.
      timeout: Number of seconds from now after which the context expires.
      deadline: Absolute instant on the event loop clock at which the context expires. Mutually
        exclusive with `timeout`.
    """

    if timeout is not None and deadline is not None:
      raise ValueError("Specify either timeout or deadline, not both.")
    if timeout is not None:
      deadline = now() + timeout
    if parent is not None and parent.deadline is not None:
      deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)

    self._deadline = deadline
    self._err_type: Optional[Type[ContextError]] = None
    self._waiters: Set[asyncio.Future] = set()
    self._children: "weakref.WeakSet[Context]" = weakref.WeakSet()

    if parent is not None:
      parent_err = parent.err()
      if parent_err is not None:
        self._err_type = type(parent_err)
      else:
        parent._children.add(self)

  def __repr__(self) -> str:
    err = self.err()
    state = "active" if err is None else str(err)
    return f"Context(deadline={self._deadline}, {state})"

  def __enter__(self) -> "Context":
    return self

  def __exit__(self, exc_type, exc_value, traceback):
    self.cancel()

  @property
  def deadline(self) -> Optional[float]:
    """The event loop clock instant at which this context expires, or `None`."""
    return self._deadline

  def remaining(self) -> Optional[float]:
    """Seconds left until the deadline (never negative), or `None` if there is no deadline."""
    if self._deadline is None:
      return None
    return max(0.0, self._deadline - now())

  def err(self) -> Optional[ContextError]:
    """Return why the context is done, or `None` if it is not.

    Once a context is done the kind of error never changes: a context that expired before being
    cancelled keeps reporting :class:`DeadlineExceeded`.
    """

    if (
      self._err_type is None
      and self._deadline is not None
      and now() >= self._deadline
    ):
      self._err_type = DeadlineExceeded
    return None if self._err_type is None else self._err_type()

  def done(self) -> bool:
    return self.err() is not None

  def cancel(self) -> None:
    """Cancel this context and every context derived from it."""
    if self.err() is None:
      self._err_type = Canceled

    for waiter in list(self._waiters):
      if not waiter.done():
        waiter.set_result(None)

    for child in list(self._children):
      child.cancel()
    self._children.clear()

  async def wait(self) -> None:
    """Wait until the context is cancelled or its deadline passes."""
    waiter = asyncio.get_running_loop().create_future()
    self._waiters.add(waiter)
    try:
      # Loop timers may fire marginally before the deadline, so re-check until err() agrees.
      while self.err() is None:
        try:
          await asyncio.wait_for(asyncio.shield(waiter), timeout=self.remaining())
        except TimeoutError:
          continue
    finally:
      self._waiters.discard(waiter)
