"""Errors raised by the request/response layer.

Transport errors are raised as :class:`OSError` (see :mod:`pyheos.io.errors`) and cancellation and
deadline errors as :class:`~pyheos.context.ContextError`.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
  from pyheos.command import Command


class HEOSError(Exception):
  """Base class for protocol errors."""


class InvalidCommandError(HEOSError, ValueError):
  """A command path cannot be turned into a request."""

  def __init__(self, command: str, reason: str):
    self.command = command
    self.reason = reason
    super().__init__(f"Invalid command {command!r}: {reason}")


class DecodeError(HEOSError):
  """A response is not valid JSON or does not have the shape of a response.

  Attributes:
    data: The raw bytes that were read.
  """

  def __init__(self, message: str, data: bytes):
    self.data = data
    super().__init__(message)


class ResponseTooLargeError(DecodeError):
  """A response did not end within the read buffer. The rest of it is skipped by the next query."""

  def __init__(self, buffer_size: int, data: bytes):
    self.buffer_size = buffer_size
    super().__init__(
      f"Response does not fit in the {buffer_size} byte read buffer; increase "
      "connection.read_buffer_size",
      data,
    )


class CommandError(HEOSError):
  """The device acknowledged a command with a failure result.

  Attributes:
    command: The decoded acknowledgement.
    eid: Error id reported by the device, if any.
    text: Error text reported by the device, if any.
  """

  def __init__(self, command: "Command"):
    self.command = command
    params = command.params
    self.eid: Optional[int] = int(params["eid"]) if params.get("eid", "").isdigit() else None
    self.text: str = params.get("text", command.message)
    super().__init__(f"Command {command.command!r} failed: {self.text or command.result}")
