"""Wire format of HEOS requests and responses.

A request is a command URI terminated by CRLF::

  heos://system/heart_beat\\r\\n
  heos://player/get_volume?pid=1\\r\\n

A response is a single JSON document holding the command acknowledgement and, for some commands,
a payload::

  {"heos": {"command": "player/get_volume", "result": "success", "message": "pid=1&level=20"}}
"""

import json
import string
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qsl, quote, urlsplit

from pyheos.errors import CommandError, DecodeError, InvalidCommandError

SCHEME = "heos"
TERMINATOR = b"\r\n"

# only characters outside ASCII are percent-encoded in a request
_SAFE = string.punctuation

RESULT_SUCCESS = "success"
FAILURE_RESULTS = frozenset({"fail", "failure"})

Payload = Union[Dict[str, Any], List[Any]]


@dataclass(frozen=True)
class Command:
  """Command acknowledgement returned by a device for every request.

  Attributes:
    command: The command path the device is acknowledging, e.g. ``system/heart_beat``.
    result: ``success`` or a failure result.
    message: Command specific attributes, URL query encoded.
    payload: The decoded payload of the response, or `None` if it had none.
  """

  command: str = ""
  result: str = ""
  message: str = ""
  payload: Any = None

  @property
  def succeeded(self) -> bool:
    return self.result == RESULT_SUCCESS

  @property
  def failed(self) -> bool:
    return self.result in FAILURE_RESULTS

  @property
  def params(self) -> Dict[str, str]:
    """The message parsed as a URL query string."""
    return dict(parse_qsl(self.message, keep_blank_values=True))

  def raise_for_result(self) -> None:
    """Raise :class:`~pyheos.errors.CommandError` if the device reported a failure."""
    if self.failed:
      raise CommandError(self)


def build_request(command: str) -> bytes:
  """Turn a command path into the bytes of a request, terminator included.

  `command` may be a bare path (``system/heart_beat``), may start with a slash, and may already be
  a URI with a scheme, which is replaced by ``heos``. Characters outside ASCII are
  percent-encoded in the path and the query string; everything else is kept as is.

  Raises:
    InvalidCommandError: If the command is empty or contains whitespace or control characters.
  """

  for c in command:
    if c.isspace() or ord(c) < 0x20 or ord(c) == 0x7F:
      raise InvalidCommandError(command, "contains whitespace or control characters")

  try:
    parts = urlsplit(command)
  except ValueError as e:
    raise InvalidCommandError(command, str(e)) from e

  path = (parts.netloc + parts.path).lstrip("/")
  if path == "":
    raise InvalidCommandError(command, "empty command path")

  uri = f"{SCHEME}://{quote(path, safe=_SAFE)}"
  if parts.query:
    uri += "?" + quote(parts.query, safe=_SAFE)
  if parts.fragment:
    uri += "#" + quote(parts.fragment, safe=_SAFE)
  return uri.encode("ascii") + TERMINATOR


def parse_response(data: bytes, out: Optional[Payload] = None) -> Command:
  """Decode the bytes of one response.

  Args:
    data: The bytes of exactly one JSON document.
    out: A dict or list to receive the payload of the response in place.

  Raises:
    DecodeError: If `data` is not JSON, does not have the shape of a response, or has a payload
      that does not match the type of `out`.
  """

  try:
    doc = json.loads(data)
  except ValueError as e:  # JSONDecodeError and UnicodeDecodeError
    raise DecodeError(f"Invalid JSON in response: {e}", data) from e

  if not isinstance(doc, dict):
    raise DecodeError(f"Response is a JSON {type(doc).__name__}, not an object", data)

  heos = doc.get("heos")
  if heos is None:
    heos = {}
  if not isinstance(heos, dict):
    raise DecodeError('Response field "heos" is not an object', data)

  fields: Dict[str, str] = {}
  for name in ("command", "result", "message"):
    value = heos.get(name)
    if value is None:
      value = ""
    if not isinstance(value, str):
      raise DecodeError(f'Response field "heos.{name}" is not a string', data)
    fields[name] = value

  payload = doc.get("payload")
  if out is not None and payload is not None:
    if isinstance(out, dict):
      if not isinstance(payload, dict):
        raise DecodeError("Response payload is not an object", data)
      out.update(payload)
    else:
      if not isinstance(payload, list):
        raise DecodeError("Response payload is not an array", data)
      out[:] = payload

  return Command(payload=payload, **fields)


def response_complete(data: bytes) -> bool:
  """Whether `data` holds a whole response.

  Devices terminate every response with ``\\r\\n``. Data without a terminator is complete only if
  it is already a whole JSON document.
  """

  if data.endswith(b"\n"):
    return True
  if not data:
    return False
  try:
    json.loads(data)
  except ValueError:
    return False
  return True
