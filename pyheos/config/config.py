import logging
import mmap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOG_FROM_STRING = {
  "DEBUG": logging.DEBUG,
  "INFO": logging.INFO,
  "WARNING": logging.WARNING,
  "ERROR": logging.ERROR,
  "CRITICAL": logging.CRITICAL,
}

LOG_TO_STRING = {v: k for k, v in LOG_FROM_STRING.items()}

#: Port of the HEOS command line interface on every device.
DEFAULT_PORT = 1255

#: Responses must fit in this many bytes. A page holds every response of the
#: common commands; raise it for large browse results.
DEFAULT_READ_BUFFER_SIZE = mmap.PAGESIZE


@dataclass
class Config:
  """The configuration object for pyheos."""

  @dataclass
  class Logging:
    """The logging configuration."""

    level: int = logging.INFO
    log_dir: Optional[Path] = None

  @dataclass
  class Connection:
    """Defaults for connections to devices.

    Attributes:
      port: Port used when an address has none.
      read_buffer_size: Maximum size in bytes of one response.
      timeout: Seconds allowed for an operation called without a context. `None` waits forever.
    """

    port: int = DEFAULT_PORT
    read_buffer_size: int = DEFAULT_READ_BUFFER_SIZE
    timeout: Optional[float] = None

  logging: Logging = field(default_factory=Logging)
  connection: Connection = field(default_factory=Connection)

  @classmethod
  def from_dict(cls, d: dict) -> "Config":
    logging_data = d.get("logging", {})
    connection_data = d.get("connection", {})
    timeout = connection_data.get("timeout")
    log_dir = logging_data.get("log_dir")
    return cls(
      logging=cls.Logging(
        level=LOG_FROM_STRING[logging_data.get("level", "INFO")],
        log_dir=Path(log_dir) if log_dir is not None else None,
      ),
      connection=cls.Connection(
        port=int(connection_data.get("port", DEFAULT_PORT)),
        read_buffer_size=int(connection_data.get("read_buffer_size", DEFAULT_READ_BUFFER_SIZE)),
        timeout=float(timeout) if timeout is not None else None,
      ),
    )

  @property
  def as_dict(self) -> dict:
    return {
      "logging": {
        "level": LOG_TO_STRING[self.logging.level],
        "log_dir": str(self.logging.log_dir) if self.logging.log_dir is not None else None,
      },
      "connection": {
        "port": self.connection.port,
        "read_buffer_size": self.connection.read_buffer_size,
        "timeout": self.connection.timeout,
      },
    }
