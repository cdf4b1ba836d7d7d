import logging
from abc import ABC, abstractmethod
from typing import Optional

#: Level of the log records of every byte written and read.
LOG_LEVEL_IO = 5
logging.addLevelName(LOG_LEVEL_IO, "IO")


class IOBase(ABC):
  @abstractmethod
  async def write(self, data: bytes, *args, **kwargs):
    pass

  @abstractmethod
  async def read(self, *args, **kwargs) -> bytes:
    pass

  @abstractmethod
  def set_deadline(self, deadline: Optional[float]) -> None:
    """Bound every pending and future read/write by `deadline` (`None` disables the bound)."""

  def serialize(self):
    return {}
