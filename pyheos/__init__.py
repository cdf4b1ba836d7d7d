import datetime
import logging
from pathlib import Path
from typing import Optional, Union

from pyheos.__version__ import __version__
from pyheos.client import Client
from pyheos.command import Command
from pyheos.config import Config, load_config
from pyheos.context import Canceled, Context, ContextError, DeadlineExceeded
from pyheos.errors import (
  CommandError,
  DecodeError,
  HEOSError,
  InvalidCommandError,
  ResponseTooLargeError,
)
from pyheos.io import ConnectionClosedError
from pyheos.system import System

CONFIG_FILE_NAME = "pyheos"

CONFIG = load_config(CONFIG_FILE_NAME, create_default=False)


def project_root() -> Path:
  """
  Get the root directory of the project.
  Returns:
    The root directory of the project.
  """
  return Path(__file__).parent.parent


def setup_logger(log_dir: Optional[Union[Path, str]], level: int):
  """
  Set up the logger for pyheos. If the log_dir does not exist, it will be created.

  Args:
    log_dir: The directory to store the log files. If None, no log files will be created.
    level: The logging level.
  """
  if log_dir is not None:
    if isinstance(log_dir, str):
      log_dir = Path(log_dir)
    if not log_dir.exists():
      log_dir.mkdir(parents=True)
  logger = logging.getLogger("pyheos")
  logger.setLevel(level)

  now = datetime.datetime.now().strftime("%Y%m%d")
  # remove file handlers of a previous configuration
  for handler in list(logger.handlers):
    logger.removeHandler(handler)
    handler.close()

  if log_dir is not None:
    fh = logging.FileHandler(log_dir / f"pyheos-{now}.log")
    fh.setLevel(logging.NOTSET)  # logs everything it receives, but the logger level can filter
    fh.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(fh)


def configure(cfg: Config):
  """Configure pyheos. The config also becomes the default of :func:`dial`."""
  global CONFIG
  CONFIG = cfg
  setup_logger(cfg.logging.log_dir, cfg.logging.level)


async def dial(addr: str, ctx: Optional[Context] = None) -> Client:
  """Connect to a device using the package configuration. See :meth:`Client.dial`."""
  return await Client.dial(addr, ctx=ctx, config=CONFIG)


configure(CONFIG)
