from typing import TYPE_CHECKING, Optional

from pyheos.context import Context

if TYPE_CHECKING:
  from pyheos.client import Client


class System:
  """HEOS ``system`` commands."""

  def __init__(self, client: "Client"):
    self.client = client

  async def heartbeat(self, ctx: Optional[Context] = None) -> None:
    """Check that the device is alive and speaks the HEOS protocol.

    Raises:
      CommandError: If the device acknowledged the heartbeat with a failure result.
    """

    command = await self.client.query("system/heart_beat", ctx=ctx)
    command.raise_for_result()
