class ConnectionClosedError(ConnectionError):
  """Raised when using a connection that was closed, by us or by the device."""
