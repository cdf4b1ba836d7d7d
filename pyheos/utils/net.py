from typing import Optional, Tuple


def split_host_port(addr: str, default_port: Optional[int] = None) -> Tuple[str, int]:
  """Split a network address into host and port.

  Accepts ``host:port``, ``[ipv6]:port``, and, if `default_port` is given, a bare ``host``,
  ``[ipv6]`` or unbracketed IPv6 address.

  Args:
    addr: The address to split.
    default_port: Port to use when `addr` has none.

  Returns:
    A ``(host, port)`` tuple. IPv6 hosts are returned without brackets.

  Raises:
    ValueError: If the address is malformed or has no port and there is no default.
  """

  addr = addr.strip()
  if addr.startswith("["):
    end = addr.find("]")
    if end == -1:
      raise ValueError(f"Missing ']' in address {addr!r}")
    host, rest = addr[1:end], addr[end + 1 :]
    if rest == "":
      port_str = None
    elif rest.startswith(":"):
      port_str = rest[1:]
    else:
      raise ValueError(f"Unexpected {rest!r} after host in address {addr!r}")
  elif addr.count(":") == 1:
    host, port_str = addr.split(":")
  else:
    # bare hostname, or an IPv6 address without brackets and therefore without port
    host, port_str = addr, None

  if host == "":
    raise ValueError(f"Missing host in address {addr!r}")

  if port_str is None:
    if default_port is None:
      raise ValueError(f"Missing port in address {addr!r}")
    return host, default_port

  if not port_str.isdigit() or not 0 < int(port_str) < 65536:
    raise ValueError(f"Invalid port {port_str!r} in address {addr!r}")
  return host, int(port_str)
