from pyheos.io.errors import ConnectionClosedError
from pyheos.io.io import LOG_LEVEL_IO, IOBase
from pyheos.io.socket import Socket
