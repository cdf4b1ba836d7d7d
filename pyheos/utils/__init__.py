from .net import split_host_port
