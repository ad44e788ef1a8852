import socket
from typing import Callable, NamedTuple, Optional

from memcached_cli.settings import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_READ_BUFFER_SIZE,
    DEFAULT_TIMEOUT_S,
)


class ServerAddress(NamedTuple):
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    # When set, connect to this unix domain socket instead of host:port
    path: Optional[str] = None

    @property
    def is_unix_socket(self) -> bool:
        return self.path is not None

    def __str__(self) -> str:
        if self.path is not None:
            return self.path
        elif ":" in self.host:
            return f"[{self.host}]:{self.port}"
        else:
            return f"{self.host}:{self.port}"


def _parse_port(port: str, text: str) -> int:
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid port in address {text!r}")
    return int(port)


def parse_address(text: Optional[str]) -> ServerAddress:
    """
    Build a ServerAddress out of user input:

    * None or "" -> 127.0.0.1:11211
    * "host" -> host:11211
    * "host:port" / "[::1]:port"
    * anything containing "/" -> unix socket path
    """
    if not text:
        return ServerAddress()
    if "/" in text:
        return ServerAddress(path=text)
    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep or not host:
            raise ValueError(f"Invalid address {text!r}")
        if not rest:
            return ServerAddress(host=host)
        if not rest.startswith(":"):
            raise ValueError(f"Invalid address {text!r}")
        return ServerAddress(host=host, port=_parse_port(rest[1:], text))
    if text.count(":") == 1:
        host, port = text.split(":")
        return ServerAddress(host=host or DEFAULT_HOST, port=_parse_port(port, text))
    # Bare hostname, or a bare IPv6 address without port
    return ServerAddress(host=text)


class ConnectionSettings(NamedTuple):
    """
    Connection and verbosity settings for a DataSource.

    log_wire replaces a global debug switch: when enabled every line
    sent and received is logged at DEBUG level.
    """

    connection_timeout: float = DEFAULT_TIMEOUT_S
    recv_timeout: Optional[float] = None
    no_delay: bool = True
    read_buffer_size: int = DEFAULT_READ_BUFFER_SIZE
    log_wire: bool = False


def socket_factory_builder(
    server_address: ServerAddress,
    settings: ConnectionSettings,
) -> Callable[[], socket.socket]:
    """
    Helper to generate a socket_builder with desired settings

    The Connection class requires a callback to generate a new
    socket. This provides a helper to build it for TCP or unix
    sockets, but you can create your own and add TLS, etc.
    """
    recv_timeout = (
        settings.recv_timeout
        if settings.recv_timeout is not None
        else settings.connection_timeout
    )

    def socket_builder() -> socket.socket:
        s: socket.socket
        if server_address.path is not None:
            s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                s.settimeout(settings.connection_timeout)
                s.connect(server_address.path)
            except Exception:
                s.close()
                raise
        else:
            # Tries every address the host resolves to, IPv4 or IPv6
            s = socket.create_connection(
                (server_address.host, server_address.port),
                timeout=settings.connection_timeout,
            )
        try:
            if recv_timeout != settings.connection_timeout:
                s.settimeout(recv_timeout)
            if settings.no_delay and server_address.path is None:
                s.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except Exception:
            s.close()
            raise

        return s

    return socket_builder
