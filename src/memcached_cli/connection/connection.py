import itertools
import logging
import socket
from typing import Callable, NamedTuple, Optional

from memcached_cli.configuration import (
    ConnectionSettings,
    ServerAddress,
    socket_factory_builder,
)
from memcached_cli.connection.memcache_socket import MemcacheSocket
from memcached_cli.errors import ConnectError, ConnectionClosed
from memcached_cli.settings import DEFAULT_READ_BUFFER_SIZE

_log: logging.Logger = logging.getLogger(__name__)


class ConnectionCounters(NamedTuple):
    # Whether the connection is currently established
    connected: bool
    # Total # of connections created. Each reconnect adds one.
    total_created: int
    # Total # of connection or socket errors
    total_errors: int


class Connection:
    """
    Owns the single socket to one memcache server.

    The connection is either fully connected (a usable MemcacheSocket)
    or fully closed (no socket at all). Any I/O failure closes it, and
    it has to be connect()ed again before being used.
    """

    def __init__(
        self,
        server_address: ServerAddress,
        socket_factory_fn: Callable[[], socket.socket],
        read_buffer_size: int = DEFAULT_READ_BUFFER_SIZE,
    ) -> None:
        self.server_address = server_address
        self._socket_factory_fn = socket_factory_fn
        self._read_buffer_size = read_buffer_size
        self._socket: Optional[MemcacheSocket] = None
        self._created_counter: itertools.count[int] = itertools.count(start=1)
        self._created = 0
        self._errors_counter: itertools.count[int] = itertools.count(start=1)
        self._errors = 0

    @classmethod
    def open(
        cls,
        server_address: ServerAddress,
        settings: Optional[ConnectionSettings] = None,
    ) -> "Connection":
        settings = settings or ConnectionSettings()
        connection = cls(
            server_address,
            socket_factory_fn=socket_factory_builder(server_address, settings),
            read_buffer_size=settings.read_buffer_size,
        )
        connection.connect()
        return connection

    def __str__(self) -> str:
        state = "connected" if self.connected else "closed"
        return f"<Connection {self.server_address} {state}>"

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def get_counters(self) -> ConnectionCounters:
        return ConnectionCounters(
            connected=self.connected,
            total_created=self._created,
            total_errors=self._errors,
        )

    def connect(self) -> None:
        """
        (Re)establish the connection, dropping the current one if any.
        """
        self.close()
        try:
            conn = self._socket_factory_fn()
        except Exception as e:
            _log.warning(
                f"Error connecting to memcache at {self.server_address}",
                exc_info=True,
            )
            self._errors = next(self._errors_counter)
            raise ConnectError(
                str(self.server_address),
                f"Can't connect to memcache server at {self.server_address}: {e}",
            ) from e

        self._created = next(self._created_counter)
        self._socket = MemcacheSocket(conn, self._read_buffer_size)

    def close(self) -> None:
        memcache_socket, self._socket = self._socket, None
        if memcache_socket is not None:
            try:
                memcache_socket.close()
            except OSError:
                _log.debug("Error closing socket", exc_info=True)

    def _get_socket(self) -> MemcacheSocket:
        if self._socket is None:
            raise ConnectionClosed(f"Not connected to {self.server_address}")
        return self._socket

    def _on_error(self, error: ConnectionClosed) -> None:
        _log.warning(f"Connection to {self.server_address} lost: {error}")
        self._errors = next(self._errors_counter)
        self.close()

    def has_pending_data(self) -> bool:
        return self._socket is not None and self._socket.has_pending_data()

    def sendall(self, data: bytes) -> None:
        memcache_socket = self._get_socket()
        try:
            memcache_socket.sendall(data)
        except ConnectionClosed as e:
            self._on_error(e)
            raise

    def send_line(self, line: bytes) -> None:
        memcache_socket = self._get_socket()
        try:
            memcache_socket.send_line(line)
        except ConnectionClosed as e:
            self._on_error(e)
            raise

    def read_line(self) -> bytes:
        memcache_socket = self._get_socket()
        try:
            return memcache_socket.read_line()
        except ConnectionClosed as e:
            self._on_error(e)
            raise

    def read_exact(self, size: int) -> bytes:
        memcache_socket = self._get_socket()
        try:
            return memcache_socket.read_exact(size)
        except ConnectionClosed as e:
            self._on_error(e)
            raise
