import socket

from memcached_cli.errors import ConnectionClosed
from memcached_cli.protocol import ENDL, ENDL_LEN
from memcached_cli.settings import DEFAULT_READ_BUFFER_SIZE


class MemcacheSocket:
    """
    Wraps a connected socket and offers the line and fixed-length
    framing used by the memcache text protocol.

    Received bytes are kept in an internal bytearray only until the
    line or the payload being assembled is complete. Since there is
    a single request in flight, anything still buffered when a new
    request is sent means the previous reply was not fully consumed:
    has_pending_data() lets the caller detect it instead of
    misattributing those bytes to the next reply.

    Every socket failure, including timeouts and the server closing
    the connection mid-reply, is raised as ConnectionClosed.
    """

    def __init__(
        self,
        conn: socket.socket,
        buffer_size: int = DEFAULT_READ_BUFFER_SIZE,
    ) -> None:
        self._conn = conn
        self._buffer_size = buffer_size
        self._recv_buf = bytearray(buffer_size)
        self._recv_view = memoryview(self._recv_buf)
        self._buf = bytearray()

    def __str__(self) -> str:
        return f"<MemcacheSocket {self._conn.fileno()}>"

    def close(self) -> None:
        self._conn.close()
        self._buf.clear()

    def has_pending_data(self) -> bool:
        return len(self._buf) > 0

    def _recv_into_buffer(self) -> None:
        try:
            read = self._conn.recv_into(self._recv_view)
        except OSError as e:
            # socket.timeout is an OSError too
            raise ConnectionClosed(f"Error reading from socket: {e}") from e
        if read <= 0:
            raise ConnectionClosed("Connection closed by the server")
        self._buf += self._recv_view[:read]

    def sendall(self, data: bytes) -> None:
        try:
            self._conn.sendall(data)
        except OSError as e:
            raise ConnectionClosed(f"Error writing to socket: {e}") from e

    def send_line(self, line: bytes) -> None:
        self.sendall(line + ENDL)

    def read_line(self) -> bytes:
        """
        Read up to the next \\r\\n, which is consumed but not returned
        """
        searched = 0
        endl_pos = self._buf.find(ENDL)
        while endl_pos < 0:
            # \r might be the last byte received so far
            searched = max(len(self._buf) - 1, 0)
            self._recv_into_buffer()
            endl_pos = self._buf.find(ENDL, searched)

        line = bytes(self._buf[:endl_pos])
        del self._buf[: endl_pos + ENDL_LEN]
        return line

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly `size` bytes, waiting for the socket if they
        haven't been received yet.
        """
        while len(self._buf) < size:
            self._recv_into_buffer()

        data = bytes(self._buf[:size])
        del self._buf[:size]
        return data
