import logging
import socket
from typing import Callable, Dict, List, Optional, TypeVar, Union

from memcached_cli.codec import (
    LineReader,
    check_key,
    decode_lines,
    decode_status,
    decode_value_block,
    decode_version,
    encode,
    encode_storage,
)
from memcached_cli.configuration import (
    ConnectionSettings,
    ServerAddress,
    parse_address,
    socket_factory_builder,
)
from memcached_cli.connection.connection import Connection, ConnectionCounters
from memcached_cli.errors import (
    ConnectError,
    ConnectionClosed,
    DataSourceError,
    FramingError,
    InvalidValue,
    MemcacheError,
)
from memcached_cli.events.reconnect_event import ReconnectEvent
from memcached_cli.item import Item
from memcached_cli.metrics.base import (
    COMMANDS,
    DATA_SOURCE_METRICS,
    ERRORS,
    RECONNECTS,
    BaseMetricsCollector,
)
from memcached_cli.protocol import (
    ENDL,
    ClientError,
    Command,
    DeleteResponse,
    Deleted,
    Exists,
    NotFound,
    NotStored,
    ServerError,
    StatusResponse,
    StorageCommand,
    Stored,
    StoreResponse,
)
from memcached_cli.settings import DEFAULT_CACHEDUMP_SIZE

_log: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T")

# Wire traces are cut to this many bytes
_MAX_TRACE_SIZE = 256


class _WireTrace:
    """
    Logs every line and payload read from the connection.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def read_line(self) -> bytes:
        line = self._conn.read_line()
        _log.debug(f"{self._conn.server_address} >> {line[:_MAX_TRACE_SIZE]!r}")
        return line

    def read_exact(self, size: int) -> bytes:
        data = self._conn.read_exact(size)
        _log.debug(f"{self._conn.server_address} >> {data[:_MAX_TRACE_SIZE]!r}")
        return data


class DataSource:
    """
    A session with one memcache server over a single connection, with
    one command in flight at a time. Not meant to be shared between
    threads: use one DataSource per worker.

    The connection is established on first use. If it is lost during
    an operation, it is re-established once and the operation retried
    once. Writes are not retried once the request has been fully sent,
    since the server may have applied them already: that case raises
    DataSourceError and the caller has to find out the outcome.
    """

    def __init__(
        self,
        server_address: ServerAddress,
        settings: Optional[ConnectionSettings] = None,
        socket_factory_fn: Optional[Callable[[], socket.socket]] = None,
        metrics_collector: Optional[BaseMetricsCollector] = None,
    ) -> None:
        self.server_address = server_address
        self._settings: ConnectionSettings = settings or ConnectionSettings()
        self._connection = Connection(
            server_address,
            socket_factory_fn=socket_factory_fn
            or socket_factory_builder(server_address, self._settings),
            read_buffer_size=self._settings.read_buffer_size,
        )
        self._metrics_collector = metrics_collector
        if metrics_collector is not None:
            metrics_collector.init_metrics(DATA_SOURCE_METRICS)
        self.on_reconnect = ReconnectEvent()

    @classmethod
    def connect(
        cls,
        address: Union[str, ServerAddress, None] = None,
        timeout: Optional[float] = None,
        log_wire: bool = False,
        metrics_collector: Optional[BaseMetricsCollector] = None,
    ) -> "DataSource":
        """
        Build a DataSource and connect right away, raising ConnectError
        if the server can't be reached.
        """
        server_address = (
            address if isinstance(address, ServerAddress) else parse_address(address)
        )
        settings = ConnectionSettings(log_wire=log_wire)
        if timeout is not None:
            settings = settings._replace(connection_timeout=timeout)
        data_source = cls(
            server_address,
            settings=settings,
            metrics_collector=metrics_collector,
        )
        data_source._connection.connect()
        return data_source

    def __enter__(self) -> "DataSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._connection.close()

    def get_counters(self) -> ConnectionCounters:
        return self._connection.get_counters()

    def _metric_inc(self, key: str, labels: Optional[Dict[str, str]] = None) -> None:
        if self._metrics_collector is not None:
            self._metrics_collector.metric_inc(key, labels=labels)

    def _get_connection(self) -> Connection:
        if not self._connection.connected:
            self._connection.connect()
        elif self._connection.has_pending_data():
            self._connection.close()
            raise FramingError(
                f"Unread data from a previous reply on {self.server_address}"
            )
        return self._connection

    def _round_trip(
        self,
        request: bytes,
        read_reply: Callable[[LineReader], T],
    ) -> T:
        conn = self._get_connection()
        reader: LineReader = conn
        if self._settings.log_wire:
            _log.debug(f"{self.server_address} << {request[:_MAX_TRACE_SIZE]!r}")
            reader = _WireTrace(conn)
        request_sent = False
        try:
            conn.sendall(request)
            request_sent = True
            return read_reply(reader)
        except ConnectionClosed as e:
            e.request_sent = request_sent
            raise
        except FramingError:
            # The position in the stream is unknown from here on
            _log.warning(f"Framing error reading from {self.server_address}")
            conn.close()
            raise
        except MemcacheError:
            # Error replies are complete, the stream is still in sync
            raise
        except BaseException:
            # Interrupted halfway through a request or reply
            _log.warning(
                f"Closing connection to {self.server_address}: "
                "interrupted in the middle of a command"
            )
            conn.close()
            raise

    def _exec(
        self,
        command_name: str,
        request: bytes,
        read_reply: Callable[[LineReader], T],
        idempotent: bool = True,
    ) -> T:
        self._metric_inc(COMMANDS, labels={"command": command_name})
        try:
            try:
                return self._round_trip(request, read_reply)
            except ConnectionClosed as e:
                if e.request_sent and not idempotent:
                    raise DataSourceError(
                        str(self.server_address),
                        f"Connection lost after sending {command_name}, "
                        "it may or may not have been applied",
                    ) from e
                _log.warning(
                    f"Connection to {self.server_address} lost during "
                    f"{command_name}, reconnecting"
                )

            self._metric_inc(RECONNECTS)
            try:
                self._connection.connect()
                self.on_reconnect(self.server_address)
                return self._round_trip(request, read_reply)
            except (ConnectError, ConnectionClosed) as e:
                raise DataSourceError(
                    str(self.server_address),
                    f"{command_name} failed after reconnecting: {e}",
                ) from e
        except MemcacheError as e:
            self._metric_inc(ERRORS, labels={"kind": type(e).__name__})
            raise

    def _read_status(self, conn: LineReader) -> StatusResponse:
        return decode_status(conn.read_line())

    def _query(self, command_name: str, request: bytes) -> List[str]:
        server = str(self.server_address)
        lines = self._exec(
            command_name,
            request,
            lambda conn: decode_lines(conn, server),
        )
        return [line.decode(errors="surrogateescape") for line in lines]

    def query(self, command: Union[str, bytes]) -> List[str]:
        """
        Send a raw stats command line and return the reply lines,
        without the END terminator.

        Only the stats family is accepted: other commands don't reply
        with END-terminated lines, and some of them are not safe to
        resend after a reconnect.
        """
        raw = command.encode() if isinstance(command, str) else bytes(command)
        raw = raw.rstrip(ENDL)
        if not raw.strip() or b"\r" in raw or b"\n" in raw:
            raise InvalidValue(f"Not a single command line: {command!r}")
        if raw.split()[0] != Command.STATS.value:
            raise InvalidValue(f"Only stats commands can be queried: {command!r}")
        return self._query("query", raw + ENDL)

    def _fetch(self, command: Command, key: str) -> Union[Item, NotFound]:
        encoded_key = check_key(key)
        server = str(self.server_address)
        result = self._exec(
            command.name.lower(),
            encode(command, encoded_key),
            lambda conn: decode_value_block(conn, key=encoded_key, server=server),
        )
        if isinstance(result, NotFound):
            return result
        header, data = result
        return Item.from_get_reply(header, data)

    def get(self, key: str) -> Union[Item, NotFound]:
        return self._fetch(Command.GET, key)

    def gets(self, key: str) -> Union[Item, NotFound]:
        """
        Same as get, but the Item carries the cas token
        """
        return self._fetch(Command.GETS, key)

    def store(
        self,
        command: StorageCommand,
        key: str,
        value: Union[str, bytes],
        flags: int = 0,
        expire: int = 0,
        cas: Optional[int] = None,
    ) -> StoreResponse:
        data = value.encode() if isinstance(value, str) else bytes(value)
        request = encode_storage(command, key, data, flags, expire, cas)
        result = self._exec(
            command.name.lower(),
            request,
            self._read_status,
            idempotent=False,
        )
        if not isinstance(
            result, (Stored, NotStored, Exists, NotFound, ClientError, ServerError)
        ):
            raise MemcacheError(
                f"Unexpected response for {command.name} command: {result}"
            )
        return result

    def set(
        self,
        key: str,
        value: Union[str, bytes],
        flags: int = 0,
        expire: int = 0,
    ) -> StoreResponse:
        return self.store(StorageCommand.SET, key, value, flags=flags, expire=expire)

    def cas(
        self,
        key: str,
        value: Union[str, bytes],
        cas: int,
        flags: int = 0,
        expire: int = 0,
    ) -> StoreResponse:
        return self.store(
            StorageCommand.CAS, key, value, flags=flags, expire=expire, cas=cas
        )

    def delete(self, key: str) -> DeleteResponse:
        request = encode(Command.DELETE, check_key(key))
        result = self._exec("delete", request, self._read_status, idempotent=False)
        if not isinstance(result, (Deleted, NotFound, ClientError, ServerError)):
            raise MemcacheError(f"Unexpected response for delete command: {result}")
        return result

    def version(self) -> str:
        server = str(self.server_address)
        return self._exec(
            "version",
            encode(Command.VERSION),
            lambda conn: decode_version(conn.read_line(), server),
        )

    def stats(self, subcommand: Optional[str] = None) -> List[str]:
        if subcommand is None:
            return self._query("stats", encode(Command.STATS))
        if not subcommand.strip() or any(c in subcommand for c in "\r\n"):
            raise InvalidValue(f"Invalid stats subcommand {subcommand!r}")
        return self._query("stats", encode(Command.STATS, subcommand.strip()))

    def settings(self) -> List[str]:
        return self._query("stats", encode(Command.STATS, "settings"))

    def cachedump(
        self,
        slab_class: int,
        limit: int = DEFAULT_CACHEDUMP_SIZE,
    ) -> List[str]:
        if slab_class < 1:
            raise InvalidValue(f"Invalid slab class {slab_class}")
        if limit < 0:
            raise InvalidValue(f"Invalid cachedump limit {limit}")
        return self._query("stats", encode(Command.STATS, "cachedump", slab_class, limit))

    def detail_dump(self) -> List[str]:
        return self._query("stats", encode(Command.STATS, "detail", "dump"))

    def detail(self, mode: str) -> List[str]:
        """
        Turn on/off the collection of per key prefix statistics
        reported by detail_dump()
        """
        if mode not in ("on", "off"):
            raise InvalidValue(f"Mode must be 'on' or 'off', got {mode!r}")
        return self._query("stats", encode(Command.STATS, "detail", mode))
