__version__ = "1.0.0"

from memcached_cli.configuration import (
    ConnectionSettings,
    ServerAddress,
    parse_address,
    socket_factory_builder,
)
from memcached_cli.connection.connection import Connection, ConnectionCounters
from memcached_cli.data_source import DataSource
from memcached_cli.errors import (
    ConnectError,
    ConnectionClosed,
    DataSourceError,
    FramingError,
    InvalidKey,
    InvalidValue,
    MemcacheClientError,
    MemcacheError,
    MemcacheServerError,
    MemcacheUnknownCommandError,
)
from memcached_cli.events.reconnect_event import ReconnectEvent
from memcached_cli.interfaces.data_source_api import DataSourceApi
from memcached_cli.item import Item
from memcached_cli.operations import Operation, execute
from memcached_cli.protocol import (
    ClientError,
    Deleted,
    Exists,
    NotFound,
    NotStored,
    Ok,
    ServerError,
    StorageCommand,
    Stored,
    UnknownCommand,
    UnknownReply,
)
