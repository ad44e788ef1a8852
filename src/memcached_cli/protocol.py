from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from memcached_cli.settings import MAX_FLAGS, MAX_VALUE_SIZE

ENDL = b"\r\n"
ENDL_LEN = 2
SPACE = b" "

END = b"END"
VALUE = b"VALUE"
VERSION = b"VERSION"


class Command(Enum):
    GET = b"get"
    GETS = b"gets"  # get returning the cas token
    DELETE = b"delete"
    VERSION = b"version"
    STATS = b"stats"


class StorageCommand(Enum):
    SET = b"set"  # Default
    ADD = b"add"  # Store only if the item does NOT exist
    REPLACE = b"replace"  # Store only if the item already exists
    APPEND = b"append"  # Add data after the existing data
    PREPEND = b"prepend"  # Add data before the existing data
    CAS = b"cas"  # Store only if nobody updated it since it was fetched


@dataclass
class MemcacheResponse:
    __slots__ = ()


@dataclass
class Ok(MemcacheResponse):
    __slots__ = ()


@dataclass
class Stored(MemcacheResponse):
    __slots__ = ()


@dataclass
class NotStored(MemcacheResponse):
    __slots__ = ()


@dataclass
class Exists(MemcacheResponse):
    __slots__ = ()


@dataclass
class Deleted(MemcacheResponse):
    __slots__ = ()


@dataclass
class NotFound(MemcacheResponse):
    __slots__ = ()


@dataclass
class UnknownCommand(MemcacheResponse):
    """ERROR: the server did not recognize the command name"""

    __slots__ = ()


@dataclass
class ClientError(MemcacheResponse):
    __slots__ = ("message",)
    message: str


@dataclass
class ServerError(MemcacheResponse):
    __slots__ = ("message",)
    message: str


@dataclass
class UnknownReply(MemcacheResponse):
    __slots__ = ("raw",)
    raw: bytes


StatusResponse = Union[
    Ok,
    Stored,
    NotStored,
    Exists,
    Deleted,
    NotFound,
    UnknownCommand,
    ClientError,
    ServerError,
    UnknownReply,
]
StoreResponse = Union[Stored, NotStored, Exists, NotFound, ClientError, ServerError]
DeleteResponse = Union[Deleted, NotFound, ClientError, ServerError]


@dataclass
class ValueHeader:
    __slots__ = ("key", "flags", "size", "cas")
    key: str
    flags: int
    size: int
    cas: Optional[int]

    @classmethod
    def from_header(cls, header: bytes) -> "ValueHeader":
        """
        Parse `VALUE <key> <flags> <bytes> [<cas>]`
        """
        chunks = header.split()
        if len(chunks) not in (4, 5) or chunks[0] != VALUE:
            raise ValueError(f"Invalid header {header!r}")
        # Plain decimal digits only: int() would also take "+5" or "1_0"
        if not all(chunk.isdigit() for chunk in chunks[2:]):
            raise ValueError(f"Invalid header {header!r}")
        flags = int(chunks[2])
        size = int(chunks[3])
        if flags > MAX_FLAGS or size > MAX_VALUE_SIZE:
            raise ValueError(f"Invalid header {header!r}")
        return cls(
            key=chunks[1].decode(errors="surrogateescape"),
            flags=flags,
            size=size,
            cas=int(chunks[4]) if len(chunks) == 5 else None,
        )


Blob = Union[bytes, bytearray, memoryview]
