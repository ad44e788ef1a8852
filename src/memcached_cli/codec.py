"""
Encoding of requests and decoding of replies for the memcache text
protocol.

Encoding is pure: it maps a command and its arguments to the exact bytes
to write. Decoding reads from a connection exposing read_line() and
read_exact(), consuming exactly one logical reply.
"""
from typing import List, Optional, Protocol, Tuple, Union

from memcached_cli.errors import (
    FramingError,
    InvalidKey,
    InvalidValue,
    MemcacheClientError,
    MemcacheError,
    MemcacheServerError,
    MemcacheUnknownCommandError,
)
from memcached_cli.protocol import (
    END,
    ENDL,
    SPACE,
    VERSION,
    ClientError,
    Command,
    Deleted,
    Exists,
    NotFound,
    NotStored,
    Ok,
    ServerError,
    StatusResponse,
    StorageCommand,
    Stored,
    UnknownCommand,
    UnknownReply,
    ValueHeader,
)
from memcached_cli.settings import MAX_FLAGS, MAX_KEY_SIZE, MAX_VALUE_SIZE

Arg = Union[str, bytes, int]

_STATUS_RESPONSES = {
    b"OK": Ok(),
    b"STORED": Stored(),
    b"NOT_STORED": NotStored(),
    b"EXISTS": Exists(),
    b"DELETED": Deleted(),
    b"NOT_FOUND": NotFound(),
    b"ERROR": UnknownCommand(),
}
CLIENT_ERROR = b"CLIENT_ERROR"
SERVER_ERROR = b"SERVER_ERROR"

# Replies to `stats <sub>` commands that are made of a single status
# line instead of a block terminated by END, e.g. `stats detail on`.
SINGLE_LINE_REPLIES = (b"OK", b"RESET")


class LineReader(Protocol):
    def read_line(self) -> bytes:
        ...  # pragma: no cover

    def read_exact(self, size: int) -> bytes:
        ...  # pragma: no cover


def check_key(key: Union[str, bytes]) -> bytes:
    """
    Validate a key and return its wire representation. Keys must be
    non-empty, at most 250 bytes long, with no whitespace or control
    characters.
    """
    # Undoes the surrogateescape decoding of keys read from the server
    try:
        encoded_key = (
            key.encode(errors="surrogateescape")
            if isinstance(key, str)
            else bytes(key)
        )
    except UnicodeEncodeError:
        raise InvalidKey(f"Key can't be encoded: {key!r}") from None
    if not encoded_key:
        raise InvalidKey("Key must not be empty")
    if len(encoded_key) > MAX_KEY_SIZE:
        raise InvalidKey(f"Key is longer than {MAX_KEY_SIZE} bytes: {key!r}")
    if any(b <= 0x20 or b == 0x7F for b in encoded_key):
        raise InvalidKey(f"Key contains whitespace or control characters: {key!r}")
    return encoded_key


def _encode_arg(arg: Arg) -> bytes:
    if isinstance(arg, bytes):
        return arg
    elif isinstance(arg, int):
        return str(arg).encode("ascii")
    return arg.encode()


def encode(command: Union[Command, bytes], *args: Arg) -> bytes:
    """
    Build a single command line: the verb and its arguments separated by
    spaces, terminated by \\r\\n.
    """
    verb = command.value if isinstance(command, Command) else command
    return SPACE.join([verb, *(_encode_arg(arg) for arg in args)]) + ENDL


def encode_storage(
    command: StorageCommand,
    key: Union[str, bytes],
    value: bytes,
    flags: int = 0,
    expire: int = 0,
    cas: Optional[int] = None,
) -> bytes:
    """
    <command> <key> <flags> <exptime> <bytes> [<cas>]\\r\\n<data>\\r\\n
    """
    encoded_key = check_key(key)
    if not 0 <= flags <= MAX_FLAGS:
        raise InvalidValue(f"Flags must be an unsigned 32 bit integer: {flags}")
    if len(value) > MAX_VALUE_SIZE:
        raise InvalidValue(f"Value is longer than {MAX_VALUE_SIZE} bytes")
    args: List[Arg] = [encoded_key, flags, expire, len(value)]
    if command == StorageCommand.CAS:
        if cas is None or cas < 0:
            raise InvalidValue("A cas token is required for the cas command")
        args.append(cas)
    elif cas is not None:
        raise InvalidValue(f"A cas token can't be used with {command.name}")
    return encode(command.value, *args) + value + ENDL


def decode_status(line: bytes) -> StatusResponse:
    """
    Classify a single status line. Unknown replies are returned as
    UnknownReply so the caller decides what to do with them.
    """
    if (response := _STATUS_RESPONSES.get(line)) is not None:
        return response
    code, _, message = line.partition(SPACE)
    if code == CLIENT_ERROR:
        return ClientError(message.decode(errors="replace"))
    elif code == SERVER_ERROR:
        return ServerError(message.decode(errors="replace"))
    return UnknownReply(line)


def raise_on_error(status: StatusResponse, server: str = "") -> None:
    """
    Turn error statuses into exceptions, for commands whose result
    can't carry them.
    """
    if isinstance(status, UnknownCommand):
        raise MemcacheUnknownCommandError("Server replied ERROR")
    elif isinstance(status, ClientError):
        raise MemcacheClientError(status.message)
    elif isinstance(status, ServerError):
        raise MemcacheServerError(server, status.message)


def decode_value_block(
    conn: LineReader,
    key: Optional[bytes] = None,
    server: str = "",
) -> Union[Tuple[ValueHeader, bytes], NotFound]:
    """
    Decode the reply to a single key get/gets:

    END -> NotFound
    VALUE <key> <flags> <bytes> [<cas>]\\r\\n<data>\\r\\nEND -> (header, data)

    Anything else in between is a FramingError, except error statuses
    in place of the first line, which are raised as such.
    """
    line = conn.read_line()
    if line == END:
        return NotFound()
    if not line.startswith(b"VALUE "):
        status = decode_status(line)
        raise_on_error(status, server)
        raise FramingError(f"Expected VALUE or END, got {line[:64]!r}")

    try:
        header = ValueHeader.from_header(line)
    except ValueError as e:
        raise FramingError(f"Invalid value header {line[:64]!r}") from e
    if key is not None and header.key.encode(errors="surrogateescape") != key:
        raise FramingError(
            f"Got value for key {header.key!r}, expected {key!r}"
        )

    data = conn.read_exact(header.size)
    endl = conn.read_exact(len(ENDL))
    if endl != ENDL:
        raise FramingError(
            f"Error parsing value: Expected {header.size} bytes, "
            f"terminated in \\r\\n, got {data + endl!r}"
        )
    line = conn.read_line()
    if line != END:
        raise FramingError(f"Expected END after value, got {line[:64]!r}")
    return header, data


def decode_lines(conn: LineReader, server: str = "") -> List[bytes]:
    """
    Decode a multi-line informational reply (stats and friends): lines
    up to END, which is not returned. A single OK/RESET line is a
    complete reply on its own. Error statuses are raised.
    """
    lines: List[bytes] = []
    while True:
        line = conn.read_line()
        if line == END:
            return lines
        if not lines and line in SINGLE_LINE_REPLIES:
            return [line]
        if line == b"ERROR" or line.startswith((CLIENT_ERROR, SERVER_ERROR)):
            raise_on_error(decode_status(line), server)
        lines.append(line)


def decode_version(line: bytes, server: str = "") -> str:
    """
    VERSION <text> -> <text>
    """
    code, _, version = line.partition(SPACE)
    if code != VERSION:
        raise_on_error(decode_status(line), server)
        raise MemcacheError(f"Unexpected response for version command: {line!r}")
    return version.decode(errors="replace")
