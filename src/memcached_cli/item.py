from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from memcached_cli.codec import check_key
from memcached_cli.errors import FramingError, InvalidValue
from memcached_cli.protocol import (
    DeleteResponse,
    NotFound,
    StorageCommand,
    StoreResponse,
    ValueHeader,
)
from memcached_cli.settings import DISPLAY_DATA_LENGTH, MAX_FLAGS

if TYPE_CHECKING:
    from memcached_cli.interfaces.data_source_api import DataSourceApi

NOT_ASCII = "(Not ASCII)"
TRUNCATION_MARKER = "...(the rest is skipped)"

# Printable ASCII but space, plus whitespace
_TEXT_LEADING_BYTES = frozenset(range(0x21, 0x7F)) | frozenset(b" \t\n\r\x0b\x0c")


@dataclass
class Item:
    """
    One cache entry, as read by get/gets or as built to be stored.

    `expire` is only known for items built locally: the server does not
    report it on reads. `cas` is only set when read with gets.
    """

    key: str
    value: bytes = b""
    flags: int = 0
    expire: int = 0
    cas: Optional[int] = None

    @property
    def length(self) -> int:
        return len(self.value)

    @classmethod
    def from_get_reply(cls, header: ValueHeader, data: bytes) -> "Item":
        if len(data) != header.size:
            raise FramingError(
                f"Value for {header.key!r} has {len(data)} bytes, "
                f"{header.size} declared"
            )
        return cls(
            key=header.key,
            value=bytes(data),
            flags=header.flags,
            cas=header.cas,
        )

    @classmethod
    def build_for_set(
        cls,
        key: str,
        value: Union[str, bytes],
        expire: Optional[int] = None,
        flags: Optional[int] = None,
    ) -> "Item":
        check_key(key)
        flags = flags or 0
        if not 0 <= flags <= MAX_FLAGS:
            raise InvalidValue(f"Flags must be an unsigned 32 bit integer: {flags}")
        return cls(
            key=key,
            value=value.encode() if isinstance(value, str) else bytes(value),
            flags=flags,
            expire=expire or 0,
        )

    def is_binary_safe(self) -> bool:
        """
        Whether the value can be shown as text without messing up the
        terminal. Only the leading byte is checked.
        """
        return not self.value or self.value[0] in _TEXT_LEADING_BYTES

    def value_text(self) -> str:
        if not self.is_binary_safe():
            return NOT_ASCII
        return self.value.decode(errors="replace")

    def display_value(self) -> str:
        if not self.is_binary_safe():
            return NOT_ASCII
        if self.length <= DISPLAY_DATA_LENGTH:
            return self.value.decode(errors="replace")
        head = self.value[: DISPLAY_DATA_LENGTH - 1]
        return head.decode(errors="replace") + TRUNCATION_MARKER

    def fields(self) -> List[Tuple[str, str]]:
        """
        (name, text) pairs to show the item, in display order. Unknown
        fields (cas when not read with gets) are left out.
        """
        fields = [
            ("key", self.key),
            ("value", self.display_value()),
            ("flags", str(self.flags)),
            ("length", str(self.length)),
        ]
        if self.cas is not None:
            fields.append(("cas", str(self.cas)))
        return fields

    @classmethod
    def find(
        cls,
        key: str,
        data_source: "DataSourceApi",
        cas: bool = False,
    ) -> Optional["Item"]:
        result = data_source.gets(key) if cas else data_source.get(key)
        if isinstance(result, NotFound):
            return None
        return result

    def save(
        self,
        data_source: "DataSourceApi",
        command: StorageCommand = StorageCommand.SET,
        value: Optional[Union[str, bytes]] = None,
        flags: Optional[int] = None,
        expire: Optional[int] = None,
    ) -> StoreResponse:
        if value is not None:
            self.value = value.encode() if isinstance(value, str) else bytes(value)
        if flags is not None:
            self.flags = flags
        if expire is not None:
            self.expire = expire
        return data_source.store(
            command,
            self.key,
            self.value,
            flags=self.flags,
            expire=self.expire,
            cas=self.cas if command == StorageCommand.CAS else None,
        )

    def remove(self, data_source: "DataSourceApi") -> DeleteResponse:
        return data_source.delete(self.key)
