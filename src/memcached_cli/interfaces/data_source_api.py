from typing import List, Optional, Protocol, Union

from memcached_cli.item import Item
from memcached_cli.protocol import (
    DeleteResponse,
    NotFound,
    StorageCommand,
    StoreResponse,
)


class DataSourceApi(Protocol):
    """
    What a command dispatcher (CLI, script) may use from a DataSource.
    """

    def query(self, command: Union[str, bytes]) -> List[str]:
        ...  # pragma: no cover

    def get(self, key: str) -> Union[Item, NotFound]:
        ...  # pragma: no cover

    def gets(self, key: str) -> Union[Item, NotFound]:
        ...  # pragma: no cover

    def set(
        self,
        key: str,
        value: Union[str, bytes],
        flags: int = 0,
        expire: int = 0,
    ) -> StoreResponse:
        ...  # pragma: no cover

    def store(
        self,
        command: StorageCommand,
        key: str,
        value: Union[str, bytes],
        flags: int = 0,
        expire: int = 0,
        cas: Optional[int] = None,
    ) -> StoreResponse:
        ...  # pragma: no cover

    def delete(self, key: str) -> DeleteResponse:
        ...  # pragma: no cover

    def version(self) -> str:
        ...  # pragma: no cover

    def stats(self, subcommand: Optional[str] = None) -> List[str]:
        ...  # pragma: no cover

    def settings(self) -> List[str]:
        ...  # pragma: no cover

    def cachedump(self, slab_class: int, limit: int = ...) -> List[str]:
        ...  # pragma: no cover

    def detail_dump(self) -> List[str]:
        ...  # pragma: no cover

    def detail(self, mode: str) -> List[str]:
        ...  # pragma: no cover
