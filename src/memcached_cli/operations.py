"""
The operations a command dispatcher can run against a DataSource.

Each Operation has exactly one handler. Handlers take the arguments as
typed on a command line (strings) and return structured results,
leaving any rendering to the caller. Adding an operation means adding
an enum member and its handler.
"""
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from memcached_cli.errors import InvalidValue
from memcached_cli.interfaces.data_source_api import DataSourceApi
from memcached_cli.item import Item
from memcached_cli.protocol import DeleteResponse, StoreResponse
from memcached_cli.settings import DEFAULT_CACHEDUMP_SIZE


class Operation(Enum):
    VERSION = "version"
    STATS = "stats"
    SETTINGS = "settings"
    CACHEDUMP = "cachedump"
    DETAILDUMP = "detaildump"
    DETAIL = "detail"
    GET = "get"
    SET = "set"
    DELETE = "delete"


def _check_args(
    operation: Operation,
    args: Sequence[str],
    required: int,
    optional: int = 0,
) -> None:
    if not required <= len(args) <= required + optional:
        raise InvalidValue(
            f"{operation.value} takes {required} to {required + optional} "
            f"arguments, got {len(args)}"
        )


def _int_arg(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidValue(f"{name} must be an integer, got {value!r}") from None


def _version(data_source: DataSourceApi, args: Sequence[str]) -> str:
    _check_args(Operation.VERSION, args, 0)
    return data_source.version()


def _stats(data_source: DataSourceApi, args: Sequence[str]) -> List[str]:
    _check_args(Operation.STATS, args, 0)
    return data_source.stats()


def _settings(data_source: DataSourceApi, args: Sequence[str]) -> List[str]:
    _check_args(Operation.SETTINGS, args, 0)
    return data_source.settings()


def _cachedump(data_source: DataSourceApi, args: Sequence[str]) -> List[str]:
    _check_args(Operation.CACHEDUMP, args, 1, 1)
    slab_class = _int_arg("slab class", args[0])
    limit = _int_arg("limit", args[1]) if len(args) > 1 else DEFAULT_CACHEDUMP_SIZE
    return data_source.cachedump(slab_class, limit)


def _detaildump(data_source: DataSourceApi, args: Sequence[str]) -> List[str]:
    _check_args(Operation.DETAILDUMP, args, 0)
    return data_source.detail_dump()


def _detail(data_source: DataSourceApi, args: Sequence[str]) -> List[str]:
    _check_args(Operation.DETAIL, args, 1)
    return data_source.detail(args[0])


def _get(data_source: DataSourceApi, args: Sequence[str]) -> Optional[Item]:
    _check_args(Operation.GET, args, 1)
    return Item.find(args[0], data_source)


def _set(data_source: DataSourceApi, args: Sequence[str]) -> StoreResponse:
    # set <KEY> <VALUE> [<EXPIRE> [<FLAGS>]]
    _check_args(Operation.SET, args, 2, 2)
    item = Item.build_for_set(
        key=args[0],
        value=args[1],
        expire=_int_arg("expire", args[2]) if len(args) > 2 else None,
        flags=_int_arg("flags", args[3]) if len(args) > 3 else None,
    )
    return item.save(data_source)


def _delete(data_source: DataSourceApi, args: Sequence[str]) -> DeleteResponse:
    _check_args(Operation.DELETE, args, 1)
    return Item(key=args[0]).remove(data_source)


_HANDLERS: Dict[Operation, Callable[[DataSourceApi, Sequence[str]], Any]] = {
    Operation.VERSION: _version,
    Operation.STATS: _stats,
    Operation.SETTINGS: _settings,
    Operation.CACHEDUMP: _cachedump,
    Operation.DETAILDUMP: _detaildump,
    Operation.DETAIL: _detail,
    Operation.GET: _get,
    Operation.SET: _set,
    Operation.DELETE: _delete,
}


def execute(
    data_source: DataSourceApi,
    operation: Operation,
    *args: str,
) -> Union[str, List[str], Optional[Item], StoreResponse, DeleteResponse]:
    return _HANDLERS[operation](data_source, args)
