import pytest
from pytest_mock import MockerFixture

from memcached_cli.errors import InvalidValue
from memcached_cli.interfaces.data_source_api import DataSourceApi
from memcached_cli.item import Item
from memcached_cli.operations import Operation, execute
from memcached_cli.protocol import Deleted, NotFound, StorageCommand, Stored


@pytest.fixture
def data_source(mocker: MockerFixture) -> DataSourceApi:
    return mocker.MagicMock(spec=DataSourceApi)


def test_every_operation_has_a_handler(data_source: DataSourceApi) -> None:
    for operation in Operation:
        assert Operation(operation.value) is operation
    execute(data_source, Operation.VERSION)
    execute(data_source, Operation.STATS)
    execute(data_source, Operation.SETTINGS)
    execute(data_source, Operation.CACHEDUMP, "1")
    execute(data_source, Operation.DETAILDUMP)
    execute(data_source, Operation.DETAIL, "on")
    execute(data_source, Operation.GET, "k")
    execute(data_source, Operation.SET, "k", "v")
    execute(data_source, Operation.DELETE, "k")


def test_version(data_source: DataSourceApi) -> None:
    data_source.version.return_value = "1.6.21"
    assert execute(data_source, Operation.VERSION) == "1.6.21"


def test_stats(data_source: DataSourceApi) -> None:
    data_source.stats.return_value = ["STAT pid 1"]
    assert execute(data_source, Operation.STATS) == ["STAT pid 1"]
    data_source.stats.assert_called_once_with()


def test_cachedump(data_source: DataSourceApi) -> None:
    execute(data_source, Operation.CACHEDUMP, "3")
    data_source.cachedump.assert_called_once_with(3, 20)

    data_source.cachedump.reset_mock()
    execute(data_source, Operation.CACHEDUMP, "1", "10")
    data_source.cachedump.assert_called_once_with(1, 10)

    with pytest.raises(InvalidValue, match="slab class must be an integer"):
        execute(data_source, Operation.CACHEDUMP, "one")
    with pytest.raises(InvalidValue):
        execute(data_source, Operation.CACHEDUMP)


def test_detail(data_source: DataSourceApi) -> None:
    data_source.detail.return_value = ["OK"]
    assert execute(data_source, Operation.DETAIL, "off") == ["OK"]
    data_source.detail.assert_called_once_with("off")
    with pytest.raises(InvalidValue):
        execute(data_source, Operation.DETAIL)


def test_get(data_source: DataSourceApi) -> None:
    item = Item(key="mykey1", value=b"MyValue1")
    data_source.get.return_value = item
    assert execute(data_source, Operation.GET, "mykey1") is item

    data_source.get.return_value = NotFound()
    assert execute(data_source, Operation.GET, "mykey1") is None

    with pytest.raises(InvalidValue):
        execute(data_source, Operation.GET)


def test_set(data_source: DataSourceApi) -> None:
    data_source.store.return_value = Stored()
    assert execute(data_source, Operation.SET, "mykey1", "MyValue1") == Stored()
    data_source.store.assert_called_once_with(
        StorageCommand.SET, "mykey1", b"MyValue1", flags=0, expire=0, cas=None
    )

    data_source.store.reset_mock()
    execute(data_source, Operation.SET, "mykey3", "MyValue3", "120", "1")
    data_source.store.assert_called_once_with(
        StorageCommand.SET, "mykey3", b"MyValue3", flags=1, expire=120, cas=None
    )

    with pytest.raises(InvalidValue, match="expire must be an integer"):
        execute(data_source, Operation.SET, "k", "v", "never")
    with pytest.raises(InvalidValue):
        execute(data_source, Operation.SET, "k")


def test_delete(data_source: DataSourceApi) -> None:
    data_source.delete.return_value = Deleted()
    assert execute(data_source, Operation.DELETE, "mykey1") == Deleted()
    data_source.delete.assert_called_once_with("mykey1")
