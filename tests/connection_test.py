import pytest
from pytest_mock import MockerFixture

from memcached_cli.configuration import ConnectionSettings, ServerAddress
from memcached_cli.connection.connection import Connection, ConnectionCounters
from memcached_cli.errors import ConnectError, ConnectionClosed

from fake_socket import fake_server_socket

SERVER = ServerAddress(host="1.1.1.1", port=11211)


def test_connect_on_demand(mocker: MockerFixture) -> None:
    fake_socket = fake_server_socket(mocker, [b"VERSION 1.6.21\r\n"])
    connection = Connection(SERVER, socket_factory_fn=lambda: fake_socket)
    assert not connection.connected
    with pytest.raises(ConnectionClosed, match="Not connected"):
        connection.send_line(b"version")

    connection.connect()
    assert connection.connected
    connection.send_line(b"version")
    fake_socket.sendall.assert_called_once_with(b"version\r\n")
    assert connection.read_line() == b"VERSION 1.6.21"
    assert str(connection) == "<Connection 1.1.1.1:11211 connected>"


def test_connect_error(mocker: MockerFixture) -> None:
    socket_factory = mocker.Mock(side_effect=ConnectionRefusedError("refused"))
    connection = Connection(SERVER, socket_factory_fn=socket_factory)
    with pytest.raises(ConnectError) as exc_info:
        connection.connect()
    assert exc_info.value.server == "1.1.1.1:11211"
    assert "1.1.1.1:11211" in str(exc_info.value)
    assert not connection.connected
    assert connection.get_counters() == ConnectionCounters(
        connected=False,
        total_created=0,
        total_errors=1,
    )


def test_io_error_closes(mocker: MockerFixture) -> None:
    fake_socket = fake_server_socket(mocker, [b"VALUE foo 0 10\r\n123"])
    connection = Connection(SERVER, socket_factory_fn=lambda: fake_socket)
    connection.connect()
    assert connection.read_line() == b"VALUE foo 0 10"
    with pytest.raises(ConnectionClosed):
        connection.read_exact(10)

    assert not connection.connected
    fake_socket.close.assert_called_once()
    with pytest.raises(ConnectionClosed):
        connection.read_line()

    assert connection.get_counters().total_errors == 1


def test_reconnect_replaces_socket(mocker: MockerFixture) -> None:
    first = fake_server_socket(mocker, [])
    second = fake_server_socket(mocker, [b"END\r\n"])
    socket_factory = mocker.Mock(side_effect=[first, second])
    connection = Connection(SERVER, socket_factory_fn=socket_factory)
    connection.connect()
    connection.connect()
    first.close.assert_called_once()
    assert connection.read_line() == b"END"
    assert connection.get_counters() == ConnectionCounters(
        connected=True,
        total_created=2,
        total_errors=0,
    )


def test_close(mocker: MockerFixture) -> None:
    fake_socket = fake_server_socket(mocker, [])
    connection = Connection(SERVER, socket_factory_fn=lambda: fake_socket)
    connection.connect()
    connection.close()
    connection.close()
    fake_socket.close.assert_called_once()
    assert not connection.connected
    assert not connection.has_pending_data()


def test_open(mocker: MockerFixture) -> None:
    socket_module = mocker.patch("memcached_cli.configuration.socket", autospec=True)
    connection = Connection.open(
        SERVER, ConnectionSettings(connection_timeout=2, recv_timeout=0.5)
    )
    assert connection.connected
    socket_module.create_connection.assert_called_once_with(
        ("1.1.1.1", 11211), timeout=2
    )
    s = socket_module.create_connection.return_value
    s.settimeout.assert_called_once_with(0.5)
    s.setsockopt.assert_called_once_with(
        socket_module.IPPROTO_TCP, socket_module.TCP_NODELAY, 1
    )
