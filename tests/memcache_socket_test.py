import socket

import pytest
from pytest_mock import MockerFixture

from memcached_cli.connection.memcache_socket import MemcacheSocket
from memcached_cli.errors import ConnectionClosed

from fake_socket import recv_into_mock


@pytest.fixture
def fake_socket(mocker: MockerFixture) -> socket.socket:
    return mocker.MagicMock(spec=socket.socket)


def test_read_line(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = recv_into_mock(
        [b"STORED\r\nDEL", b"ETED\r", b"\nEND\r\n"]
    )
    ms = MemcacheSocket(fake_socket)
    assert ms.read_line() == b"STORED"
    assert ms.has_pending_data()
    assert ms.read_line() == b"DELETED"
    assert ms.read_line() == b"END"
    assert not ms.has_pending_data()


def test_read_line_small_buffer(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = recv_into_mock(
        [b"STAT pid 1234\r\nSTAT uptime 10\r\nEND\r\n"]
    )
    ms = MemcacheSocket(fake_socket, buffer_size=4)
    assert ms.read_line() == b"STAT pid 1234"
    assert ms.read_line() == b"STAT uptime 10"
    assert ms.read_line() == b"END"


def test_read_exact(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = recv_into_mock(
        [b"VALUE foo 0 20\r\n12345", b"67890" * 3, b"\r\nEND\r\n"]
    )
    ms = MemcacheSocket(fake_socket, buffer_size=8)
    assert ms.read_line() == b"VALUE foo 0 20"
    assert ms.read_exact(20) == b"1234567890" * 2
    assert ms.read_exact(2) == b"\r\n"
    assert ms.read_line() == b"END"


def test_read_exact_value_with_endl(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = recv_into_mock([b"a\r\nb\r\n"])
    ms = MemcacheSocket(fake_socket)
    assert ms.read_exact(4) == b"a\r\nb"
    assert ms.read_exact(2) == b"\r\n"


def test_closed_mid_line(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = recv_into_mock([b"VALUE foo"])
    ms = MemcacheSocket(fake_socket)
    with pytest.raises(ConnectionClosed, match="closed by the server"):
        ms.read_line()


def test_closed_mid_value(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = recv_into_mock([b"123"])
    ms = MemcacheSocket(fake_socket)
    with pytest.raises(ConnectionClosed):
        ms.read_exact(10)


def test_timeout(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = socket.timeout("timed out")
    ms = MemcacheSocket(fake_socket)
    with pytest.raises(ConnectionClosed, match="timed out"):
        ms.read_line()


def test_send_line(
    fake_socket: socket.socket,
) -> None:
    ms = MemcacheSocket(fake_socket)
    ms.send_line(b"version")
    fake_socket.sendall.assert_called_once_with(b"version\r\n")


def test_send_error(
    fake_socket: socket.socket,
) -> None:
    fake_socket.sendall.side_effect = BrokenPipeError("Broken pipe")
    ms = MemcacheSocket(fake_socket)
    with pytest.raises(ConnectionClosed, match="Broken pipe"):
        ms.sendall(b"version\r\n")


def test_close(
    fake_socket: socket.socket,
) -> None:
    fake_socket.recv_into.side_effect = recv_into_mock([b"END\r\nEXTRA"])
    ms = MemcacheSocket(fake_socket, buffer_size=100)
    ms.read_line()
    assert ms.has_pending_data()
    ms.close()
    fake_socket.close.assert_called_once()
    assert not ms.has_pending_data()
