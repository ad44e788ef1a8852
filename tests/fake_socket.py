import socket
from typing import Callable, List, Optional, Union

from pytest_mock import MockerFixture

# What the fake server does on each recv_into: send bytes or raise
ServerData = Union[bytes, BaseException]


def recv_into_mock(datas: List[ServerData]) -> Callable[[memoryview], int]:
    def recv_into(buffer: memoryview) -> int:
        if not datas:
            # Server closed the connection
            return 0
        data = datas[0]
        if isinstance(data, BaseException):
            datas.pop(0)
            raise data
        data_size = len(data)
        buffer_size = len(buffer)
        if data_size > buffer_size:
            read = buffer_size
            buffer[:] = data[0:buffer_size]
            datas[0] = data[buffer_size:]
        else:
            read = data_size
            buffer[0:data_size] = data
            datas.pop(0)
        return read

    return recv_into


def fake_server_socket(
    mocker: MockerFixture,
    datas: List[ServerData],
    sent: Optional[List[bytes]] = None,
) -> socket.socket:
    """
    A socket mock replaying `datas` as the server replies. Data written
    to it is appended to `sent`.
    """
    fake_socket = mocker.MagicMock(spec=socket.socket)
    fake_socket.recv_into.side_effect = recv_into_mock(datas)
    if sent is not None:
        fake_socket.sendall.side_effect = sent.append
    return fake_socket
