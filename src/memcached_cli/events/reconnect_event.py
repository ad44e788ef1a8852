from typing import Callable, List

from memcached_cli.configuration import ServerAddress


class ReconnectEvent(object):
    """
    Handlers are called with the server address every time a lost
    connection has been re-established.
    """

    def __init__(self) -> None:
        self._eventhandlers: List[Callable[[ServerAddress], None]] = []

    def __iadd__(self, handler: Callable[[ServerAddress], None]) -> "ReconnectEvent":
        self._eventhandlers.append(handler)
        return self

    def __isub__(self, handler: Callable[[ServerAddress], None]) -> "ReconnectEvent":
        self._eventhandlers.remove(handler)
        return self

    def __call__(self, server_address: ServerAddress) -> None:
        for eventhandler in self._eventhandlers:
            eventhandler(server_address)
