class MemcacheError(Exception):
    pass


class ConnectError(MemcacheError):
    """Raised when a connection to the server can not be established."""

    def __init__(self, server: str, message: str) -> None:
        self.server = server
        super().__init__(message)


class ConnectionClosed(MemcacheError):
    """
    Raised on any I/O failure of an established connection: reset,
    timeout or EOF in the middle of a reply. `request_sent` tells if the
    whole request had been written before the failure.
    """

    def __init__(self, message: str, request_sent: bool = False) -> None:
        self.request_sent = request_sent
        super().__init__(message)


class FramingError(MemcacheError):
    """The reply did not follow the expected framing."""


class InvalidKey(MemcacheError, ValueError):
    pass


class InvalidValue(MemcacheError, ValueError):
    pass


class MemcacheClientError(MemcacheError):
    """Raised when the server answers CLIENT_ERROR <message>."""


class MemcacheUnknownCommandError(MemcacheClientError):
    """Raised when the server answers ERROR (nonexistent command)."""


class MemcacheServerError(MemcacheError):
    def __init__(self, server: str, message: str) -> None:
        self.server = server
        super().__init__(message)


class DataSourceError(MemcacheError):
    """
    An operation failed even after reconnecting, or failed in a way that
    makes retrying unsafe. The underlying error is chained as __cause__.
    """

    def __init__(self, server: str, message: str) -> None:
        self.server = server
        super().__init__(message)
