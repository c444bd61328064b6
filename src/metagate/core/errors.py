"""Exceptions raised by metagate."""


class MetagateError(Exception):
    """Base class for metagate errors."""


class RequestMalformedError(MetagateError):
    """The request body is not a JSON object with a string ``query``."""


class StorageError(MetagateError):
    """A document store call failed (connection, timeout, bad response).

    Raised by store adapters and not caught by the metadata store; it
    reaches the caller as an error in the query envelope.
    """

    def __init__(self, message: str, index: str | None = None) -> None:
        super().__init__(message)
        self.index = index
