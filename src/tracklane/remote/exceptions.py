"""Custom exceptions for the remote backend client."""


class RemoteBackendError(Exception):
    """Base exception for remote backend errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteNotFoundError(RemoteBackendError):
    """The requested row does not exist on the backend."""
