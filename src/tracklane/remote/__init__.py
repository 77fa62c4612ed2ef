"""Remote backend client for a hosted issue database."""

from tracklane.remote.client import RemoteBackend
from tracklane.remote.exceptions import RemoteBackendError, RemoteNotFoundError

__all__ = ["RemoteBackend", "RemoteBackendError", "RemoteNotFoundError"]
