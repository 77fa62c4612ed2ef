"""REST API for Tracklane."""

from tracklane.api.app import create_app
from tracklane.api.models import APIResponse

__all__ = ["APIResponse", "create_app"]
