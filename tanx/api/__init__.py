"""API clients for the tanX exchange."""

from .base import BaseAPIClient
from .private import TanxAPI

__all__ = ["BaseAPIClient", "TanxAPI"]
