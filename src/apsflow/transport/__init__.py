"""Transport implementations."""

from .base import Credentials, Transport
from .httpx_transport import HttpxTransport
from .mock import MockTransport

__all__ = [
    "Credentials",
    "HttpxTransport",
    "MockTransport",
    "Transport",
]
