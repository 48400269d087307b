"""Transport adapter layer - abstracts over the HTTP client used for outbound calls."""

from crpt.adapters.transport.base import AbstractTransport, TransportResponse
from crpt.adapters.transport.factory import create_transport
from crpt.adapters.transport.httpx_transport import HttpxTransport

__all__ = [
    "AbstractTransport",
    "HttpxTransport",
    "TransportResponse",
    "create_transport",
]
