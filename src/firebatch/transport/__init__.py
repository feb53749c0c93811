"""
Transport Layer.

Provides HTTP access to the database for the dispatcher.
"""

from firebatch.transport.interface import Transport, TransportResponse
from firebatch.transport.httpx_transport import HttpxTransport

__all__ = [
    "Transport",
    "TransportResponse",
    "HttpxTransport",
]
