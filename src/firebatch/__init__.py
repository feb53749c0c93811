"""
firebatch

A batching client for the Firebase Realtime Database REST API.
Logical read/write operations are sent together as concurrent HTTP
requests, and transient server failures are retried with exponential
backoff.
"""

__version__ = "0.1.0"

from firebatch.core.connection import Connection
from firebatch.core.request import LogicalRequest, RequestMethod
from firebatch.database import Database, get_database_by_url
from firebatch.errors import (
    AuthTokenError,
    BatchCrashError,
    DatabaseError,
    FirebatchError,
    TransportError,
)
from firebatch.keys import encode_as_firebase_key

__all__ = [
    "Connection",
    "LogicalRequest",
    "RequestMethod",
    "Database",
    "get_database_by_url",
    "AuthTokenError",
    "BatchCrashError",
    "DatabaseError",
    "FirebatchError",
    "TransportError",
    "encode_as_firebase_key",
]
