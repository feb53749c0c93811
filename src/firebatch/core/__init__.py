"""
Core client components.

This module contains the request pipeline: normalization, HTTP request
building, dispatching, response classification and retrying.
"""

from firebatch.core.connection import Connection
from firebatch.core.request import LogicalRequest, RequestMethod, normalize_requests
from firebatch.core.builder import TransportRequest, build_all_requests
from firebatch.core.dispatcher import BatchDispatcher
from firebatch.core.classifier import Outcome, OutcomeKind, classify_response
from firebatch.core.retry import RetryBatch, RetryEngine

__all__ = [
    "Connection",
    "LogicalRequest",
    "RequestMethod",
    "normalize_requests",
    "TransportRequest",
    "build_all_requests",
    "BatchDispatcher",
    "Outcome",
    "OutcomeKind",
    "classify_response",
    "RetryBatch",
    "RetryEngine",
]
