"""
Batch Dispatcher - sends HTTP requests through a transport.

Converts transport failures into synthetic responses where the failing
request is known, and into a batch-wide crash where it is not.
"""

from typing import List, Sequence

import structlog

from firebatch.constants import FIRE_AND_FORGET_METHODS, TIMEOUT_MESSAGE
from firebatch.core.builder import TransportRequest
from firebatch.errors import BatchCrashError, TransportError
from firebatch.transport.interface import Transport, TransportResponse

logger = structlog.get_logger(__name__)


class BatchDispatcher:
    """
    Sends one generation of requests.

    A single request goes through `Transport.fetch`, several through one
    concurrent `Transport.fetch_all` call.
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def dispatch(self, requests: Sequence[TransportRequest]) -> List[TransportResponse]:
        """
        Send requests and return their responses.

        Args:
            requests: Requests to send

        Returns:
            One response per request, index-aligned

        Raises:
            BatchCrashError: If a multi-request dispatch fails at the transport level
        """
        if not requests:
            return []

        if len(requests) == 1:
            return [await self._dispatch_single(requests[0])]

        try:
            return await self.transport.fetch_all(requests)
        except TransportError:
            # Cannot tell which request failed, and the error text may hold the secret
            logger.error("batch_dispatch_crashed", size=len(requests))
            raise BatchCrashError() from None

    async def _dispatch_single(self, request: TransportRequest) -> TransportResponse:
        """Send one request, turning a transport failure into a response."""
        try:
            return await self.transport.fetch(request)
        except TransportError:
            # Writes are assumed to land eventually
            if request.method in FIRE_AND_FORGET_METHODS:
                logger.warning("write_timeout_ignored", method=request.method)
                return TransportResponse(status_code=200, content=None)

            logger.warning("request_timeout", method=request.method)
            return TransportResponse(status_code=400, content=TIMEOUT_MESSAGE)
