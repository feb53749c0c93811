"""
httpx transport.

Sends database requests with an httpx.AsyncClient.
"""

import asyncio
from typing import TYPE_CHECKING, List, Optional, Sequence

import httpx
import structlog

from firebatch.config import ClientConfig, get_config
from firebatch.errors import TransportError
from firebatch.transport.interface import Transport, TransportResponse

if TYPE_CHECKING:
    from firebatch.core.builder import TransportRequest

logger = structlog.get_logger(__name__)


class HttpxTransport(Transport):
    """
    Transport backed by httpx.

    The client is created lazily and owned by the transport unless one
    is passed in.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Client configuration. Uses global config if not provided.
            client: Preconfigured httpx client (not closed by this transport)
        """
        self.config = config or get_config()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.request_timeout_seconds)
        return self._client

    async def fetch(self, request: "TransportRequest") -> TransportResponse:
        """Send a single request."""
        try:
            response = await self.client.request(
                request.method.upper(),
                request.url,
                headers=request.headers,
                content=request.body,
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # The URL may carry the secret, only the exception type is logged
            logger.warning("transport_request_failed", method=request.method, error=type(e).__name__)
            raise TransportError(type(e).__name__) from e

        return TransportResponse(status_code=response.status_code, content=response.text)

    async def fetch_all(self, requests: Sequence["TransportRequest"]) -> List[TransportResponse]:
        """Send all requests concurrently and wait for every one of them."""
        results = await asyncio.gather(
            *(self.fetch(request) for request in requests),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException):
                raise result

        return list(results)

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
