"""
Abstract interface for HTTP transports.

Defines the contract the dispatcher relies on to reach the database.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from firebatch.core.builder import TransportRequest


@dataclass
class TransportResponse:
    """
    HTTP response as seen by the classifier.

    Attributes:
        status_code: HTTP status code
        content: Response body as text, None when no body was received
    """
    status_code: int
    content: Optional[str] = None


class Transport(ABC):
    """
    Abstract HTTP transport.

    Responses are returned for every HTTP status code. Only true network
    failures (connection errors, timeouts) raise TransportError.
    """

    @abstractmethod
    async def fetch(self, request: "TransportRequest") -> TransportResponse:
        """
        Send a single request.

        Args:
            request: Request to send

        Returns:
            The response

        Raises:
            TransportError: On network or timeout failure
        """
        pass

    @abstractmethod
    async def fetch_all(self, requests: Sequence["TransportRequest"]) -> List[TransportResponse]:
        """
        Send several requests concurrently.

        Args:
            requests: Requests to send

        Returns:
            Responses, index-aligned with `requests`

        Raises:
            TransportError: If any request fails at the network level
        """
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass
