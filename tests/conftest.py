"""
Pytest configuration and shared fixtures for the test suite.
"""

import json
from typing import Any, Dict, List, Sequence, Union

import pytest

from firebatch.config import ClientConfig
from firebatch.core.builder import TransportRequest
from firebatch.core.connection import Connection
from firebatch.core.dispatcher import BatchDispatcher
from firebatch.core.retry import RetryEngine
from firebatch.database import Database
from firebatch.errors import TransportError
from firebatch.transport.interface import Transport, TransportResponse


BASE_URL = "https://test-db.example.com/"
SECRET = "s3cr3t-database-key-0123456789abcdef"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> ClientConfig:
    """Create a test configuration."""
    return ClientConfig(
        database_url=BASE_URL,
        database_secret=SECRET,
        request_timeout_seconds=5,
        max_generation=6,
        first_generation_max_failures=100,
        first_generation_failure_ratio=0.25,
        backoff_base_seconds=2,
        backoff_jitter_seconds=1.0,
        log_level="DEBUG",
    )


@pytest.fixture
def connection() -> Connection:
    """Connection authenticated with a legacy secret."""
    return Connection(BASE_URL, SECRET)


@pytest.fixture
def oauth_connection() -> Connection:
    """Connection authenticated with an OAuth2 access token."""
    return Connection(BASE_URL, "ya29.a0AfH6SMB-access-token")


# ============================================================================
# Test Data Generators
# ============================================================================

def json_response(value: Any, status_code: int = 200) -> TransportResponse:
    """Create a response with a JSON body."""
    return TransportResponse(status_code=status_code, content=json.dumps(value))


def error_response(message: str, status_code: int) -> TransportResponse:
    """Create a response carrying a database error message."""
    return json_response({"error": message}, status_code)


# ============================================================================
# Mock Transport
# ============================================================================

MockReply = Union[TransportResponse, Exception]


class MockTransport(Transport):
    """
    Mock transport for testing.

    Replies are queued per database path and consumed in order; the last
    queued reply keeps being returned. Unknown paths answer `200 null`.
    """

    def __init__(self):
        self.replies: Dict[str, List[MockReply]] = {}
        self.calls: List[List[TransportRequest]] = []
        self.fail_batch = False
        self.closed = False

    def queue(self, path: str, *replies: MockReply) -> None:
        """Queue replies for a path."""
        self.replies.setdefault(path, []).extend(replies)

    @staticmethod
    def path_of(request: TransportRequest) -> str:
        """Database path of a request."""
        url = request.url.split("?", 1)[0]
        return url[len(BASE_URL):-len(".json")]

    def _reply(self, request: TransportRequest) -> TransportResponse:
        queue = self.replies.get(self.path_of(request))
        if not queue:
            reply: MockReply = TransportResponse(200, "null")
        elif len(queue) == 1:
            reply = queue[0]
        else:
            reply = queue.pop(0)

        if isinstance(reply, Exception):
            raise reply
        return reply

    async def fetch(self, request: TransportRequest) -> TransportResponse:
        self.calls.append([request])
        return self._reply(request)

    async def fetch_all(self, requests: Sequence[TransportRequest]) -> List[TransportResponse]:
        self.calls.append(list(requests))
        if self.fail_batch:
            raise TransportError(f"Timeout fetching {requests[0].url}")
        return [self._reply(request) for request in requests]

    async def close(self) -> None:
        self.closed = True

    def attempts(self, path: str) -> int:
        """Number of times a path was sent."""
        return sum(
            1 for call in self.calls for request in call
            if self.path_of(request) == path
        )


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def mock_transport() -> MockTransport:
    """Create a mock transport."""
    return MockTransport()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    """Create a sleep recorder."""
    return SleepRecorder()


@pytest.fixture
def retry_engine(mock_transport, connection, test_config, sleep_recorder) -> RetryEngine:
    """Retry engine wired to the mock transport with a fixed jitter of 0.5."""
    return RetryEngine(
        dispatcher=BatchDispatcher(mock_transport),
        connection=connection,
        config=test_config,
        sleep=sleep_recorder,
        jitter=lambda: 0.5,
    )


@pytest.fixture
def database(mock_transport, connection, test_config, sleep_recorder) -> Database:
    """Database handle wired to the mock transport."""
    return Database(
        connection,
        transport=mock_transport,
        config=test_config,
        sleep=sleep_recorder,
        jitter=lambda: 0.5,
    )
