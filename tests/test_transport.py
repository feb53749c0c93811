"""
Test suite for the httpx transport.
"""

import httpx
import pytest
import respx

from firebatch.core.builder import TransportRequest
from firebatch.core.connection import Connection
from firebatch.database import Database
from firebatch.errors import DatabaseError, TransportError
from firebatch.transport.httpx_transport import HttpxTransport

from conftest import BASE_URL, SECRET


def make_request(path: str, method: str = "get", body=None, headers=None) -> TransportRequest:
    return TransportRequest(
        url=f"{BASE_URL}{path}.json",
        method=method,
        headers=headers or {"X-Firebase-Decoding": "1"},
        body=body,
    )


# ============================================================================
# Test Single Fetch
# ============================================================================

class TestFetch:
    """Tests for sending one request."""

    @pytest.mark.asyncio
    async def test_returns_status_and_text(self, test_config):
        """Test that any status code is returned as a response."""
        async with HttpxTransport(test_config) as transport:
            with respx.mock:
                respx.get(f"{BASE_URL}a.json").mock(return_value=httpx.Response(500, text="oops"))

                response = await transport.fetch(make_request("a"))

        assert response.status_code == 500
        assert response.content == "oops"

    @pytest.mark.asyncio
    async def test_sends_method_headers_and_body(self, test_config):
        """Test the request as it goes on the wire."""
        async with HttpxTransport(test_config) as transport:
            with respx.mock:
                route = respx.post(f"{BASE_URL}a.json").mock(
                    return_value=httpx.Response(200, json={"x": 1})
                )

                await transport.fetch(make_request(
                    "a",
                    method="post",
                    body='{"x": 1}',
                    headers={"X-HTTP-Method-Override": "PATCH", "X-Firebase-Decoding": "1"},
                ))

        sent = route.calls.last.request
        assert sent.method == "POST"
        assert sent.headers["x-http-method-override"] == "PATCH"
        assert sent.headers["x-firebase-decoding"] == "1"
        assert sent.content == b'{"x": 1}'

    @pytest.mark.asyncio
    async def test_network_error_raises_transport_error(self, test_config):
        """Test that connection failures are wrapped without the URL."""
        request = TransportRequest(url=f"{BASE_URL}a.json?auth={SECRET}", method="get")

        async with HttpxTransport(test_config) as transport:
            with respx.mock:
                respx.route(method="GET", host="test-db.example.com").mock(
                    side_effect=httpx.ConnectTimeout("timed out")
                )

                with pytest.raises(TransportError) as exc_info:
                    await transport.fetch(request)

        assert SECRET not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_url_raises_transport_error(self, test_config):
        """Test that a URL httpx refuses to send is wrapped like a network error."""
        request = TransportRequest(url=f"{BASE_URL}bad\tpath.json?auth={SECRET}", method="get")

        async with HttpxTransport(test_config) as transport:
            with respx.mock:
                with pytest.raises(TransportError) as exc_info:
                    await transport.fetch(request)

        assert SECRET not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_url_becomes_database_error(self, test_config, sleep_recorder):
        """Test that a malformed path yields an error result instead of raising."""
        async with HttpxTransport(test_config) as transport:
            db = Database(
                Connection(BASE_URL, SECRET),
                transport=transport,
                config=test_config,
                sleep=sleep_recorder,
                jitter=lambda: 0.5,
            )
            with respx.mock:
                [result] = await db.get_all(["bad\tpath"])

        assert isinstance(result, DatabaseError)


# ============================================================================
# Test Concurrent Fetch
# ============================================================================

class TestFetchAll:
    """Tests for sending several requests at once."""

    @pytest.mark.asyncio
    async def test_responses_are_index_aligned(self, test_config):
        """Test that responses follow request order."""
        async with HttpxTransport(test_config) as transport:
            with respx.mock:
                for name in ("a", "b", "c"):
                    respx.get(f"{BASE_URL}{name}.json").mock(
                        return_value=httpx.Response(200, json=name)
                    )

                responses = await transport.fetch_all([make_request(n) for n in ("c", "a", "b")])

        assert [r.content for r in responses] == ['"c"', '"a"', '"b"']

    @pytest.mark.asyncio
    async def test_any_failure_fails_the_batch(self, test_config):
        """Test that one network failure raises for the whole call."""
        async with HttpxTransport(test_config) as transport:
            with respx.mock:
                respx.get(f"{BASE_URL}a.json").mock(return_value=httpx.Response(200, json=1))
                respx.get(f"{BASE_URL}b.json").mock(side_effect=httpx.ConnectError("refused"))

                with pytest.raises(TransportError):
                    await transport.fetch_all([make_request("a"), make_request("b")])


# ============================================================================
# Test Client Lifecycle
# ============================================================================

class TestLifecycle:
    """Tests for client ownership."""

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, test_config):
        """Test that a caller-owned client stays open."""
        client = httpx.AsyncClient()
        transport = HttpxTransport(test_config, client=client)

        await transport.close()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self, test_config):
        """Test that a transport-created client is closed."""
        transport = HttpxTransport(test_config)
        client = transport.client

        await transport.close()

        assert client.is_closed is True
