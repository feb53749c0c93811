"""
Database handle.

Exposes batch and single-operation access to one database.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

import structlog

from firebatch.auth.tokens import create_legacy_auth_token, create_service_account_token
from firebatch.config import ClientConfig, get_config
from firebatch.core.builder import build_all_requests
from firebatch.core.connection import Connection
from firebatch.core.dispatcher import BatchDispatcher
from firebatch.core.request import LogicalRequest, RequestInput, RequestMethod, normalize_requests
from firebatch.core.retry import RetryEngine
from firebatch.errors import DatabaseError
from firebatch.transport.httpx_transport import HttpxTransport
from firebatch.transport.interface import Transport

logger = structlog.get_logger(__name__)

_NO_DATA = object()


class Database:
    """
    Client for one database.

    Usage:
        ```python
        async with get_database_by_url("https://my-app.firebaseio.com", secret) as db:
            await db.set("users/ada", {"name": "Ada"})
            results = await db.get_all(["users/ada", "users/bob"])
        ```

    `get_all` never raises per-request errors: each result is either a
    JSON value or a DatabaseError. The single-operation methods raise the
    DatabaseError instead.
    """

    def __init__(
        self,
        connection: Connection,
        transport: Optional[Transport] = None,
        config: Optional[ClientConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[], float] = random.random,
    ):
        """
        Initialize the database handle.

        Args:
            connection: Database settings
            transport: Custom transport (an httpx transport is created if not provided)
            config: Client configuration
            sleep: Coroutine used to wait between retry generations
            jitter: Source of random backoff jitter in [0, 1)
        """
        self.config = config or get_config()
        self.connection = connection
        self.transport = transport or HttpxTransport(self.config)
        self._owns_transport = transport is None

        self._engine = RetryEngine(
            dispatcher=BatchDispatcher(self.transport),
            connection=connection,
            config=self.config,
            sleep=sleep,
            jitter=jitter,
        )

    @classmethod
    def from_config(cls, config: Optional[ClientConfig] = None, **kwargs) -> "Database":
        """Create a handle from the configured database URL and secret."""
        config = config or get_config()
        if not config.database_url:
            raise ValueError("No database URL configured")

        connection = Connection(config.database_url, config.database_secret or "")
        return cls(connection, config=config, **kwargs)

    # Batch access

    async def get_all(self, requests: Iterable[RequestInput]) -> List[Any]:
        """
        Run several requests as one batch.

        Args:
            requests: Paths or request mappings (`path`, `method`, `data`,
                `query_parameters`)

        Returns:
            One result per request, in input order. Failed requests yield
            a DatabaseError.

        Raises:
            BatchCrashError: If the batch failed at the transport level
        """
        logical_requests = normalize_requests(requests)
        if not logical_requests:
            return []

        transport_requests = build_all_requests(logical_requests, self.connection)

        logger.debug("batch_started", size=len(logical_requests))
        await self._engine.send_all(transport_requests, logical_requests)

        results = [request.result for request in logical_requests]

        failed = sum(1 for result in results if isinstance(result, DatabaseError))
        if failed:
            logger.info("batch_completed_with_errors", size=len(results), failed=failed)

        return results

    # Single operations

    async def _run_single(
        self,
        method: RequestMethod,
        path: str,
        query_parameters: Optional[Mapping[str, Any]],
        data: Any = _NO_DATA,
    ) -> Any:
        """Run one request and raise its error, if any."""
        request = LogicalRequest(
            path=path,
            method=method,
            data=None if data is _NO_DATA else data,
            has_data=data is not _NO_DATA,
            query_parameters=dict(query_parameters or {}),
        )

        [result] = await self.get_all([request])

        if isinstance(result, DatabaseError):
            raise result

        return result

    async def get(self, path: str, query_parameters: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Return the data at a path.

        Raises:
            DatabaseError: If the read failed
        """
        return await self._run_single(RequestMethod.GET, path, query_parameters)

    async def set(
        self,
        path: str,
        data: Any,
        query_parameters: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Write data at a path, replacing what is there.

        Returns:
            The data written (None with print=silent)
        """
        return await self._run_single(RequestMethod.PUT, path, query_parameters, data=data)

    async def push(
        self,
        path: str,
        data: Any,
        query_parameters: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Add a child with a generated key under a path.

        Returns:
            The generated key
        """
        return await self._run_single(RequestMethod.POST, path, query_parameters, data=data)

    async def update(
        self,
        path: str,
        data: Dict[str, Any],
        query_parameters: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Update some children of a path without overwriting the others.

        Returns:
            The data written
        """
        return await self._run_single(RequestMethod.PATCH, path, query_parameters, data=data)

    async def remove(self, path: str, query_parameters: Optional[Mapping[str, Any]] = None) -> None:
        """Delete the data at a path."""
        return await self._run_single(RequestMethod.DELETE, path, query_parameters)

    # Aliases following the REST API naming
    get_data = get
    get_all_data = get_all
    set_data = set
    push_data = push
    update_data = update
    remove_data = remove

    # Auth tokens

    def create_auth_token(
        self,
        user_email: str,
        custom_claims: Optional[Mapping[str, Any]] = None,
        service_account_email: Optional[str] = None,
        private_key: Optional[str] = None,
    ) -> str:
        """
        Generate a token granting a user access to the database.

        With service account credentials (given here or already on the
        connection) a service account token is signed; otherwise a legacy
        token is signed with the database secret. Credentials given here
        are kept on the connection for later calls; one given alone
        replaces only its stored counterpart.

        Raises:
            AuthTokenError: If the token cannot be generated
        """
        if service_account_email or private_key:
            self.connection = self.connection.with_service_account(
                service_account_email or self.connection.service_account_email,
                private_key or self.connection.private_key,
            )
            self._engine.connection = self.connection

        if self.connection.service_account_email or self.connection.private_key:
            return create_service_account_token(
                user_email,
                self.connection.service_account_email,
                self.connection.private_key,
                custom_claims,
            )

        return create_legacy_auth_token(user_email, self.connection.secret, custom_claims)

    # Lifecycle

    async def close(self) -> None:
        """Close the transport if this handle created it."""
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self) -> "Database":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"Database(url={self.connection.base_url!r})"


def get_database_by_url(
    url: str,
    secret: Optional[str] = None,
    **kwargs: Any,
) -> Database:
    """
    Return a handle on the database at a URL.

    Args:
        url: Database URL (a trailing slash is added if missing)
        secret: Legacy database secret or OAuth2 access token
        **kwargs: Passed to Database (transport, config, sleep, jitter)
    """
    return Database(Connection(url, secret or ""), **kwargs)
