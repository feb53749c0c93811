"""
Retry Engine - dispatches a batch and retries its failed subset.

Results are written directly on the logical requests, which stay
index-aligned with their HTTP requests through every generation.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

import structlog

from firebatch.config import ClientConfig, get_config
from firebatch.core.builder import TransportRequest
from firebatch.core.classifier import classify_response
from firebatch.core.connection import Connection
from firebatch.core.dispatcher import BatchDispatcher
from firebatch.core.request import LogicalRequest

logger = structlog.get_logger(__name__)


@dataclass
class RetryBatch:
    """
    Requests of one dispatch generation.

    The two lists are parallel: entry i of each describes the same request.
    """
    transport_requests: List[TransportRequest] = field(default_factory=list)
    logical_requests: List[LogicalRequest] = field(default_factory=list)

    def add(self, transport_request: TransportRequest, logical_request: LogicalRequest) -> None:
        self.transport_requests.append(transport_request)
        self.logical_requests.append(logical_request)

    @property
    def size(self) -> int:
        return len(self.logical_requests)

    @property
    def is_empty(self) -> bool:
        return self.size == 0


class RetryEngine:
    """
    Sends a batch, classifies every response and retries failures with
    exponential backoff.

    Generation 0 is the first dispatch. A failed subset is retried until
    it succeeds or generation `max_generation` has been sent. The first
    retry only happens when failures are few, both in absolute number and
    as a share of the batch: a large failing share points to a systemic
    problem and retrying it would burn request quota.

    Retried POST requests may create duplicate children.
    """

    def __init__(
        self,
        dispatcher: BatchDispatcher,
        connection: Connection,
        config: Optional[ClientConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[], float] = random.random,
    ):
        """
        Initialize the retry engine.

        Args:
            dispatcher: Dispatcher used for every generation
            connection: Database settings (the secret is used to screen responses)
            config: Client configuration
            sleep: Coroutine used to wait between generations
            jitter: Source of random values in [0, 1)
        """
        self.dispatcher = dispatcher
        self.connection = connection
        self.config = config or get_config()
        self._sleep = sleep
        self._jitter = jitter

    def should_retry(self, failures: int, total: int, generation: int) -> bool:
        """
        Check if the failed subset of a generation gets another attempt.

        Args:
            failures: Number of requests queued for retry
            total: Number of requests sent in this generation
            generation: Generation number, from 0
        """
        if failures == 0:
            return False

        if generation >= self.config.max_generation:
            return False

        if generation == 0:
            return (
                failures <= self.config.first_generation_max_failures
                and failures < total * self.config.first_generation_failure_ratio
            )

        return True

    async def send_all(
        self,
        transport_requests: Sequence[TransportRequest],
        logical_requests: Sequence[LogicalRequest],
    ) -> None:
        """
        Send a batch and record the final outcome on every logical request.

        Args:
            transport_requests: HTTP requests to send
            logical_requests: Logical requests, index-aligned with `transport_requests`

        Raises:
            BatchCrashError: If a multi-request dispatch fails at the transport level
        """
        if len(transport_requests) != len(logical_requests):
            raise ValueError("transport and logical requests are not aligned")

        batch = RetryBatch(list(transport_requests), list(logical_requests))
        generation = 0

        while not batch.is_empty:
            retry = await self._send_generation(batch, generation)

            if retry.is_empty:
                break

            if not self.should_retry(retry.size, batch.size, generation):
                logger.warning(
                    "retry_abandoned",
                    generation=generation,
                    failures=retry.size,
                    total=batch.size,
                )
                break

            delay = self.config.backoff_seconds(generation, self._jitter())
            logger.info(
                "retry_scheduled",
                generation=generation + 1,
                failures=retry.size,
                delay_seconds=delay,
            )
            await self._sleep(delay)

            batch = retry
            generation += 1

    async def _send_generation(self, batch: RetryBatch, generation: int) -> RetryBatch:
        """Dispatch one generation and collect the requests to retry."""
        responses = await self.dispatcher.dispatch(batch.transport_requests)

        if len(responses) != batch.size:
            raise RuntimeError(
                f"Transport returned {len(responses)} responses for {batch.size} requests"
            )

        retry = RetryBatch()
        for transport_request, logical_request, response in zip(
            batch.transport_requests, batch.logical_requests, responses
        ):
            outcome = classify_response(response, transport_request, self.connection.secret)
            outcome.apply(logical_request)

            if outcome.should_retry:
                retry.add(transport_request, logical_request)

        logger.debug(
            "generation_dispatched",
            generation=generation,
            size=batch.size,
            failures=retry.size,
        )
        return retry
