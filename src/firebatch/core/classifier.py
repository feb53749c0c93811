"""
Response Classifier - decides the fate of each HTTP response.

Every response is classified as a success, a terminal failure or a
failure worth retrying. The secret is never allowed to reach the caller.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from firebatch.constants import NO_RETRY_ERRORS, RETRYABLE_STATUS_CODES, NormalizedError
from firebatch.core.builder import TransportRequest
from firebatch.core.request import LogicalRequest, RequestMethod
from firebatch.errors import DatabaseError
from firebatch.transport.interface import TransportResponse


class OutcomeKind(str, Enum):
    """Classification of a response."""
    SUCCESS = "success"
    FAILURE = "failure"     # Terminal, never retried
    RETRY = "retry"         # Failed, queued for the next generation


@dataclass(frozen=True)
class Outcome:
    """Typed result of classifying one response."""
    kind: OutcomeKind
    value: Any = None
    error: Optional[DatabaseError] = None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(OutcomeKind.SUCCESS, value=value)

    @classmethod
    def failure(cls, message: str, status_code: Optional[int] = None) -> "Outcome":
        return cls(OutcomeKind.FAILURE, error=DatabaseError(message, status_code))

    @classmethod
    def retry(cls, message: str, status_code: Optional[int] = None) -> "Outcome":
        return cls(OutcomeKind.RETRY, error=DatabaseError(message, status_code))

    @property
    def should_retry(self) -> bool:
        return self.kind == OutcomeKind.RETRY

    def apply(self, request: LogicalRequest) -> None:
        """Record this outcome on the logical request."""
        if self.kind == OutcomeKind.SUCCESS:
            request.record_success(self.value)
        else:
            request.record_error(self.error)


_UNPARSED = object()


def _parse_body(content: Optional[str]) -> Any:
    """Parse a JSON body, returning _UNPARSED on failure or missing body."""
    if content is None:
        return _UNPARSED
    try:
        return json.loads(content)
    except ValueError:
        return _UNPARSED


def _error_message(parsed: Any) -> Optional[str]:
    """Error message carried by a parsed body, if any."""
    if isinstance(parsed, dict) and parsed.get("error"):
        return str(parsed["error"])
    return None


def classify_response(
    response: TransportResponse,
    request: TransportRequest,
    secret: str = "",
) -> Outcome:
    """
    Classify one HTTP response.

    Args:
        response: The response received for `request`
        request: The HTTP request that was sent
        secret: Database secret, used to detect leaking responses

    Returns:
        The outcome to record on the matching logical request
    """
    code = response.status_code

    # print=silent writes answer 204 No Content
    if code == 204:
        return Outcome.success(None)

    content = response.content

    if secret and isinstance(content, str) and secret in content:
        return Outcome.retry(NormalizedError.TRY_AGAIN, code)

    # A missing body means the transport failed internally
    parsed = _parse_body(content)
    format_error = parsed is _UNPARSED
    message = None if format_error else _error_message(parsed)

    if code == 200 and not format_error:
        # Push answers {"name": "<generated key>"}
        if request.method == RequestMethod.POST.value and not request.is_patch_override:
            name = parsed.get("name") if isinstance(parsed, dict) else None
            return Outcome.success(name or "")
        return Outcome.success(parsed)

    if code == 401:
        return Outcome.failure(message or NormalizedError.PERMISSION_DENIED, code)

    if message in NO_RETRY_ERRORS and code not in RETRYABLE_STATUS_CODES:
        return Outcome.failure(message, code)

    if code in RETRYABLE_STATUS_CODES or format_error or message:
        if message:
            return Outcome.retry(f"{code} - {message}", code)
        return Outcome.retry(NormalizedError.TRY_AGAIN, code)

    return Outcome.failure(NormalizedError.TRY_AGAIN, code)
