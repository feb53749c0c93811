"""
Exception hierarchy for the firebatch client.
"""

from typing import Optional

from firebatch.constants import NormalizedError


class FirebatchError(Exception):
    """Base class for all errors raised by the client."""
    pass


class DatabaseError(FirebatchError):
    """
    Error recorded for a single logical request.

    Returned as a value inside batch results and raised by the
    single-operation helpers.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __eq__(self, other):
        if isinstance(other, DatabaseError):
            return self.message == other.message and self.status_code == other.status_code
        return NotImplemented

    def __hash__(self):
        return hash((self.message, self.status_code))

    def __repr__(self) -> str:
        return f"DatabaseError({self.message!r}, status_code={self.status_code})"


class BatchCrashError(FirebatchError):
    """
    Raised when a multi-request dispatch fails at the transport level.

    The failing request cannot be identified, so the whole batch is aborted.
    The message is always the generic one: the underlying exception may
    contain a URL with the secret in it.
    """

    def __init__(self, message: str = NormalizedError.GLOBAL_CRASH):
        super().__init__(message)


class TransportError(FirebatchError):
    """Raised by a transport on network or timeout failure."""
    pass


class AuthTokenError(FirebatchError):
    """Raised when an auth token cannot be generated."""
    pass
