"""
Logical request model and request normalization.

A logical request is one database operation at a path, before it is
translated into an HTTP call.
"""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import structlog

from firebatch.errors import DatabaseError

logger = structlog.get_logger(__name__)


class RequestMethod(str, Enum):
    """Database operations, named after their HTTP method."""
    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"


QueryValue = Union[str, bool, int, float, None]


@dataclass
class LogicalRequest:
    """
    A single database operation and, once sent, its outcome.

    Exactly one of `response` / `error` is meaningful after a dispatch
    generation. A later success clears an earlier error.

    Attributes:
        path: Location in the database, relative to the base URL
        method: Operation to perform (lower-case HTTP method name)
        data: Value to write; only meaningful when `has_data` is set
        has_data: Whether the request carries a body (None is a valid value)
        query_parameters: Query string parameters
        response: Result of a successful operation
        error: Error recorded for a failed operation
    """

    path: str = ""
    method: str = RequestMethod.GET.value
    data: Any = None
    has_data: bool = False
    query_parameters: Dict[str, QueryValue] = field(default_factory=dict)

    # Outcome
    response: Any = None
    has_response: bool = False
    error: Optional[DatabaseError] = None

    def __post_init__(self):
        """Normalize the method name."""
        if isinstance(self.method, RequestMethod):
            self.method = self.method.value
        self.method = (self.method or RequestMethod.GET.value).lower()
        if self.query_parameters is None:
            self.query_parameters = {}
        if self.path is None:
            self.path = ""

    @classmethod
    def from_mapping(cls, entry: Mapping[str, Any]) -> "LogicalRequest":
        """
        Create a request from a mapping.

        Recognized keys are `path`, `method`, `data` and `query_parameters`
        (`optQueryParameters` is accepted as an alias).
        """
        params = entry.get("query_parameters")
        if params is None:
            params = entry.get("optQueryParameters")

        return cls(
            path=entry.get("path") or "",
            method=entry.get("method") or RequestMethod.GET.value,
            data=entry.get("data"),
            has_data="data" in entry,
            query_parameters=dict(params or {}),
        )

    def record_success(self, value: Any) -> None:
        """Store a successful result, dropping any earlier error."""
        self.response = value
        self.has_response = True
        self.error = None

    def record_error(self, error: DatabaseError) -> None:
        """Store an error, dropping any earlier result."""
        self.error = error
        self.response = None
        self.has_response = False

    @property
    def succeeded(self) -> bool:
        return self.has_response and self.error is None

    @property
    def result(self) -> Any:
        """The response if one is recorded, otherwise the error."""
        if self.has_response:
            return self.response
        return self.error


RequestInput = Union[str, Mapping[str, Any], LogicalRequest]


def normalize_requests(inputs: Iterable[RequestInput]) -> List[LogicalRequest]:
    """
    Turn user input into canonical logical requests.

    Each input is a bare path, a mapping or a LogicalRequest. Everything is
    deep copied so later stages never mutate data owned by the caller.
    Inputs of any other shape are not rejected; they become a request on
    the database root.
    """
    normalized = []

    for item in copy.deepcopy(list(inputs)):
        if isinstance(item, LogicalRequest):
            normalized.append(replace(item))
        elif isinstance(item, str):
            normalized.append(LogicalRequest(path=item))
        elif isinstance(item, Mapping):
            normalized.append(LogicalRequest.from_mapping(item))
        else:
            logger.warning("unrecognized_request_input", input_type=type(item).__name__)
            normalized.append(LogicalRequest())

    return normalized
