"""
Request Builder - turns logical requests into HTTP request descriptors.

Handles method overriding, authentication, query string encoding and
path escaping for the database REST API.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from urllib.parse import quote

from firebatch.constants import (
    DECODING_HEADER,
    METHOD_OVERRIDE_HEADER,
    QUERY_KEY_WHITELIST,
)
from firebatch.core.connection import Connection
from firebatch.core.request import LogicalRequest, QueryValue, RequestMethod

# Characters encodeURIComponent leaves alone on top of quote()'s defaults
_URI_COMPONENT_SAFE = "!*'()"


@dataclass(frozen=True)
class TransportRequest:
    """
    A transport-ready HTTP request.

    Built once from a LogicalRequest and sent unchanged on every retry.
    """

    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    @property
    def is_patch_override(self) -> bool:
        """Check if this POST is a PATCH in disguise."""
        return self.headers.get(METHOD_OVERRIDE_HEADER) == "PATCH"


def format_query_value(key: str, value: QueryValue) -> str:
    """
    Format one query parameter value.

    Strings are sent as JSON string literals (quoted, then percent-encoded)
    unless the key is whitelisted. Other values are sent as JSON literals
    (true, false, null, numbers) so the service reads them as primitives.
    """
    if isinstance(value, str):
        if key in QUERY_KEY_WHITELIST:
            return value
        return quote('"' + value + '"', safe=_URI_COMPONENT_SAFE)

    if isinstance(value, float) and value.is_integer():
        value = int(value)

    return json.dumps(value)


def build_query_string(parameters: Dict[str, QueryValue]) -> str:
    """Join query parameters, without the leading "?"."""
    return "&".join(
        f"{key}={format_query_value(key, value)}"
        for key, value in parameters.items()
    )


def escape_path(path: str) -> str:
    """Escape "%" and "+" so the transport does not decode the path."""
    return path.replace("%", "%25").replace("+", "%2b")


def build_url(connection: Connection, path: str, parameters: Dict[str, QueryValue]) -> str:
    """Build the full REST URL of a path."""
    url = connection.base_url + escape_path(path) + ".json"
    query = build_query_string(parameters)
    if query:
        url += "?" + query
    return url


def authorization_header(connection: Connection) -> Optional[str]:
    """Bearer header value when the secret is an OAuth2 access token."""
    if connection.uses_oauth_token:
        return "Bearer " + connection.secret
    return None


def build_request(
    request: LogicalRequest,
    connection: Connection,
    authorization: Optional[str] = None,
) -> TransportRequest:
    """
    Build the HTTP request for one logical request.

    Args:
        request: The logical request
        connection: Database settings
        authorization: Authorization header shared by the whole batch

    Returns:
        The transport request (the logical request is left untouched)
    """
    method = request.method
    headers: Dict[str, str] = {}

    if authorization:
        headers["Authorization"] = authorization

    # Not every transport supports PATCH
    if method == RequestMethod.PATCH.value:
        headers[METHOD_OVERRIDE_HEADER] = "PATCH"
        method = RequestMethod.POST.value

    headers[DECODING_HEADER] = "1"

    parameters = dict(request.query_parameters)
    if connection.secret and not authorization:
        parameters["auth"] = connection.secret

    body = json.dumps(request.data) if request.has_data else None

    return TransportRequest(
        url=build_url(connection, request.path, parameters),
        method=method,
        headers=headers,
        body=body,
    )


def build_all_requests(
    requests: Sequence[LogicalRequest],
    connection: Connection,
) -> List[TransportRequest]:
    """Build the HTTP requests of a batch, index-aligned with the input."""
    authorization = authorization_header(connection)
    return [build_request(request, connection, authorization) for request in requests]
