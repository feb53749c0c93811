"""
Auth Token Generator - creates tokens granting access to the database.

Supports legacy tokens signed with the database secret and custom tokens
signed with a service account key.
"""

import json
import re
import time
from typing import Any, Dict, Mapping, Optional

import jwt
import structlog

from firebatch.constants import (
    CUSTOM_CLAIM_BLACKLIST,
    CUSTOM_CLAIMS_MAX_LENGTH,
    IDENTITY_TOOLKIT_AUDIENCE,
    NormalizedError,
)
from firebatch.errors import AuthTokenError

logger = structlog.get_logger(__name__)

TOKEN_LIFETIME_SECONDS = 3600

_UID_FORBIDDEN = re.compile(r'[|&;$%@"<>()+,.]')


def sanitize_uid(user_email: str) -> str:
    """Strip characters not allowed in a uid."""
    return _UID_FORBIDDEN.sub("", user_email)


def validate_custom_claims(custom_claims: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Check custom claims before they are embedded in a token.

    Raises:
        AuthTokenError: On a reserved claim name or oversized claims
    """
    claims = dict(custom_claims or {})

    for key in claims:
        if key in CUSTOM_CLAIM_BLACKLIST:
            raise AuthTokenError(NormalizedError.INVALID_CUSTOM_CLAIMS_KEY)

    if len(json.dumps(claims, separators=(",", ":"))) > CUSTOM_CLAIMS_MAX_LENGTH:
        raise AuthTokenError(NormalizedError.INVALID_CUSTOM_CLAIMS_LENGTH)

    return claims


def create_legacy_auth_token(
    user_email: str,
    secret: str,
    custom_claims: Optional[Mapping[str, Any]] = None,
    issued_at: Optional[int] = None,
) -> str:
    """
    Create a token signed with the legacy database secret (HS256).

    Args:
        user_email: Email of the user to authenticate
        secret: Database secret
        custom_claims: Extra data available to the security rules
        issued_at: Issue time in epoch seconds (defaults to now)

    Returns:
        The encoded token
    """
    if not secret:
        raise AuthTokenError("A database secret is required to generate a legacy token")

    data = {"uid": sanitize_uid(user_email)}
    data.update(custom_claims or {})

    payload = {
        "v": 0,
        "d": data,
        "iat": issued_at if issued_at is not None else int(time.time()),
    }

    token = jwt.encode(payload, secret, algorithm="HS256")
    logger.debug("legacy_token_created", uid=data["uid"])
    return token


def create_service_account_token(
    user_email: str,
    service_account_email: str,
    private_key: str,
    custom_claims: Optional[Mapping[str, Any]] = None,
    issued_at: Optional[int] = None,
) -> str:
    """
    Create a custom token signed with a service account key (RS256).

    Args:
        user_email: Email of the user to authenticate
        service_account_email: Email of the signing service account
        private_key: PEM-encoded RSA private key of the service account
        custom_claims: Extra claims available to the security rules
        issued_at: Issue time in epoch seconds (defaults to now)

    Returns:
        The encoded token

    Raises:
        AuthTokenError: On missing credentials or invalid custom claims
    """
    if not service_account_email or not private_key:
        raise AuthTokenError(
            "You must provide both the service account email and the private key to generate a token"
        )

    claims = validate_custom_claims(custom_claims)
    now = issued_at if issued_at is not None else int(time.time())

    payload = {
        "iss": service_account_email,
        "sub": service_account_email,
        "aud": IDENTITY_TOOLKIT_AUDIENCE,
        "iat": now,
        "exp": now + TOKEN_LIFETIME_SECONDS,
        "uid": sanitize_uid(user_email),
        "claims": claims,
    }

    try:
        token = jwt.encode(payload, private_key, algorithm="RS256")
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise AuthTokenError(f"Failed to sign auth token: {e}") from e

    logger.debug("service_account_token_created", uid=payload["uid"])
    return token
