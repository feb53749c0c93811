"""
Auth token generation.
"""

from firebatch.auth.tokens import (
    create_legacy_auth_token,
    create_service_account_token,
    sanitize_uid,
)

__all__ = [
    "create_legacy_auth_token",
    "create_service_account_token",
    "sanitize_uid",
]
