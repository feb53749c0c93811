"""
Fixed tables used by the request builder, classifier and token generator.

All tables are immutable and built once at import time.
"""

# Query parameter keys whose string values are sent as-is (no JSON quoting)
QUERY_KEY_WHITELIST = frozenset({
    "auth",
    "shallow",
    "print",
    "limitToFirst",
    "limitToLast",
})

# 401 is not listed: the security rules answer unauthorized access with it
RETRYABLE_STATUS_CODES = frozenset({
    400,  # Bad Request
    500,  # Internal Server Error
    502,  # Bad Gateway
})

# Writes that are assumed to land eventually when the single call times out
FIRE_AND_FORGET_METHODS = frozenset({"post", "put", "delete"})

# Reserved JWT claims that cannot be used as custom claims
CUSTOM_CLAIM_BLACKLIST = frozenset({
    "iss",
    "sub",
    "aud",
    "exp",
    "iat",
    "auth_time",
    "nonce",
    "acr",
    "amr",
    "azp",
    "email",
    "email_verified",
    "phone_number",
    "name",
    "firebase",
})

CUSTOM_CLAIMS_MAX_LENGTH = 1000

OAUTH_TOKEN_PREFIX = "ya29."

METHOD_OVERRIDE_HEADER = "X-HTTP-Method-Override"

# Makes the service decode query parameters as RFC 3986 requires
DECODING_HEADER = "X-Firebase-Decoding"

TIMEOUT_MESSAGE = "Bad request or Time-out"

IDENTITY_TOOLKIT_AUDIENCE = (
    "https://identitytoolkit.googleapis.com/google.identity.identitytoolkit.v1.IdentityToolkit"
)


class NormalizedError:
    """User-facing error messages. Nothing else is surfaced for server-side failures."""
    TRY_AGAIN = "We're sorry, a server error occurred. Please wait a bit and try again."
    GLOBAL_CRASH = "We're sorry, a server error occurred. Please wait a bit and try again."
    PERMISSION_DENIED = "Permission denied"
    INVALID_DATA = (
        "Invalid data; couldn't parse JSON object. "
        "Are you sending a JSON object with valid key names?"
    )
    INVALID_CUSTOM_CLAIMS_KEY = "Invalid custom claims key"
    INVALID_CUSTOM_CLAIMS_LENGTH = "Invalid custom claims length (>1000)"


# Error messages returned by the service that are never retried
NO_RETRY_ERRORS = frozenset({
    NormalizedError.PERMISSION_DENIED,
    NormalizedError.INVALID_DATA,
})
