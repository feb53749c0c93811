"""
Connection model.

Holds the settings shared by every request sent to one database.
"""

from dataclasses import dataclass, replace
from typing import Optional

from firebatch.constants import OAUTH_TOKEN_PREFIX


def normalize_base_url(url: str) -> str:
    """Make sure the database URL ends with a slash."""
    if not url.endswith("/"):
        url += "/"
    return url


@dataclass(frozen=True)
class Connection:
    """
    Settings of one database handle.

    Attributes:
        base_url: Database root URL, always ending with "/"
        secret: Legacy database secret or OAuth2 access token
        service_account_email: Service account used to sign auth tokens
        private_key: PEM private key of the service account
    """

    base_url: str
    secret: str = ""
    service_account_email: Optional[str] = None
    private_key: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "base_url", normalize_base_url(self.base_url))
        if self.secret is None:
            object.__setattr__(self, "secret", "")

    @property
    def uses_oauth_token(self) -> bool:
        """Check if the secret is an OAuth2 access token."""
        return bool(self.secret) and OAUTH_TOKEN_PREFIX in self.secret

    @property
    def has_service_account(self) -> bool:
        return bool(self.service_account_email) and bool(self.private_key)

    def with_service_account(self, email: str, private_key: str) -> "Connection":
        """Return a copy carrying service account credentials."""
        return replace(self, service_account_email=email, private_key=private_key)

    def __repr__(self) -> str:
        return f"Connection(base_url={self.base_url!r}, secret={'***' if self.secret else None})"
