"""Error taxonomy for Kite Connect session management

Transport errors are reclassified into these types at each HTTP call; nothing
from httpx escapes the session client.
"""

from enum import Enum

from config import ConfigurationError


class KiteAuthError(Exception):
    """Base class for session management failures"""


class ValidationFailure(KiteAuthError):
    """The API rejected the current access token"""


class RefreshFailure(KiteAuthError):
    """The refresh token was rejected or the refresh call could not be made"""


class ExchangeFailure(KiteAuthError):
    """The manual request-token exchange could not be completed"""


class KiteAPIError(KiteAuthError):
    """An authenticated API call (other than session calls) failed"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class CredentialErrorKind(Enum):
    MANUAL_ACTION_REQUIRED = "manual_action_required"
    TRANSPORT_FAILURE = "transport_failure"


class CredentialError(KiteAuthError):
    """Raised by ensure_valid() when no usable access token could be obtained"""

    def __init__(self, message: str, kind: CredentialErrorKind = CredentialErrorKind.MANUAL_ACTION_REQUIRED):
        super().__init__(message)
        self.kind = kind


class ManualActionRequired(CredentialError):
    """Terminal for the automated path: an operator must run the auth flow"""

    def __init__(self, message: str = "Access token expired. Please run 'kite-session auth' to re-authenticate."):
        super().__init__(message, CredentialErrorKind.MANUAL_ACTION_REQUIRED)


__all__ = [
    "ConfigurationError",
    "KiteAuthError",
    "ValidationFailure",
    "RefreshFailure",
    "ExchangeFailure",
    "KiteAPIError",
    "CredentialErrorKind",
    "CredentialError",
    "ManualActionRequired",
]
