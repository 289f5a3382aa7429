"""Kite Connect session management package"""

from typing import Callable, List, Optional

import httpx

from config import KiteSettings
from utils.env_store import EnvFileStore
from .authorization import LoginURLBuilder
from .checksum import compute_checksum
from .errors import (
    ConfigurationError,
    CredentialError,
    CredentialErrorKind,
    ExchangeFailure,
    KiteAPIError,
    KiteAuthError,
    ManualActionRequired,
    RefreshFailure,
    ValidationFailure,
)
from .models import CredentialPair, Holding, SessionState, ValidationOutcome
from .session_client import KiteSessionClient
from .token_exchange import exchange_callback_url, exchange_request_token, extract_request_token
from .token_manager import SessionLifecycleManager
from .token_refresh import refresh_credentials


class KiteSessionManager:
    """Kite Connect session handling for one run

    This class wires together:
    - The .env credential store
    - The session client for the Kite API
    - The lifecycle manager used by unattended runs
    - The manual request-token exchange used by operators
    """

    def __init__(
        self,
        settings: KiteSettings,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ):
        self.settings = settings
        self.store = EnvFileStore(settings.env_file)
        self.client = KiteSessionClient(settings, client_factory=client_factory)
        self.login_builder = LoginURLBuilder(settings)
        self.lifecycle = SessionLifecycleManager(settings, self.store, self.client)

    # Login URL
    def get_login_url(self) -> str:
        """Construct the Kite login URL

        Returns:
            Full login URL
        """
        return self.login_builder.get_login_url()

    def open_login_page(self) -> bool:
        """Open the login URL in a browser

        Returns:
            True if a browser was opened
        """
        return self.login_builder.open_login_page()

    # Manual exchange
    async def exchange_callback_url(self, callback_url: str) -> CredentialPair:
        """Exchange the request token in a callback URL for a new pair

        Args:
            callback_url: URL the browser landed on after login

        Returns:
            The persisted pair
        """
        identity = self.settings.require_identity()
        pair = await exchange_callback_url(callback_url, identity, self.client, self.store)
        self.lifecycle.credentials = pair
        return pair

    # Unattended path
    async def ensure_valid(self) -> CredentialPair:
        """Get a credential pair the API currently accepts

        Returns:
            Valid pair
        """
        self.settings.require_identity()
        return await self.lifecycle.ensure_valid()

    async def fetch_holdings(self) -> List[Holding]:
        """Ensure a valid session, then fetch portfolio holdings

        Returns:
            List of holdings
        """
        pair = await self.ensure_valid()
        return await self.client.fetch_holdings(pair.access_token)

    @property
    def state(self) -> SessionState:
        return self.lifecycle.state


__all__ = [
    "KiteSessionManager",
    "KiteSessionClient",
    "SessionLifecycleManager",
    "LoginURLBuilder",
    "compute_checksum",
    "exchange_callback_url",
    "exchange_request_token",
    "extract_request_token",
    "refresh_credentials",
    "CredentialPair",
    "Holding",
    "SessionState",
    "ValidationOutcome",
    "ConfigurationError",
    "CredentialError",
    "CredentialErrorKind",
    "ExchangeFailure",
    "KiteAPIError",
    "KiteAuthError",
    "ManualActionRequired",
    "RefreshFailure",
    "ValidationFailure",
]
