"""Session lifecycle manager: keeps the stored Kite access token usable"""

import logging
from typing import List, Optional

from config import KiteSettings
from utils.env_store import EnvFileStore
from .errors import CredentialError, CredentialErrorKind, ManualActionRequired, RefreshFailure
from .models import CredentialPair, SessionState, ValidationOutcome
from .session_client import KiteSessionClient
from .token_refresh import refresh_credentials

logger = logging.getLogger(__name__)


class SessionLifecycleManager:
    """Validates the current credential, refreshes it when possible, and
    escalates to manual login when not

    The manager keeps an in-memory copy of the credential pair for the run and
    writes every change back through the store. Each ensure_valid() call starts
    from UNCHECKED; nothing is cached between calls.
    """

    def __init__(
        self,
        settings: KiteSettings,
        store: EnvFileStore,
        client: KiteSessionClient,
        credentials: Optional[CredentialPair] = None,
    ):
        """Initialize the manager

        Args:
            settings: Run settings
            store: Credential store the pair is persisted in
            client: Session client
            credentials: Starting pair; defaults to the store contents, then
                to the tokens found in the environment at start-up
        """
        self.settings = settings
        self.store = store
        self.client = client
        self.credentials = credentials or self._initial_credentials()
        self.state = SessionState.UNCHECKED
        self.history: List[SessionState] = []

    def _initial_credentials(self) -> Optional[CredentialPair]:
        stored = self.store.read()
        if stored.access_token:
            return CredentialPair(stored.access_token, stored.refresh_token)
        if self.settings.access_token:
            return CredentialPair(self.settings.access_token, self.settings.refresh_token)
        return None

    def _transition(self, state: SessionState):
        self.state = state
        self.history.append(state)
        logger.debug(f"Session state: {state.value}")

    async def ensure_valid(self) -> CredentialPair:
        """Return a credential pair the API currently accepts

        Returns:
            The valid (possibly just refreshed) pair

        Raises:
            ManualActionRequired: If the token is invalid and could not be refreshed
            CredentialError: With kind TRANSPORT_FAILURE if validation retries are
                enabled and the API stayed unreachable
        """
        self.history = []
        self._transition(SessionState.UNCHECKED)

        if self.credentials is None:
            logger.info("No access token stored")
            self._transition(SessionState.MANUAL_REQUIRED)
            raise ManualActionRequired(
                "No access token found. Please run 'kite-session auth' to authenticate."
            )

        outcome = await self._validate()
        if outcome is ValidationOutcome.VALID:
            self._transition(SessionState.VALID)
            return self.credentials

        if outcome is ValidationOutcome.TRANSPORT_ERROR and self.settings.validation_retries > 0:
            logger.error("Kite API unreachable while validating the access token")
            self._transition(SessionState.UNREACHABLE)
            raise CredentialError(
                "Could not reach the Kite API to validate the access token. Check connection and retry.",
                CredentialErrorKind.TRANSPORT_FAILURE,
            )

        logger.info("Access token expired or invalid")
        self._transition(SessionState.NEEDS_REFRESH)

        if not self.credentials.has_refresh_token:
            logger.info("No refresh token available for auto-refresh")
            self._transition(SessionState.MANUAL_REQUIRED)
            raise ManualActionRequired()

        logger.info("Attempting auto-refresh...")
        try:
            refreshed = await refresh_credentials(self.credentials, self.client, self.store)
        except RefreshFailure as e:
            logger.warning(f"Auto-refresh failed, manual authentication required: {e}")
            self._transition(SessionState.REFRESH_FAILED)
            self._transition(SessionState.MANUAL_REQUIRED)
            raise ManualActionRequired() from e

        self.credentials = refreshed
        self._transition(SessionState.REFRESHED)
        self._transition(SessionState.VALID)
        return refreshed

    async def _validate(self) -> ValidationOutcome:
        """Validate once, plus up to validation_retries extra tries on transport errors"""
        attempts = 1 + self.settings.validation_retries
        outcome = ValidationOutcome.TRANSPORT_ERROR
        for attempt in range(1, attempts + 1):
            outcome = await self.client.validate_identity(self.credentials.access_token)
            if outcome is not ValidationOutcome.TRANSPORT_ERROR:
                break
            if attempt < attempts:
                logger.info(f"Validation attempt {attempt}/{attempts} hit a transport error, retrying")
        return outcome
