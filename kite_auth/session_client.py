"""HTTP client for the Kite Connect session endpoints"""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from config import KiteSettings
from settings import HOLDINGS_PATH, PROFILE_PATH, REFRESH_TOKEN_PATH, SESSION_TOKEN_PATH
from .errors import ExchangeFailure, KiteAPIError, RefreshFailure, ValidationFailure
from .models import CredentialPair, Holding, ValidationOutcome

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class KiteSessionClient:
    """Issues the identity, refresh and exchange calls against the Kite API

    Every call maps httpx errors and non-200 responses onto the session error
    types, so callers never see raw transport exceptions.
    """

    def __init__(
        self,
        settings: KiteSettings,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ):
        """Initialize the session client

        Args:
            settings: Run settings (identity, API base, timeout)
            client_factory: Optional factory for the httpx client, used by tests
                to inject a mock transport
        """
        self.settings = settings
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.request_timeout)

    def _url(self, path: str) -> str:
        return f"{self.settings.api_base}{path}"

    def _auth_headers(self, access_token: str) -> Dict[str, str]:
        return {
            "X-Kite-Version": self.settings.kite_version,
            "Authorization": f"token {self.settings.api_key}:{access_token}",
        }

    def _form_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": FORM_CONTENT_TYPE,
            "X-Kite-Version": self.settings.kite_version,
        }

    async def validate_identity(self, access_token: str) -> ValidationOutcome:
        """Check whether the API still accepts an access token

        Args:
            access_token: Token to check

        Returns:
            VALID, INVALID, or TRANSPORT_ERROR if the API could not be reached
        """
        try:
            async with self._client_factory() as client:
                response = await client.get(self._url(PROFILE_PATH), headers=self._auth_headers(access_token))
            payload = response.json() if response.status_code == 200 else None
        except httpx.RequestError as e:
            logger.warning(f"Token validation request failed: {e}")
            return ValidationOutcome.TRANSPORT_ERROR
        except ValueError as e:
            logger.warning(f"Failed to parse profile response: {e}")
            return ValidationOutcome.TRANSPORT_ERROR

        if response.status_code == 200 and isinstance(payload, dict) and payload.get("status") == "success":
            logger.debug("Access token accepted by /user/profile")
            return ValidationOutcome.VALID

        logger.info(f"Token validation failed: {response.status_code}")
        return ValidationOutcome.INVALID

    async def refresh(self, refresh_token: str) -> CredentialPair:
        """Exchange a refresh token for a new credential pair

        Args:
            refresh_token: Stored refresh token

        Returns:
            New pair; refresh_token is None when the response carried none

        Raises:
            RefreshFailure: If the API rejected the refresh or could not be reached
        """
        data = {
            "refresh_token": refresh_token,
            "api_key": self.settings.api_key,
            "api_secret": self.settings.api_secret,
        }
        try:
            payload = await self._post_session(REFRESH_TOKEN_PATH, data)
        except httpx.RequestError as e:
            raise RefreshFailure(f"Token refresh request failed: {e}") from e
        except (ValueError, KiteAPIError) as e:
            raise RefreshFailure(f"Token refresh failed: {e}") from e

        pair = _credential_pair(payload)
        if pair is None:
            raise RefreshFailure("Token refresh response missing access_token")

        logger.info("Successfully refreshed Kite access token")
        return pair

    async def exchange(self, request_token: str, checksum: str) -> CredentialPair:
        """Exchange a one-time request token for the initial credential pair

        Args:
            request_token: Token from the login redirect
            checksum: compute_checksum(api_key, request_token, api_secret)

        Returns:
            New pair; refresh_token is None when the account has none

        Raises:
            ExchangeFailure: If the API rejected the exchange or could not be reached
        """
        data = {
            "api_key": self.settings.api_key,
            "request_token": request_token,
            "checksum": checksum,
        }
        logger.info(f"Exchanging request token at {self._url(SESSION_TOKEN_PATH)}")
        try:
            payload = await self._post_session(SESSION_TOKEN_PATH, data)
        except httpx.TimeoutException as e:
            raise ExchangeFailure(f"Token exchange timed out: {e}") from e
        except httpx.RequestError as e:
            raise ExchangeFailure(f"Token exchange request failed: {e}") from e
        except (ValueError, KiteAPIError) as e:
            raise ExchangeFailure(f"Token exchange failed: {e}") from e

        pair = _credential_pair(payload)
        if pair is None:
            raise ExchangeFailure("Token exchange response missing access_token")

        logger.info("Successfully exchanged request token for access token")
        return pair

    async def fetch_holdings(self, access_token: str) -> List[Holding]:
        """Fetch portfolio holdings with a valid access token

        Raises:
            ValidationFailure: If the API rejected the access token
            KiteAPIError: For any other failure
        """
        try:
            async with self._client_factory() as client:
                response = await client.get(self._url(HOLDINGS_PATH), headers=self._auth_headers(access_token))
            payload = response.json() if response.status_code == 200 else None
        except httpx.RequestError as e:
            raise KiteAPIError(f"Holdings request failed: {e}") from e
        except ValueError as e:
            raise KiteAPIError(f"Failed to parse holdings response: {e}") from e

        if response.status_code in (401, 403):
            raise ValidationFailure(f"Access token rejected while fetching holdings ({response.status_code})")
        if response.status_code != 200:
            raise KiteAPIError(f"Holdings request failed: {response.status_code} - {response.text}", response.status_code)

        if not isinstance(payload, dict):
            raise KiteAPIError("unexpected response body from holdings endpoint")

        holdings = [Holding.from_api(item) for item in payload.get("data") or []]
        logger.info(f"Fetched {len(holdings)} holdings")
        return holdings

    async def _post_session(self, path: str, data: Dict[str, str]) -> Dict[str, Any]:
        async with self._client_factory() as client:
            response = await client.post(self._url(path), data=data, headers=self._form_headers())

        logger.debug(f"{path} response status: {response.status_code}")
        if response.status_code != 200:
            raise KiteAPIError(f"{response.status_code} - {response.text}", response.status_code)

        payload = response.json()
        if not isinstance(payload, dict):
            raise KiteAPIError(f"unexpected response body from {path}")
        return payload


def _credential_pair(payload: Dict[str, Any]) -> Optional[CredentialPair]:
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    access_token = data.get("access_token")
    if not isinstance(access_token, str) or not access_token.strip():
        return None
    refresh_token = data.get("refresh_token")
    if not isinstance(refresh_token, str) or not refresh_token.strip():
        refresh_token = None
    return CredentialPair(access_token=access_token, refresh_token=refresh_token)
