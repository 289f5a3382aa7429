"""Kite access token refresh"""

import logging

from utils.env_store import EnvFileStore
from .errors import RefreshFailure
from .models import CredentialPair
from .session_client import KiteSessionClient

logger = logging.getLogger(__name__)


async def refresh_credentials(
    current: CredentialPair,
    client: KiteSessionClient,
    store: EnvFileStore,
) -> CredentialPair:
    """Refresh the access token and write the new pair through to the store

    If the API answers without a refresh token, the current one is kept.

    Args:
        current: Pair holding the refresh token to spend
        client: Session client
        store: Credential store to persist the new pair to

    Returns:
        The refreshed pair as persisted

    Raises:
        RefreshFailure: If there is no refresh token, the API rejected it,
            or the new pair could not be persisted
    """
    if not current.has_refresh_token:
        raise RefreshFailure("No refresh token available for refresh")

    logger.info("Attempting token refresh...")
    refreshed = (await client.refresh(current.refresh_token)).retaining(current.refresh_token)

    if not store.save_credentials(refreshed.access_token, refreshed.refresh_token):
        raise RefreshFailure(f"Refreshed tokens could not be saved to {store.store_file}")

    logger.info("Token refreshed successfully")
    return refreshed
