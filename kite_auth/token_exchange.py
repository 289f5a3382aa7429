"""Request-token exchange for the manual login flow"""

import logging
from urllib.parse import parse_qs, urlparse

from config import AppIdentity
from utils.env_store import EnvFileStore
from .checksum import compute_checksum
from .errors import ExchangeFailure
from .models import CredentialPair
from .session_client import KiteSessionClient

logger = logging.getLogger(__name__)


def extract_request_token(callback_url: str) -> str:
    """Pull the request_token query parameter out of the login redirect URL

    Args:
        callback_url: URL the browser was redirected to after login

    Returns:
        The request token

    Raises:
        ExchangeFailure: If the URL is malformed or has no request_token
    """
    callback_url = (callback_url or "").strip()
    if not callback_url:
        raise ExchangeFailure("No callback URL provided")

    try:
        parsed = urlparse(callback_url)
    except ValueError as e:
        raise ExchangeFailure(f"Malformed callback URL: {e}") from e

    if not parsed.scheme or not parsed.netloc:
        raise ExchangeFailure(f"Malformed callback URL: {callback_url}")

    values = parse_qs(parsed.query).get("request_token")
    request_token = values[0].strip() if values else ""
    if not request_token:
        raise ExchangeFailure("Request token not found in callback URL")

    return request_token


async def exchange_request_token(
    request_token: str,
    identity: AppIdentity,
    client: KiteSessionClient,
    store: EnvFileStore,
) -> CredentialPair:
    """Exchange a request token for a credential pair and persist it

    Either both tokens are written in one store update or nothing is. An absent
    refresh token is not written at all.

    Args:
        request_token: Token extracted from the callback URL
        identity: Application key and secret
        client: Session client
        store: Credential store

    Returns:
        The persisted pair

    Raises:
        ExchangeFailure: If the exchange was rejected or the pair could not be saved
    """
    checksum = compute_checksum(identity.api_key, request_token, identity.api_secret)
    pair = await client.exchange(request_token, checksum)

    if not store.save_credentials(pair.access_token, pair.refresh_token):
        raise ExchangeFailure(f"Tokens could not be saved to {store.store_file}")

    logger.info(
        f"Saved access token{' and refresh token' if pair.has_refresh_token else ''} to {store.store_file}"
    )
    return pair


async def exchange_callback_url(
    callback_url: str,
    identity: AppIdentity,
    client: KiteSessionClient,
    store: EnvFileStore,
) -> CredentialPair:
    """Extract the request token from callback_url and run the exchange"""
    request_token = extract_request_token(callback_url)
    return await exchange_request_token(request_token, identity, client, store)
