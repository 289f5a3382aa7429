"""Checksum for the Kite Connect request-token exchange"""

import hashlib


def compute_checksum(api_key: str, request_token: str, api_secret: str) -> str:
    """Compute the checksum the API recomputes to authenticate a token exchange

    Args:
        api_key: Application key
        request_token: One-time token from the login redirect
        api_secret: Application secret

    Returns:
        Hex-encoded SHA-256 of api_key + request_token + api_secret
    """
    return hashlib.sha256(f"{api_key}{request_token}{api_secret}".encode("utf-8")).hexdigest()
