"""Authentication handlers for CLI"""

import logging

from auth_cli import CLIAuthFlow
from cli.status_display import show_holdings
from config import ConfigurationError
from kite_auth import (
    CredentialError,
    CredentialErrorKind,
    KiteAPIError,
    KiteSessionManager,
    SessionState,
    ValidationFailure,
)

logger = logging.getLogger(__name__)


async def check_and_refresh_auth(session: KiteSessionManager) -> tuple[bool, str, str]:
    """
    Validate the stored access token and refresh it if needed

    Args:
        session: KiteSessionManager instance

    Returns:
        Tuple of (success: bool, status: str, message: str)
    """
    try:
        await session.ensure_valid()
    except ConfigurationError as e:
        return False, "NO_CONFIG", str(e)
    except CredentialError as e:
        if e.kind is CredentialErrorKind.TRANSPORT_FAILURE:
            return False, "NETWORK_ERROR", str(e)
        if SessionState.REFRESH_FAILED in session.lifecycle.history:
            return False, "REFRESH_FAILED", f"Auto-refresh failed. {e}"
        return False, "MANUAL_REQUIRED", str(e)

    if SessionState.REFRESHED in session.lifecycle.history:
        return True, "REFRESHED", "Access token was expired and has been refreshed automatically"
    return True, "VALID", "Access token is valid"


async def run_check(session: KiteSessionManager, console) -> int:
    """
    Non-interactive token check for scheduled runs

    Args:
        session: KiteSessionManager instance
        console: Rich console for output

    Returns:
        Process exit code (0 when a valid token is available)
    """
    ok, status, message = await check_and_refresh_auth(session)
    logger.debug(f"Token check finished with status {status}")

    if ok:
        console.print(f"[green][OK][/green] {message}")
        return 0

    console.print(f"[red][ERROR][/red] {message}")
    return 1


async def login(session: KiteSessionManager, console, open_browser: bool = True) -> int:
    """
    Handle the manual login flow

    Args:
        session: KiteSessionManager instance
        console: Rich console for output
        open_browser: Whether to try opening the login page in a browser

    Returns:
        Process exit code
    """
    auth_flow = CLIAuthFlow(session, console=console, open_browser=open_browser)
    success = await auth_flow.authenticate()
    return 0 if success else 1


async def run_holdings(session: KiteSessionManager, console) -> int:
    """
    Ensure a valid session, fetch holdings and print a summary

    Args:
        session: KiteSessionManager instance
        console: Rich console for output

    Returns:
        Process exit code
    """
    console.print("Fetching holdings from Kite Connect...")
    try:
        holdings = await session.fetch_holdings()
    except (ConfigurationError, CredentialError) as e:
        console.print(f"[red][ERROR][/red] Holdings report failed: {e}")
        return 1
    except ValidationFailure as e:
        console.print(f"[red][ERROR][/red] {e}. Please run 'kite-session auth' to re-authenticate.")
        return 1
    except KiteAPIError as e:
        console.print(f"[red][ERROR][/red] Holdings report failed: {e}")
        return 1

    show_holdings(holdings, console)
    return 0
