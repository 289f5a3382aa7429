import asyncio
import logging
import threading
from typing import Callable, Optional

from rich.console import Console

from kite_auth import ExchangeFailure, KiteSessionManager
from config import ConfigurationError

logger = logging.getLogger(__name__)


class CLIAuthFlow:
    """Handle the Kite Connect manual login flow in the CLI"""

    def __init__(
        self,
        session: KiteSessionManager,
        console: Optional[Console] = None,
        input_func: Callable[[str], str] = input,
        open_browser: bool = True,
    ):
        self.session = session
        self.console = console or Console()
        self.input_func = input_func
        self.open_browser = open_browser

    async def _read_callback_url(self) -> str:
        """Wait for the operator to paste the callback URL

        The blocking read runs in a daemon thread so a timed-out prompt does not
        keep the process alive. KITE_CALLBACK_TIMEOUT bounds the wait when set.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _resolve(value=None, error=None):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(value)

        def _deliver(*args):
            try:
                loop.call_soon_threadsafe(_resolve, *args)
            except RuntimeError:
                # Event loop closed after the wait timed out
                logger.debug("Callback URL arrived after the prompt was abandoned")

        def _reader():
            try:
                value = self.input_func("Paste the callback URL: ")
            except Exception as e:
                _deliver(None, e)
            else:
                _deliver(value)

        threading.Thread(target=_reader, name="callback-url-reader", daemon=True).start()

        timeout = self.session.settings.callback_timeout
        if timeout:
            return await asyncio.wait_for(future, timeout=timeout)
        return await future

    async def authenticate(self) -> bool:
        """
        Run the manual login flow
        Returns True if successful, False otherwise
        """
        logger.debug("Starting manual authentication flow")

        try:
            self.session.settings.require_identity()
        except ConfigurationError as e:
            self.console.print(f"[red][ERROR][/red] {e}")
            return False

        self.console.print("[bold]Kite Connect Authentication[/bold]")

        # Step 1: Login URL
        login_url = self.session.get_login_url()
        self.console.print("\n[bold]Step 1:[/bold] Open this URL in your browser:")
        self.console.print(f"\n{login_url}\n", soft_wrap=True)
        if self.open_browser and self.session.open_login_page():
            self.console.print("[green][OK][/green] Browser opened")

        self.console.print("[bold]Step 2:[/bold] Complete the login")
        self.console.print("  1. Login with your Zerodha credentials")
        self.console.print("  2. Complete 2FA if prompted")
        self.console.print("  3. Copy the callback URL and paste it below\n")

        # Step 3: Get the callback URL from the operator
        try:
            callback_url = await self._read_callback_url()
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[yellow]Authentication cancelled by user[/yellow]")
            return False
        except asyncio.TimeoutError:
            self.console.print("\n[yellow]Timed out waiting for the callback URL[/yellow]")
            return False

        logger.debug(f"Operator entered callback URL (length: {len(callback_url.strip()) if callback_url else 0})")

        # Step 4: Exchange the request token
        self.console.print("\n[bold]Step 3:[/bold] Generating access token...")
        try:
            pair = await self.session.exchange_callback_url(callback_url)
        except ExchangeFailure as e:
            self.console.print(f"[red][ERROR][/red] Authentication failed: {e}")
            logger.debug(f"Manual authentication failed: {e}")
            return False

        self.console.print("[green][OK][/green] Access token received")
        if pair.has_refresh_token:
            self.console.print("[green][OK][/green] Refresh token received")
            self.console.print(f"{self.session.store.store_file} updated with access token and refresh token")
            self.console.print("[dim]Expired access tokens will be refreshed automatically[/dim]")
        else:
            self.console.print("[dim]Refresh token: not available (this is normal for most accounts)[/dim]")
            self.console.print(f"{self.session.store.store_file} updated with access token")
            self.console.print("[dim]No refresh token - you'll need to re-authenticate daily[/dim]")

        self.console.print("\n[bold green]Authentication successful![/bold green]")
        return True
