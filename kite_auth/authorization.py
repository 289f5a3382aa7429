"""Kite Connect login URL construction"""

import webbrowser
from urllib.parse import urlencode

from config import KiteSettings
from settings import LOGIN_PATH


class LoginURLBuilder:
    """Builds the Kite Connect login URL an operator opens in a browser"""

    def __init__(self, settings: KiteSettings):
        self.settings = settings

    def get_login_url(self) -> str:
        """Construct the login URL with the application key embedded

        Returns:
            Full login URL
        """
        params = {
            "v": self.settings.kite_version,
            "api_key": self.settings.api_key,
        }
        return f"{self.settings.login_base}{LOGIN_PATH}?{urlencode(params)}"

    def open_login_page(self) -> bool:
        """Try to open the login URL in the default browser

        Returns:
            True if a browser was opened
        """
        try:
            return webbrowser.open(self.get_login_url())
        except webbrowser.Error:
            return False
