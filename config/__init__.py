"""Configuration management package for Kite Session Keeper"""

from .loader import AppIdentity, ConfigLoader, ConfigurationError, KiteSettings, load_settings

__all__ = [
    "AppIdentity",
    "ConfigLoader",
    "ConfigurationError",
    "KiteSettings",
    "load_settings",
]
