"""Shared utilities package for Kite Session Keeper"""

from .env_store import EnvFileStore, StoredCredentials
from .debug_console import (
    CONSOLE_LOGGER,
    DebugCapturingConsole,
    create_debug_console,
    setup_logging,
)

__all__ = [
    "EnvFileStore",
    "StoredCredentials",
    "DebugCapturingConsole",
    "create_debug_console",
    "CONSOLE_LOGGER",
    "setup_logging",
]
