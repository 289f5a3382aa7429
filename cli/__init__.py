"""CLI package for Kite Session Keeper

This package provides the command-line interface for logging in, checking
and inspecting the stored Kite Connect session.
"""

from cli.main import main

__all__ = [
    "main",
]
