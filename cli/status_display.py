"""Status display functionality for CLI"""

from typing import List

from rich.table import Table

from kite_auth import Holding
from utils.env_store import EnvFileStore


def show_store_status(store: EnvFileStore, console):
    """
    Display which tokens are stored, without showing their values

    Args:
        store: EnvFileStore instance
        console: Rich console for output
    """
    status = store.get_status()

    table = Table(title="Kite Session Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Store File", status["store_file"])
    table.add_row("Store Exists", "Yes" if status["store_exists"] else "No")
    table.add_row("Access Token", "Yes" if status["has_access_token"] else "No")
    table.add_row("Refresh Token", "Yes" if status["has_refresh_token"] else "No")

    console.print(table)


def show_holdings(holdings: List[Holding], console):
    """
    Display holdings with portfolio totals

    Args:
        holdings: Holdings to show
        console: Rich console for output
    """
    table = Table(title=f"Holdings ({len(holdings)})")
    table.add_column("Symbol", style="bold")
    table.add_column("Qty", justify="right")
    table.add_column("Avg Price", justify="right")
    table.add_column("Current Price", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("P&L %", justify="right")

    for holding in holdings:
        color = "green" if holding.pnl >= 0 else "red"
        table.add_row(
            holding.symbol,
            str(holding.quantity),
            f"{holding.avg_price:,.2f}",
            f"{holding.current_price:,.2f}",
            f"[{color}]{holding.pnl:,.2f}[/{color}]",
            f"[{color}]{holding.pnl_percent:.2f}%[/{color}]",
        )

    console.print(table)

    total_invested = sum(h.invested_value for h in holdings)
    total_current = sum(h.current_value for h in holdings)
    total_pnl = total_current - total_invested
    total_pnl_percent = total_pnl / total_invested * 100 if total_invested else 0.0
    color = "green" if total_pnl >= 0 else "red"
    console.print(f"Total invested: {total_invested:,.2f}")
    console.print(f"Current value: {total_current:,.2f}")
    console.print(f"Total P&L: [{color}]{total_pnl:,.2f} ({total_pnl_percent:.2f}%)[/{color}]")
