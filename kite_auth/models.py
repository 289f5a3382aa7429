"""Data models for Kite Connect session management"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from config import AppIdentity


@dataclass(frozen=True)
class CredentialPair:
    """Access token plus the optional refresh token issued with it

    Attributes:
        access_token: Bearer value used for every authenticated call
        refresh_token: Single-use value for minting a new pair, None when the
            account was not granted one
    """
    access_token: str
    refresh_token: Optional[str] = None

    def __post_init__(self):
        if not self.access_token or not self.access_token.strip():
            raise ValueError("access_token must not be empty")

    @property
    def has_refresh_token(self) -> bool:
        return bool(self.refresh_token and self.refresh_token.strip())

    def retaining(self, previous_refresh_token: Optional[str]) -> "CredentialPair":
        """Return this pair, falling back to previous_refresh_token if ours is blank"""
        if self.has_refresh_token:
            return self
        return CredentialPair(self.access_token, previous_refresh_token or None)


class ValidationOutcome(Enum):
    """Result of asking the API whether an access token is still accepted"""
    VALID = "valid"
    INVALID = "invalid"
    TRANSPORT_ERROR = "transport_error"


class SessionState(Enum):
    """States the session lifecycle manager moves through during ensure_valid()"""
    UNCHECKED = "unchecked"
    VALID = "valid"
    NEEDS_REFRESH = "needs_refresh"
    REFRESHED = "refreshed"
    REFRESH_FAILED = "refresh_failed"
    MANUAL_REQUIRED = "manual_required"
    UNREACHABLE = "unreachable"


@dataclass
class Holding:
    """One portfolio holding as returned by /portfolio/holdings"""
    symbol: str
    quantity: int
    avg_price: float
    current_price: float

    @property
    def invested_value(self) -> float:
        return self.quantity * self.avg_price

    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price

    @property
    def pnl(self) -> float:
        return self.current_value - self.invested_value

    @property
    def pnl_percent(self) -> float:
        if not self.invested_value:
            return 0.0
        return self.pnl / self.invested_value * 100

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Holding":
        return cls(
            symbol=item.get("tradingsymbol", ""),
            quantity=item.get("quantity") or 0,
            avg_price=float(item.get("average_price") or 0.0),
            current_price=float(item.get("last_price") or 0.0),
        )


__all__ = [
    "AppIdentity",
    "CredentialPair",
    "ValidationOutcome",
    "SessionState",
    "Holding",
]
