from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional


class TradeStatus(Enum):
    PREPARED = "prepared"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    FINALIZED = "finalized"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({TradeStatus.COMPLETED, TradeStatus.FINALIZED, TradeStatus.FAILED})

TradeId = str  # Type alias for clarity


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Trade:
    """One settlement attempt, from prepare through on-chain reconciliation."""

    from_mint: str
    to_mint: str
    amount: Decimal
    status: TradeStatus = TradeStatus.PREPARED
    id: TradeId = ""

    user_address: str = ""
    trade_type: str = "swap"
    from_coin_id: str = ""
    to_coin_id: str = ""
    coin_symbol: str = ""

    # Economics
    price: Decimal = Decimal("0")
    fee: Decimal = Decimal("0")
    platform_fee_amount: Decimal = Decimal("0")
    platform_fee_percent: Decimal = Decimal("0")
    platform_fee_destination: str = ""

    # Lifecycle
    unsigned_transaction: str = ""
    transaction_hash: Optional[str] = None
    confirmations: int = 0
    finalized: bool = False
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def copy(self) -> "Trade":
        return replace(self)
