from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class RouteLeg:
    """A single aggregator hop and the fee it charges (raw units of fee_mint)."""

    label: str
    input_mint: str
    output_mint: str
    fee_mint: str = ""
    fee_amount: str = "0"


@dataclass(frozen=True)
class PlatformFee:
    amount: str
    fee_bps: int
    fee_mint: str = ""


@dataclass(frozen=True)
class AggregatorQuote:
    """Aggregator response with the original payload kept byte-for-byte."""

    input_mint: str
    output_mint: str
    in_amount: str
    out_amount: str
    price_impact_pct: str
    route_plan: List[RouteLeg]
    raw_payload: bytes
    swap_mode: str = "ExactIn"
    slippage_bps: int = 0
    platform_fee: Optional[PlatformFee] = None


@dataclass(frozen=True)
class Quote:
    """Normalized quote returned to callers."""

    estimated_amount: Decimal
    exchange_rate: Decimal
    aggregate_fee: Decimal
    price_impact: str
    route_summary: List[str]
    input_mint: str
    output_mint: str
    raw_payload: bytes
    in_amount: str = "0"
    out_amount: str = "0"
    platform_fee: Optional[PlatformFee] = None


@dataclass(frozen=True)
class SwapBuild:
    """Unsigned transaction(s) returned by the aggregator's builder."""

    swap_transaction: str
    setup_transaction: Optional[str] = None
    cleanup_transaction: Optional[str] = None
    prioritization_fee_lamports: int = 0
    last_valid_block_height: Optional[int] = None

    @property
    def transaction_count(self) -> int:
        return 1 + bool(self.setup_transaction) + bool(self.cleanup_transaction)
