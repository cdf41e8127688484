"""
fee_breakdown.py - Expected SOL cost of a prepared swap

All arithmetic is in integer lamports; the decimal strings are derived once
at the end so the total always equals the sum of its parts.

Components:
- trading fee: route-leg fees plus the platform fee, when charged in wSOL
- transaction fee: 5000 lamports base fee per transaction
- account creation: rent for an assumed two new token accounts
- priority fee: builder's per-tx prioritization fee (default 1_000_000) per transaction
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from loguru import logger

from ...config.solana_tokens import RENT_EXEMPT_ATA_LAMPORTS, WSOL_MINT
from ...domain.models.fees import SolFeeBreakdown
from ...domain.models.quote import Quote, SwapBuild

BASE_FEE_LAMPORTS_PER_TX = 5_000
DEFAULT_PRIORITY_FEE_LAMPORTS = 1_000_000
# Simplification: most swaps open one or two token accounts.
ASSUMED_ACCOUNTS_TO_CREATE = 2


def _lamports(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        value = int(str(raw))
    except ValueError:
        return None
    return value if value >= 0 else None


def sol_trading_fee_lamports(raw_payload: bytes) -> int:
    """Sum route and platform fees charged in wSOL from a raw aggregator quote."""
    if not raw_payload:
        return 0
    try:
        payload: Dict[str, Any] = json.loads(raw_payload)
    except (TypeError, ValueError) as e:
        logger.warning(f"FEE_BREAKDOWN | unparsable quote payload | {e}")
        return 0

    total = 0
    for leg in payload.get("routePlan") or []:
        info = (leg or {}).get("swapInfo") or {}
        if info.get("feeMint") != WSOL_MINT:
            continue
        amount = _lamports(info.get("feeAmount"))
        if amount is not None:
            total += amount

    platform_fee = payload.get("platformFee") or {}
    if platform_fee.get("feeMint") == WSOL_MINT:
        amount = _lamports(platform_fee.get("amount"))
        if amount is not None:
            total += amount
    return total


class FeeBreakdownCalculator:
    def __init__(
        self,
        default_priority_fee_lamports: int = DEFAULT_PRIORITY_FEE_LAMPORTS,
        accounts_to_create: int = ASSUMED_ACCOUNTS_TO_CREATE,
    ):
        self.default_priority_fee_lamports = default_priority_fee_lamports
        self.accounts_to_create = accounts_to_create

    def compute_breakdown(self, quote: Quote, swap_build: SwapBuild) -> SolFeeBreakdown:
        """Never raises; falls back to a zeroed breakdown."""
        try:
            breakdown = self._compute(quote, swap_build)
        except Exception as e:
            logger.warning(f"FEE_BREAKDOWN | failed, using zero breakdown | {type(e).__name__}: {e}")
            return SolFeeBreakdown.zero()

        logger.info(
            f"FEE_BREAKDOWN | trading={breakdown.trading_fee} | tx={breakdown.transaction_fee} | "
            f"ata={breakdown.account_creation_fee} | priority={breakdown.priority_fee} | "
            f"total={breakdown.total} | accounts={breakdown.accounts_to_create}"
        )
        return breakdown

    def _compute(self, quote: Quote, swap_build: SwapBuild) -> SolFeeBreakdown:
        tx_count = swap_build.transaction_count
        priority_per_tx = swap_build.prioritization_fee_lamports
        if not priority_per_tx or priority_per_tx <= 0:
            priority_per_tx = self.default_priority_fee_lamports

        return SolFeeBreakdown(
            trading_fee_lamports=sol_trading_fee_lamports(quote.raw_payload),
            transaction_fee_lamports=BASE_FEE_LAMPORTS_PER_TX * tx_count,
            account_creation_fee_lamports=self.accounts_to_create * RENT_EXEMPT_ATA_LAMPORTS,
            priority_fee_lamports=priority_per_tx * tx_count,
            accounts_to_create=self.accounts_to_create,
        )
