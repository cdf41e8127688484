from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN

LAMPORTS_PER_SOL = 1_000_000_000
_NINE_DP = Decimal("0.000000001")


def lamports_to_sol(lamports: int) -> str:
    """Format a lamport count as SOL with exactly 9 fractional digits."""
    return str(Decimal(lamports).scaleb(-9).quantize(_NINE_DP, rounding=ROUND_DOWN))


@dataclass(frozen=True)
class SolFeeBreakdown:
    """
    Expected SOL cost of a swap, kept in lamports.

    The string views are derived from the lamport fields, so ``total`` always
    equals the exact sum of the four components.
    """

    trading_fee_lamports: int = 0
    transaction_fee_lamports: int = 0
    account_creation_fee_lamports: int = 0
    priority_fee_lamports: int = 0
    accounts_to_create: int = 0

    @classmethod
    def zero(cls) -> "SolFeeBreakdown":
        return cls()

    @property
    def total_lamports(self) -> int:
        return (
            self.trading_fee_lamports
            + self.transaction_fee_lamports
            + self.account_creation_fee_lamports
            + self.priority_fee_lamports
        )

    @property
    def trading_fee(self) -> str:
        return lamports_to_sol(self.trading_fee_lamports)

    @property
    def transaction_fee(self) -> str:
        return lamports_to_sol(self.transaction_fee_lamports)

    @property
    def account_creation_fee(self) -> str:
        return lamports_to_sol(self.account_creation_fee_lamports)

    @property
    def priority_fee(self) -> str:
        return lamports_to_sol(self.priority_fee_lamports)

    @property
    def total(self) -> str:
        return lamports_to_sol(self.total_lamports)

    def as_dict(self) -> dict:
        return {
            "tradingFee": self.trading_fee,
            "transactionFee": self.transaction_fee,
            "accountCreationFee": self.account_creation_fee,
            "priorityFee": self.priority_fee,
            "total": self.total,
            "accountsToCreate": self.accounts_to_create,
        }


@dataclass(frozen=True)
class FeeMintSelection:
    """Mint platform fees are collected in, and the account receiving them."""

    selected_mint: str
    fee_account_address: str
