from .chain import ChainTxStatus, Commitment, TransactionOptions, TransactionStatus
from .coin import CoinInfo
from .fees import FeeMintSelection, SolFeeBreakdown, lamports_to_sol
from .quote import AggregatorQuote, PlatformFee, Quote, RouteLeg, SwapBuild
from .trade import TERMINAL_STATUSES, Trade, TradeId, TradeStatus

__all__ = [
    "AggregatorQuote",
    "ChainTxStatus",
    "CoinInfo",
    "Commitment",
    "FeeMintSelection",
    "PlatformFee",
    "Quote",
    "RouteLeg",
    "SolFeeBreakdown",
    "SwapBuild",
    "TERMINAL_STATUSES",
    "Trade",
    "TradeId",
    "TradeStatus",
    "TransactionOptions",
    "TransactionStatus",
    "lamports_to_sol",
]
