from .fee_breakdown import FeeBreakdownCalculator
from .fee_mint_selector import FeeMintSelector, analyze_quote_fee_mint
from .quote_assembler import AssembledQuote, QuoteAssembler
from .status_reconciler import StatusReconciler
from .swap_preparer import PrepareSwapResult, SwapPreparer
from .trade_executor import TradeExecutor
from .trade_state_machine import TradeStateMachine

__all__ = [
    "AssembledQuote",
    "FeeBreakdownCalculator",
    "FeeMintSelector",
    "PrepareSwapResult",
    "QuoteAssembler",
    "StatusReconciler",
    "SwapPreparer",
    "TradeExecutor",
    "TradeStateMachine",
    "analyze_quote_fee_mint",
]
