"""
settlement_service.py - Facade over the settlement pipeline

Entry point for an API layer: quotes, prepare, execute, reconcile and the
trade read operations. The optional fee estimator is wired at composition
time; when absent ``get_fee_for_message`` reports it as unsupported.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple, Union

from loguru import logger

from ..domain.models.chain import TransactionStatus
from ..domain.models.quote import Quote
from ..domain.models.trade import Trade
from ..domain.validation import validate_transaction_hash
from ..errors import NotFoundError, PersistenceError, SettlementError, UpstreamError, ValidationError
from ..ports.chain import ChainClientPort, FeeEstimatorPort
from ..ports.store import ListOptions, TradeStorePort
from .services.quote_assembler import QuoteAssembler
from .services.status_reconciler import StatusReconciler
from .services.swap_preparer import PrepareSwapResult, SwapPreparer
from .services.trade_executor import TradeExecutor


class SettlementService:
    def __init__(
        self,
        store: TradeStorePort,
        chain: ChainClientPort,
        quotes: QuoteAssembler,
        preparer: SwapPreparer,
        executor: TradeExecutor,
        reconciler: StatusReconciler,
        fee_estimator: Optional[FeeEstimatorPort] = None,
    ):
        self.store = store
        self.chain = chain
        self.quotes = quotes
        self.preparer = preparer
        self.executor = executor
        self.reconciler = reconciler
        self.fee_estimator = fee_estimator

    # ------------------------------------------------------------------
    # Trade reads
    # ------------------------------------------------------------------
    async def get_trade(self, trade_id: str) -> Trade:
        if not trade_id:
            raise ValidationError("trade id cannot be empty")
        trade = await self.store.get(trade_id)
        if trade is None:
            raise NotFoundError(f"trade {trade_id} not found")
        return trade

    async def list_trades(self, opts: Optional[ListOptions] = None) -> Tuple[List[Trade], int]:
        try:
            return await self.store.list_with_opts(opts or ListOptions())
        except PersistenceError:
            raise
        except SettlementError as e:
            raise PersistenceError(f"failed to list trades: {e}") from e

    async def get_trade_by_transaction_hash(self, transaction_hash: str) -> Trade:
        return await self.reconciler.reconcile(transaction_hash)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    async def get_swap_quote(
        self,
        from_mint: str,
        to_mint: str,
        amount: Union[str, int, Decimal],
        slippage_bps: Union[str, int],
    ) -> Quote:
        return await self.quotes.get_quote(from_mint, to_mint, amount, slippage_bps)

    async def prepare_swap(
        self,
        user_address: str,
        from_mint: str,
        to_mint: str,
        amount: Union[str, int, Decimal],
        slippage_bps: Union[str, int],
    ) -> PrepareSwapResult:
        return await self.preparer.prepare_swap(user_address, from_mint, to_mint, amount, slippage_bps)

    async def execute_trade(self, unsigned_transaction: str, signed_transaction: str) -> Trade:
        return await self.executor.execute_trade(unsigned_transaction, signed_transaction)

    # ------------------------------------------------------------------
    # Chain passthroughs
    # ------------------------------------------------------------------
    async def get_transaction_status(self, transaction_hash: str) -> TransactionStatus:
        transaction_hash = validate_transaction_hash(transaction_hash)
        try:
            return await self.chain.get_transaction_status(transaction_hash)
        except UpstreamError:
            raise
        except SettlementError as e:
            raise UpstreamError(f"failed to get transaction status: {e}") from e

    async def get_fee_for_message(self, message: bytes) -> Optional[int]:
        if self.fee_estimator is None:
            raise UpstreamError("chain client does not support fee estimation")
        if not message:
            raise ValidationError("message cannot be empty")
        fee = await self.fee_estimator.get_fee_for_message(message)
        logger.debug(f"FEE_FOR_MESSAGE | size={len(message)} | fee={fee}")
        return fee
