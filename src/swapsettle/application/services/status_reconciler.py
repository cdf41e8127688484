from __future__ import annotations

from typing import Optional

from loguru import logger

from ...domain.models.chain import ChainTxStatus, TransactionStatus
from ...domain.models.trade import Trade, TradeStatus, utcnow
from ...domain.validation import validate_transaction_hash
from ...errors import NotFoundError, SettlementError
from ...ports.chain import ChainClientPort
from ...ports.store import TradeStorePort
from .trade_state_machine import TradeStateMachine

DEFAULT_FINALITY_THRESHOLD = 31


class StatusReconciler:
    """Pull-based sync of on-chain signature status into the trade record."""

    def __init__(
        self,
        store: TradeStorePort,
        chain: ChainClientPort,
        finality_threshold: int = DEFAULT_FINALITY_THRESHOLD,
        state_machine: Optional[TradeStateMachine] = None,
    ):
        self.store = store
        self.chain = chain
        self.finality_threshold = finality_threshold
        self.fsm = state_machine or TradeStateMachine()

    async def reconcile(self, transaction_hash: str) -> Trade:
        """
        Return the trade for ``transaction_hash``, refreshed from the chain.

        Terminal trades are returned without a chain call. If the status
        query fails the stored trade is returned unchanged.
        """
        transaction_hash = validate_transaction_hash(transaction_hash)

        trade = await self.store.get_by_field("transaction_hash", transaction_hash)
        if trade is None:
            raise NotFoundError(f"no trade found with transaction hash {transaction_hash}")
        if trade.is_terminal:
            return trade

        try:
            chain_status = await self.chain.get_transaction_status(transaction_hash)
        except SettlementError as e:
            logger.error(
                f"RECONCILE | status query failed | trade={trade.id} | sig={transaction_hash} | "
                f"status={trade.status.value} | {e}"
            )
            return trade

        if self._apply(trade, chain_status):
            try:
                await self.store.update(trade)
                logger.info(
                    f"RECONCILE | updated | trade={trade.id} | status={trade.status.value} | "
                    f"confirmations={trade.confirmations} | finalized={trade.finalized}"
                )
            except SettlementError as e:
                logger.warning(f"RECONCILE | failed to store update | trade={trade.id} | {e}")
        return trade

    def _apply(self, trade: Trade, chain_status: TransactionStatus) -> bool:
        changed = False
        if chain_status.confirmations is not None and chain_status.confirmations > trade.confirmations:
            trade.confirmations = chain_status.confirmations
            changed = True

        status = chain_status.status
        if status == ChainTxStatus.FAILED:
            detail = chain_status.error
            self.fsm.transition(trade, TradeStatus.FAILED)
            trade.error = f"Transaction failed on-chain: {detail}" if detail else "Transaction failed on-chain."
            trade.finalized = True
            trade.completed_at = utcnow()
            logger.warning(f"RECONCILE | failed on-chain | trade={trade.id} | {trade.error}")
            return True

        if status == ChainTxStatus.FINALIZED:
            self.fsm.transition(trade, TradeStatus.FINALIZED)
            if trade.completed_at is None:
                trade.completed_at = utcnow()
            trade.finalized = True
            trade.error = None
            logger.info(f"RECONCILE | finalized | trade={trade.id}")
            return True

        confirmations = chain_status.confirmations
        if status == ChainTxStatus.CONFIRMED and confirmations is not None and confirmations >= self.finality_threshold:
            self.fsm.transition(trade, TradeStatus.COMPLETED)
            if trade.completed_at is None:
                trade.completed_at = utcnow()
            trade.finalized = False
            trade.error = None
            logger.info(f"RECONCILE | highly confirmed | trade={trade.id} | confirmations={confirmations}")
            return True

        logger.info(
            f"RECONCILE | in progress | trade={trade.id} | chain_status={status.value} | "
            f"confirmations={trade.confirmations}"
        )
        return changed
