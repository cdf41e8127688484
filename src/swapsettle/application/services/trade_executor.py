"""
trade_executor.py - Submit a user-signed swap for a prepared trade

The unsigned transaction handed out at prepare time is the idempotency key:
only a trade still in ``prepared`` is submitted, and the ``submitted`` write
is a compare-and-set against ``prepared`` so a concurrent execution of the
same trade cannot overwrite it.

Once the chain accepts the transaction the call succeeds even if the
bookkeeping write fails; the signature is what the caller needs to track it.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional

from loguru import logger

from ...domain.models.chain import Commitment, TransactionOptions
from ...domain.models.trade import Trade, TradeStatus
from ...errors import ChainError, NotFoundError, SettlementError, ValidationError
from ...ports.chain import ChainClientPort
from ...ports.store import TradeStorePort
from .trade_state_machine import TradeStateMachine

EXPLORER_TX_URL = "https://solscan.io/tx/{signature}"

SUBMIT_OPTIONS = TransactionOptions(
    skip_preflight=False,
    preflight_commitment=Commitment.CONFIRMED,
)


class TradeExecutor:
    def __init__(
        self,
        store: TradeStorePort,
        chain: ChainClientPort,
        state_machine: Optional[TradeStateMachine] = None,
    ):
        self.store = store
        self.chain = chain
        self.fsm = state_machine or TradeStateMachine()

    async def execute_trade(self, unsigned_transaction: str, signed_transaction: str) -> Trade:
        if not unsigned_transaction:
            raise ValidationError("unsigned_transaction cannot be empty")
        if not signed_transaction:
            raise ValidationError("signed_transaction cannot be empty")

        trade = await self.store.get_by_field("unsigned_transaction", unsigned_transaction)
        if trade is None:
            raise NotFoundError("no trade record found for the given transaction")
        if trade.status != TradeStatus.PREPARED:
            raise NotFoundError(f"trade {trade.id} is {trade.status.value}, not prepared")

        try:
            raw_tx = base64.b64decode(signed_transaction, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"signed_transaction is not valid base64: {e}") from e

        logger.info(f"EXECUTE_TRADE | submit | trade={trade.id} | size={len(raw_tx)} bytes")
        try:
            signature = await self.chain.send_raw_transaction(raw_tx, SUBMIT_OPTIONS)
        except SettlementError as e:
            await self._record_failure(trade, str(e))
            raise ChainError(f"failed to execute trade on blockchain: {e}") from e

        self.fsm.transition(trade, TradeStatus.SUBMITTED)
        trade.transaction_hash = signature
        trade.error = None
        trade.completed_at = None
        trade.finalized = False

        try:
            stored = await self.store.compare_and_set(trade, expected_status=TradeStatus.PREPARED)
            if not stored:
                logger.warning(
                    f"EXECUTE_TRADE | trade no longer prepared, submitted state not stored | "
                    f"trade={trade.id} | sig={signature}"
                )
        except SettlementError as e:
            logger.warning(f"EXECUTE_TRADE | failed to store submitted state | trade={trade.id} | sig={signature} | {e}")

        logger.info(f"EXECUTE_TRADE | submitted | trade={trade.id} | {EXPLORER_TX_URL.format(signature=signature)}")
        return trade

    async def _record_failure(self, trade: Trade, error: str) -> None:
        self.fsm.transition(trade, TradeStatus.FAILED)
        trade.error = error
        logger.error(f"EXECUTE_TRADE | chain rejected | trade={trade.id} | {error}")
        try:
            if not await self.store.compare_and_set(trade, expected_status=TradeStatus.PREPARED):
                logger.warning(f"EXECUTE_TRADE | trade no longer prepared, failure not stored | trade={trade.id}")
        except SettlementError as e:
            logger.warning(f"EXECUTE_TRADE | failed to store failed state | trade={trade.id} | {e}")
