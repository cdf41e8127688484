from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from loguru import logger

from ...domain.models.fees import FeeMintSelection, SolFeeBreakdown
from ...domain.models.trade import Trade, TradeStatus
from ...domain.validation import validate_address
from ...errors import PersistenceError, SettlementError, UpstreamError
from ...ports.aggregator import QuoteAggregatorPort
from ...ports.store import TradeStorePort
from .fee_breakdown import FeeBreakdownCalculator
from .fee_mint_selector import SWAP_MODE_EXACT_IN, FeeMintSelector, analyze_quote_fee_mint
from .quote_assembler import QuoteAssembler


@dataclass
class PrepareSwapResult:
    unsigned_transaction: str
    fee_breakdown: SolFeeBreakdown
    trade: Trade
    fee_mint_selection: Optional[FeeMintSelection] = None

    @property
    def total_sol_required(self) -> str:
        return self.fee_breakdown.total

    @property
    def trading_fee_sol(self) -> str:
        return self.fee_breakdown.trading_fee


class SwapPreparer:
    """Quote -> fee account -> unsigned transaction -> persisted ``prepared`` trade."""

    def __init__(
        self,
        quotes: QuoteAssembler,
        fee_mints: FeeMintSelector,
        aggregator: QuoteAggregatorPort,
        breakdowns: FeeBreakdownCalculator,
        store: TradeStorePort,
        platform_fee_bps: int = 0,
        platform_fee_account: str = "",
    ):
        self.quotes = quotes
        self.fee_mints = fee_mints
        self.aggregator = aggregator
        self.breakdowns = breakdowns
        self.store = store
        self.platform_fee_bps = platform_fee_bps
        self.platform_fee_account = platform_fee_account

    async def prepare_swap(
        self,
        user_address: str,
        from_mint: str,
        to_mint: str,
        amount: Union[str, int, Decimal],
        slippage_bps: Union[str, int],
    ) -> PrepareSwapResult:
        user_address = validate_address(user_address, "user wallet address")
        assembled = await self.quotes.assemble(from_mint, to_mint, amount, slippage_bps)
        from_mint, to_mint = from_mint.strip(), to_mint.strip()
        quote = assembled.quote

        recommended = analyze_quote_fee_mint(quote.raw_payload) or None
        selection = await self.fee_mints.select_fee_mint(
            input_mint=from_mint,
            output_mint=to_mint,
            swap_mode=SWAP_MODE_EXACT_IN,
            recommended_fee_mint=recommended,
        )
        fee_destination = selection.fee_account_address if selection else self.platform_fee_account

        try:
            build = await self.aggregator.build_transaction(
                raw_payload=quote.raw_payload,
                user_pubkey=user_address,
                fee_account=fee_destination or None,
            )
        except UpstreamError:
            raise
        except SettlementError as e:
            raise UpstreamError(f"failed to build swap transaction: {e}") from e

        breakdown = self.breakdowns.compute_breakdown(quote, build)

        trade = Trade(
            from_mint=from_mint,
            to_mint=to_mint,
            amount=assembled.amount,
            status=TradeStatus.PREPARED,
            user_address=user_address,
            from_coin_id=assembled.from_coin.id,
            to_coin_id=assembled.to_coin.id,
            coin_symbol=assembled.from_coin.symbol,
            price=quote.exchange_rate,
            fee=quote.aggregate_fee,
            platform_fee_amount=self._platform_fee_amount(quote.platform_fee.amount if quote.platform_fee else None),
            platform_fee_percent=self._platform_fee_percent(quote.platform_fee.fee_bps if quote.platform_fee else 0),
            platform_fee_destination=fee_destination,
            unsigned_transaction=build.swap_transaction,
        )

        try:
            trade = await self.store.create(trade)
        except SettlementError as e:
            logger.error(f"PREPARE_SWAP | store create failed | {e}")
            raise PersistenceError(f"failed to persist prepared trade: {e}") from e

        logger.info(
            f"PREPARE_SWAP | trade={trade.id} | {trade.coin_symbol} {trade.amount} | "
            f"fee_mint={selection.selected_mint if selection else '<none>'} | "
            f"sol_fees={breakdown.as_dict()}"
        )
        return PrepareSwapResult(
            unsigned_transaction=build.swap_transaction,
            fee_breakdown=breakdown,
            trade=trade,
            fee_mint_selection=selection,
        )

    def _platform_fee_percent(self, quoted_bps: int) -> Decimal:
        bps = quoted_bps if quoted_bps and quoted_bps > 0 else self.platform_fee_bps
        return Decimal(bps) / Decimal(100)

    @staticmethod
    def _platform_fee_amount(raw: Optional[str]) -> Decimal:
        if not raw:
            return Decimal("0")
        try:
            return Decimal(raw)
        except InvalidOperation:
            logger.warning(f"PREPARE_SWAP | unparsable platform fee amount | amount={raw!r}")
            return Decimal("0")
