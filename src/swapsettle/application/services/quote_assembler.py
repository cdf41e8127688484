from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Union

from loguru import logger

from ...domain.formatting import truncate_decimal, truncate_decimal_string
from ...domain.models.coin import CoinInfo
from ...domain.models.quote import AggregatorQuote, Quote
from ...domain.validation import parse_amount, parse_slippage_bps, validate_address
from ...errors import UpstreamError, ValidationError
from ...ports.aggregator import QuoteAggregatorPort
from ...ports.coins import CoinResolverPort, PriceOraclePort

# Route fee amounts are raw units; the USD sum is scaled down by 10^9
# regardless of each fee mint's decimals.
USD_FEE_SCALE = Decimal(10) ** 9


@dataclass(frozen=True)
class AssembledQuote:
    quote: Quote
    from_coin: CoinInfo
    to_coin: CoinInfo
    amount: Decimal
    slippage_bps: int


def _to_decimal(raw: Optional[str]) -> Optional[Decimal]:
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


class QuoteAssembler:
    """Turns an aggregator route into a normalized, USD-priced quote."""

    def __init__(
        self,
        aggregator: QuoteAggregatorPort,
        coins: CoinResolverPort,
        prices: PriceOraclePort,
        platform_fee_bps: int = 0,
        only_direct_routes: bool = True,
    ):
        self.aggregator = aggregator
        self.coins = coins
        self.prices = prices
        self.platform_fee_bps = platform_fee_bps
        self.only_direct_routes = only_direct_routes

    async def get_quote(
        self,
        from_mint: str,
        to_mint: str,
        amount: Union[str, int, Decimal],
        slippage_bps: Union[str, int],
    ) -> Quote:
        assembled = await self.assemble(from_mint, to_mint, amount, slippage_bps)
        return assembled.quote

    async def assemble(
        self,
        from_mint: str,
        to_mint: str,
        amount: Union[str, int, Decimal],
        slippage_bps: Union[str, int],
    ) -> AssembledQuote:
        from_mint = validate_address(from_mint, "from mint")
        to_mint = validate_address(to_mint, "to mint")
        amount_dec = parse_amount(amount)
        if amount_dec != amount_dec.to_integral_value():
            raise ValidationError(f"amount must be in raw integer units: {amount!r}")
        slippage = parse_slippage_bps(slippage_bps)

        from_coin = await self.coins.resolve(from_mint)
        to_coin = await self.coins.resolve(to_mint)

        agg = await self.aggregator.get_quote(
            input_mint=from_mint,
            output_mint=to_mint,
            amount=int(amount_dec),
            slippage_bps=slippage,
            fee_bps=self.platform_fee_bps,
            swap_mode="ExactIn",
            only_direct_routes=self.only_direct_routes,
        )

        out_amount = _to_decimal(agg.out_amount)
        if out_amount is None:
            raise UpstreamError(f"aggregator quote has unparseable outAmount: {agg.out_amount!r}")

        prices = await self.prices.batch_price(self._fee_mints(agg))
        total_fee_usd = self._sum_fees_usd(agg, prices)

        estimated = out_amount / (Decimal(10) ** to_coin.decimals)
        exchange_rate = out_amount / amount_dec
        quote = Quote(
            estimated_amount=truncate_decimal(estimated, 6),
            exchange_rate=truncate_decimal(exchange_rate, 6),
            aggregate_fee=truncate_decimal(total_fee_usd / USD_FEE_SCALE, 9),
            price_impact=truncate_decimal_string(agg.price_impact_pct, 6),
            route_summary=[leg.label for leg in agg.route_plan],
            input_mint=agg.input_mint or from_mint,
            output_mint=agg.output_mint or to_mint,
            raw_payload=agg.raw_payload,
            in_amount=agg.in_amount,
            out_amount=agg.out_amount,
            platform_fee=agg.platform_fee,
        )

        logger.info(
            f"QUOTE | {amount_dec} {from_coin.symbol} -> {quote.estimated_amount} {to_coin.symbol} | "
            f"impact={quote.price_impact} | route={quote.route_summary} | fee_usd={total_fee_usd}"
        )
        return AssembledQuote(
            quote=quote,
            from_coin=from_coin,
            to_coin=to_coin,
            amount=amount_dec,
            slippage_bps=slippage,
        )

    @staticmethod
    def _fee_mints(agg: AggregatorQuote) -> List[str]:
        mints: List[str] = []
        for leg in agg.route_plan:
            if leg.fee_mint and leg.fee_mint not in mints:
                mints.append(leg.fee_mint)
        if agg.platform_fee and agg.platform_fee.fee_mint and agg.platform_fee.fee_mint not in mints:
            mints.append(agg.platform_fee.fee_mint)
        return mints

    @staticmethod
    def _sum_fees_usd(agg: AggregatorQuote, prices: Dict[str, Decimal]) -> Decimal:
        total = Decimal("0")
        for leg in agg.route_plan:
            fee_amount = _to_decimal(leg.fee_amount)
            if fee_amount is None:
                logger.warning(f"QUOTE_FEE | unparsable route fee | label={leg.label} | amount={leg.fee_amount!r}")
                continue
            price = prices.get(leg.fee_mint)
            if price is None:
                logger.warning(f"QUOTE_FEE | no price for fee mint | label={leg.label} | mint={leg.fee_mint}")
                continue
            total += fee_amount * price

        if agg.platform_fee is not None:
            fee_amount = _to_decimal(agg.platform_fee.amount)
            price = prices.get(agg.platform_fee.fee_mint)
            if fee_amount is None:
                logger.warning(f"QUOTE_FEE | unparsable platform fee | amount={agg.platform_fee.amount!r}")
            elif price is None:
                logger.warning(f"QUOTE_FEE | no price for platform fee mint | mint={agg.platform_fee.fee_mint}")
            else:
                total += fee_amount * price
        return total
