from decimal import Decimal

import pytest

from swapsettle.application.services.quote_assembler import QuoteAssembler
from swapsettle.config.solana_tokens import NATIVE_SOL_MINT, WSOL_MINT
from swapsettle.errors import NotFoundError, UpstreamError, ValidationError

from fakes import BONK_MINT, USDC_MINT, FakeAggregator, FakeCoins, FakePrices, quote_payload


def make_assembler(aggregator=None, prices=None, fee_bps=20) -> QuoteAssembler:
    return QuoteAssembler(aggregator or FakeAggregator(), FakeCoins(), prices or FakePrices(), platform_fee_bps=fee_bps)


@pytest.mark.anyio
async def test_quote_normalizes_amounts_and_truncates_impact() -> None:
    agg = FakeAggregator()
    quote = await make_assembler(agg).get_quote(NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")

    assert quote.estimated_amount == Decimal("0.15")
    assert quote.exchange_rate == Decimal("0.15")
    assert quote.price_impact == "0.123456"
    assert quote.route_summary == ["Raydium"]
    call = agg.quote_calls[0]
    assert call["swap_mode"] == "ExactIn"
    assert call["fee_bps"] == 20
    assert call["amount"] == 1000000
    assert call["slippage_bps"] == 50


@pytest.mark.anyio
async def test_raw_payload_is_passed_through_untouched() -> None:
    agg = FakeAggregator()
    quote = await make_assembler(agg).get_quote(NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    raw = (await agg.get_quote(NATIVE_SOL_MINT, USDC_MINT, 1000000, 50)).raw_payload
    assert quote.raw_payload == raw


@pytest.mark.anyio
async def test_fee_sum_in_usd_scaled_by_1e9() -> None:
    payload = quote_payload(platform_fee={"amount": "300", "feeBps": 20, "feeMint": USDC_MINT})
    quote = await make_assembler(FakeAggregator(payload)).get_quote(NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    # 2500 * 150 + 300 * 1 = 375300 -> / 1e9
    assert quote.aggregate_fee == Decimal("0.000375300")


@pytest.mark.anyio
async def test_unpriced_and_unparsable_legs_are_skipped() -> None:
    route = [
        {"label": "A", "inputMint": WSOL_MINT, "outputMint": USDC_MINT, "feeMint": WSOL_MINT, "feeAmount": "1000"},
        {"label": "B", "inputMint": WSOL_MINT, "outputMint": USDC_MINT, "feeMint": BONK_MINT, "feeAmount": "999999"},
        {"label": "C", "inputMint": WSOL_MINT, "outputMint": USDC_MINT, "feeMint": WSOL_MINT, "feeAmount": "oops"},
    ]
    prices = FakePrices()
    quote = await make_assembler(FakeAggregator(quote_payload(route=route)), prices).get_quote(
        NATIVE_SOL_MINT, USDC_MINT, "1000000", "50"
    )
    assert quote.aggregate_fee == Decimal("0.000150000")
    assert quote.route_summary == ["A", "B", "C"]
    assert sorted(prices.requests[0]) == sorted([WSOL_MINT, BONK_MINT])


@pytest.mark.anyio
async def test_unknown_coin_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        await make_assembler().get_quote("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA", USDC_MINT, "10", "50")


@pytest.mark.anyio
async def test_missing_out_amount_is_upstream_error() -> None:
    agg = FakeAggregator(quote_payload(out_amount=""))
    with pytest.raises(UpstreamError):
        await make_assembler(agg).get_quote(NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")


@pytest.mark.anyio
async def test_aggregator_failure_is_upstream_error() -> None:
    agg = FakeAggregator()
    agg.fail_quote = True
    with pytest.raises(UpstreamError):
        await make_assembler(agg).get_quote(NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")


@pytest.mark.anyio
@pytest.mark.parametrize(
    "from_mint,amount,slippage",
    [("bad", "10", "50"), (NATIVE_SOL_MINT, "-1", "50"), (NATIVE_SOL_MINT, "10", "9000"), (NATIVE_SOL_MINT, "1.5", "50")],
)
async def test_invalid_input_is_rejected_before_any_call(from_mint, amount, slippage) -> None:
    agg = FakeAggregator()
    with pytest.raises(ValidationError):
        await make_assembler(agg).get_quote(from_mint, USDC_MINT, amount, slippage)
    assert agg.quote_calls == []


@pytest.mark.anyio
async def test_price_oracle_failure_propagates() -> None:
    prices = FakePrices()
    prices.fail = True
    agg = FakeAggregator()

    with pytest.raises(UpstreamError, match="price api down"):
        await make_assembler(agg, prices).get_quote(NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    assert len(agg.quote_calls) == 1
    assert len(prices.requests) == 1
