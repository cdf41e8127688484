from decimal import Decimal

import pytest

from swapsettle.config.solana_tokens import NATIVE_SOL_MINT, WSOL_MINT
from swapsettle.domain.models import TradeStatus
from swapsettle.errors import PersistenceError, ProvisioningError, UpstreamError, ValidationError
from swapsettle.ports import ListOptions

from fakes import (
    BONK_MINT,
    USDC_MINT,
    USER_WALLET,
    FailingCreateStore,
    FakeAggregator,
    FakeProvisioner,
    ata,
    build_service,
    quote_payload,
)


@pytest.mark.anyio
async def test_prepare_sol_to_token_selects_wsol_and_persists_prepared_trade(store, aggregator, provisioner) -> None:
    svc = build_service(store=store, aggregator=aggregator, provisioner=provisioner)

    result = await svc.prepare_swap(USER_WALLET, NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")

    assert result.fee_mint_selection.selected_mint == WSOL_MINT
    assert result.trade.status == TradeStatus.PREPARED
    assert result.trade.unsigned_transaction == result.unsigned_transaction
    assert result.trade.from_mint == NATIVE_SOL_MINT
    assert result.trade.coin_symbol == "SOL"
    assert result.trade.amount == Decimal("1000000")
    assert result.trade.platform_fee_destination == ata(WSOL_MINT)
    assert aggregator.build_calls[0]["fee_account"] == ata(WSOL_MINT)
    assert aggregator.build_calls[0]["user_pubkey"] == USER_WALLET
    assert provisioner.created == [WSOL_MINT]

    stored = await store.get_by_field("unsigned_transaction", result.unsigned_transaction)
    assert stored is not None
    assert stored.id == result.trade.id
    assert result.total_sol_required == result.fee_breakdown.total
    assert result.trading_fee_sol == result.fee_breakdown.trading_fee
    assert result.fee_breakdown.as_dict()["total"] == result.total_sol_required


@pytest.mark.anyio
async def test_platform_fee_percent_from_quote_then_config() -> None:
    payload = quote_payload(platform_fee={"amount": "100", "feeBps": 35, "feeMint": WSOL_MINT})
    svc = build_service(aggregator=FakeAggregator(payload), platform_fee_bps=20)
    result = await svc.prepare_swap(USER_WALLET, NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    assert result.trade.platform_fee_percent == Decimal("0.35")
    assert result.trade.platform_fee_amount == Decimal("100")

    svc = build_service(platform_fee_bps=20)
    result = await svc.prepare_swap(USER_WALLET, NATIVE_SOL_MINT, USDC_MINT, "2000000", "50")
    assert result.trade.platform_fee_percent == Decimal("0.2")


@pytest.mark.anyio
async def test_recommended_fee_mint_from_quote_is_honored(aggregator) -> None:
    aggregator.payload = quote_payload(
        input_mint=USDC_MINT, output_mint=BONK_MINT,
        platform_fee={"amount": "10", "feeBps": 20, "feeMint": BONK_MINT},
    )
    prov = FakeProvisioner(existing={ata(BONK_MINT)})
    svc = build_service(aggregator=aggregator, provisioner=prov)
    result = await svc.prepare_swap(USER_WALLET, USDC_MINT, BONK_MINT, "5000000", "100")
    assert result.fee_mint_selection.selected_mint == BONK_MINT
    assert prov.created == []


@pytest.mark.anyio
async def test_no_fee_account_configured_builds_without_fee_account(aggregator) -> None:
    svc = build_service(aggregator=aggregator, platform_fee_account="")
    result = await svc.prepare_swap(USER_WALLET, NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    assert result.fee_mint_selection is None
    assert aggregator.build_calls[0]["fee_account"] is None
    assert result.trade.platform_fee_destination == ""


@pytest.mark.anyio
async def test_store_failure_does_not_return_transaction() -> None:
    svc = build_service(store=FailingCreateStore())
    with pytest.raises(PersistenceError):
        await svc.prepare_swap(USER_WALLET, NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")


@pytest.mark.anyio
async def test_builder_failure_is_upstream_error_and_nothing_stored(store, aggregator) -> None:
    aggregator.fail_build = True
    svc = build_service(store=store, aggregator=aggregator)
    with pytest.raises(UpstreamError):
        await svc.prepare_swap(USER_WALLET, NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    _, total = await store.list_with_opts(ListOptions())
    assert total == 0


@pytest.mark.anyio
async def test_provisioning_failure_propagates(aggregator) -> None:
    svc = build_service(aggregator=aggregator, provisioner=FakeProvisioner(signer=False))
    with pytest.raises(ProvisioningError):
        await svc.prepare_swap(USER_WALLET, NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    assert aggregator.build_calls == []


@pytest.mark.anyio
async def test_invalid_user_address(aggregator) -> None:
    svc = build_service(aggregator=aggregator)
    with pytest.raises(ValidationError):
        await svc.prepare_swap("nope", NATIVE_SOL_MINT, USDC_MINT, "1000000", "50")
    assert aggregator.quote_calls == []


@pytest.mark.anyio
async def test_unparsable_raw_quote_falls_back_to_swap_mode_rules(aggregator) -> None:
    aggregator.payload = quote_payload(
        input_mint=USDC_MINT, output_mint=BONK_MINT,
        platform_fee={"amount": "10", "feeBps": 20, "feeMint": 42},
    )
    prov = FakeProvisioner(existing={ata(BONK_MINT), ata(USDC_MINT)})
    svc = build_service(aggregator=aggregator, provisioner=prov)
    result = await svc.prepare_swap(USER_WALLET, USDC_MINT, BONK_MINT, "5000000", "100")
    assert result.fee_mint_selection.selected_mint == USDC_MINT
