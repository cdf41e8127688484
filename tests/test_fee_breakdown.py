import json
from decimal import Decimal

from hypothesis import given, strategies as st

from swapsettle.application.services.fee_breakdown import FeeBreakdownCalculator, sol_trading_fee_lamports
from swapsettle.config.solana_tokens import WSOL_MINT
from swapsettle.domain.models import Quote, SolFeeBreakdown, SwapBuild

from fakes import USDC_MINT, quote_payload


def make_quote(payload) -> Quote:
    return Quote(
        estimated_amount=Decimal("0"),
        exchange_rate=Decimal("0"),
        aggregate_fee=Decimal("0"),
        price_impact="0",
        route_summary=[],
        input_mint=WSOL_MINT,
        output_mint=USDC_MINT,
        raw_payload=payload if isinstance(payload, bytes) else json.dumps(payload).encode(),
    )


def test_single_transaction_defaults() -> None:
    bd = FeeBreakdownCalculator().compute_breakdown(make_quote(quote_payload()), SwapBuild(swap_transaction="tx"))
    assert bd.trading_fee == "0.000002500"
    assert bd.transaction_fee == "0.000005000"
    assert bd.account_creation_fee == "0.004078560"
    assert bd.priority_fee == "0.001000000"
    assert bd.total == "0.005086060"
    assert bd.accounts_to_create == 2


def test_setup_and_cleanup_transactions_multiply_per_tx_fees() -> None:
    build = SwapBuild(swap_transaction="tx", setup_transaction="s", cleanup_transaction="c", prioritization_fee_lamports=7000)
    bd = FeeBreakdownCalculator().compute_breakdown(make_quote(quote_payload()), build)
    assert bd.transaction_fee_lamports == 15_000
    assert bd.priority_fee_lamports == 21_000


def test_trading_fee_counts_only_wsol_legs_and_platform_fee() -> None:
    route = [
        {"label": "A", "feeMint": WSOL_MINT, "feeAmount": "1000"},
        {"label": "B", "feeMint": USDC_MINT, "feeAmount": "5000"},
        {"label": "C", "feeMint": WSOL_MINT, "feeAmount": "-4"},
    ]
    payload = quote_payload(route=route, platform_fee={"amount": "250", "feeBps": 20, "feeMint": WSOL_MINT})
    assert sol_trading_fee_lamports(json.dumps(payload).encode()) == 1250


def test_unparsable_payload_yields_zero_trading_fee() -> None:
    bd = FeeBreakdownCalculator().compute_breakdown(make_quote(b"not json"), SwapBuild(swap_transaction="tx"))
    assert bd.trading_fee_lamports == 0
    assert bd.total_lamports == 5_000 + 1_000_000 + 2 * 2_039_280


def test_internal_failure_falls_back_to_zero_breakdown() -> None:
    bd = FeeBreakdownCalculator().compute_breakdown(make_quote(quote_payload()), None)
    assert bd == SolFeeBreakdown.zero()
    assert bd.total == "0.000000000"


@given(
    trading=st.integers(min_value=0, max_value=10**15),
    tx=st.integers(min_value=0, max_value=10**9),
    rent=st.integers(min_value=0, max_value=10**10),
    prio=st.integers(min_value=0, max_value=10**12),
)
def test_total_equals_sum_of_components(trading, tx, rent, prio) -> None:
    bd = SolFeeBreakdown(trading, tx, rent, prio, 2)
    parts = [bd.trading_fee, bd.transaction_fee, bd.account_creation_fee, bd.priority_fee]
    assert sum(Decimal(p) for p in parts) == Decimal(bd.total)


def test_as_dict_exposes_sol_strings() -> None:
    breakdown = SolFeeBreakdown(
        trading_fee_lamports=2_500,
        transaction_fee_lamports=5_000,
        account_creation_fee_lamports=4_078_560,
        priority_fee_lamports=1_000_000,
        accounts_to_create=2,
    )
    assert breakdown.as_dict() == {
        "tradingFee": "0.000002500",
        "transactionFee": "0.000005000",
        "accountCreationFee": "0.004078560",
        "priorityFee": "0.001000000",
        "total": "0.005086060",
        "accountsToCreate": 2,
    }
