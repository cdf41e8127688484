import base64

import pytest

from swapsettle.application.services import TradeExecutor
from swapsettle.domain.models import Commitment, TradeStatus
from swapsettle.errors import ChainError, NotFoundError, ValidationError

from fakes import SIGNED_TX, FailingWriteStore, seed_trade


@pytest.mark.anyio
async def test_unknown_unsigned_transaction_is_not_found_and_never_submitted(store, chain) -> None:
    executor = TradeExecutor(store, chain)
    with pytest.raises(NotFoundError):
        await executor.execute_trade("dW5rbm93bg==", SIGNED_TX)
    assert chain.sent == []


@pytest.mark.anyio
async def test_successful_submission_marks_trade_submitted(store, chain) -> None:
    seeded = await seed_trade(store)
    trade = await TradeExecutor(store, chain).execute_trade(seeded.unsigned_transaction, SIGNED_TX)

    assert trade.status == TradeStatus.SUBMITTED
    assert trade.transaction_hash == chain.signature
    assert trade.error is None
    assert trade.completed_at is None
    assert trade.finalized is False
    assert chain.sent == [base64.b64decode(SIGNED_TX)]
    assert chain.sent_opts[0].skip_preflight is False
    assert chain.sent_opts[0].preflight_commitment == Commitment.CONFIRMED

    stored = await store.get(seeded.id)
    assert stored.status == TradeStatus.SUBMITTED
    assert (await store.get_by_field("transaction_hash", chain.signature)).id == seeded.id


@pytest.mark.anyio
async def test_insufficient_funds_marks_trade_failed(store, chain) -> None:
    seeded = await seed_trade(store)
    chain.send_error = "Transaction simulation failed: insufficient funds"

    with pytest.raises(ChainError):
        await TradeExecutor(store, chain).execute_trade(seeded.unsigned_transaction, SIGNED_TX)

    stored = await store.get(seeded.id)
    assert stored.status == TradeStatus.FAILED
    assert "insufficient funds" in stored.error
    assert stored.transaction_hash is None


@pytest.mark.anyio
@pytest.mark.parametrize("status", [TradeStatus.SUBMITTED, TradeStatus.FAILED, TradeStatus.FINALIZED])
async def test_non_prepared_trade_is_not_resubmitted(store, chain, status) -> None:
    seeded = await seed_trade(store, status=status)
    with pytest.raises(NotFoundError):
        await TradeExecutor(store, chain).execute_trade(seeded.unsigned_transaction, SIGNED_TX)
    assert chain.sent == []


@pytest.mark.anyio
@pytest.mark.parametrize("unsigned,signed", [("", SIGNED_TX), ("dW5zaWduZWQtMQ==", "")])
async def test_empty_transactions_are_rejected(store, chain, unsigned, signed) -> None:
    with pytest.raises(ValidationError):
        await TradeExecutor(store, chain).execute_trade(unsigned, signed)


@pytest.mark.anyio
async def test_signed_transaction_must_be_base64(store, chain) -> None:
    seeded = await seed_trade(store)
    with pytest.raises(ValidationError):
        await TradeExecutor(store, chain).execute_trade(seeded.unsigned_transaction, "***not base64***")
    assert chain.sent == []


@pytest.mark.anyio
async def test_bookkeeping_failure_after_submission_still_returns_trade(chain) -> None:
    store = FailingWriteStore()
    seeded = await seed_trade(store)
    trade = await TradeExecutor(store, chain).execute_trade(seeded.unsigned_transaction, SIGNED_TX)
    assert trade.status == TradeStatus.SUBMITTED
    assert trade.transaction_hash == chain.signature


@pytest.mark.anyio
async def test_replaying_an_executed_trade_is_rejected(store, chain) -> None:
    seeded = await seed_trade(store)
    executor = TradeExecutor(store, chain)
    await executor.execute_trade(seeded.unsigned_transaction, SIGNED_TX)

    with pytest.raises(NotFoundError):
        await executor.execute_trade(seeded.unsigned_transaction, SIGNED_TX)
    assert len(chain.sent) == 1


@pytest.mark.anyio
async def test_lost_compare_and_set_keeps_first_outcome(store, chain) -> None:
    seeded = await seed_trade(store)
    executor = TradeExecutor(store, chain)

    # Another executor already failed this trade between lookup and write.
    raced = await store.get(seeded.id)
    raced.status = TradeStatus.FAILED
    raced.error = "first writer"
    original_get = store.get_by_field

    async def stale_lookup(field_name, value):
        trade = await original_get(field_name, value)
        await store.update(raced)
        return trade

    store.get_by_field = stale_lookup
    trade = await executor.execute_trade(seeded.unsigned_transaction, SIGNED_TX)

    assert trade.status == TradeStatus.SUBMITTED
    stored = await store.get(seeded.id)
    assert stored.status == TradeStatus.FAILED
    assert stored.error == "first writer"
