"""
bootstrap.py - Composition root

Builds the adapters from ``SettlementConfig`` and wires them into a
``SettlementService``. The chain client doubles as the optional fee
estimator.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger
from solders.keypair import Keypair

from .adapters.coins import StaticCoinResolver
from .adapters.jupiter import JupiterAggregatorClient, JupiterPriceOracle
from .adapters.solana import SolanaAccountProvisioner, SolanaChainClient
from .adapters.storage import InMemoryTradeStore
from .application.services import (
    FeeBreakdownCalculator,
    FeeMintSelector,
    QuoteAssembler,
    StatusReconciler,
    SwapPreparer,
    TradeExecutor,
    TradeStateMachine,
)
from .application.settlement_service import SettlementService
from .config.settings import SettlementConfig, load_config
from .config.solana_tokens import load_extra_tokens
from .logging_setup import configure_logging
from .ports.store import TradeStorePort


def build_settlement_service(
    config: SettlementConfig,
    store: Optional[TradeStorePort] = None,
) -> SettlementService:
    store = store or InMemoryTradeStore()
    fee = config.platform_fee

    chain = SolanaChainClient(config.solana)
    signer = Keypair.from_base58_string(fee.private_key) if fee.private_key else None
    provisioner = SolanaAccountProvisioner(chain, signer=signer)
    aggregator = JupiterAggregatorClient(config.jupiter)
    prices = JupiterPriceOracle(config.jupiter)
    coins = StaticCoinResolver(load_extra_tokens(config.extra_tokens))
    fsm = TradeStateMachine()

    quotes = QuoteAssembler(
        aggregator=aggregator,
        coins=coins,
        prices=prices,
        platform_fee_bps=fee.bps,
        only_direct_routes=config.jupiter.only_direct_routes,
    )
    preparer = SwapPreparer(
        quotes=quotes,
        fee_mints=FeeMintSelector(provisioner, platform_fee_account=fee.account),
        aggregator=aggregator,
        breakdowns=FeeBreakdownCalculator(),
        store=store,
        platform_fee_bps=fee.bps,
        platform_fee_account=fee.account,
    )
    service = SettlementService(
        store=store,
        chain=chain,
        quotes=quotes,
        preparer=preparer,
        executor=TradeExecutor(store, chain, state_machine=fsm),
        reconciler=StatusReconciler(
            store,
            chain,
            finality_threshold=config.reconcile.finality_threshold,
            state_machine=fsm,
        ),
        fee_estimator=chain,
    )
    logger.info(
        f"SETTLEMENT_SERVICE | ready | fee_bps={fee.bps} | fee_collection={'on' if fee.enabled else 'off'} | "
        f"ata_signer={'yes' if signer else 'no'}"
    )
    return service


def bootstrap(settings_path: Optional[str] = None) -> SettlementService:
    """Load config, configure logging, and build the service."""
    config = load_config(settings_path)
    configure_logging(config.logging.level, config.logging.file)
    return build_settlement_service(config)
