from .accounts import AccountProvisionerPort
from .aggregator import QuoteAggregatorPort
from .chain import ChainClientPort, FeeEstimatorPort
from .coins import CoinResolverPort, PriceOraclePort
from .store import FilterOption, ListOptions, TradeStorePort

__all__ = [
    "AccountProvisionerPort",
    "ChainClientPort",
    "CoinResolverPort",
    "FeeEstimatorPort",
    "FilterOption",
    "ListOptions",
    "PriceOraclePort",
    "QuoteAggregatorPort",
    "TradeStorePort",
]
