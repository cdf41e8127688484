from .aggregator_client import JupiterAggregatorClient, parse_quote_payload
from .price_oracle import JupiterPriceOracle

__all__ = ["JupiterAggregatorClient", "JupiterPriceOracle", "parse_quote_payload"]
