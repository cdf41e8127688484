from dataclasses import dataclass


@dataclass(frozen=True)
class CoinInfo:
    """Coin resolver record for a mint."""

    id: str
    mint: str
    symbol: str
    decimals: int
