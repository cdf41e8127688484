from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, Iterable

from ..domain.models.coin import CoinInfo


class CoinResolverPort(ABC):
    """Mint address -> coin metadata."""

    @abstractmethod
    async def resolve(self, mint: str) -> CoinInfo:
        """Raises NotFoundError for unknown mints."""
        ...


class PriceOraclePort(ABC):
    """Batch USD pricing."""

    @abstractmethod
    async def batch_price(self, mints: Iterable[str]) -> Dict[str, Decimal]:
        """Mints without a price are omitted from the result."""
        ...
