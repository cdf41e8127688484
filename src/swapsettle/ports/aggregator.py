from abc import ABC, abstractmethod
from typing import Optional

from ..domain.models.quote import AggregatorQuote, SwapBuild


class QuoteAggregatorPort(ABC):
    """Swap route aggregator abstraction."""

    @abstractmethod
    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int,
        fee_bps: int = 0,
        swap_mode: str = "ExactIn",
        only_direct_routes: bool = True,
    ) -> AggregatorQuote:
        ...

    @abstractmethod
    async def build_transaction(
        self,
        raw_payload: bytes,
        user_pubkey: str,
        fee_account: Optional[str] = None,
    ) -> SwapBuild:
        ...
