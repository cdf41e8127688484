from __future__ import annotations

from typing import Dict, Optional

from ...config.solana_tokens import TOKEN_MAP, SolanaToken
from ...domain.models.coin import CoinInfo
from ...errors import NotFoundError
from ...ports.coins import CoinResolverPort


class StaticCoinResolver(CoinResolverPort):
    """Resolves mints against the boot-time token registry."""

    def __init__(self, token_map: Optional[Dict[str, SolanaToken]] = None):
        tokens = token_map if token_map is not None else TOKEN_MAP
        self._by_mint: Dict[str, CoinInfo] = {
            t.mint: CoinInfo(id=t.coin_id, mint=t.mint, symbol=t.symbol, decimals=t.decimals)
            for t in tokens.values()
        }

    async def resolve(self, mint: str) -> CoinInfo:
        coin = self._by_mint.get(mint)
        if coin is None:
            raise NotFoundError(f"coin not found for mint {mint}")
        return coin
