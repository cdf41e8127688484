from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

import httpx
from loguru import logger

from ...config.settings import JupiterSettings
from ...config.solana_tokens import normalize_mint
from ...errors import UpstreamError
from ...ports.coins import PriceOraclePort
from .base import JupiterHttp

PRICE_PATH = "/price/v2"


class JupiterPriceOracle(JupiterHttp, PriceOraclePort):
    """USD prices from the Jupiter price API; unpriced mints are left out."""

    def __init__(self, settings: JupiterSettings, client: Optional[httpx.AsyncClient] = None):
        super().__init__(settings, client)

    async def batch_price(self, mints: Iterable[str]) -> Dict[str, Decimal]:
        requested: List[str] = [m for m in dict.fromkeys(mints) if m]
        if not requested:
            return {}

        # Native SOL is priced through its wrapped mint.
        query = {m: normalize_mint(m) for m in requested}
        ids = ",".join(dict.fromkeys(query.values()))
        resp = await self._request("GET", PRICE_PATH, "JUPITER_PRICE", params={"ids": ids})
        try:
            data = resp.json().get("data") or {}
        except (ValueError, AttributeError) as e:
            raise UpstreamError(f"price response is not a JSON object: {e}") from e

        prices: Dict[str, Decimal] = {}
        for mint, queried in query.items():
            entry = data.get(queried)
            if not isinstance(entry, dict) or entry.get("price") in (None, ""):
                logger.debug(f"JUPITER_PRICE | no price | mint={mint}")
                continue
            try:
                prices[mint] = Decimal(str(entry["price"]))
            except InvalidOperation:
                logger.warning(f"JUPITER_PRICE | unparsable price | mint={mint} | price={entry['price']!r}")
        return prices
