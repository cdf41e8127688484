"""
aggregator_client.py - Jupiter swap API (quote + unsigned transaction builder)

The quote response is kept byte-for-byte as ``raw_payload``; the builder
sends it back as a JSON object, never re-encoded from parsed fields.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from ...config.settings import JupiterSettings
from ...config.solana_tokens import normalize_mint
from ...domain.models.quote import AggregatorQuote, PlatformFee, RouteLeg, SwapBuild
from ...errors import UpstreamError, ValidationError
from ...ports.aggregator import QuoteAggregatorPort
from .base import JupiterHttp

QUOTE_PATH = "/swap/v1/quote"
SWAP_PATH = "/swap/v1/swap"

MAX_PRIORITY_FEE_LAMPORTS = 1_000_000
PRIORITY_LEVEL = "veryHigh"


def parse_quote_payload(raw: bytes) -> AggregatorQuote:
    """Decode a Jupiter quote response, keeping ``raw`` as the payload."""
    try:
        data: Dict[str, Any] = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise UpstreamError(f"quote response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise UpstreamError("quote response is not a JSON object")

    legs: List[RouteLeg] = []
    for step in data.get("routePlan") or []:
        info = (step or {}).get("swapInfo") or {}
        legs.append(
            RouteLeg(
                label=str(info.get("label", "")),
                input_mint=str(info.get("inputMint", "")),
                output_mint=str(info.get("outputMint", "")),
                fee_mint=str(info.get("feeMint", "") or ""),
                fee_amount=str(info.get("feeAmount", "0") or "0"),
            )
        )

    platform_fee: Optional[PlatformFee] = None
    pf = data.get("platformFee")
    if isinstance(pf, dict):
        try:
            fee_bps = int(pf.get("feeBps") or 0)
        except (TypeError, ValueError):
            fee_bps = 0
        platform_fee = PlatformFee(
            amount=str(pf.get("amount", "0") or "0"),
            fee_bps=fee_bps,
            fee_mint=str(pf.get("feeMint", "") or ""),
        )

    try:
        slippage_bps = int(data.get("slippageBps") or 0)
    except (TypeError, ValueError):
        slippage_bps = 0

    return AggregatorQuote(
        input_mint=str(data.get("inputMint", "")),
        output_mint=str(data.get("outputMint", "")),
        in_amount=str(data.get("inAmount", "")),
        out_amount=str(data.get("outAmount", "")),
        price_impact_pct=str(data.get("priceImpactPct", "0") or "0"),
        route_plan=legs,
        raw_payload=raw,
        swap_mode=str(data.get("swapMode", "ExactIn") or "ExactIn"),
        slippage_bps=slippage_bps,
        platform_fee=platform_fee,
    )


class JupiterAggregatorClient(JupiterHttp, QuoteAggregatorPort):
    def __init__(self, settings: JupiterSettings, client: Optional[httpx.AsyncClient] = None):
        super().__init__(settings, client)
        logger.info(f"JUPITER_CLIENT | init | base_url={settings.base_url} | api_key={'set' if settings.api_key else 'none'}")

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
        params: Dict[str, str] = {
            "inputMint": normalize_mint(input_mint),
            "outputMint": normalize_mint(output_mint),
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
        }
        if swap_mode:
            params["swapMode"] = swap_mode
        if fee_bps:
            params["feeBps"] = str(fee_bps)
        if only_direct_routes:
            params["onlyDirectRoutes"] = "true"

        resp = await self._request("GET", QUOTE_PATH, "JUPITER_QUOTE", params=params)
        quote = parse_quote_payload(resp.content)
        logger.debug(
            f"JUPITER_QUOTE | ok | in={quote.in_amount} | out={quote.out_amount} | "
            f"legs={len(quote.route_plan)} | impact={quote.price_impact_pct}"
        )
        return quote

    async def build_transaction(
        self,
        raw_payload: bytes,
        user_pubkey: str,
        fee_account: Optional[str] = None,
    ) -> SwapBuild:
        try:
            quote_obj = json.loads(raw_payload)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"quote payload is not JSON: {e}") from e

        body: Dict[str, Any] = {
            "quoteResponse": quote_obj,
            "userPublicKey": user_pubkey,
            "wrapAndUnwrapSol": True,
            "dynamicComputeUnitLimit": True,
            "dynamicSlippage": True,
            "prioritizationFeeLamports": {
                "priorityLevelWithMaxLamports": {
                    "maxLamports": MAX_PRIORITY_FEE_LAMPORTS,
                    "priorityLevel": PRIORITY_LEVEL,
                },
            },
        }
        if fee_account:
            body["feeAccount"] = fee_account

        resp = await self._request("POST", SWAP_PATH, "JUPITER_SWAP", json_body=body)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"swap response is not JSON: {e}") from e

        swap_tx = data.get("swapTransaction") if isinstance(data, dict) else None
        if not swap_tx:
            logger.error("JUPITER_SWAP | missing swapTransaction")
            raise UpstreamError("no swap transaction received from aggregator")

        try:
            priority = int(data.get("prioritizationFeeLamports") or 0)
        except (TypeError, ValueError):
            priority = 0
        build = SwapBuild(
            swap_transaction=swap_tx,
            setup_transaction=data.get("setupTransaction") or None,
            cleanup_transaction=data.get("cleanupTransaction") or None,
            prioritization_fee_lamports=priority,
            last_valid_block_height=data.get("lastValidBlockHeight"),
        )
        logger.debug(
            f"JUPITER_SWAP | ok | txs={build.transaction_count} | priority={priority} | "
            f"fee_account={fee_account or '<none>'}"
        )
        return build
