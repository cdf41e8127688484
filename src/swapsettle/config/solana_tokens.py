"""
Solana token registry for the settlement path.

Native SOL has no token account, so it is tracked under the system program
sentinel mint and rewritten to the wrapped-SOL mint wherever an associated
account has to be derived.

Extra tokens can be merged in at boot with ``load_extra_tokens``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from loguru import logger

WSOL_MINT = "So11111111111111111111111111111111111111112"
NATIVE_SOL_MINT = "11111111111111111111111111111111"

# Token account rent-exempt minimum (165-byte SPL account).
RENT_EXEMPT_ATA_LAMPORTS = 2_039_280


@dataclass(frozen=True)
class SolanaToken:
    symbol: str
    mint: str
    decimals: int
    coin_id: str


# NOTE: Mint addresses are the widely used mainnet mints; verify before live.
SOL = SolanaToken(symbol="SOL", mint=NATIVE_SOL_MINT, decimals=9, coin_id="solana")
WSOL = SolanaToken(symbol="WSOL", mint=WSOL_MINT, decimals=9, coin_id="wrapped-solana")
USDC = SolanaToken(symbol="USDC", mint="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", decimals=6, coin_id="usd-coin")
USDT = SolanaToken(symbol="USDT", mint="Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB", decimals=6, coin_id="tether")
JUP = SolanaToken(symbol="JUP", mint="JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", decimals=6, coin_id="jupiter-exchange-solana")
BONK = SolanaToken(symbol="BONK", mint="DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263", decimals=5, coin_id="bonk")
WIF = SolanaToken(symbol="WIF", mint="EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm", decimals=6, coin_id="dogwifcoin")


TOKEN_MAP: Dict[str, SolanaToken] = {
    t.symbol: t
    for t in [SOL, WSOL, USDC, USDT, JUP, BONK, WIF]
}


def is_sol_mint(mint: str) -> bool:
    return mint in (NATIVE_SOL_MINT, WSOL_MINT)


def normalize_mint(mint: str) -> str:
    """Rewrite the native SOL sentinel to the wrapped-SOL mint."""
    return WSOL_MINT if mint == NATIVE_SOL_MINT else mint


def load_extra_tokens(extra_tokens_str: Optional[str] = None) -> Dict[str, SolanaToken]:
    """Merge extra tokens from a config string (called at boot only).

    Format (comma-separated):
        "FOO=<mint>:<decimals>:<coin_id>,BAR=<mint>:<decimals>"

    The coin id defaults to the lowercased symbol. Malformed entries are
    skipped with a warning.
    """
    token_map = TOKEN_MAP.copy()

    if not extra_tokens_str or not extra_tokens_str.strip():
        return token_map

    for entry in [p.strip() for p in extra_tokens_str.split(",") if p.strip()]:
        if "=" not in entry:
            logger.warning(f"TOKEN_CONFIG | skip | entry={entry!r} | reason=missing '='")
            continue
        sym, rest = entry.split("=", 1)
        sym = sym.strip().upper()
        parts = [p.strip() for p in rest.split(":")]
        if not sym or len(parts) < 2 or not parts[0]:
            logger.warning(f"TOKEN_CONFIG | skip | entry={entry!r} | reason=expected <mint>:<decimals>")
            continue
        try:
            decimals = int(parts[1])
        except ValueError:
            logger.warning(f"TOKEN_CONFIG | skip | entry={entry!r} | reason=bad decimals")
            continue
        coin_id = parts[2] if len(parts) > 2 and parts[2] else sym.lower()
        token_map[sym] = SolanaToken(symbol=sym, mint=parts[0], decimals=decimals, coin_id=coin_id)

    return token_map


def get_token(symbol: str) -> SolanaToken:
    key = symbol.upper()
    if key not in TOKEN_MAP:
        raise KeyError(f"Token not configured: {symbol}")
    return TOKEN_MAP[key]


__all__ = [
    "SolanaToken",
    "SOL",
    "WSOL",
    "USDC",
    "USDT",
    "JUP",
    "BONK",
    "WIF",
    "TOKEN_MAP",
    "WSOL_MINT",
    "NATIVE_SOL_MINT",
    "RENT_EXEMPT_ATA_LAMPORTS",
    "get_token",
    "is_sol_mint",
    "normalize_mint",
    "load_extra_tokens",
]
